from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = ROOT_DIR / "data"
SETTINGS_FILENAME = "settings.json"


class NumberFormat(BaseModel):
    prefix: str = ""
    width: int = Field(default=4, ge=1)


def _default_numbering() -> Dict[str, NumberFormat]:
    return {
        "service_order": NumberFormat(prefix="OS-", width=4),
        "quote": NumberFormat(prefix="ORC-", width=4),
        "contract": NumberFormat(prefix="CT-MAN-", width=3),
        "invoice": NumberFormat(prefix="", width=6),
    }


class Settings(BaseModel):
    data_dir: Optional[Path] = None
    numbering: Dict[str, NumberFormat] = Field(default_factory=_default_numbering)
    backup_enabled: bool = True
    backup_keep: int = Field(default=5, ge=0)
    # False : paymentStatus écrasé sans contrôle de transition
    strict_payment_status: bool = False
    llm_api_key: Optional[str] = Field(default=None, repr=False)
    llm_model: str = "gemini-2.0-flash"

    def number_format(self, namespace: str) -> NumberFormat:
        return self.numbering.get(namespace) or _default_numbering()[namespace]


def _load_json(path: Path) -> Optional[dict]:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_settings(data_dir: Optional[Union[str, Path]] = None, env: Optional[Dict[str, str]] = None) -> Settings:
    """
    Charge la configuration :
    - data_dir explicite, sinon FIELDSERVICE_DATA_DIR, sinon ./data du projet
    - <data_dir>/settings.json
    - surcharges par variables d'environnement
    """
    env = os.environ if env is None else env
    base = Path(data_dir or env.get("FIELDSERVICE_DATA_DIR") or DATA_DIR)

    raw = _load_json(base / SETTINGS_FILENAME) or {}
    raw["data_dir"] = base

    if env.get("FIELDSERVICE_STRICT_PAYMENT_STATUS"):
        raw["strict_payment_status"] = _env_bool(env["FIELDSERVICE_STRICT_PAYMENT_STATUS"])
    if env.get("LLM_API_KEY"):
        raw["llm_api_key"] = env["LLM_API_KEY"]
    if env.get("LLM_MODEL"):
        raw["llm_model"] = env["LLM_MODEL"]

    try:
        return Settings.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid settings in {base / SETTINGS_FILENAME}: {e}") from e
