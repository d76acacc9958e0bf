"""
Best-effort parsing of a free-text service request with Gemini.

Returns a suggested service type and a short technical note, or None when no
API key is configured or the call fails. Never raises: callers fall back to
manual entry.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

SERVICE_TYPES = ("Instalação", "Manutenção", "Reparo", "Upgrade", "Consultoria", "Outro")

RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "serviceType": {
            "type": "string",
            "description": (
                "Categorize o serviço em uma das seguintes opções: "
                + ", ".join(SERVICE_TYPES) + ". Seja conciso."
            ),
        },
        "notes": {
            "type": "string",
            "description": (
                "Resuma o problema ou a solicitação do cliente em um parágrafo curto "
                "para o campo de observações técnicas. Capture os pontos chave."
            ),
        },
    },
    "required": ["serviceType", "notes"],
}

PROMPT = (
    "Analise a seguinte solicitação de serviço e extraia as informações estruturadas "
    'conforme o schema. Solicitação: "{description}"'
)


class ServiceRequestHints(BaseModel):
    service_type: str = Field(alias="serviceType")
    notes: str


def _generate(description: str, api_key: str, model: str) -> str:
    import google.generativeai as genai

    genai.configure(api_key=api_key)
    gemini = genai.GenerativeModel(model)
    response = gemini.generate_content(
        PROMPT.format(description=description),
        generation_config={
            "response_mime_type": "application/json",
            "response_schema": RESPONSE_SCHEMA,
        },
    )
    if not response or not response.text:
        raise ValueError("Empty response from LLM")
    return response.text


def parse_service_request(
    description: str, api_key: Optional[str], model: str = "gemini-2.0-flash"
) -> Optional[ServiceRequestHints]:
    if not api_key:
        logger.warning("LLM API key is not configured; service request parsing disabled")
        return None
    if not description or not description.strip():
        return None
    try:
        text = _generate(description, api_key, model)
        return ServiceRequestHints.model_validate(json.loads(text.strip()))
    except (ValueError, ValidationError) as e:
        logger.warning("Could not parse LLM answer for service request: %s", e)
        return None
    except Exception as e:  # erreurs réseau / SDK
        logger.warning("Error calling Gemini API: %s", e)
        return None
