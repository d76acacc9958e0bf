from __future__ import annotations

import logging
from typing import Optional

from fieldservice.config import Settings, load_settings
from fieldservice.seed import seed_demo
from fieldservice.services.auth_service import AuthService
from fieldservice.services.billing import BillingEngine
from fieldservice.services.catalog_service import CatalogService
from fieldservice.services.client_service import ClientService
from fieldservice.services.lifecycle import LifecycleEngine
from fieldservice.services.numbering import NumberingAuthority
from fieldservice.services.report_service import ReportService
from fieldservice.services.request_parser import ServiceRequestHints, parse_service_request
from fieldservice.storage.store import EntityStore

logger = logging.getLogger(__name__)


class FieldServiceApp:
    """Assemble store, numérotation et services autour d'une configuration."""

    def __init__(self, settings: Settings, store: EntityStore):
        self.settings = settings
        self.store = store
        self.numbering = NumberingAuthority.from_settings(settings)

        self.clients = ClientService(store)
        self.catalog = CatalogService(store)
        self.auth = AuthService(store)
        self.lifecycle = LifecycleEngine(store, self.numbering)
        self.billing = BillingEngine(
            store,
            self.numbering,
            strict_payment_status=settings.strict_payment_status,
        )
        self.reports = ReportService(store)

    @classmethod
    def create(
        cls,
        settings: Optional[Settings] = None,
        *,
        persistent: bool = True,
        seed: bool = False,
    ) -> "FieldServiceApp":
        """
        ``persistent=False`` garde tout en mémoire (tests, démo).
        ``seed=True`` charge le jeu de démo si le store est vide.
        """
        settings = settings or load_settings()
        if persistent and settings.data_dir is not None:
            store = EntityStore.open(
                settings.data_dir,
                backup_enabled=settings.backup_enabled,
                backup_keep=settings.backup_keep,
            )
        else:
            store = EntityStore()
        # avant les moteurs : les compteurs partent des numéros existants
        if seed:
            seed_demo(store)
        return cls(settings, store)

    def parse_service_request(self, description: str) -> Optional[ServiceRequestHints]:
        return parse_service_request(description, self.settings.llm_api_key, self.settings.llm_model)
