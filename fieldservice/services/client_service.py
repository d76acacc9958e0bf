from __future__ import annotations
import logging
from typing import Any, List, Mapping

from fieldservice.models.client import Client, ClientAdapter, display_name
from fieldservice.models.common import gen_id
from fieldservice.services.validation import build
from fieldservice.storage.store import EntityStore

logger = logging.getLogger(__name__)


class ClientService:
    def __init__(self, store: EntityStore):
        self.store = store

    def list_clients(self) -> List[Client]:
        return list(self.store.clients.list())

    def get_client(self, client_id: str) -> Client:
        return self.store.clients.get(client_id)

    def add_client(self, data: Mapping[str, Any]) -> Client:
        client = build(ClientAdapter.validate_python, {**data, "id": gen_id("cli-")})
        self.store.clients.insert(client)
        logger.info("Client %s created (%s)", client.id, display_name(client))
        return client
