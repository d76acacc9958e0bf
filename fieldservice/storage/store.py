from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterator, List, Mapping, Optional, Tuple, TypeVar, Union

from fieldservice.errors import NotFound, ValidationError
from fieldservice.models.client import ClientAdapter
from fieldservice.models.invoice import Invoice
from fieldservice.models.maintenance import MaintenanceContract
from fieldservice.models.product import Product
from fieldservice.models.quote import Quote
from fieldservice.models.service_order import ServiceOrder
from fieldservice.models.user import User
from fieldservice.storage.json_repo import JsonRepository

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Collection(Generic[R]):
    """
    Collection en mémoire d'un type d'entité, clé = ``id``.

    Chaque écriture publie un nouveau snapshot (tuple + index) en une seule
    affectation : les lectures ne prennent pas de verrou et ne voient jamais
    un état partiel. Les écritures doivent se faire sous ``EntityStore.writing()``.
    """

    def __init__(
        self,
        name: str,
        parse: Callable[[Mapping[str, Any]], R],
        not_found_message: str,
        lock: threading.RLock,
        repo: Optional[JsonRepository] = None,
    ) -> None:
        self.name = name
        self._parse = parse
        self._not_found_message = not_found_message
        self._lock = lock
        self._repo = repo
        self._snapshot: Tuple[Tuple[R, ...], Dict[str, R]] = ((), {})

    # ---------------- Lecture ---------------- #

    def list(self) -> Tuple[R, ...]:
        return self._snapshot[0]

    def get(self, obj_id: str) -> R:
        record = self._snapshot[1].get(obj_id)
        if record is None:
            raise NotFound(self._not_found_message)
        return record

    def find(self, predicate: Callable[[R], bool]) -> List[R]:
        return [r for r in self._snapshot[0] if predicate(r)]

    def find_one(self, predicate: Callable[[R], bool]) -> Optional[R]:
        for r in self._snapshot[0]:
            if predicate(r):
                return r
        return None

    def __contains__(self, obj_id: object) -> bool:
        return obj_id in self._snapshot[1]

    def __len__(self) -> int:
        return len(self._snapshot[0])

    def __iter__(self) -> Iterator[R]:
        return iter(self._snapshot[0])

    # ---------------- Écriture ---------------- #

    def inserting(self, record: R) -> Tuple[R, ...]:
        """Contenu après ajout en tête, sans rien publier."""
        if record.id in self._snapshot[1]:
            raise ValidationError(f"{self.name} com id {record.id} já existe.")
        return (record,) + self._snapshot[0]

    def replacing(self, record: R) -> Tuple[R, ...]:
        """Contenu après remplacement de l'enregistrement de même id, à sa position."""
        records = self._snapshot[0]
        for idx, existing in enumerate(records):
            if existing.id == record.id:
                return records[:idx] + (record,) + records[idx + 1:]
        raise NotFound(self._not_found_message)

    def insert(self, record: R) -> R:
        """Ajoute en tête (les plus récents d'abord)."""
        with self._lock:
            self._publish(self.inserting(record))
        return record

    def put(self, record: R) -> R:
        with self._lock:
            self._publish(self.replacing(record))
        return record

    def sort(self, key: Callable[[R], Any], reverse: bool = False) -> None:
        with self._lock:
            self._publish(tuple(sorted(self._snapshot[0], key=key, reverse=reverse)))

    def load(self, rows: List[Mapping[str, Any]]) -> None:
        """Hydrate depuis le stockage, sans réécrire le fichier."""
        records = tuple(self._parse(row) for row in rows)
        with self._lock:
            self._snapshot = (records, {r.id: r for r in records})

    def _flush(self, records: Tuple[R, ...]) -> None:
        if self._repo is not None:
            self._repo.write_all(records)

    def _swap(self, records: Tuple[R, ...]) -> None:
        self._snapshot = (records, {r.id: r for r in records})

    def _publish(self, records: Tuple[R, ...]) -> None:
        # flush synchrone avant publication : mémoire et disque restent alignés
        self._flush(records)
        self._swap(records)


class EntityStore:
    """Propriétaire unique de tous les enregistrements, injecté dans les services."""

    def __init__(
        self,
        data_dir: Optional[Union[str, Path]] = None,
        *,
        backup_enabled: bool = True,
        backup_keep: int = 5,
    ) -> None:
        self._lock = threading.RLock()
        self.data_dir = Path(data_dir) if data_dir else None
        self._backup_enabled = backup_enabled
        self._backup_keep = backup_keep

        self.clients = self._collection("clients", ClientAdapter.validate_python, "Cliente não encontrado.")
        self.users = self._collection("users", User.model_validate, "Usuário não encontrado.")
        self.products = self._collection("products", Product.model_validate, "Produto não encontrado.")
        self.service_orders = self._collection(
            "service_orders", ServiceOrder.model_validate, "Ordem de serviço não encontrada."
        )
        self.quotes = self._collection("quotes", Quote.model_validate, "Orçamento não encontrado.")
        self.maintenance_contracts = self._collection(
            "maintenance_contracts", MaintenanceContract.model_validate, "Contrato de manutenção não encontrado."
        )
        self.invoices = self._collection("invoices", Invoice.model_validate, "Fatura não encontrada.")

        # username -> hash bcrypt, jamais exposé sur User
        self._secrets: Dict[str, str] = {}
        self._secrets_repo = self._repo("secrets")
        if self._secrets_repo is not None:
            for row in self._secrets_repo.read_all():
                self._secrets[row["username"]] = row["password_hash"]

    @classmethod
    def open(cls, data_dir: Union[str, Path], **kwargs) -> "EntityStore":
        store = cls(data_dir, **kwargs)
        logger.info("Entity store opened at %s", store.data_dir)
        return store

    # ---------------- Helpers ---------------- #

    def _repo(self, name: str) -> Optional[JsonRepository]:
        if self.data_dir is None:
            return None
        return JsonRepository(
            self.data_dir / f"{name}.json",
            entity_name=name,
            backup_enabled=self._backup_enabled,
            backup_keep=self._backup_keep,
        )

    def _collection(self, name: str, parse: Callable[[Mapping[str, Any]], Any], message: str) -> Collection:
        repo = self._repo(name)
        collection: Collection = Collection(name, parse, message, self._lock, repo)
        if repo is not None:
            collection.load(repo.read_all())
        return collection

    # ---------------- Verrou d'écriture ---------------- #

    @contextmanager
    def writing(self) -> Iterator["EntityStore"]:
        """Section critique unique pour toute séquence lecture-puis-écriture."""
        with self._lock:
            yield self

    def commit(self, *changes: Tuple[Collection, Tuple[Any, ...]]) -> None:
        """
        Publie plusieurs collections d'un bloc : tous les fichiers sont écrits
        avant le moindre swap de snapshot. Si une écriture échoue, les fichiers
        déjà réécrits reprennent leur contenu précédent et l'erreur remonte.
        """
        with self._lock:
            flushed: List[Collection] = []
            try:
                for collection, records in changes:
                    collection._flush(records)
                    flushed.append(collection)
            except OSError:
                for collection in flushed:
                    collection._flush(collection.list())
                raise
            for collection, records in changes:
                collection._swap(records)

    # ---------------- Secrets ---------------- #

    def secret_for(self, username: str) -> Optional[str]:
        return self._secrets.get(username)

    def set_secret(self, username: str, password_hash: str) -> None:
        with self._lock:
            secrets = dict(self._secrets)
            secrets[username] = password_hash
            if self._secrets_repo is not None:
                self._secrets_repo.write_all(
                    [{"username": u, "password_hash": h} for u, h in secrets.items()]
                )
            self._secrets = secrets
