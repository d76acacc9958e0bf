from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Union

import bcrypt

from fieldservice.errors import (
    EmailTaken,
    InvalidCredentials,
    MissingCredentials,
    UserInactive,
    UsernameTaken,
)
from fieldservice.models.common import gen_id
from fieldservice.models.user import User, UserCandidate
from fieldservice.services.validation import build
from fieldservice.storage.store import EntityStore

logger = logging.getLogger(__name__)


def get_password_hash(password: str) -> str:
    """Gera hash bcrypt do password"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica password usando bcrypt"""
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


class AuthService:
    def __init__(self, store: EntityStore):
        self.store = store

    def authenticate(self, username: Optional[str], password: Optional[str]) -> User:
        if not username or not password:
            raise MissingCredentials("Usuário e senha são obrigatórios.")

        user = self.store.users.find_one(lambda u: u.username == username)
        stored = self.store.secret_for(username) if user else None
        if user is None or stored is None or not verify_password(password, stored):
            logger.warning("Failed login for username %r", username)
            raise InvalidCredentials("Usuário ou senha inválidos.")
        if user.status == "Inactive":
            raise UserInactive("Este usuário está inativo e não pode acessar o sistema.")
        return user

    def register_user(self, candidate: Union[UserCandidate, Mapping[str, Any]]) -> User:
        if not isinstance(candidate, UserCandidate):
            candidate = build(UserCandidate.model_validate, candidate)

        with self.store.writing():
            if candidate.username:
                wanted = candidate.username.lower()
                if self.store.users.find_one(lambda u: (u.username or "").lower() == wanted):
                    raise UsernameTaken("Este nome de usuário já está em uso.")
            email = candidate.email.lower()
            if self.store.users.find_one(lambda u: u.email.lower() == email):
                raise EmailTaken("Este e-mail já está cadastrado.")

            user = build(User.model_validate, {
                **candidate.model_dump(exclude={"password"}),
                "id": gen_id("user-"),
                "status": "Active",
            })
            if user.username and candidate.password:
                self.store.set_secret(user.username, get_password_hash(candidate.password))
            self.store.users.insert(user)
        logger.info("User %s registered (%s)", user.id, user.username or user.email)
        return user

    def set_user_status(self, user_id: str, status: str) -> User:
        with self.store.writing():
            current = self.store.users.get(user_id)
            user = build(User.model_validate, {**current.model_dump(), "status": status})
            self.store.users.put(user)
        return user

    def list_users(self) -> List[User]:
        return list(self.store.users.list())
