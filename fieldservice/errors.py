from __future__ import annotations
from typing import Dict


class FieldServiceError(Exception):
    """Base of every error an engine operation can raise.

    ``kind`` is the stable name surfaced to callers; ``message`` is shown verbatim.
    """

    kind = "FieldServiceError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class NotFound(FieldServiceError):
    kind = "NotFound"


class ClientNotFound(NotFound):
    kind = "ClientNotFound"


class OriginNotFound(NotFound):
    kind = "OriginNotFound"


class InvoiceNotFound(NotFound):
    kind = "InvoiceNotFound"


class AlreadyInvoiced(FieldServiceError):
    kind = "AlreadyInvoiced"


class UsernameTaken(FieldServiceError):
    kind = "UsernameTaken"


class EmailTaken(FieldServiceError):
    kind = "EmailTaken"


class MissingCredentials(FieldServiceError):
    kind = "MissingCredentials"


class InvalidCredentials(FieldServiceError):
    kind = "InvalidCredentials"


class UserInactive(FieldServiceError):
    kind = "UserInactive"


class ValidationError(FieldServiceError):
    kind = "ValidationError"


class InvalidTransition(ValidationError):
    """A status change the document's state machine does not allow."""
