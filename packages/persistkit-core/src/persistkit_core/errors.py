"""Error codes, structured error model, and raisable exceptions for persistkit.

``PersistErrorCode`` names the three failure kinds a persistence backend can
report.  ``PersistError`` is the Pydantic data model carried by batch
outcomes; ``PersistException`` and its subclasses wrap that model so the
same information can be raised and caught in control flow.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class PersistErrorCode(str, Enum):
    """Error codes shared by all persistkit backends.

    Values equal their names so they are stable strings suitable for
    metrics and alerting.
    """

    E_PERSIST_CONNECT = "E_PERSIST_CONNECT"
    E_PERSIST_DERIVE = "E_PERSIST_DERIVE"
    E_PERSIST_STORE = "E_PERSIST_STORE"


class PersistError(BaseModel):
    """Structured persistence failure with code, message, and context.

    Note: This is a Pydantic model (data structure), not a Python Exception.
    Use :class:`PersistException` (or one of its subclasses) to raise.
    """

    code: PersistErrorCode
    message: str
    stage: str | None = None
    key: str | None = None
    recoverable: bool = False


class PersistException(Exception):
    """Raisable exception wrapping a :class:`PersistError` data model.

    Carries the structured error as the ``.error`` attribute.  Subclasses
    fix the error code and stage; callers normally only pass ``message``
    (and optionally ``key``).
    """

    default_code: PersistErrorCode = PersistErrorCode.E_PERSIST_STORE
    default_stage: str = "store"
    default_recoverable: bool = False

    def __init__(self, message: str, *, key: str | None = None) -> None:
        self.error = PersistError(
            code=self.default_code,
            message=message,
            stage=self.default_stage,
            key=key,
            recoverable=self.default_recoverable,
        )
        super().__init__(message)

    @classmethod
    def from_error(cls, error: PersistError) -> PersistException:
        """Rebuild the matching exception subclass for *error*."""
        exc_cls = _EXCEPTION_BY_CODE.get(error.code, cls)
        exc = exc_cls(error.message, key=error.key)
        exc.error = error
        return exc

    @property
    def code(self) -> PersistErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def stage(self) -> str | None:
        return self.error.stage

    @property
    def recoverable(self) -> bool:
        return self.error.recoverable


class PersistConnectionError(PersistException, ConnectionError):
    """The store could not be reached; no command was issued."""

    default_code = PersistErrorCode.E_PERSIST_CONNECT
    default_stage = "connect"
    default_recoverable = True


class DerivationError(PersistException):
    """A key or value derivation function failed for a node."""

    default_code = PersistErrorCode.E_PERSIST_DERIVE
    default_stage = "derive"
    default_recoverable = False


class StoreError(PersistException):
    """The store rejected the command or the transport failed mid-command."""

    default_code = PersistErrorCode.E_PERSIST_STORE
    default_stage = "store"
    default_recoverable = True


_EXCEPTION_BY_CODE: dict[PersistErrorCode, type[PersistException]] = {
    PersistErrorCode.E_PERSIST_CONNECT: PersistConnectionError,
    PersistErrorCode.E_PERSIST_DERIVE: DerivationError,
    PersistErrorCode.E_PERSIST_STORE: StoreError,
}
