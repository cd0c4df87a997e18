"""
Error types shared by the code generator, the publish guard and the API.

ValidationFailure is user-correctable and aborts the write (HTTP 400).
LookupFailure never escapes code generation: lookups return a LookupResult
and the caller decides which default to recover with.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ValidationFailure(Exception):
    """A write that cannot proceed until the caller fixes the payload."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_dict(self) -> dict:
        return {"detail": self.message, "errors": self.errors}


class LookupFailure(Exception):
    """A reference record (category, factory, schema) could not be resolved."""

    def __init__(self, entity: str, key: Any, reason: str = "not found"):
        super().__init__(f"{entity} {key!r}: {reason}")
        self.entity = entity
        self.key = key
        self.reason = reason


@dataclass(frozen=True)
class LookupResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[LookupFailure] = None

    @classmethod
    def found(cls, value: T) -> "LookupResult[T]":
        return cls(value=value)

    @classmethod
    def failed(cls, error: LookupFailure) -> "LookupResult[T]":
        return cls(error=error)

    @classmethod
    def attempt(cls, fn: Callable[[], Optional[T]], entity: str, key: Any) -> "LookupResult[T]":
        """
        Run a lookup, turning "no row" and database/lookup errors into a failed result.
        """
        try:
            value = fn()
        except LookupFailure as exc:
            return cls.failed(exc)
        except (SQLAlchemyError, LookupError) as exc:
            return cls.failed(LookupFailure(entity, key, str(exc)))
        if value is None:
            return cls.failed(LookupFailure(entity, key))
        return cls.found(value)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def recover(self, default: T, context: str = "") -> T:
        """Return the value, or log the failure and fall back to ``default``."""
        if self.error is None:
            return self.value
        prefix = f"[{context}] " if context else ""
        logger.warning(f"{prefix}Lookup failed ({self.error}); using {default!r}")
        return default
