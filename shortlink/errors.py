"""Error types surfaced by the link service."""

from enum import Enum


class ErrorKind(str, Enum):
    """Discriminator for service failures."""

    INVALID_INPUT = "invalid_input"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"


class LinkServiceError(Exception):
    """Error raised by LinkService, matched by ``kind``."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"LinkServiceError({self.kind.value!r}, {self.message!r})"

    @classmethod
    def invalid_input(cls, message: str) -> "LinkServiceError":
        return cls(ErrorKind.INVALID_INPUT, message)

    @classmethod
    def conflict(cls, message: str) -> "LinkServiceError":
        return cls(ErrorKind.CONFLICT, message)

    @classmethod
    def not_found(cls, message: str) -> "LinkServiceError":
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def expired(cls, message: str) -> "LinkServiceError":
        return cls(ErrorKind.EXPIRED, message)

    @classmethod
    def internal(cls, message: str) -> "LinkServiceError":
        return cls(ErrorKind.INTERNAL, message)

    @classmethod
    def unavailable(cls, message: str) -> "LinkServiceError":
        return cls(ErrorKind.UNAVAILABLE, message)


class InvalidCodeError(ValueError):
    """Raised when a short code contains symbols outside the alphabet."""


class MembershipFilterError(Exception):
    """Raised when the membership filter backend cannot answer."""


class CacheError(Exception):
    """Raised when the cache backend fails (distinct from a miss)."""
