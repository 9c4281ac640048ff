"""
Error taxonomy shared by the gateway client and the chaincode.

Every error carries enough context (path, operation, key) in its message to
be logged as-is by the caller.
"""
from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error raised by this project."""


class ConfigurationError(LedgerError):
    """Missing or unreadable file or directory, or unusable trust material."""


class ParseError(LedgerError):
    """Malformed PEM, private key or certificate."""


class ConnectivityError(LedgerError):
    """gRPC dial or TLS handshake failed or timed out."""


class AlreadyExistsError(LedgerError):
    pass


class NotFoundError(LedgerError):
    pass


class ValidationError(LedgerError):
    """Input that cannot be parsed into the fixed asset schema."""


class TransactionError(LedgerError):
    """A submit or evaluate call rejected by the platform."""

    def __init__(self, transaction: str, message: str,
                 code: str | None = None, details: list[str] | None = None):
        super().__init__(f"{transaction} failed: {message}")
        self.transaction = transaction
        self.code = code
        self.details = details or []
