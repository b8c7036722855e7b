"""Exception types raised by the cr0n engine."""
from __future__ import annotations


class Cr0nError(Exception):
    """Base class for engine errors."""
    pass


class ConfigurationError(Cr0nError):
    """Raised when no provider is credentialed for federation."""
    pass


class ProviderError(Cr0nError):
    """Raised when a single provider call fails (transport, auth or schema)."""

    def __init__(self, provider_id: str, message: str) -> None:
        super().__init__(f"{provider_id}: {message}")
        self.provider_id = provider_id
        self.message = message


class ConsensusError(Cr0nError):
    """Raised when every provider queried for one opportunity failed."""

    def __init__(self, message: str, errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}
