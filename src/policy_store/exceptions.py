"""Custom exceptions for the policy_store package."""

from __future__ import annotations


class PolicyStoreError(Exception):
    """Base exception for all policy store errors."""


class AlreadyExistsError(PolicyStoreError):
    """Raised by ``create`` when a policy with the same id is already stored."""

    def __init__(self, policy_id: str) -> None:
        self.policy_id = policy_id
        super().__init__(f"Policy '{policy_id}' already exists")


class NotFoundError(PolicyStoreError):
    """Raised when a policy id has no stored record."""

    def __init__(self, policy_id: str) -> None:
        self.policy_id = policy_id
        super().__init__(f"Policy '{policy_id}' not found")


class CorruptRecordError(PolicyStoreError):
    """Raised when a stored payload exists but cannot be decoded."""

    def __init__(self, key: str, detail: str = "") -> None:
        self.key = key
        msg = f"Corrupt record at '{key}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class UnavailableError(PolicyStoreError):
    """Raised when a backend call fails at the transport level."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        msg = f"Backend error during '{operation}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class IndexWriteError(UnavailableError):
    """Raised when an index mutation fails after the primary record was committed.

    The primary record stays in place; the index may be incomplete until the
    next successful mutation of the policy or an index rebuild.
    """

    def __init__(self, policy_id: str, operation: str, detail: str = "") -> None:
        self.policy_id = policy_id
        super().__init__(operation, detail)


class ConfigError(PolicyStoreError):
    """Raised when a store or backend is misconfigured."""
