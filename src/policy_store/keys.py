"""Backend key layout for one logical policy store."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class IndexKind(str, Enum):
    """Which policy attribute an index entry is derived from."""

    SUBJECT = "subject"
    RESOURCE = "resource"


@dataclass(frozen=True)
class KeySpace:
    """Builds every key a store touches, all namespaced under ``prefix``.

    ``prefix`` holds no ``:``, so no store's keys fall under another's.

    Layout::

        {prefix}:policy:{id}            primary record
        {prefix}:subject:{literal}      hash of policy ids naming the subject
        {prefix}:resource:{literal}     hash of policy ids naming the resource
        {prefix}:subject-patterns       hash of policy ids with pattern subjects
        {prefix}:resource-patterns      hash of policy ids with pattern resources
    """

    prefix: str = "policies"

    @property
    def policy_prefix(self) -> str:
        return f"{self.prefix}:policy:"

    def policy(self, policy_id: str) -> str:
        return f"{self.policy_prefix}{policy_id}"

    def policy_id(self, key: str) -> str:
        """Inverse of :meth:`policy`."""
        return key[len(self.policy_prefix) :]

    def index_prefix(self, kind: IndexKind) -> str:
        return f"{self.prefix}:{kind.value}:"

    def index(self, kind: IndexKind, literal: str) -> str:
        return f"{self.index_prefix(kind)}{literal}"

    def pattern_bucket(self, kind: IndexKind) -> str:
        return f"{self.prefix}:{kind.value}-patterns"
