"""Candidate resolvers — turn a (subject, resource) request into candidate policies.

A resolver must return a superset of the policies that could apply.  It may
over-return, because the evaluator re-checks every candidate precisely, but it
must never omit an applicable policy.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from enum import Enum

from policy_store.backends.base import KeyValueBackend
from policy_store.codec import decode_policy
from policy_store.index import SecondaryIndex
from policy_store.keys import IndexKind, KeySpace
from policy_store.policy import Policy

logger = logging.getLogger(__name__)


class IndexStrategy(str, Enum):
    """How a store answers candidate queries.

    ``INDEXED`` maintains subject/resource indices on every mutation and
    answers in time proportional to the candidates.  ``FULL_SCAN`` skips index
    maintenance entirely and returns every stored policy.
    """

    INDEXED = "indexed"
    FULL_SCAN = "full_scan"


async def load_policies(
    backend: KeyValueBackend, keys: KeySpace, policy_ids: Iterable[str]
) -> list[Policy]:
    """Fetch and decode *policy_ids* in one round trip.

    Ids whose record no longer exists are skipped: an index entry may outlive
    its policy after a delete whose cleanup failed or raced.
    """
    ids = list(policy_ids)
    primary_keys = [keys.policy(pid) for pid in ids]
    payloads = await backend.multi_get(primary_keys)

    policies: list[Policy] = []
    for pid, key, payload in zip(ids, primary_keys, payloads):
        if payload is None:
            logger.debug("Skipping candidate %r: record no longer exists", pid)
            continue
        policies.append(decode_policy(payload, key))
    return policies


class CandidateResolver(ABC):
    """Answers candidate queries for one store."""

    @abstractmethod
    async def find_candidates(self, subject: str, resource: str) -> list[Policy]:
        """Policies that may apply to *subject* acting on *resource*."""
        ...

    @abstractmethod
    async def find_policies_for_subject(self, subject: str) -> list[Policy]:
        """Policies that may name *subject*."""
        ...

    @abstractmethod
    async def find_policies_for_resource(self, resource: str) -> list[Policy]:
        """Policies that may name *resource*."""
        ...


class IndexedResolver(CandidateResolver):
    """Resolves candidates through the subject/resource indices."""

    def __init__(self, backend: KeyValueBackend, keys: KeySpace, index: SecondaryIndex) -> None:
        self._backend = backend
        self._keys = keys
        self._index = index

    async def find_candidates(self, subject: str, resource: str) -> list[Policy]:
        ids = await self._index.lookup(IndexKind.SUBJECT, subject)
        ids |= await self._index.lookup(IndexKind.RESOURCE, resource)
        return await load_policies(self._backend, self._keys, sorted(ids))

    async def find_policies_for_subject(self, subject: str) -> list[Policy]:
        ids = await self._index.lookup(IndexKind.SUBJECT, subject)
        return await load_policies(self._backend, self._keys, sorted(ids))

    async def find_policies_for_resource(self, resource: str) -> list[Policy]:
        ids = await self._index.lookup(IndexKind.RESOURCE, resource)
        return await load_policies(self._backend, self._keys, sorted(ids))


class FullScanResolver(CandidateResolver):
    """Returns every stored policy, unfiltered.

    Correct without any index but costs a read of the whole collection per
    query.
    """

    def __init__(self, backend: KeyValueBackend, keys: KeySpace) -> None:
        self._backend = backend
        self._keys = keys

    async def all_policies(self) -> list[Policy]:
        primary_keys = sorted(await self._backend.list_keys(self._keys.policy_prefix))
        ids = [self._keys.policy_id(k) for k in primary_keys]
        return await load_policies(self._backend, self._keys, ids)

    async def find_candidates(self, subject: str, resource: str) -> list[Policy]:
        return await self.all_policies()

    async def find_policies_for_subject(self, subject: str) -> list[Policy]:
        return await self.all_policies()

    async def find_policies_for_resource(self, resource: str) -> list[Policy]:
        return await self.all_policies()
