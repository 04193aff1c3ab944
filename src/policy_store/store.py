"""PolicyStore — persists policies and keeps their secondary indices in step.

Ordering rules, since the backend offers no multi-key transactions:

* **create** writes the primary record with an atomic set-if-absent, then
  adds index memberships.  A losing concurrent create never touches indices.
* **update** reads the old record, overwrites the primary, then applies only
  the membership delta between old and new.
* **delete** reads the record to learn its memberships, removes the primary,
  then removes the memberships.

A failure part-way leaves the primary record intact and the index stale
(a superset at worst after delete, possibly incomplete after create/update).
Index failures after a committed primary write are raised as
:class:`IndexWriteError` so the caller can retry the mutation or rebuild.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from policy_store.backends.memory import InMemoryBackend
from policy_store.codec import decode_policy, encode_policy
from policy_store.exceptions import (
    AlreadyExistsError,
    ConfigError,
    IndexWriteError,
    NotFoundError,
    UnavailableError,
)
from policy_store.index import IndexDelta, IndexSlot, SecondaryIndex, reconcile
from policy_store.keys import IndexKind, KeySpace
from policy_store.manager import Manager
from policy_store.resolver import (
    CandidateResolver,
    FullScanResolver,
    IndexedResolver,
    IndexStrategy,
    load_policies,
)

if TYPE_CHECKING:
    from types import TracebackType

    from policy_store.backends.base import KeyValueBackend
    from policy_store.policy import Policy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexRebuildReport:
    """Outcome of :meth:`PolicyStore.rebuild_indices`.

    Attributes:
        policies: Number of primary records scanned.
        added:    Memberships that were missing and got written.
        removed:  Stale memberships that got deleted.
    """

    policies: int
    added: int
    removed: int


def _slot_order(slot: IndexSlot) -> tuple[str, bool, str]:
    return (slot.kind.value, slot.is_pattern_bucket, slot.literal or "")


class PolicyStore(Manager):
    """Policy persistence over any :class:`KeyValueBackend`.

    Several stores can share one backend (and its connection pool) as long
    as each uses its own ``key_prefix``.

    Parameters:
        backend:           Backend to persist into.  Defaults to a fresh
                           :class:`InMemoryBackend` owned by this store.
        key_prefix:        Namespace for every key this store writes.  Must not
                           contain ``:``, which separates key segments.
        strategy:          ``IndexStrategy.INDEXED`` maintains indices;
                           ``IndexStrategy.FULL_SCAN`` never writes them and
                           answers candidate queries with every policy.
        pattern_delimiter: Substring marking a subject/resource as a pattern
                           (indexed in the always-returned pattern bucket).
        owns_backend:      Close the backend in :meth:`close`.  Implied when
                           *backend* is omitted.
    """

    def __init__(
        self,
        backend: KeyValueBackend | None = None,
        *,
        key_prefix: str = "policies",
        strategy: IndexStrategy = IndexStrategy.INDEXED,
        pattern_delimiter: str = "<",
        owns_backend: bool = False,
    ) -> None:
        if not key_prefix:
            raise ConfigError("key_prefix must not be empty")
        if ":" in key_prefix:
            raise ConfigError(f"key_prefix must not contain ':': {key_prefix!r}")
        self._owns_backend = owns_backend or backend is None
        self._backend: KeyValueBackend = backend or InMemoryBackend()
        self._keys = KeySpace(key_prefix)
        self._strategy = IndexStrategy(strategy)
        self._index = SecondaryIndex(
            self._backend, self._keys, pattern_delimiter=pattern_delimiter
        )
        self._scanner = FullScanResolver(self._backend, self._keys)
        self._resolver: CandidateResolver
        if self.indexed:
            self._resolver = IndexedResolver(self._backend, self._keys, self._index)
        else:
            self._resolver = self._scanner

    # ── lifecycle ────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_backend:
            await self._backend.close()

    async def __aenter__(self) -> PolicyStore:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ── mutations ────────────────────────────────────────────

    async def create(self, policy: Policy) -> None:
        key = self._keys.policy(policy.id)
        payload = encode_policy(policy)

        if not await self._backend.set_if_absent(key, payload):
            raise AlreadyExistsError(policy.id)
        logger.debug("Created policy %r", policy.id)

        if self.indexed:
            delta = reconcile((), self._index.slots_for(policy))
            await self._apply_delta(policy.id, delta, "create")

    async def update(self, policy: Policy) -> None:
        key = self._keys.policy(policy.id)
        payload = encode_policy(policy)

        old_payload = await self._backend.get(key)
        if old_payload is None:
            raise NotFoundError(policy.id)
        old = decode_policy(old_payload, key) if self.indexed else None

        await self._backend.set(key, payload)
        logger.debug("Updated policy %r", policy.id)

        if old is not None:
            delta = reconcile(self._index.slots_for(old), self._index.slots_for(policy))
            await self._apply_delta(policy.id, delta, "update")

    async def delete(self, policy_id: str) -> None:
        key = self._keys.policy(policy_id)

        payload = await self._backend.get(key)
        if payload is None:
            raise NotFoundError(policy_id)
        old = decode_policy(payload, key) if self.indexed else None

        if not await self._backend.delete(key):
            # A concurrent delete got there first and owns the index cleanup
            raise NotFoundError(policy_id)
        logger.debug("Deleted policy %r", policy_id)

        if old is not None:
            delta = reconcile(self._index.slots_for(old), ())
            await self._apply_delta(policy_id, delta, "delete")

    async def purge(self, policy_id: str) -> bool:
        """Remove a primary record without decoding it.

        The only way to get rid of a record that fails to decode.  Index
        memberships are left behind for :meth:`rebuild_indices`; until then
        they are skipped as tombstones.  Returns ``True`` if a record existed.
        """
        removed = await self._backend.delete(self._keys.policy(policy_id))
        if removed:
            logger.warning("Purged policy %r; its index entries remain until rebuild", policy_id)
        return removed

    async def _apply_delta(self, policy_id: str, delta: IndexDelta, operation: str) -> None:
        if delta.empty:
            return
        # Additions first: a crash in between leaves extra members, never missing ones
        try:
            for slot in sorted(delta.to_add, key=_slot_order):
                await self._index.add_membership(slot, policy_id)
            for slot in sorted(delta.to_remove, key=_slot_order):
                await self._index.remove_membership(slot, policy_id)
        except UnavailableError as e:
            logger.warning(
                "Index %s for policy %r failed after the record was committed: %s",
                operation,
                policy_id,
                e,
            )
            raise IndexWriteError(policy_id, operation, str(e)) from e

    # ── reads ────────────────────────────────────────────────

    async def get(self, policy_id: str) -> Policy:
        key = self._keys.policy(policy_id)
        payload = await self._backend.get(key)
        if payload is None:
            raise NotFoundError(policy_id)
        return decode_policy(payload, key)

    async def exists(self, policy_id: str) -> bool:
        return await self._backend.get(self._keys.policy(policy_id)) is not None

    async def count(self) -> int:
        return len(await self._backend.list_keys(self._keys.policy_prefix))

    async def list_all(self, limit: int, offset: int) -> list[Policy]:
        """Return one page of stored policies, ordered by id.

        When ``offset + limit`` runs past the end of the collection the whole
        collection is returned instead of a short or empty page.
        """
        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must be non-negative")

        primary_keys = sorted(await self._backend.list_keys(self._keys.policy_prefix))
        if offset + limit <= len(primary_keys):
            primary_keys = primary_keys[offset : offset + limit]
        ids = [self._keys.policy_id(k) for k in primary_keys]
        return await load_policies(self._backend, self._keys, ids)

    async def find_candidates(self, subject: str, resource: str) -> list[Policy]:
        return await self._resolver.find_candidates(subject, resource)

    async def find_policies_for_subject(self, subject: str) -> list[Policy]:
        return await self._resolver.find_policies_for_subject(subject)

    async def find_policies_for_resource(self, resource: str) -> list[Policy]:
        return await self._resolver.find_policies_for_resource(resource)

    # ── maintenance ──────────────────────────────────────────

    async def rebuild_indices(self) -> IndexRebuildReport:
        """Re-derive every index entry from the primary records.

        Adds missing memberships and removes stale ones, including orphans
        left by failed deletes.  Before removing a membership the policy is
        re-read, so a policy created or updated while the rebuild runs keeps
        its entries.
        """
        if not self.indexed:
            raise ConfigError("rebuild_indices requires the indexed strategy")

        policies = await self._scanner.all_policies()
        expected: dict[IndexSlot, set[str]] = defaultdict(set)
        for policy in policies:
            for slot in self._index.slots_for(policy):
                expected[slot].add(policy.id)

        current: dict[IndexSlot, set[str]] = {}
        for kind in IndexKind:
            current.update(await self._index.entries(kind))

        added = 0
        for slot in sorted(expected, key=_slot_order):
            for policy_id in sorted(expected[slot] - current.get(slot, set())):
                await self._index.add_membership(slot, policy_id)
                added += 1

        removed = 0
        for slot in sorted(current, key=_slot_order):
            for policy_id in sorted(current[slot] - expected.get(slot, set())):
                if await self._still_member(slot, policy_id):
                    continue
                if await self._index.remove_membership(slot, policy_id):
                    removed += 1

        logger.info(
            "Rebuilt indices for %d policies: %d added, %d removed",
            len(policies),
            added,
            removed,
        )
        return IndexRebuildReport(policies=len(policies), added=added, removed=removed)

    async def _still_member(self, slot: IndexSlot, policy_id: str) -> bool:
        key = self._keys.policy(policy_id)
        payload = await self._backend.get(key)
        if payload is None:
            return False
        return slot in self._index.slots_for(decode_policy(payload, key))

    # ── introspection ────────────────────────────────────────

    @property
    def indexed(self) -> bool:
        return self._strategy is IndexStrategy.INDEXED

    @property
    def strategy(self) -> IndexStrategy:
        return self._strategy

    @property
    def key_prefix(self) -> str:
        return self._keys.prefix

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend
