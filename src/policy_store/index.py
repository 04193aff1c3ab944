"""Secondary indices — subject/resource literal -> set of policy ids.

Each index entry is one hash per literal whose fields are policy ids.  The
entries are derived data: they can always be recomputed from the primary
records, so every function here is allowed to leave them *stale* but the
store must never leave them missing a live membership after a successful
operation.

Literals containing the pattern delimiter (``"<"`` by default, as in
``"users:<[a-z]+>"``) cannot be looked up by exact value.  They all share a
single per-kind *pattern bucket* whose members are returned for every lookup
of that kind.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from policy_store.backends.base import KeyValueBackend
from policy_store.keys import IndexKind, KeySpace
from policy_store.policy import Policy

_MEMBER = b"1"


@dataclass(frozen=True)
class IndexSlot:
    """One index entry a policy can be a member of.

    ``literal`` is ``None`` for the pattern bucket of ``kind``.
    """

    kind: IndexKind
    literal: str | None

    @property
    def is_pattern_bucket(self) -> bool:
        return self.literal is None


@dataclass(frozen=True)
class IndexDelta:
    """Memberships to add and remove when a policy changes."""

    to_add: frozenset[IndexSlot]
    to_remove: frozenset[IndexSlot]

    @property
    def empty(self) -> bool:
        return not self.to_add and not self.to_remove


def reconcile(old: Iterable[IndexSlot], new: Iterable[IndexSlot]) -> IndexDelta:
    """Compute the index changes needed to move from *old* to *new* slots.

    Slots present in both are left out of the delta entirely.
    """
    old_slots = frozenset(old)
    new_slots = frozenset(new)
    return IndexDelta(to_add=new_slots - old_slots, to_remove=old_slots - new_slots)


class SecondaryIndex:
    """Maintains subject and resource index entries in a backend.

    Every method maps to exactly one atomic hash-field operation (or one
    read), so a multi-literal update is a sequence of independent calls.

    Parameters:
        backend:           Backend holding the index hashes.
        keys:              Key layout shared with the owning store.
        pattern_delimiter: Substring marking a literal as a pattern.  An empty
                           string disables the pattern bucket.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        keys: KeySpace,
        *,
        pattern_delimiter: str = "<",
    ) -> None:
        self._backend = backend
        self._keys = keys
        self._pattern_delimiter = pattern_delimiter

    # ── slot mapping ─────────────────────────────────────────

    def slot(self, kind: IndexKind, literal: str) -> IndexSlot:
        """Return the slot *literal* is indexed under."""
        if self._pattern_delimiter and self._pattern_delimiter in literal:
            return IndexSlot(kind, None)
        return IndexSlot(kind, literal)

    def slots_for(self, policy: Policy) -> frozenset[IndexSlot]:
        """Return every slot *policy* must be a member of."""
        slots = {self.slot(IndexKind.SUBJECT, s) for s in policy.subjects}
        slots.update(self.slot(IndexKind.RESOURCE, r) for r in policy.resources)
        return frozenset(slots)

    def key_for(self, slot: IndexSlot) -> str:
        if slot.literal is None:
            return self._keys.pattern_bucket(slot.kind)
        return self._keys.index(slot.kind, slot.literal)

    # ── membership ───────────────────────────────────────────

    async def add_membership(self, slot: IndexSlot, policy_id: str) -> None:
        await self._backend.hash_set(self.key_for(slot), policy_id, _MEMBER)

    async def remove_membership(self, slot: IndexSlot, policy_id: str) -> bool:
        """Remove *policy_id* from *slot*.  Return ``True`` if it was a member."""
        return await self._backend.hash_delete(self.key_for(slot), policy_id)

    async def members_of(self, slot: IndexSlot) -> set[str]:
        return set(await self._backend.hash_get_all(self.key_for(slot)))

    async def lookup(self, kind: IndexKind, literal: str) -> set[str]:
        """Return ids of every policy that may name *literal* under *kind*.

        Includes the exact entry for *literal* and the pattern bucket.
        """
        members = await self.members_of(self.slot(kind, literal))
        if self._pattern_delimiter:
            members |= await self.members_of(IndexSlot(kind, None))
        return members

    # ── enumeration ──────────────────────────────────────────

    async def entries(self, kind: IndexKind) -> dict[IndexSlot, set[str]]:
        """Return every stored entry of *kind* with its members.

        Not atomic across entries; used for offline rebuilds only.
        """
        prefix = self._keys.index_prefix(kind)
        result: dict[IndexSlot, set[str]] = {}
        for key in await self._backend.list_keys(prefix):
            slot = IndexSlot(kind, key[len(prefix) :])
            result[slot] = await self.members_of(slot)
        bucket = IndexSlot(kind, None)
        members = await self.members_of(bucket)
        if members:
            result[bucket] = members
        return result
