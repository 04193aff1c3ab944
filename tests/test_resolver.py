"""Tests for the candidate resolvers used directly."""

import pytest

from policy_store import (
    Effect,
    FullScanResolver,
    IndexedResolver,
    KeySpace,
    Policy,
    SecondaryIndex,
)
from policy_store.codec import encode_policy
from policy_store.resolver import load_policies


@pytest.fixture
def keys():
    return KeySpace("res")


async def _put(backend, keys, policy):
    await backend.set(keys.policy(policy.id), encode_policy(policy))


async def test_load_policies_skips_missing(backend, keys):
    await _put(backend, keys, Policy(id="here", effect=Effect.ALLOW))
    policies = await load_policies(backend, keys, ["gone", "here"])
    assert [p.id for p in policies] == ["here"]


async def test_indexed_resolver_dedupes(backend, keys):
    index = SecondaryIndex(backend, keys)
    policy = Policy(id="p", subjects=["alice"], resources=["doc"])
    await _put(backend, keys, policy)
    for slot in index.slots_for(policy):
        await index.add_membership(slot, policy.id)

    resolver = IndexedResolver(backend, keys, index)
    assert await resolver.find_candidates("alice", "doc") == [policy]


async def test_full_scan_resolver_ignores_request(backend, keys):
    await _put(backend, keys, Policy(id="b"))
    await _put(backend, keys, Policy(id="a"))
    # Index-looking keys under the same prefix are not policies
    await backend.hash_set("res:subject:x", "a", b"1")

    resolver = FullScanResolver(backend, keys)
    assert [p.id for p in await resolver.find_candidates("anyone", "anything")] == ["a", "b"]
