"""Shared test fixtures."""

import pytest

from policy_store import Effect, IndexStrategy, Policy, PolicyStore
from policy_store.backends import InMemoryBackend


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend):
    return PolicyStore(backend, key_prefix="test")


@pytest.fixture
def scan_store(backend):
    return PolicyStore(backend, key_prefix="scan", strategy=IndexStrategy.FULL_SCAN)


@pytest.fixture
def alice_policy():
    return Policy(
        id="alice-reads-docs",
        subjects=["user:alice", "group:eng"],
        resources=["doc:arch", "doc:api"],
        actions=["read"],
        effect=Effect.ALLOW,
        conditions={"ip": {"type": "CIDRCondition", "options": {"cidr": "10.0.0.0/8"}}},
        description="Alice and engineering can read design docs",
    )


@pytest.fixture
def bob_policy():
    return Policy(
        id="bob-denied-billing",
        subjects=["user:bob"],
        resources=["doc:billing", "doc:api"],
        actions=["read", "write"],
        effect=Effect.DENY,
    )


@pytest.fixture
def pattern_policy():
    return Policy(
        id="any-user-public",
        subjects=["users:<[a-z]+>"],
        resources=["doc:public"],
        actions=["read"],
        effect=Effect.ALLOW,
    )
