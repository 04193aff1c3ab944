"""Tests for the secondary index manager and reconciliation."""

import pytest

from policy_store import IndexKind, IndexSlot, KeySpace, Policy, SecondaryIndex, reconcile

S = IndexKind.SUBJECT
R = IndexKind.RESOURCE


@pytest.fixture
def index(backend):
    return SecondaryIndex(backend, KeySpace("idx"))


# ── reconcile ────────────────────────────────────────────────


def test_reconcile_disjoint_changes():
    old = {IndexSlot(S, "1"), IndexSlot(S, "2")}
    new = {IndexSlot(S, "2"), IndexSlot(S, "3"), IndexSlot(S, "4")}
    delta = reconcile(old, new)
    assert delta.to_add == {IndexSlot(S, "3"), IndexSlot(S, "4")}
    assert delta.to_remove == {IndexSlot(S, "1")}


def test_reconcile_unchanged_is_empty():
    slots = {IndexSlot(S, "a"), IndexSlot(R, "a")}
    assert reconcile(slots, slots).empty


def test_reconcile_from_and_to_nothing():
    slots = {IndexSlot(R, "doc")}
    assert reconcile((), slots).to_add == slots
    assert reconcile(slots, ()).to_remove == slots


def test_subject_and_resource_with_same_literal_are_distinct():
    delta = reconcile({IndexSlot(S, "x")}, {IndexSlot(R, "x")})
    assert delta.to_add == {IndexSlot(R, "x")}
    assert delta.to_remove == {IndexSlot(S, "x")}


# ── slots ────────────────────────────────────────────────────


def test_slots_for_policy(index):
    policy = Policy(id="p", subjects=["a", "a", "users:<.*>"], resources=["r"])
    assert index.slots_for(policy) == {
        IndexSlot(S, "a"),
        IndexSlot(S, None),
        IndexSlot(R, "r"),
    }


def test_pattern_literals_share_bucket(index):
    assert index.slot(S, "users:<.*>") == index.slot(S, "groups:<[a-z]+>")
    assert index.slot(S, "users:<.*>").is_pattern_bucket


def test_pattern_bucket_disabled(backend):
    plain = SecondaryIndex(backend, KeySpace("idx"), pattern_delimiter="")
    assert plain.slot(S, "users:<.*>") == IndexSlot(S, "users:<.*>")


def test_key_layout(index):
    assert index.key_for(IndexSlot(S, "user:alice")) == "idx:subject:user:alice"
    assert index.key_for(IndexSlot(R, None)) == "idx:resource-patterns"


# ── membership ───────────────────────────────────────────────


async def test_add_and_members_of(index):
    await index.add_membership(IndexSlot(S, "alice"), "p1")
    await index.add_membership(IndexSlot(S, "alice"), "p2")
    await index.add_membership(IndexSlot(S, "alice"), "p1")
    assert await index.members_of(IndexSlot(S, "alice")) == {"p1", "p2"}


async def test_remove_membership(index):
    await index.add_membership(IndexSlot(R, "doc"), "p1")
    assert await index.remove_membership(IndexSlot(R, "doc"), "p1")
    assert not await index.remove_membership(IndexSlot(R, "doc"), "p1")
    assert await index.members_of(IndexSlot(R, "doc")) == set()


async def test_lookup_includes_pattern_bucket(index):
    await index.add_membership(IndexSlot(S, "alice"), "exact")
    await index.add_membership(IndexSlot(S, None), "pattern")
    assert await index.lookup(S, "alice") == {"exact", "pattern"}
    assert await index.lookup(S, "bob") == {"pattern"}
    assert await index.lookup(R, "alice") == set()


async def test_entries(index):
    await index.add_membership(IndexSlot(S, "alice"), "p1")
    await index.add_membership(IndexSlot(S, None), "p2")
    await index.add_membership(IndexSlot(R, "doc"), "p3")
    assert await index.entries(S) == {
        IndexSlot(S, "alice"): {"p1"},
        IndexSlot(S, None): {"p2"},
    }
    assert await index.entries(R) == {IndexSlot(R, "doc"): {"p3"}}
