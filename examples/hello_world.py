"""
policy_store — Hello World

Policies are stored by id.  Subject and resource indices answer
"which policies might apply to this request?" for your evaluator.
"""

import asyncio

from policy_store import Effect, NotFoundError, Policy, PolicyStore

# ─── Your evaluator (anything — the store never interprets policies) ───


def evaluate(policies: list[Policy], subject: str, resource: str, action: str) -> bool:
    matching = [
        p
        for p in policies
        if subject in p.subjects and resource in p.resources and action in p.actions
    ]
    if any(p.effect is Effect.DENY for p in matching):
        return False
    return any(p.effect is Effect.ALLOW for p in matching)


async def main():
    # ──────────────────────────────────────
    #  1. Create the store (in-memory by default)
    # ──────────────────────────────────────
    store = PolicyStore(key_prefix="acme")

    # ──────────────────────────────────────
    #  2. Persist some policies
    # ──────────────────────────────────────
    await store.create(
        Policy(
            id="eng-reads-docs",
            subjects=["user:alice", "user:bob"],
            resources=["doc:arch", "doc:api"],
            actions=["read"],
            effect=Effect.ALLOW,
        )
    )
    await store.create(
        Policy(
            id="bob-no-billing",
            subjects=["user:bob"],
            resources=["doc:billing"],
            actions=["read", "write"],
            effect=Effect.DENY,
        )
    )

    # ──────────────────────────────────────
    #  3. Candidate lookup + evaluation
    # ──────────────────────────────────────
    print("=== Candidates ===\n")

    for subject, resource in [("user:alice", "doc:api"), ("user:bob", "doc:billing")]:
        candidates = await store.find_candidates(subject, resource)
        allowed = evaluate(candidates, subject, resource, "read")
        print(f"  {subject} -> {resource}: {[p.id for p in candidates]}  allowed={allowed}")

    # ──────────────────────────────────────
    #  4. Update moves index memberships
    # ──────────────────────────────────────
    print("\n=== Update ===\n")

    policy = await store.get("eng-reads-docs")
    policy.subjects = ["user:bob", "user:carol"]
    await store.update(policy)

    for subject in ["user:alice", "user:carol"]:
        found = await store.find_policies_for_subject(subject)
        print(f"  {subject}: {[p.id for p in found]}")

    # ──────────────────────────────────────
    #  5. Delete
    # ──────────────────────────────────────
    print("\n=== Delete ===\n")

    await store.delete("bob-no-billing")
    try:
        await store.get("bob-no-billing")
    except NotFoundError as e:
        print(f"  {e}")

    print("\nAll policies:", [p.id for p in await store.list_all(limit=100, offset=0)])
    await store.close()


if __name__ == "__main__":
    asyncio.run(main())
