"""Policy — the access-control record persisted by the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Effect(str, Enum):
    """Outcome a policy grants when it matches."""

    ALLOW = "allow"
    DENY = "deny"


@dataclass
class Policy:
    """A single access-control policy.

    The store only looks at ``id``, ``subjects`` and ``resources``.  Every
    other field is carried through untouched for the evaluator.

    Attributes:
        id:          Globally unique, caller-supplied identifier.
        subjects:    Subject literals or patterns (e.g. ``"user:alice"``,
                     ``"users:<[a-z]+>"``).
        resources:   Resource literals or patterns.
        actions:     Action literals or patterns.
        effect:      ``Effect.ALLOW`` or ``Effect.DENY``.
        conditions:  Opaque condition set, never interpreted by the store.
        description: Free-form human description.
        meta:        Opaque caller metadata.
    """

    id: str
    subjects: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)
    effect: Effect = Effect.DENY
    conditions: dict[str, Any] = field(default_factory=dict)
    description: str = ""
    meta: dict[str, Any] = field(default_factory=dict)
