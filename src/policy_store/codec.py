"""Record codec — Policy <-> JSON payload stored under a primary key.

The on-disk document is a Pydantic model so that payload validation and
policy construction live in one place.  Anything that fails validation is
reported as :class:`CorruptRecordError`, never coerced into a default policy.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from policy_store.exceptions import CorruptRecordError
from policy_store.policy import Effect, Policy


class PolicyDocument(BaseModel):
    """Serialized form of a :class:`Policy`.

    Attributes:
        id: Policy identifier
        description: Human-readable description
        subjects: Subject literals/patterns
        resources: Resource literals/patterns
        actions: Action literals/patterns
        effect: "allow" or "deny"
        conditions: Opaque condition set
        meta: Opaque caller metadata
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    description: str = ""
    subjects: list[str] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    effect: Effect
    conditions: dict[str, Any] = Field(default_factory=dict)
    meta: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_policy(cls, policy: Policy) -> PolicyDocument:
        return cls(
            id=policy.id,
            description=policy.description,
            subjects=list(policy.subjects),
            resources=list(policy.resources),
            actions=list(policy.actions),
            effect=policy.effect,
            conditions=policy.conditions,
            meta=policy.meta,
        )

    def to_policy(self) -> Policy:
        return Policy(
            id=self.id,
            subjects=list(self.subjects),
            resources=list(self.resources),
            actions=list(self.actions),
            effect=self.effect,
            conditions=dict(self.conditions),
            description=self.description,
            meta=dict(self.meta),
        )


def encode_policy(policy: Policy) -> bytes:
    """Serialize *policy* to the bytes stored under its primary key."""
    return PolicyDocument.from_policy(policy).model_dump_json().encode("utf-8")


def decode_policy(data: bytes, key: str = "") -> Policy:
    """Deserialize a stored payload.

    Args:
        data: Raw payload read from the backend
        key: Backend key the payload came from (for error messages)

    Raises:
        CorruptRecordError: If the payload is not a valid policy document
    """
    try:
        document = PolicyDocument.model_validate_json(data)
    except ValidationError as e:
        raise CorruptRecordError(key, str(e)) from e
    return document.to_policy()
