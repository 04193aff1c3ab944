"""Manager — the storage contract an authorization engine depends on."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from policy_store.policy import Policy


class Manager(ABC):
    """Capability set a policy evaluator needs from its storage.

    Any implementation is substitutable: the evaluator only ever calls these
    methods, then re-checks every returned candidate itself.
    """

    @abstractmethod
    async def create(self, policy: Policy) -> None:
        """Persist a new policy.  Raises ``AlreadyExistsError`` if the id is taken."""
        ...

    @abstractmethod
    async def get(self, policy_id: str) -> Policy:
        """Return the policy.  Raises ``NotFoundError`` if absent."""
        ...

    @abstractmethod
    async def update(self, policy: Policy) -> None:
        """Replace an existing policy.  Raises ``NotFoundError`` if absent."""
        ...

    @abstractmethod
    async def delete(self, policy_id: str) -> None:
        """Remove a policy.  Raises ``NotFoundError`` if absent."""
        ...

    @abstractmethod
    async def find_candidates(self, subject: str, resource: str) -> list[Policy]:
        """Return a superset of the policies that may apply to the request."""
        ...

    @abstractmethod
    async def find_policies_for_subject(self, subject: str) -> list[Policy]:
        """Return a superset of the policies naming *subject*."""
        ...

    @abstractmethod
    async def find_policies_for_resource(self, resource: str) -> list[Policy]:
        """Return a superset of the policies naming *resource*."""
        ...

    @abstractmethod
    async def list_all(self, limit: int, offset: int) -> list[Policy]:
        """Return one page of all stored policies."""
        ...
