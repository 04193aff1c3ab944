# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Executor for running one store operation from a RunnerInput.

Orchestrates the full flow:
1. Create store from configuration (or use the injected one)
2. Dispatch the requested operation
3. Translate the result or error to a RunnerOutput
4. Close the store if it was created here
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import asdict
from typing import Any, ClassVar

from policy_store.codec import PolicyDocument
from policy_store.config import create_store
from policy_store.exceptions import PolicyStoreError
from policy_store.policy import Policy
from policy_store.store import PolicyStore

from .schema import RunnerInput, RunnerOutput

OperationHandler = Callable[["Executor", PolicyStore, RunnerInput], Awaitable[Any]]


class ExecutionError(Exception):
    """Raised when the input lacks an argument the operation needs."""

    pass


def _require(value: Any, name: str, operation: str) -> Any:
    if value is None:
        raise ExecutionError(f"Operation '{operation}' requires '{name}'")
    return value


def _dump(policies: list[Policy]) -> list[dict[str, Any]]:
    return [PolicyDocument.from_policy(p).model_dump(mode="json") for p in policies]


class Executor:
    """Runs a single store operation described by a RunnerInput.

    Pass a store to the constructor to skip store creation (useful for
    testing); an injected store is never closed by the executor.

    Example:
        executor = Executor()
        output = await executor.execute(input_data)
    """

    def __init__(self, store: PolicyStore | None = None) -> None:
        self._injected_store = store

    async def execute(self, input_data: RunnerInput) -> RunnerOutput:
        """Execute the operation, always returning a RunnerOutput.

        Note:
            This method catches all exceptions and returns them as
            RunnerOutput errors, ensuring valid JSON is always returned.
        """
        try:
            return await self._execute_internal(input_data)
        except (PolicyStoreError, ExecutionError) as e:
            return RunnerOutput(
                success=False,
                error=str(e),
                error_type=type(e).__name__,
            )
        except Exception as e:
            return RunnerOutput(
                success=False,
                error=f"Unexpected error: {e}",
                error_type=type(e).__name__,
            )

    async def _execute_internal(self, input_data: RunnerInput) -> RunnerOutput:
        """Internal execution logic; lets exceptions propagate."""
        store = self._injected_store or create_store(input_data.store)
        owns_store = self._injected_store is None

        try:
            handler = self._operations[input_data.operation]
            result = await handler(self, store, input_data)
            return RunnerOutput(success=True, result=result)
        finally:
            if owns_store:
                await store.close()

    # ── operations ───────────────────────────────────────────

    async def _create(self, store: PolicyStore, input_data: RunnerInput) -> dict[str, Any]:
        document: PolicyDocument = _require(input_data.policy, "policy", "create")
        await store.create(document.to_policy())
        return {"id": document.id}

    async def _get(self, store: PolicyStore, input_data: RunnerInput) -> dict[str, Any]:
        policy_id = _require(input_data.policy_id, "policy_id", "get")
        return _dump([await store.get(policy_id)])[0]

    async def _update(self, store: PolicyStore, input_data: RunnerInput) -> dict[str, Any]:
        document: PolicyDocument = _require(input_data.policy, "policy", "update")
        await store.update(document.to_policy())
        return {"id": document.id}

    async def _delete(self, store: PolicyStore, input_data: RunnerInput) -> dict[str, Any]:
        policy_id = _require(input_data.policy_id, "policy_id", "delete")
        await store.delete(policy_id)
        return {"id": policy_id}

    async def _find_candidates(
        self, store: PolicyStore, input_data: RunnerInput
    ) -> list[dict[str, Any]]:
        subject = _require(input_data.subject, "subject", "find_candidates")
        resource = _require(input_data.resource, "resource", "find_candidates")
        return _dump(await store.find_candidates(subject, resource))

    async def _find_for_subject(
        self, store: PolicyStore, input_data: RunnerInput
    ) -> list[dict[str, Any]]:
        subject = _require(input_data.subject, "subject", "find_for_subject")
        return _dump(await store.find_policies_for_subject(subject))

    async def _find_for_resource(
        self, store: PolicyStore, input_data: RunnerInput
    ) -> list[dict[str, Any]]:
        resource = _require(input_data.resource, "resource", "find_for_resource")
        return _dump(await store.find_policies_for_resource(resource))

    async def _list_all(self, store: PolicyStore, input_data: RunnerInput) -> list[dict[str, Any]]:
        return _dump(await store.list_all(input_data.limit, input_data.offset))

    async def _rebuild_indices(self, store: PolicyStore, input_data: RunnerInput) -> dict[str, int]:
        return asdict(await store.rebuild_indices())

    _operations: ClassVar[dict[str, OperationHandler]] = {
        "create": _create,
        "get": _get,
        "update": _update,
        "delete": _delete,
        "find_candidates": _find_candidates,
        "find_for_subject": _find_for_subject,
        "find_for_resource": _find_for_resource,
        "list_all": _list_all,
        "rebuild_indices": _rebuild_indices,
    }
