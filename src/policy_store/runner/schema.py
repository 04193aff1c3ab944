# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Data transfer objects for runner input/output.

These Pydantic models define the JSON contract of
``python -m policy_store.runner``.  Policies travel in their stored
document form (:class:`~policy_store.codec.PolicyDocument`).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from policy_store.codec import PolicyDocument
from policy_store.config import StoreConfigSchema

Operation = Literal[
    "create",
    "get",
    "update",
    "delete",
    "find_candidates",
    "find_for_subject",
    "find_for_resource",
    "list_all",
    "rebuild_indices",
]


class RunnerInput(BaseModel):
    """Complete input read from stdin.

    Attributes:
        operation: Store operation to run
        store: Store configuration
        policy: Policy document (create, update)
        policy_id: Policy identifier (get, delete)
        subject: Request subject (find_candidates, find_for_subject)
        resource: Request resource (find_candidates, find_for_resource)
        limit: Page size (list_all)
        offset: Page start (list_all)
    """

    operation: Operation
    store: StoreConfigSchema = Field(default_factory=StoreConfigSchema)
    policy: PolicyDocument | None = None
    policy_id: str | None = None
    subject: str | None = None
    resource: str | None = None
    limit: int = Field(default=100, ge=0)
    offset: int = Field(default=0, ge=0)


class RunnerOutput(BaseModel):
    """Complete output written to stdout.

    The runner always outputs valid JSON matching this schema,
    even on errors.

    Attributes:
        success: Whether the operation completed successfully
        result: Operation result (on success)
        error: Error message (on failure)
        error_type: Error class name (on failure)
    """

    success: bool
    result: Any = None
    error: str = ""
    error_type: str = ""
