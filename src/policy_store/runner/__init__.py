# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Runner submodule for driving a policy store from JSON.

Usage:
    python -m policy_store.runner < input.json > output.json

Exports:
    Executor: Runs one store operation described by a RunnerInput
    RunnerInput: Input schema
    RunnerOutput: Output schema
"""

from .executor import ExecutionError, Executor
from .schema import RunnerInput, RunnerOutput

__all__ = [
    "ExecutionError",
    "Executor",
    "RunnerInput",
    "RunnerOutput",
]
