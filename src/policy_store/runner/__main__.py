# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Entry point for the policy-store runner.

Usage:
    python -m policy_store.runner < input.json > output.json

The runner reads a JSON RunnerInput from stdin, runs the requested store
operation, and writes a JSON RunnerOutput to stdout.

Exit codes:
    0: Success
    1: Failure (error details in JSON output)
"""

from __future__ import annotations

import asyncio
import sys

from .executor import Executor
from .schema import RunnerInput, RunnerOutput


def main() -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        input_data = RunnerInput.model_validate_json(sys.stdin.read())
        output = asyncio.run(Executor().execute(input_data))
        print(output.model_dump_json())
        return 0 if output.success else 1

    except Exception as e:
        # Ensure we always output valid JSON, even on invalid input
        error_output = RunnerOutput(
            success=False,
            error=str(e),
            error_type=type(e).__name__,
        )
        print(error_output.model_dump_json())
        return 1


if __name__ == "__main__":
    sys.exit(main())
