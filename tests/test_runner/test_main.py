"""Tests for the runner entry point."""

import io
import json

from policy_store.runner.__main__ import main


def _run_main(monkeypatch, capsys, stdin):
    monkeypatch.setattr("sys.stdin", io.StringIO(stdin))
    code = main()
    return code, json.loads(capsys.readouterr().out)


def test_success_exit_code(monkeypatch, capsys):
    code, output = _run_main(monkeypatch, capsys, json.dumps({"operation": "list_all"}))
    assert code == 0
    assert output == {"success": True, "result": [], "error": "", "error_type": ""}


def test_failure_exit_code(monkeypatch, capsys):
    code, output = _run_main(
        monkeypatch, capsys, json.dumps({"operation": "get", "policy_id": "missing"})
    )
    assert code == 1
    assert output["error_type"] == "NotFoundError"


def test_invalid_input_still_outputs_json(monkeypatch, capsys):
    code, output = _run_main(monkeypatch, capsys, "{not json")
    assert code == 1
    assert not output["success"]
    assert output["error_type"] == "ValidationError"
