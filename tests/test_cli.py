"""Tests for the operator CLI."""

import json
from pathlib import Path

import pytest

from call_rbac.cli import main
from call_rbac.core.engine import CallRBAC
from call_rbac.permissions.roles import Role
from call_rbac.storage.state_file import StateFile
from helpers import signed, transfer


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path: Path):
    """Keep CALL_RBAC_* variables and any .env out of the CLI's settings."""
    for key in (
        "CALL_RBAC_STATE_PATH",
        "CALL_RBAC_STATE_ENCRYPTION_KEY",
        "CALL_RBAC_SUPER_ACCOUNTS",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    return tmp_path / "state.json"


def run(state_path: Path, *args: str) -> int:
    return main(["--state", str(state_path), *args])


class TestCli:
    """Tests for the call-rbac command."""

    def test_grant_and_show(self, state_path: Path, capsys):
        assert run(state_path, "grant", "7", "alice", "admin") == 0
        assert run(state_path, "--as", "alice", "grant", "7", "bob", "executor") == 0

        assert run(state_path, "show", "7") == 0
        out = capsys.readouterr().out
        assert "Granted ADMIN in group 7 to alice" in out
        assert "Granted EXECUTOR in group 7 to bob" in out
        assert "Group 7" in out
        assert "Roles (2):" in out

        engine = CallRBAC(state_file=StateFile(state_path))
        assert engine.get_role(7, "bob") is Role.EXECUTOR

    def test_admin_cannot_grant_admin(self, state_path: Path, capsys):
        run(state_path, "grant", "7", "alice", "admin")

        assert run(state_path, "--as", "alice", "grant", "7", "carol", "admin") == 1
        assert "Error: Group admins may only grant executor access" in capsys.readouterr().err

    def test_revoke(self, state_path: Path, capsys):
        run(state_path, "grant", "7", "bob", "executor")

        assert run(state_path, "revoke", "7", "bob") == 0
        assert "Revoked EXECUTOR in group 7 from bob" in capsys.readouterr().out
        assert run(state_path, "revoke", "7", "bob") == 1

    def test_set_calls_and_allowed(self, state_path: Path, tmp_path: Path, capsys):
        calls_file = tmp_path / "calls.json"
        calls_file.write_text(
            json.dumps(
                [
                    {
                        "action": transfer("bob", 5).to_dict(),
                        "identity": signed("alice").to_dict(),
                    }
                ]
            )
        )
        run(state_path, "grant", "7", "bob", "executor")

        assert run(state_path, "set-calls", "7", str(calls_file)) == 0
        assert "Group 7 now allows 1 calls" in capsys.readouterr().out

        assert run(state_path, "allowed", "bob") == 0
        assert "balances.transfer" in capsys.readouterr().out

        assert run(state_path, "allowed", "carol") == 0
        assert "carol may not execute any calls." in capsys.readouterr().out

    def test_bad_inputs(self, state_path: Path, tmp_path: Path, capsys):
        assert run(state_path, "grant", "7", "alice", "owner") == 1
        assert "Unknown role" in capsys.readouterr().err

        bad_calls = tmp_path / "bad.json"
        bad_calls.write_text('{"not": "a list"}')
        assert run(state_path, "set-calls", "7", str(bad_calls)) == 1
        assert "must hold a JSON list" in capsys.readouterr().err

    def test_missing_state_path(self, capsys):
        assert main(["show", "7"]) == 1
        assert "No state file given" in capsys.readouterr().err
