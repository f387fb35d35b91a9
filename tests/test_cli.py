"""
tests/test_cli.py -- The command-line entry point and the startup admin bootstrap.

create-admin runs against a throwaway SQLite file under tmp_path; the
configured database is never touched.
"""

from __future__ import annotations

import io

import pytest

import api.main as api_main
import core.config
import main as cli
from auth.models import ROLE_ADMIN
from auth.passwords import verify_password
from auth.store import UserStore
from core.database import Database


@pytest.fixture
def cli_db_url(tmp_path, monkeypatch) -> str:
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    settings = core.config.get_settings().model_copy(update={"database_url": url})
    monkeypatch.setattr(core.config, "get_settings", lambda: settings)
    return url


def _stdin(monkeypatch, text: str) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(text))


class TestCreateAdmin:
    def test_creates_admin(self, cli_db_url, monkeypatch, capsys) -> None:
        _stdin(monkeypatch, "adminpass\n")

        rc = cli.main(["create-admin", "--email", "Root@Example.com", "--name", "Root", "--password-stdin"])

        assert rc == 0
        assert "created for root@example.com" in capsys.readouterr().out
        db = Database(cli_db_url)
        try:
            user = UserStore(db).get_by_email("root@example.com")
        finally:
            db.close()
        assert user.role == ROLE_ADMIN
        assert user.name == "Root"
        assert verify_password("adminpass", user.password_hash)

    def test_second_run_is_a_no_op(self, cli_db_url, monkeypatch, capsys) -> None:
        args = ["create-admin", "--email", "root@example.com", "--password-stdin"]
        _stdin(monkeypatch, "adminpass\n")
        assert cli.main(args) == 0
        _stdin(monkeypatch, "different\n")
        assert cli.main(args) == 0
        assert "already registered" in capsys.readouterr().out

        db = Database(cli_db_url)
        try:
            user = UserStore(db).get_by_email("root@example.com")
        finally:
            db.close()
        assert verify_password("adminpass", user.password_hash)

    def test_short_password_refused(self, cli_db_url, monkeypatch) -> None:
        _stdin(monkeypatch, "12345\n")
        assert cli.main(["create-admin", "--email", "root@example.com", "--password-stdin"]) == 1

        db = Database(cli_db_url)
        try:
            assert not UserStore(db).has_email("root@example.com")
        finally:
            db.close()


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        cli.main([])


def test_serve_passes_options_to_uvicorn(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kw: calls.append((app, kw)))

    assert cli.main(["serve", "--host", "0.0.0.0", "--port", "8080"]) == 0
    assert calls == [("api.main:app", {"host": "0.0.0.0", "port": 8080, "reload": False})]


# ---------------------------------------------------------------------------
# Startup bootstrap
# ---------------------------------------------------------------------------


class TestBootstrapAdmin:
    def test_skipped_when_unconfigured(self, user_store, monkeypatch) -> None:
        monkeypatch.setattr(api_main._settings, "admin_email", "")
        monkeypatch.setattr(api_main._settings, "admin_password", "")
        api_main.bootstrap_admin(user_store)
        assert user_store.list_users() == []

    def test_creates_configured_admin_once(self, user_store, monkeypatch) -> None:
        monkeypatch.setattr(api_main._settings, "admin_email", "boot@example.com")
        monkeypatch.setattr(api_main._settings, "admin_password", "bootpass")

        api_main.bootstrap_admin(user_store)
        api_main.bootstrap_admin(user_store)

        users = user_store.list_users()
        assert [(u.email, u.role) for u in users] == [("boot@example.com", ROLE_ADMIN)]
