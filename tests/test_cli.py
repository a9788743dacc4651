"""Tests for main.py -- the delete-user command and argument handling."""

import pytest

import main
from auth.hooks import LifecycleHooks
from auth.service import SessionService
from auth.store import UserStore
from core.config import get_settings
from records import handlers
from records.models import Task
from records.store import RecordStore


@pytest.fixture
def settings(tmp_path, monkeypatch):
    patched = get_settings().model_copy(
        update={
            "auth_database_url": f"sqlite:///{tmp_path / 'auth.db'}",
            "records_database_url": f"sqlite:///{tmp_path / 'records.db'}",
        }
    )
    monkeypatch.setattr(main, "get_settings", lambda: patched)
    return patched


@pytest.fixture
def account(settings):
    users = UserStore(settings.auth_database_url)
    records = RecordStore(settings.records_database_url)
    hooks = LifecycleHooks()
    handlers.register(hooks, records)
    identity, _ = SessionService(users, hooks, 3600).sign_up("Ada", "ada@example.com", "password123")
    records.create_task(Task(text="left behind?", owner_id=identity.id))
    yield identity, users, records
    users.close()
    records.close()


def test_delete_user_removes_account_and_records(account, capsys):
    identity, users, records = account
    assert main.main(["delete-user", "ada@example.com", "--yes"]) == 0
    assert "Deleted ada@example.com" in capsys.readouterr().out
    assert users.get_by_id(identity.id) is None
    assert records.get_preferences(identity.id) is None
    assert records.list_tasks(identity.id) == []


def test_delete_user_unknown_email(settings, capsys):
    assert main.main(["delete-user", "nobody@example.com", "--yes"]) == 1
    assert "No account found" in capsys.readouterr().out


def test_delete_user_aborts_without_confirmation(account, monkeypatch):
    identity, users, _records = account
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    assert main.main(["delete-user", "ada@example.com"]) == 1
    assert users.get_by_id(identity.id) is not None


def test_no_command_prints_help(capsys):
    assert main.main([]) == 0
    assert "delete-user" in capsys.readouterr().out
