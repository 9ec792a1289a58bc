"""Unit tests for the SQLModel key/value repository and database bootstrap."""

from __future__ import annotations

from datetime import timezone

from paybackpal.config import BaseConfig
from paybackpal.infra.database import bootstrap_database
from paybackpal.infra.repositories import SQLModelSettingsRepository
from paybackpal.models.settings import AppSetting


def test_get_missing_key(settings_repo):
    assert settings_repo.get("nope") is None
    assert settings_repo.get_value("nope") is None


def test_set_then_update(settings_repo):
    first = settings_repo.set("anchorPayday", "2024-03-20T09:00:00", description="anchor")
    second = settings_repo.set("anchorPayday", "2024-04-03T09:00:00")

    assert first.key == second.key == "anchorPayday"
    assert settings_repo.get_value("anchorPayday") == "2024-04-03T09:00:00"
    assert second.updated_at >= first.updated_at


def test_values_survive_a_new_repository(session_factory):
    SQLModelSettingsRepository(session_factory).set("notificationAuthorization", "authorized")
    fresh = SQLModelSettingsRepository(session_factory)
    assert fresh.get_value("notificationAuthorization") == "authorized"


def test_new_rows_are_stamped_in_utc():
    setting = AppSetting(key="k", value="v")
    assert setting.updated_at.tzinfo is timezone.utc


def test_values_longer_than_a_short_column(settings_repo):
    payload = "x" * 10_000
    settings_repo.set("debtData", payload)
    assert settings_repo.get_value("debtData") == payload


def test_delete(settings_repo):
    settings_repo.set("k", "v")
    settings_repo.delete("k")
    settings_repo.delete("k")
    assert settings_repo.get("k") is None


def test_bootstrap_database_creates_schema(tmp_path, monkeypatch):
    monkeypatch.setenv("PAYBACKPAL_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("PAYBACKPAL_DATABASE_URL", raising=False)
    config = BaseConfig()

    engine, factory = bootstrap_database(config)
    repo = SQLModelSettingsRepository(factory)
    repo.set("debtData", "{}")

    assert (tmp_path / "paybackpal.db").exists()
    assert repo.get_value("debtData") == "{}"
    engine.dispose()
