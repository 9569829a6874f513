from __future__ import annotations

import types
from pathlib import Path

import pytest
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from scripts import run_migrations as runner


def test_resolve_database_url_prefers_env(monkeypatch) -> None:
    config = Config()
    config.set_main_option("sqlalchemy.url", "sqlite:///ini.db")
    monkeypatch.setenv("AEONWISE_DATABASE_URL", "sqlite://")
    assert runner.resolve_database_url(config) == "sqlite://"
    assert config.get_main_option("sqlalchemy.url") == "sqlite://"


def test_resolve_database_url_requires_a_url(monkeypatch) -> None:
    monkeypatch.delenv("AEONWISE_DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError):
        runner.resolve_database_url(Config())


def test_wait_for_database_succeeds_with_sqlite(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'ready.sqlite'}"
    runner.wait_for_database(url, timeout=2, poll_interval=0.1)


def test_wait_for_database_times_out(monkeypatch) -> None:
    class DummyEngine:
        def connect(self) -> types.SimpleNamespace:
            raise runner.OperationalError("SELECT 1", {}, Exception("boom"))

        def dispose(self) -> None:
            pass

    monkeypatch.setattr(runner, "create_engine", lambda *_, **__: DummyEngine())
    with pytest.raises(RuntimeError):
        runner.wait_for_database("postgresql://example", timeout=0, poll_interval=0)


def test_run_migrations_invokes_upgrade(monkeypatch) -> None:
    monkeypatch.setenv("AEONWISE_DATABASE_URL", "sqlite://")
    config = runner.get_alembic_config(str(runner.BACKEND_ROOT / "alembic.ini"))
    recorded: dict[str, object] = {}

    def fake_wait(url: str, *, timeout: int, poll_interval: float) -> None:
        recorded["wait"] = (url, timeout, poll_interval)

    def fake_upgrade(cfg, revision: str, **kwargs) -> None:  # type: ignore[no-untyped-def]
        recorded["revision"] = revision
        recorded["script_location"] = cfg.get_main_option("script_location")

    monkeypatch.setattr(runner, "wait_for_database", fake_wait)
    monkeypatch.setattr(runner.command, "upgrade", fake_upgrade)

    runner.run_migrations("head", timeout=5, poll_interval=0.1, config=config)

    assert recorded["revision"] == "head"
    assert recorded["wait"] == ("sqlite://", 5, 0.1)
    assert str(recorded["script_location"]).endswith("alembic")


def test_upgrade_creates_points_schema(monkeypatch, tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'migrated.sqlite'}"
    monkeypatch.setenv("AEONWISE_DATABASE_URL", url)

    assert runner.main(["--timeout", "2", "--poll-interval", "0.1"]) == 0

    engine = create_engine(url, future=True)
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert {"profiles", "points_ledger_entries", "persistence_audit_events", "alembic_version"} <= tables
