from __future__ import annotations

from sqlalchemy import create_engine, text

from aeonwise.db import monitoring


def test_instrument_engine_emits_telemetry(monkeypatch) -> None:
    emitted: list[tuple[str, dict[str, object]]] = []

    def record(event_name: str, **payload: object) -> None:
        emitted.append((event_name, payload))

    monkeypatch.setattr(monitoring, "_EMIT_INTERVAL", 0)
    monkeypatch.setattr(monitoring, "emit_event", record)

    engine = create_engine("sqlite:///:memory:", future=True)
    try:
        monitoring.instrument_engine(engine)
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        assert emitted, "Expected telemetry emission when instrumentation is active."
        event_name, payload = emitted[0]
        assert event_name == "db_pool_status"
        assert payload["connects"] >= 1

        snapshot = monitoring.get_pool_snapshot(engine)
        assert snapshot["checkouts"] >= 1
        assert snapshot["checkins"] >= 1
    finally:
        engine.dispose()


def test_emission_is_throttled(monkeypatch) -> None:
    emitted: list[str] = []
    monkeypatch.setattr(monitoring, "_EMIT_INTERVAL", 3600)
    monkeypatch.setattr(monitoring, "emit_event", lambda name, **_: emitted.append(name))

    engine = create_engine("sqlite:///:memory:", future=True)
    try:
        monitoring.instrument_engine(engine)
        for _ in range(3):
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        assert emitted == ["db_pool_status"]
    finally:
        engine.dispose()
