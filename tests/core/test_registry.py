"""Tests for ``recordspine.core.registry``."""

from __future__ import annotations

import threading

import pytest

from recordspine.core.adapters import AdapterRegistry, SQLiteAdapter
from recordspine.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    InstanceExistsError,
    MissingConfigError,
)
from recordspine.core.registry import InstanceRegistry
from recordspine.core.settings import DatabaseSettings


@pytest.fixture
def settings():
    return DatabaseSettings.from_directives(
        {
            "main.dsn": "sqlite:",
            "alt1.dsn": "sqlite:",
            "alt1.name": "backup",
        }
    )


@pytest.fixture
def registry(settings):
    registry = InstanceRegistry(settings)
    yield registry
    registry.unlink_instances()


class TestGetInstance:
    def test_lazy_construction(self, registry):
        assert len(registry) == 0
        db = registry.get_instance()
        assert db.name == "main"
        assert "main" in registry

    def test_same_instance_returned(self, registry):
        assert registry.get_instance("main") is registry.get_instance("main")

    def test_alternate(self, registry):
        backup = registry.get_instance("backup")
        assert backup.name == "backup"
        assert backup is not registry.get_instance("main")
        assert sorted(registry.names()) == ["backup", "main"]

    def test_unknown_name(self, registry):
        with pytest.raises(MissingConfigError):
            registry.get_instance("nope")
        assert "nope" not in registry

    def test_instances_are_independent(self, registry):
        main = registry.get_instance()
        backup = registry.get_instance("backup")
        main.exec("CREATE TABLE `T` (`Id` INTEGER PRIMARY KEY)")
        assert main.get_schema() == ["T"]
        assert backup.get_schema() == []

    def test_settings_callable(self, settings):
        registry = InstanceRegistry(lambda: settings)
        assert registry.get_instance().driver == "sqlite"
        registry.unlink_instances()

    def test_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("RECORDSPINE_MAIN__DSN", "sqlite:")
        registry = InstanceRegistry()
        assert registry.get_instance().driver == "sqlite"
        registry.unlink_instances()


class TestConstruct:
    def test_explicit_dsn(self, registry):
        db = registry.construct("reports", "sqlite:")
        assert registry.get_instance("reports") is db

    def test_twice_raises(self, registry):
        registry.construct("main", "sqlite:")
        with pytest.raises(InstanceExistsError, match="has already been constructed"):
            registry.construct("main", "sqlite:")

    def test_after_get_instance_raises(self, registry):
        registry.get_instance()
        with pytest.raises(InstanceExistsError):
            registry.construct()

    def test_unknown_driver(self, registry):
        with pytest.raises(ConfigError):
            registry.construct("pg", "pgsql:host=localhost")
        assert "pg" not in registry

    def test_failed_connect_registers_nothing(self, registry, tmp_path):
        missing = tmp_path / "missing" / "app.db"
        with pytest.raises(DatabaseConnectionError):
            registry.construct("broken", f"sqlite:{missing}")
        assert "broken" not in registry

    def test_custom_adapters(self, settings):
        class TracingAdapter(SQLiteAdapter):
            pass

        adapters = AdapterRegistry()
        adapters.register("sqlite", TracingAdapter)
        registry = InstanceRegistry(settings, adapters=adapters)
        assert isinstance(registry.get_instance().adapter, TracingAdapter)
        registry.unlink_instances()

    def test_concurrent_get_instance_constructs_once(self, registry):
        results = []

        def worker():
            results.append(registry.get_instance())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 1
        assert all(db is results[0] for db in results)


class TestUnlink:
    def test_closes_and_clears(self, registry):
        db = registry.get_instance()
        registry.unlink_instances()
        assert len(registry) == 0
        assert not db.adapter.is_connected

    def test_name_reusable_after_unlink(self, registry):
        first = registry.construct("main", "sqlite:")
        registry.unlink_instances()
        second = registry.construct("main", "sqlite:")
        assert second is not first
