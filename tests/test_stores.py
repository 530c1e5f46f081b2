"""Tests for the connection and project settings stores."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pidebug.core.exceptions import StoreError
from pidebug.domain.connection.models import ConnectionDescriptor
from pidebug.domain.readiness import WebServer
from pidebug.infrastructure.state.connection_store import ConnectionStore, enforce_default
from pidebug.infrastructure.state.project_store import ProjectSettings, ProjectSettingsStore


@pytest.fixture()
def store(tmp_path: Path) -> ConnectionStore:
    return ConnectionStore(tmp_path / "connections.json")


def _connection(host: str, **kwargs) -> ConnectionDescriptor:
    return ConnectionDescriptor(host=host, **kwargs)


class TestEnforceDefault:
    def test_empty(self) -> None:
        assert enforce_default([]) == []

    def test_alphabetically_first_when_none_flagged(self) -> None:
        connections = [_connection("b"), _connection("C"), _connection("a", user="Zed")]

        enforce_default(connections)

        assert [item.is_default for item in connections] == [True, False, False]

    def test_case_insensitive(self) -> None:
        connections = [_connection("x", display_name="beta"), _connection("y", display_name="Alpha")]

        enforce_default(connections)

        assert connections[1].is_default

    def test_first_flagged_wins(self) -> None:
        connections = [_connection("a"), _connection("b", is_default=True), _connection("c", is_default=True)]

        enforce_default(connections)

        assert [item.is_default for item in connections] == [False, True, False]


class TestConnectionStore:
    def test_missing_file_is_empty(self, store: ConnectionStore) -> None:
        assert store.load() == []
        assert store.get_default() is None

    def test_round_trip_with_default_enforced(self, store: ConnectionStore, tmp_path: Path) -> None:
        original = [
            _connection("10.0.0.9", display_name="zeta", password=None, private_key_path="/k/zeta"),
            _connection("10.0.0.8", user="admin", port=2222, display_name="alpha", public_key_path="/k/a.pub"),
        ]
        written = [item.copy() for item in original]

        store.save(written)
        loaded = store.load()

        assert len(loaded) == 2
        assert sum(item.is_default for item in loaded) == 1
        for before, after in zip(original, loaded):
            assert after.to_dict() | {"is_default": False} == before.to_dict()
        assert loaded[1].is_default

    def test_file_is_json_array(self, store: ConnectionStore) -> None:
        store.add(_connection("10.0.0.7"))

        data = json.loads(store.path.read_text())
        assert isinstance(data, list)
        assert data[0]["host"] == "10.0.0.7"
        assert data[0]["is_default"] is True

    def test_default_enforced_on_read(self, store: ConnectionStore) -> None:
        store.path.write_text(json.dumps([
            {"host": "b", "user": "pi", "is_default": False},
            {"host": "a", "user": "pi", "is_default": False},
        ]))

        assert store.get_default().host == "a"

    def test_add_duplicate(self, store: ConnectionStore) -> None:
        store.add(_connection("10.0.0.7"))

        with pytest.raises(StoreError):
            store.add(_connection("10.0.0.7"))

    def test_add_default_moves_flag(self, store: ConnectionStore) -> None:
        store.add(_connection("10.0.0.7"))
        store.add(_connection("10.0.0.8", is_default=True))

        assert store.get_default().host == "10.0.0.8"

    def test_update_keeps_default(self, store: ConnectionStore) -> None:
        store.add(_connection("10.0.0.7"))
        changed = _connection("10.0.0.7", private_key_path="/keys/pi")

        store.update("pi@10.0.0.7", changed)

        saved = store.get("pi@10.0.0.7")
        assert saved.private_key_path == "/keys/pi"
        assert saved.is_default

    def test_update_missing(self, store: ConnectionStore) -> None:
        with pytest.raises(StoreError):
            store.update("nobody", _connection("x"))

    def test_remove_default_promotes_next(self, store: ConnectionStore) -> None:
        store.add(_connection("10.0.0.7"))
        store.add(_connection("10.0.0.8"))

        assert store.remove("pi@10.0.0.7")
        assert not store.remove("pi@10.0.0.7")
        assert store.get_default().host == "10.0.0.8"

    def test_set_default(self, store: ConnectionStore) -> None:
        store.add(_connection("10.0.0.7"))
        store.add(_connection("10.0.0.8"))

        store.set_default("pi@10.0.0.8")

        assert [item.is_default for item in store.list()] == [False, True]

    def test_resolve(self, store: ConnectionStore) -> None:
        store.add(_connection("10.0.0.7"))
        store.add(_connection("10.0.0.8", display_name="lab"))

        assert store.resolve(None).host == "10.0.0.7"
        assert store.resolve("default").host == "10.0.0.7"
        assert store.resolve("lab").host == "10.0.0.8"
        assert store.resolve("missing") is None

    def test_bad_json(self, store: ConnectionStore) -> None:
        store.path.write_text("{not json")

        with pytest.raises(StoreError):
            store.load()

    def test_not_an_array(self, store: ConnectionStore) -> None:
        store.path.write_text("{}")

        with pytest.raises(StoreError):
            store.load()


class TestProjectSettingsStore:
    def test_defaults_for_unknown_project(self, tmp_path: Path) -> None:
        settings = ProjectSettingsStore(tmp_path / "projects.json").get("{guid}")

        assert not settings.enable_remote_debugging
        assert settings.uses_default_connection
        assert settings.target_group == "gpio"
        assert settings.web_server == WebServer.KESTREL

    def test_round_trip(self, tmp_path: Path) -> None:
        store = ProjectSettingsStore(tmp_path / "projects.json")
        settings = ProjectSettings(
            enable_remote_debugging=True,
            remote_debug_target="lab",
            target_group="video",
            use_reverse_proxy=True,
        )

        store.set("blinky", settings)
        store.set("other", ProjectSettings())

        assert store.get("blinky") == settings
        assert not store.get("blinky").uses_default_connection
        assert store.get("blinky").web_server == WebServer.REVERSE_PROXY

    def test_default_target_name(self) -> None:
        assert ProjectSettings(remote_debug_target="default").uses_default_connection

    def test_remove(self, tmp_path: Path) -> None:
        store = ProjectSettingsStore(tmp_path / "projects.json")
        store.set("blinky", ProjectSettings(enable_remote_debugging=True))

        assert store.remove("blinky")
        assert not store.remove("blinky")
        assert not store.get("blinky").enable_remote_debugging

    def test_bad_file(self, tmp_path: Path) -> None:
        path = tmp_path / "projects.json"
        path.write_text("[]")

        with pytest.raises(StoreError):
            ProjectSettingsStore(path).get("x")
