"""Tests for assetvault storage settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from assetvault.config import (
    DEFAULT_CACHE_MAX_AGE,
    StorageSettings,
    TracingSettings,
    get_env_bool,
    parse_search_paths,
)


class TestParseSearchPaths:
    def test_splits_and_trims(self) -> None:
        assert parse_search_paths(" /a , /b,/c ") == ("/a", "/b", "/c")

    def test_drops_empty_entries(self) -> None:
        assert parse_search_paths("/a,,  ,/b,") == ("/a", "/b")

    def test_removes_duplicates_keeping_first_order(self) -> None:
        assert parse_search_paths("/b,/a,/b,/a") == ("/b", "/a")

    @pytest.mark.parametrize("raw", [None, "", " , ,"])
    def test_empty_input(self, raw: str | None) -> None:
        assert parse_search_paths(raw) == ()


class TestStorageSettingsFromEnv:
    def test_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        settings = StorageSettings.from_env({})

        assert settings.uploads_dir == (tmp_path / "uploads").resolve()
        assert settings.public_search_paths == (str(settings.uploads_dir / "public"),)
        assert settings.cache_max_age == DEFAULT_CACHE_MAX_AGE

    def test_explicit_values(self, tmp_path: Path) -> None:
        settings = StorageSettings.from_env(
            {
                "ASSETVAULT_UPLOADS_DIR": str(tmp_path / "root"),
                "PUBLIC_OBJECT_SEARCH_PATHS": "/srv/a,/srv/b",
                "ASSETVAULT_CACHE_MAX_AGE": "60",
            }
        )

        assert settings.uploads_dir == (tmp_path / "root").resolve()
        assert settings.public_search_paths == ("/srv/a", "/srv/b")
        assert settings.cache_max_age == 60

    @pytest.mark.parametrize(("raw", "expected"), [("abc", 3600), ("-5", 0), (" 0 ", 0)])
    def test_cache_max_age_parsing(self, raw: str, expected: int) -> None:
        settings = StorageSettings.from_env({"ASSETVAULT_CACHE_MAX_AGE": raw})

        assert settings.cache_max_age == expected

    def test_reads_process_environment_by_default(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ASSETVAULT_UPLOADS_DIR", str(tmp_path))

        assert StorageSettings.from_env().uploads_dir == tmp_path.resolve()

    def test_for_directory(self, tmp_path: Path) -> None:
        settings = StorageSettings.for_directory(tmp_path)

        assert settings.uploads_dir == tmp_path.resolve()
        assert settings.public_search_paths == (str(tmp_path.resolve() / "public"),)


class TestGetEnvBool:
    @pytest.mark.parametrize("value", ["1", "true", "YES"])
    def test_truthy(self, value: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ASSETVAULT_TEST_FLAG", value)
        assert get_env_bool("ASSETVAULT_TEST_FLAG") is True

    def test_unrecognized_uses_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ASSETVAULT_TEST_FLAG", "maybe")
        assert get_env_bool("ASSETVAULT_TEST_FLAG", True) is True

    def test_reads_explicit_mapping(self) -> None:
        assert get_env_bool("FLAG", False, {"FLAG": "yes"}) is True


class TestTracingSettingsFromEnv:
    def test_defaults_are_disabled(self) -> None:
        settings = TracingSettings.from_env({})

        assert settings == TracingSettings()
        assert settings.enabled is False
        assert settings.service_name == "assetvault"
        assert settings.exporter == "otlp"
        assert settings.otlp_endpoint is None

    def test_explicit_values(self) -> None:
        settings = TracingSettings.from_env(
            {
                "ASSETVAULT_OTEL_ENABLED": "1",
                "ASSETVAULT_OTEL_SERVICE_NAME": "vault-edge",
                "ASSETVAULT_OTEL_EXPORTER": "Console",
                "ASSETVAULT_OTEL_EXPORTER_OTLP_ENDPOINT": "http://collector:4318",
                "ASSETVAULT_OTEL_EXPORTER_OTLP_PROTOCOL": "http",
            }
        )

        assert settings == TracingSettings(
            enabled=True,
            service_name="vault-edge",
            exporter="console",
            otlp_endpoint="http://collector:4318",
            otlp_protocol="http",
        )

    def test_unknown_choices_fall_back(self) -> None:
        settings = TracingSettings.from_env(
            {"ASSETVAULT_OTEL_EXPORTER": "zipkin", "ASSETVAULT_OTEL_EXPORTER_OTLP_PROTOCOL": "udp"}
        )

        assert settings.exporter == "otlp"
        assert settings.otlp_protocol == "grpc"
