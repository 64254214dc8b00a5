import importlib
import json
import logging
import sys

import pytest
from fastapi.testclient import TestClient

from config import Settings
from config_validator import validate_env
from core import sentry_config
from core.logging_config import JSONFormatter
from dependencies.storage import build_store
from integrations.github_contents import GitHubContentsStore
from middleware import error_handler
from services.storage import LocalFileStore


def test_defaults_match_the_original_deployment(monkeypatch):
    for var in ("API_VARIANT", "PORT", "GITHUB_REPO_OWNER", "GITHUB_FILE_PATH", "GITHUB_BRANCH", "ROUTE_PREFIX"):
        monkeypatch.delenv(var, raising=False)

    settings = Settings()

    assert settings.api_variant == "local"
    assert settings.port == 3001
    assert settings.github_repo_owner == "atomlinsonc"
    assert settings.github_repo_name == "mlb-prediction-scoreboard"
    assert settings.github_file_path == "data/predictions.json"
    assert settings.github_branch == "master"
    assert settings.route_prefix == ""
    assert settings.predictions_file.name == "predictions.json"


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("API_VARIANT", "remote")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("ROUTE_PREFIX", "api/")

    settings = Settings()

    assert settings.is_remote
    assert settings.port == 8080
    assert settings.log_level == "DEBUG"
    assert settings.route_prefix == "/api"


def test_unknown_variant_is_rejected():
    with pytest.raises(ValueError):
        Settings(api_variant="cloud")


def test_build_store_follows_variant(tmp_path):
    local = build_store(Settings(api_variant="local", predictions_file=tmp_path / "p.json"))
    remote = build_store(Settings(api_variant="remote", github_token="t"))

    assert isinstance(local, LocalFileStore)
    assert local.path == tmp_path / "p.json"
    assert isinstance(remote, GitHubContentsStore)
    assert remote.client.token == "t"


def test_remote_requires_token(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    with pytest.raises(RuntimeError, match="GITHUB_TOKEN"):
        validate_env("remote")
    validate_env("local")


def test_remote_entry_point_exports_remote_app(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    sys.modules.pop("api.predictions", None)

    module = importlib.import_module("api.predictions")

    assert module.app.state.settings.api_variant == "remote"
    assert module.app.state.settings.route_prefix == "/api"
    assert isinstance(module.app.state.store, GitHubContentsStore)
    with TestClient(module.app) as client:
        assert client.options("/api/predictions").status_code == 200
        assert client.delete("/api/predictions/Bob").status_code == 404


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("routes", logging.INFO, __file__, 1, "Prediction saved", (), None)
    record.entrant = "Bob"

    entry = json.loads(JSONFormatter().format(record))

    assert entry["message"] == "Prediction saved"
    assert entry["extra"] == {"entrant": "Bob"}


def test_sentry_stays_off_without_dsn(monkeypatch):
    called = []
    monkeypatch.setattr(sentry_config.sentry_sdk, "init", lambda **kw: called.append(kw))

    assert sentry_config.init_sentry(None) is False
    assert called == []


def test_sentry_registers_alert_hook(monkeypatch):
    called = []
    monkeypatch.setattr(sentry_config.sentry_sdk, "init", lambda **kw: called.append(kw))

    try:
        assert sentry_config.init_sentry("https://key@sentry.example.com/1", "staging") is True
        assert called[0]["environment"] == "staging"
        assert error_handler._alert_hook is sentry_config._capture_with_sentry
    finally:
        error_handler.register_alert_hook(None)
