"""Tests for feedpublisher CLI helpers."""
import logging
import os
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from feedpublisher import cli
from feedpublisher.cli import (
    CLIError,
    _build_config,
    _build_parser,
    _load_env_file,
    _setup_logging,
    run_cli,
)
from feedpublisher.models import FailureReason, PublishWorkItem, UploadOutcome
from feedpublisher.orchestrator.models import PublishReport


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for name in ("FEED_URL", "FEED_ACCESS_KEY", "FEED_MAX_CLIENTS", "FEED_UPLOAD_TIMEOUT_MINUTES", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    # Keep a stray ./.env from leaking into tests
    monkeypatch.chdir(tmp_path)
    yield
    logging.disable(logging.NOTSET)


def test_load_env_file(tmp_path, monkeypatch):
    env_path = tmp_path / "publish.env"
    env_path.write_text(
        "\n".join(
            [
                "# feed settings",
                "FEED_URL=https://feed.example/dotnet",
                "FEED_ACCESS_KEY='s3cret'",
                "export FEED_MAX_CLIENTS=4",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("FEED_URL", "https://already.set")

    _load_env_file(env_path)

    assert os.environ["FEED_URL"] == "https://already.set"
    assert os.environ["FEED_ACCESS_KEY"] == "s3cret"
    assert os.environ["FEED_MAX_CLIENTS"] == "4"


def test_load_env_file_missing(tmp_path):
    with pytest.raises(CLIError, match="env file not found"):
        _load_env_file(tmp_path / "missing.env")


def test_build_config_from_environment(monkeypatch):
    monkeypatch.setenv("FEED_URL", "https://feed.example")
    monkeypatch.setenv("FEED_ACCESS_KEY", "key")
    monkeypatch.setenv("FEED_MAX_CLIENTS", "3")
    monkeypatch.setenv("FEED_UPLOAD_TIMEOUT_MINUTES", "2.5")
    args = _build_parser().parse_args(["--manifest", "m.xml"])

    config = _build_config(args)

    assert config.feed_url == "https://feed.example"
    assert config.access_key == "key"
    assert config.max_clients == 3
    assert config.upload_timeout_minutes == 2.5


def test_flags_override_environment(monkeypatch):
    monkeypatch.setenv("FEED_URL", "https://env.example")
    monkeypatch.setenv("FEED_MAX_CLIENTS", "3")
    args = _build_parser().parse_args(
        ["--manifest", "m.xml", "--feed-url", "https://flag.example", "--access-key", "k", "--max-clients", "16"]
    )

    config = _build_config(args)

    assert config.feed_url == "https://flag.example"
    assert config.max_clients == 16
    assert config.upload_timeout_minutes == 5


def test_build_config_requires_feed_and_key():
    args = _build_parser().parse_args(["--manifest", "m.xml"])
    with pytest.raises(CLIError, match="--feed-url.*--access-key"):
        _build_config(args)


def test_build_config_rejects_zero_clients():
    args = _build_parser().parse_args(
        ["--manifest", "m.xml", "--feed-url", "u", "--access-key", "k", "--max-clients", "0"]
    )
    with pytest.raises(CLIError, match="max clients"):
        _build_config(args)


def test_setup_logging_defaults_to_silent():
    mode = _setup_logging(debug=False, silent=False, log_level=None)
    assert mode == "silent"
    assert logging.getLogger().getEffectiveLevel() > logging.CRITICAL


def test_setup_logging_debug_mode():
    mode = _setup_logging(debug=True, silent=False, log_level=None)
    assert mode == "DEBUG"
    assert logging.getLogger().isEnabledFor(logging.DEBUG) is True


def test_setup_logging_from_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    assert _setup_logging(debug=False, silent=False, log_level=None) == "WARNING"


def test_run_cli_requires_manifest(capsys):
    with pytest.raises(SystemExit) as excinfo:
        run_cli(["--feed-url", "https://x", "--access-key", "k"])
    assert excinfo.value.code == 2
    assert "--manifest" in capsys.readouterr().err


def test_run_cli_missing_settings_returns_error(capsys):
    assert run_cli(["--manifest", "m.xml", "--silent"]) == 1
    assert "missing required setting" in capsys.readouterr().err


def _fake_orchestrator(report, monkeypatch):
    calls = {}

    class FakeOrchestrator:
        def __init__(self, config, options):
            calls["config"] = config
            calls["options"] = options

        async def __aenter__(self):
            return self

        async def __aexit__(self, *args):
            return None

        async def publish_manifest(self, manifest, package_base_path=None, blob_base_path=None):
            calls["manifest"] = manifest
            calls["package_base_path"] = package_base_path
            calls["blob_base_path"] = blob_base_path
            return report

    monkeypatch.setattr(cli, "PublishOrchestrator", FakeOrchestrator)
    return calls


def test_run_cli_success_exit_code(monkeypatch):
    calls = _fake_orchestrator(PublishReport(), monkeypatch)

    code = run_cli(
        [
            "--manifest", "manifest.xml",
            "--package-base-path", "out/packages",
            "--blob-base-path", "out/blobs",
            "--feed-url", "https://feed.example",
            "--access-key", "k",
            "--pass-if-identical",
            "--silent",
        ]
    )

    assert code == 0
    assert calls["manifest"] == Path("manifest.xml")
    assert calls["options"].pass_if_existing_item_identical is True
    assert calls["options"].allow_overwrite is False
    assert calls["package_base_path"] == "out/packages"


def test_run_cli_failure_exit_code(monkeypatch, capsys):
    item = PublishWorkItem(local_path=Path("symbols.zip"), remote_key="symbols.zip")
    report = PublishReport(
        outcomes=[UploadOutcome.fail(item, FailureReason.CONTENT_MISMATCH, "differs")]
    )
    _fake_orchestrator(report, monkeypatch)

    code = run_cli(
        ["--manifest", "manifest.xml", "--feed-url", "u", "--access-key", "k", "--overwrite", "--silent"]
    )

    assert code == 1
    assert "symbols.zip [content_mismatch]: differs" in capsys.readouterr().out
