from __future__ import annotations

import pytest
import requests
from typer.testing import CliRunner

import fetch_climate


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def fake_download(monkeypatch):
    calls = []

    def download(key, path):
        calls.append(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{key} data")
        return path

    monkeypatch.setattr(fetch_climate, "download_dataset", download)
    monkeypatch.setattr(fetch_climate.time, "sleep", lambda seconds: None)
    monkeypatch.setattr(fetch_climate, "configure_logging", lambda: None)
    return calls


@pytest.fixture
def online(monkeypatch):
    monkeypatch.setenv("CLIMATECAST_OFFLINE", "0")
    fetch_climate.get_settings.cache_clear()


def test_fetch_all_downloads_every_dataset(fake_download) -> None:
    written = fetch_climate.fetch_all()

    assert fake_download == ["temperature", "co2"]
    assert [p.name for p in written] == ["GLB.Ts+dSST.csv", "co2_mm_mlo.txt"]


def test_fetch_all_skips_existing_unless_forced(fake_download) -> None:
    fetch_climate.fetch_all()
    fake_download.clear()

    assert fetch_climate.fetch_all() == []
    assert fake_download == []

    assert len(fetch_climate.fetch_all(force=True)) == 2


def test_cli_refuses_when_offline(runner: CliRunner, fake_download) -> None:
    result = runner.invoke(fetch_climate.app, [])

    assert result.exit_code == 1
    assert fake_download == []


def test_cli_downloads_when_online(runner: CliRunner, fake_download, online) -> None:
    result = runner.invoke(fetch_climate.app, [])

    assert result.exit_code == 0
    assert fake_download == ["temperature", "co2"]
    assert "2 file(s) written" in result.stdout


def test_cli_force_redownloads_existing_files(runner: CliRunner, fake_download, online) -> None:
    fetch_climate.fetch_all()
    fake_download.clear()

    assert runner.invoke(fetch_climate.app, []).exit_code == 0
    assert fake_download == []

    result = runner.invoke(fetch_climate.app, ["--force"])

    assert result.exit_code == 0
    assert fake_download == ["temperature", "co2"]


def test_cli_rejects_unknown_option(runner: CliRunner, fake_download, online) -> None:
    fetch_climate.fetch_all()
    fake_download.clear()

    result = runner.invoke(fetch_climate.app, ["--froce"])

    assert result.exit_code != 0
    assert fake_download == []


def test_cli_help_lists_force(runner: CliRunner) -> None:
    result = runner.invoke(fetch_climate.app, ["--help"])

    assert result.exit_code == 0
    assert "--force" in result.stdout


def test_cli_reports_network_failure(monkeypatch, runner: CliRunner, fake_download, online) -> None:
    def broken(key, path):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(fetch_climate, "download_dataset", broken)

    result = runner.invoke(fetch_climate.app, [])

    assert result.exit_code == 1
