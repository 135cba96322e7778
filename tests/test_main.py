import asyncio
import copy
import json
import os
import signal
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

import main
from config.config_manager import DEFAULT_CONFIG
from core.errors import FetchError
from infrastructure.api.fr24_client import Fr24Client
from infrastructure.api.preloaded_client import PreloadedHistoryProvider

FIXTURE = Path(__file__).parent / "fixtures" / "ba123_history.json"


def _config() -> dict:
    return copy.deepcopy(DEFAULT_CONFIG)


def test_parse_args_requires_flight_number(monkeypatch) -> None:
    monkeypatch.delenv("FLIGHT_NUMBER", raising=False)

    with pytest.raises(SystemExit):
        main.parse_args([])


def test_parse_args_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("MAIL", "pilot@example.com")
    monkeypatch.setenv("PASSWORD", "secret")
    monkeypatch.setenv("FLIGHT_NUMBER", "BA123")

    args = main.parse_args([])

    assert (args.email, args.password, args.flight_number) == ("pilot@example.com", "secret", "BA123")


def test_build_provider_prefers_input_file() -> None:
    args = main.parse_args(["-f", "BA123", "--input", str(FIXTURE)])

    assert isinstance(main.build_provider(args, _config()), PreloadedHistoryProvider)


def test_build_provider_needs_credentials(monkeypatch) -> None:
    monkeypatch.delenv("MAIL", raising=False)
    monkeypatch.delenv("PASSWORD", raising=False)
    args = main.parse_args(["-f", "BA123"])

    with pytest.raises(ValueError):
        main.build_provider(args, _config())


def test_build_provider_fr24() -> None:
    config = _config()
    config['api']['max_pages'] = 3
    args = main.parse_args(["-f", "BA123", "-m", "pilot@example.com", "-p", "secret"])

    provider = main.build_provider(args, config)

    assert isinstance(provider, Fr24Client)
    assert provider.max_pages == 3


def test_build_provider_preloaded_from_config() -> None:
    config = _config()
    config['api']['preloaded_data'] = True
    config['api']['preloaded_path'] = str(FIXTURE)
    args = main.parse_args(["-f", "BA123"])

    assert isinstance(main.build_provider(args, config), PreloadedHistoryProvider)


def test_build_provider_preloaded_without_path() -> None:
    config = _config()
    config['api']['preloaded_data'] = True
    args = main.parse_args(["-f", "BA123"])

    with pytest.raises(ValueError):
        main.build_provider(args, config)


@pytest.mark.asyncio
async def test_run_prints_summary(capsys):
    args = main.parse_args(["-f", "BA123", "--input", str(FIXTURE)])

    status = await main.run(args, _config())

    assert status == 0
    output = json.loads(capsys.readouterr().out)
    assert set(output["BA123"]) == {"EGLL-KJFK", "KJFK-EGLL"}
    assert output["BA123"]["EGLL-KJFK"]["aircraft_models"] == ["B772", "B77W"]


@pytest.mark.asyncio
async def test_run_with_diagnostics(capsys):
    args = main.parse_args(["-f", "BA123", "--input", str(FIXTURE), "--with-diagnostics"])

    status = await main.run(args, _config())

    assert status == 0
    output = json.loads(capsys.readouterr().out)
    assert output["records"] == 4
    assert output["skipped"][0]["missing_fields"] == ["aircraft_model_code"]


@pytest.mark.asyncio
async def test_run_reports_fetch_failure(capsys):
    args = main.parse_args(["-f", "BA123", "-m", "pilot@example.com", "-p", "secret"])

    with patch.object(Fr24Client, "fetch_flight_history", AsyncMock(side_effect=FetchError("Login rejected"))):
        status = await main.run(args, _config())

    assert status == 1
    assert capsys.readouterr().out == ""


@pytest.mark.asyncio
async def test_run_stops_on_termination_signal(capsys):
    args = main.parse_args(["-f", "BA123", "-m", "pilot@example.com", "-p", "secret"])
    never = asyncio.Event()

    async def hang(_self, _flight_number):
        await never.wait()

    async def send_signal():
        await asyncio.sleep(0.1)
        os.kill(os.getpid(), signal.SIGTERM)

    with patch.object(Fr24Client, "fetch_flight_history", hang):
        sender = asyncio.create_task(send_signal())
        status = await main.run(args, _config())
        await sender

    assert status == 0
    assert capsys.readouterr().out == ""
