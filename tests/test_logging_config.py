from __future__ import annotations

import logging

import climatecast.logging_config as logging_config
from climatecast.logging_config import ContextualFormatter, configure_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("climatecast.test", logging.INFO, __file__, 1, "Fitted model", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    line = formatter.format(_record(model="ARIMA", horizon=12, unrelated="x"))

    assert line == "Fitted model | model=ARIMA horizon=12"


def test_formatter_without_context_is_plain() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    assert formatter.format(_record()) == "INFO Fitted model"


def test_formatter_custom_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["fold"])

    assert formatter.format(_record(fold=3, model="ETS")) == "Fitted model | fold=3"


def test_configure_logging_runs_once(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(logging_config, "_configured", False)
    monkeypatch.setattr(logging_config, "dictConfig", lambda config: calls.append(config))

    configure_logging("DEBUG")
    configure_logging("INFO")

    assert len(calls) == 1
    config = calls[0]
    assert config["root"]["level"] == "DEBUG"
    assert config["loggers"]["cmdstanpy"]["level"] == "WARNING"
    assert config["formatters"]["contextual"]["()"].endswith("ContextualFormatter")


def test_configure_logging_defaults_to_settings_level(monkeypatch) -> None:
    calls = []
    monkeypatch.setenv("LOG_LEVEL", "warning")
    logging_config.get_settings.cache_clear()
    monkeypatch.setattr(logging_config, "_configured", False)
    monkeypatch.setattr(logging_config, "dictConfig", lambda config: calls.append(config))

    configure_logging()

    assert calls[0]["handlers"]["default"]["level"] == "WARNING"
