from __future__ import annotations

import json
import logging
from dataclasses import replace

from paper_api.config import get_settings
from paper_api.logging_config import PACKAGE_LOGGER, SERVICE_NAME, ConsoleFormatter, JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("paper_api.services.fetcher", logging.INFO, __file__, 1, "fetched %s", ("doc",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_service_and_extras() -> None:
    payload = json.loads(JSONFormatter().format(_record(doi="10.1145/1")))

    assert payload["service"] == SERVICE_NAME
    assert payload["level"] == "info"
    assert payload["logger"] == "paper_api.services.fetcher"
    assert payload["message"] == "fetched doc"
    assert payload["doi"] == "10.1145/1"


def test_console_formatter_appends_extras() -> None:
    line = ConsoleFormatter().format(_record(doi="10.1145/1"))

    assert "[INFO] paper_api.services.fetcher: fetched doc" in line
    assert line.endswith('{"doi": "10.1145/1"}')


def test_setup_logging_quiets_test_env_and_replaces_handler() -> None:
    settings = replace(get_settings(), env="test", log_level="debug", log_format="json")

    setup_logging(settings)
    logger = setup_logging(settings)

    assert logger.name == PACKAGE_LOGGER
    assert logger.level == logging.ERROR
    managed = [h for h in logger.handlers if getattr(h, "_paper_api_managed", False)]
    assert len(managed) == 1
    assert isinstance(managed[0].formatter, JSONFormatter)
