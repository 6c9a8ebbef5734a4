import logging

import pytest

from pdv.infra import logger


@pytest.fixture
def capture(monkeypatch):
    records = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            records.append(record)

    handler = ListHandler()
    targets = [logger.venda_logger, logger.reserva_logger, logger.api_logger]
    for lg in targets:
        monkeypatch.setattr(lg, "handlers", [handler])
    yield records


def test_disabled_by_default(capture):
    logger.log_venda("commit", "VTA-001", 100)
    assert capture == []


def test_venda_and_reserva_messages(capture, monkeypatch):
    monkeypatch.setattr(logger, "ENABLE_LOGGING", True)
    logger.log_venda("commit", "VTA-001", 100, sale_id="s1")
    logger.log_reserva("conflict", "VTA-002", 2, level="warning")
    assert "VENDA_COMMIT" in capture[0].getMessage()
    assert "'sale_id': 's1'" in capture[0].getMessage()
    assert capture[1].levelno == logging.WARNING


def test_api_errors_are_warnings(capture, monkeypatch):
    monkeypatch.setattr(logger, "ENABLE_LOGGING", True)
    logger.log_api_call("GET", "http://api.test/productos", 200, 12.34)
    logger.log_api_call("POST", "http://api.test/ventas", None, 5.0, error="offline")
    assert [r.levelno for r in capture] == [logging.INFO, logging.WARNING]


def test_log_summary_missing_file():
    assert "não encontrado" in logger.get_log_summary("inexistente")
