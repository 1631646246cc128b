"""Tests for logging setup."""

import logging

from loguru import logger

from hospital_booking.core.logger import correlation_id_ctx, setup_structured_logging


def test_setup_creates_log_files(tmp_path):
    """Test that the JSON and error sinks are created."""
    setup_structured_logging("DEBUG", json_format=True, logs_dir=tmp_path)
    logger.info("booking started")
    logger.complete()

    assert (tmp_path / "booking_portal.jsonl").exists()
    logger.remove()


def test_text_format_sink(tmp_path):
    """Test the plain text file sink."""
    setup_structured_logging("INFO", json_format=False, logs_dir=tmp_path)
    logger.info("plain text line")
    logger.complete()

    assert "plain text line" in (tmp_path / "booking_portal.log").read_text()
    logger.remove()


def test_stdlib_logging_is_intercepted(tmp_path):
    """Test that standard logging records reach loguru sinks."""
    setup_structured_logging("INFO", json_format=False, logs_dir=tmp_path)
    logging.getLogger("aiohttp.client").warning("connection reset")
    logger.complete()

    assert "connection reset" in (tmp_path / "booking_portal.log").read_text()
    logger.remove()


def test_correlation_id_is_attached(tmp_path):
    """Test the correlation id patcher."""
    setup_structured_logging("INFO", json_format=True, logs_dir=tmp_path)
    token = correlation_id_ctx.set("flow-123")
    try:
        logger.info("with correlation")
        logger.complete()
    finally:
        correlation_id_ctx.reset(token)

    assert "flow-123" in (tmp_path / "booking_portal.jsonl").read_text()
    logger.remove()
