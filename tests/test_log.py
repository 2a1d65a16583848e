"""Tests for structured logging helpers"""

import logging

from sense_ingest.log import get_structured_logger


class TestStructuredLogger:
    def test_keyword_fields_are_appended(self, caplog):
        logger = get_structured_logger("sense_ingest.test", component="co2")

        with caplog.at_level(logging.INFO, logger="sense_ingest.test"):
            logger.info("Fetched reading", ppm=612)

        record = caplog.records[-1]
        assert record.getMessage() == "Fetched reading [component=co2 ppm=612]"
        assert record.component == "co2"
        assert record.ppm == 612

    def test_call_fields_override_defaults(self, caplog):
        logger = get_structured_logger("sense_ingest.test", component="http")

        with caplog.at_level(logging.INFO, logger="sense_ingest.test"):
            logger.info("Fetched", component="remo")

        assert caplog.records[-1].component == "remo"

    def test_exc_info_is_passed_through(self, caplog):
        logger = get_structured_logger("sense_ingest.test")

        with caplog.at_level(logging.ERROR, logger="sense_ingest.test"):
            try:
                raise ValueError("bad")
            except ValueError:
                logger.error("Failed", exc_info=True)

        record = caplog.records[-1]
        assert record.getMessage() == "Failed"
        assert record.exc_info is not None
