"""Structured logging helpers."""

import logging
from collections.abc import MutableMapping
from typing import Any


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that supports structured logging with extra fields.

    Usage:
        logger = get_structured_logger(__name__, component="remo")
        logger.info("Fetched devices", count=2)
        logger.warning("Fetch failed", status_code=500)
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        """Process log message and extract extra fields."""
        standard_kwargs = {"exc_info", "stack_info", "stacklevel", "extra"}
        extra = kwargs.pop("extra", {})

        # Move non-standard kwargs to extra
        for key in list(kwargs.keys()):
            if key not in standard_kwargs:
                extra[key] = kwargs.pop(key)

        if self.extra:
            extra = {**self.extra, **extra}

        if extra:
            fields = " ".join(f"{k}={v}" for k, v in extra.items())
            msg = f"{msg} [{fields}]"

        kwargs["extra"] = extra
        return msg, kwargs


def get_structured_logger(name: str, **default_extra: Any) -> StructuredLoggerAdapter:
    """
    Get a structured logger that supports extra keyword arguments.

    Args:
        name: Logger name (usually __name__)
        **default_extra: Default extra fields to include in all logs

    Returns:
        A StructuredLoggerAdapter instance
    """
    base_logger = logging.getLogger(name)
    return StructuredLoggerAdapter(base_logger, default_extra)
