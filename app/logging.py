"""Logging setup for the voxsession CLI."""

from __future__ import annotations

import logging


def configure_logging(verbose: bool = False) -> None:
    """Configure application logging.

    Args:
        verbose: When True, sets the log level to DEBUG. Otherwise WARNING.
    """

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(name)s: %(message)s",
    )
    # faster-whisper logs every VAD/decoding step at INFO
    logging.getLogger("faster_whisper").setLevel(logging.INFO if verbose else logging.WARNING)
