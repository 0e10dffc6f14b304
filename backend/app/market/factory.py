"""Factory for the trade-stream connector."""

from __future__ import annotations

import functools
import logging
import os

from .connection import BINANCE_WS_URL, websocket_connector
from .interface import Connector

logger = logging.getLogger(__name__)


def create_connector() -> Connector:
    """Pick the trade-stream transport from environment variables.

    - PRICE_FEED=simulator → SimulatedFeedSocket (GBM, no network)
    - Otherwise → real websocket to Binance

    Unknown PRICE_FEED values fall back to Binance with a warning.
    """
    feed = os.environ.get("PRICE_FEED", "").strip().lower()

    if feed == "simulator":
        from .simulator import simulated_connector

        interval = float(os.environ.get("SIMULATOR_INTERVAL", "").strip() or 0.5)
        logger.info("Price feed: GBM simulator (%.2fs interval)", interval)
        return functools.partial(simulated_connector, update_interval=interval)

    if feed not in ("", "binance"):
        logger.warning("Unknown PRICE_FEED %r, using Binance", feed)
    logger.info("Price feed: Binance websocket")
    return websocket_connector


def stream_url() -> str:
    """Trade-stream URL; BINANCE_WS_URL overrides the public endpoint."""
    return os.environ.get("BINANCE_WS_URL", "").strip() or BINANCE_WS_URL
