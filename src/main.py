"""Cyclecast entry point — wires settings, logging, storage, and the engine.

Usage::

    from src.main import create_service

    service = create_service()
    service.log_period(CycleCreate(start_date=date(2024, 1, 1)))
"""

from __future__ import annotations

import logging
import sys
from datetime import date
from typing import Callable

from src.config import Settings, get_settings
from src.cycles.config_loader import get_cycle_config, load_cycle_config
from src.cycles.service import CycleService
from src.cycles.store import CycleStore, JsonFileBackend

logger = logging.getLogger("cyclecast")


# ---------- Logging ----------

def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


# ---------- Service factory ----------

def create_service(
    settings: Settings | None = None,
    clock: Callable[[], date] = date.today,
) -> CycleService:
    """Build a CycleService backed by the configured JSON data file."""
    settings = settings or get_settings()
    configure_logging(settings)

    if settings.cycle_config_path is not None:
        config = load_cycle_config(settings.cycle_config_path)
    else:
        config = get_cycle_config()

    store = CycleStore(JsonFileBackend(settings.data_file))
    logger.info(
        "Starting %s v%s [%s], data file %s",
        settings.app_name,
        settings.app_version,
        settings.environment,
        settings.data_file,
    )
    return CycleService(store, config=config, clock=clock)
