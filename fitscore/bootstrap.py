"""
FitScore Engine - Bootstrap.

============================================================
PURPOSE
============================================================
Process-level wiring: logging setup and construction of a
FitScoreService backed by the SQL store.

============================================================
"""

import json
import logging
import sys
from typing import Optional

from .clock import ClockProtocol
from .config import FitScoreConfig
from .database import create_database_engine, create_session_factory, init_schema
from .errors import FitScoreError, Severity
from .providers import (
    HttpStoredScoreProjection,
    NarrativeGenerator,
    NutritionScoreProvider,
    RecoveryScoreProvider,
    TrainingScoreProvider,
)
from .repository import SqlScoreStore
from .service import FitScoreService


logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """
    Set up engine logging.

    Args:
        level: Log level name
        log_format: "json" or "text"

    Returns:
        The package logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("fitscore")


async def build_service(
    nutrition: NutritionScoreProvider,
    training: TrainingScoreProvider,
    recovery: RecoveryScoreProvider,
    config: Optional[FitScoreConfig] = None,
    narrative_generator: Optional[NarrativeGenerator] = None,
    clock: Optional[ClockProtocol] = None,
) -> FitScoreService:
    """
    Build a service with SQL persistence and, when a base URL
    is configured, the HTTP stored-score projection.

    Raises:
        FitScoreError: If the configuration is invalid
    """
    config = config or FitScoreConfig.from_env()

    errors = config.validate()
    if errors:
        raise FitScoreError(
            f"Invalid configuration: {'; '.join(errors)}",
            severity=Severity.HIGH,
            context={"errors": errors},
            recoverable=False,
        )

    engine = create_database_engine(config.storage)
    await init_schema(engine)
    store = SqlScoreStore(create_session_factory(engine))

    projection = None
    if config.projection.base_url:
        projection = HttpStoredScoreProjection(config.projection)

    logger.info(
        f"FitScore engine {config.engine_version} ready "
        f"(store={config.storage.to_dict()['database_url']}, projection={'on' if projection else 'off'})"
    )

    return FitScoreService(
        nutrition=nutrition,
        training=training,
        recovery=recovery,
        store=store,
        projection=projection,
        narrative_generator=narrative_generator,
        config=config,
        clock=clock,
        engine=engine,
    )
