# Infrastructure module - Logging, configuration, host health and HTTP adapter
# The HTTP adapter (infra.service_bus) is imported directly; it depends on core.

from .logging import (
    get_logger, configure_logging, TurnContext,
    log_turn_end, get_turn_id, generate_turn_id
)
from .config import ConfigManager, EngineConfig
from .health import HealthInspector, HealthReport, UNAVAILABLE

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "TurnContext",
    "log_turn_end",
    "get_turn_id",
    "generate_turn_id",
    # Config
    "ConfigManager",
    "EngineConfig",
    # Health
    "HealthInspector",
    "HealthReport",
    "UNAVAILABLE",
]
