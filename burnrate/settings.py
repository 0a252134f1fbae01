"""
BurnRate - Configuration Module.

Loads run configuration from environment variables, optionally seeded
from a ``.env`` file in the working directory. CLI flags take precedence
over anything loaded here.

Environment variables:
    BURNRATE_SPLIT_TEAM: Forecast share for team salary (default 0.7).
    BURNRATE_SPLIT_INTERN: Forecast share for intern stipends (default 0.1).
    BURNRATE_SPLIT_TASKS: Forecast share for tasks (default 0.2).
    BURNRATE_TREND_WINDOW: Months of history in the growth trend (default 6).
    BURNRATE_STRICT_MODE: Guard zero-total divisions (default false).
    BURNRATE_MONTHS_AHEAD: Default forecast horizon (default 3).
    BURNRATE_LOG_LEVEL: Logging level name (default INFO).
"""

import logging
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from burnrate.schema import DEFAULT_FORECAST_SPLIT, ForecastSplit

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """
    Resolved run configuration.

    Attributes:
        split: Forecast decomposition proportions.
        trend_window: Months of history used for the growth trend.
        strict_mode: Whether forecast divisions are guarded.
        months_ahead: Default forecast horizon.
        log_level: Logging level name.
    """

    split: ForecastSplit = DEFAULT_FORECAST_SPLIT
    trend_window: int = 6
    strict_mode: bool = False
    months_ahead: int = 3
    log_level: str = "INFO"


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Loads settings from the environment.

    Args:
        env_file: Optional .env path. Defaults to ``.env`` in the current
                  directory when it exists. Existing environment variables
                  are not overridden by the file.

    Returns:
        Resolved Settings.

    Raises:
        ValueError: If a variable holds a malformed value.
    """
    env_path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.info("Loaded configuration from %s", env_path)
    else:
        logger.debug("No .env file at %s, using environment only", env_path)

    split = ForecastSplit(
        team=_get_decimal("BURNRATE_SPLIT_TEAM", DEFAULT_FORECAST_SPLIT.team),
        intern=_get_decimal("BURNRATE_SPLIT_INTERN", DEFAULT_FORECAST_SPLIT.intern),
        tasks=_get_decimal("BURNRATE_SPLIT_TASKS", DEFAULT_FORECAST_SPLIT.tasks),
    )

    settings = Settings(
        split=split,
        trend_window=_get_int("BURNRATE_TREND_WINDOW", 6),
        strict_mode=os.getenv("BURNRATE_STRICT_MODE", "false").strip().lower()
        in _TRUE_VALUES,
        months_ahead=_get_int("BURNRATE_MONTHS_AHEAD", 3),
        log_level=os.getenv("BURNRATE_LOG_LEVEL", "INFO").strip().upper(),
    )

    _validate_settings(settings)
    return settings


def _get_decimal(name: str, default: Decimal) -> Decimal:
    """Reads a Decimal variable, falling back to default when unset."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return Decimal(raw.strip())
    except InvalidOperation:
        raise ValueError(f"{name} must be a decimal number, got '{raw}'")


def _get_int(name: str, default: int) -> int:
    """Reads an integer variable, falling back to default when unset."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'")


def _validate_settings(settings: Settings) -> None:
    """
    Checks resolved settings for values the engine cannot use.

    Raises:
        ValueError: If a setting is out of range.
    """
    if settings.trend_window < 2:
        raise ValueError("BURNRATE_TREND_WINDOW must be at least 2")
    if settings.months_ahead < 0:
        raise ValueError("BURNRATE_MONTHS_AHEAD must not be negative")
    if not isinstance(logging.getLevelName(settings.log_level), int):
        raise ValueError(f"Unknown log level '{settings.log_level}'")

    split_sum = settings.split.team + settings.split.intern + settings.split.tasks
    if split_sum != Decimal("1"):
        logger.warning(
            "Forecast split sums to %s; components will not add up to totals",
            split_sum
        )
