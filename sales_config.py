"""
Engine settings loaded from the environment (.env supported).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from windows import DEFAULT_ACTIVE_WINDOW_DAYS

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class EngineSettings:
    active_window_days: int = DEFAULT_ACTIVE_WINDOW_DAYS
    log_level: str = "INFO"
    strict_reconciliation: bool = False


def _load_env_from_project(project_dir: str | Path | None) -> None:
    candidates = [Path(__file__).resolve().parent, Path.cwd()]
    if project_dir is not None:
        candidates.insert(0, Path(project_dir))
    for d in candidates:
        env_file = d / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            return


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def load_settings(project_dir: str | Path | None = None) -> EngineSettings:
    _load_env_from_project(project_dir)
    log_level = (os.getenv("SALES_LOG_LEVEL") or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"SALES_LOG_LEVEL is not a logging level: {log_level!r}")
    return EngineSettings(
        active_window_days=_int_env("SALES_ACTIVE_WINDOW_DAYS", DEFAULT_ACTIVE_WINDOW_DAYS),
        log_level=log_level,
        strict_reconciliation=_bool_env("SALES_STRICT_RECONCILIATION", False),
    )


def configure_logging(settings: EngineSettings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
