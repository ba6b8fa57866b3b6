from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

import streamlit as st

from warehouse.services.params import ReportParams
from warehouse.utils import utc_now

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "settings.json"
ENV_DATA_DIR = "WAREHOUSE_ANALYTICS_DATA_DIR"
ENV_LOG_LEVEL = "WAREHOUSE_LOG_LEVEL"

# Lookback windows that may be overridden from the environment (as integers).
ENV_WINDOWS = {
    "recent_issue_days": "WAREHOUSE_RECENT_ISSUE_DAYS",
    "census_days": "WAREHOUSE_CENSUS_DAYS",
    "expiry_horizon_days": "WAREHOUSE_EXPIRY_HORIZON_DAYS",
    "moving_average_rows": "WAREHOUSE_MOVING_AVERAGE_ROWS",
}


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    currency: str = "KES"
    recent_issue_days: int = 30
    census_days: int = 30
    expiry_horizon_days: int = 90
    moving_average_rows: int = 7
    log_level: str = "INFO"

    def report_params(self, now: Optional[datetime] = None) -> ReportParams:
        return ReportParams(
            now=now or utc_now(),
            recent_issue_days=self.recent_issue_days,
            census_days=self.census_days,
            expiry_horizon_days=self.expiry_horizon_days,
            moving_average_rows=self.moving_average_rows,
        )


def _default_data_dir() -> Path:
    return Path.home() / ".warehouse_analytics"


def _load_persisted_settings(data_dir: Path) -> dict:
    cfg = data_dir / CONFIG_FILE_NAME
    if cfg.exists():
        try:
            return json.loads(cfg.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning(f"Ignoring unreadable settings file {cfg}")
            return {}
    return {}


def persist_data_dir(data_dir_str: str) -> None:
    data_dir = Path(data_dir_str).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)

    cfg = data_dir / CONFIG_FILE_NAME
    payload = _load_persisted_settings(data_dir)
    payload["data_dir"] = str(data_dir)
    cfg.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    # Update session for immediate effect
    st.session_state["warehouse_data_dir"] = str(data_dir)


def _window_value(name: str, persisted: dict, env: Mapping[str, str], default: int) -> int:
    raw = env.get(ENV_WINDOWS[name])
    if raw is None:
        raw = persisted.get(name, default)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {raw!r}.")
    if value < 0:
        raise ValueError(f"{name} must be >= 0.")
    return value


def load_settings(data_dir: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Resolve settings without touching Streamlit state.

    Data directory priority: explicit argument, environment variable,
    persisted settings in the default folder, default folder.
    Lookback windows: environment override, then settings.json, then defaults.
    """
    env = os.environ if env is None else env

    if data_dir is not None:
        resolved = Path(data_dir).expanduser().resolve()
    elif env.get(ENV_DATA_DIR):
        resolved = Path(env[ENV_DATA_DIR]).expanduser().resolve()
    else:
        default_dir = _default_data_dir()
        persisted = _load_persisted_settings(default_dir)
        resolved = Path(persisted.get("data_dir", default_dir)).expanduser().resolve()

    resolved.mkdir(parents=True, exist_ok=True)
    persisted = _load_persisted_settings(resolved)

    return Settings(
        data_dir=resolved,
        db_path=resolved / "warehouse.db",
        currency=str(persisted.get("currency", "KES")),
        recent_issue_days=_window_value("recent_issue_days", persisted, env, 30),
        census_days=_window_value("census_days", persisted, env, 30),
        expiry_horizon_days=_window_value("expiry_horizon_days", persisted, env, 90),
        moving_average_rows=_window_value("moving_average_rows", persisted, env, 7),
        log_level=str(env.get(ENV_LOG_LEVEL, persisted.get("log_level", "INFO"))).upper(),
    )


@st.cache_resource
def get_settings() -> Settings:
    # Session state (set via Data Management page) wins over everything else.
    if "warehouse_data_dir" in st.session_state:
        return load_settings(Path(st.session_state["warehouse_data_dir"]))
    return load_settings()
