from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

import streamlit as st

CONFIG_FILE_NAME = "settings.json"
ENV_DATA_DIR = "TEXTILE_ERP_DATA_DIR"
ENV_LOG_LEVEL = "TEXTILE_ERP_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    currency: str = "INR"
    company_name: str = "BHAKTINANDAN"
    log_level: str = "INFO"


def _default_data_dir() -> Path:
    return Path.home() / ".textile_erp"


def _load_persisted_settings(data_dir: Path) -> dict:
    cfg = data_dir / CONFIG_FILE_NAME
    if cfg.exists():
        try:
            return json.loads(cfg.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable settings file %s", cfg)
            return {}
    return {}


def persist_data_dir(data_dir_str: str) -> None:
    data_dir = Path(data_dir_str).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)

    cfg = data_dir / CONFIG_FILE_NAME
    payload = {"data_dir": str(data_dir)}
    cfg.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    # Update session for immediate effect
    st.session_state["textile_erp_data_dir"] = str(data_dir)


def resolve_data_dir(session_dir: str | None = None, env_dir: str | None = None) -> Path:
    # Priority order:
    # 1) Session state (set via Data Management page)
    # 2) Environment variable
    # 3) Persisted settings in default folder
    # 4) Default folder
    if session_dir:
        return Path(session_dir).expanduser().resolve()
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    default_dir = _default_data_dir()
    persisted = _load_persisted_settings(default_dir)
    return Path(persisted.get("data_dir", default_dir)).expanduser().resolve()


def build_settings(data_dir: Path, log_level: str | None = None) -> Settings:
    data_dir.mkdir(parents=True, exist_ok=True)
    level = (log_level or "INFO").strip().upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        level = "INFO"
    return Settings(data_dir=data_dir, db_path=data_dir / "app.db", log_level=level)


@st.cache_resource
def get_settings() -> Settings:
    data_dir = resolve_data_dir(
        st.session_state.get("textile_erp_data_dir"),
        os.getenv(ENV_DATA_DIR),
    )
    return build_settings(data_dir, os.getenv(ENV_LOG_LEVEL))


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure the ``textile`` logger hierarchy once per process.

    Streamlit re-executes page scripts on every interaction, so the handler is
    only attached when none is present.
    """
    root = logging.getLogger("textile")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
    return root
