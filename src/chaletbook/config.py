from __future__ import annotations

import importlib
import os
import logging
from typing import Optional, Type

try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    pass

from chaletbook.base_config import ChaletBookConfig
from chaletbook.adapters.base import BookingRepository
from chaletbook.adapters.sqlite_adapter import SQLiteBookingAdapter
from chaletbook.dates import DEFAULT_HORIZON_YEARS
from chaletbook.defaults import default_settings
from chaletbook.exceptions import ConfigurationError


DEFAULT_CONFIG_CLASS = "chaletbook.config.EnvironmentChaletBookConfig"
CONFIG_ENV_KEY = "CHALETBOOK_CONFIG"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def _import_config_class(path: str) -> Type[ChaletBookConfig]:
    try:
        module_path, class_name = path.rsplit(".", 1)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid config path '{path}'") from exc

    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise ConfigurationError(f"Could not import module '{module_path}'") from exc

    try:
        cls = getattr(module, class_name)
    except AttributeError as exc:
        raise ConfigurationError(f"Config class '{class_name}' not found in '{module_path}'") from exc

    if not isinstance(cls, type) or not issubclass(cls, ChaletBookConfig):
        raise ConfigurationError(f"{path} is not a subclass of ChaletBookConfig")

    return cls


class EnvironmentChaletBookConfig(ChaletBookConfig):
    """Default configuration that reads from environment variables."""

    def __init__(self) -> None:
        self._env = os.environ

    def get_database_url(self) -> str:
        return self._env.get("CHALETBOOK_DATABASE_URL", "sqlite:///chaletbook.db")

    def get_log_level(self) -> str:
        return self._env.get("CHALETBOOK_LOG_LEVEL", "INFO").upper()

    def get_booking_horizon_years(self) -> int:
        try:
            return int(self._env.get("CHALETBOOK_BOOKING_HORIZON_YEARS", str(DEFAULT_HORIZON_YEARS)))
        except (TypeError, ValueError):
            logger.warning("Invalid CHALETBOOK_BOOKING_HORIZON_YEARS, using the default.")
            return DEFAULT_HORIZON_YEARS

    def get_seed_defaults(self) -> bool:
        return self._env.get("CHALETBOOK_SEED_DEFAULTS", "").strip().lower() in ("1", "true", "yes", "on")

    def create_adapter(self) -> SQLiteBookingAdapter:
        adapter = SQLiteBookingAdapter(self.get_database_url())
        adapter.init()
        if self.get_seed_defaults():
            self.seed_database(adapter)
        return adapter

    def seed_database(self, adapter: BookingRepository) -> None:
        """Stores the default rooms and price lists unless rooms already exist."""
        if not isinstance(adapter, SQLiteBookingAdapter):
            return None
        if adapter.get_rooms():
            logger.info("Rooms already configured, skipping seed.")
            return None
        logger.info("Seeding default rooms and price lists.")
        adapter.save_settings(default_settings())


def setup_logging(config: Optional[ChaletBookConfig] = None) -> None:
    config = config or get_config()
    level = getattr(logging, config.get_log_level(), None)
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level '{config.get_log_level()}'")
    logging.basicConfig(format=LOG_FORMAT, level=level)


_CONFIG: Optional[ChaletBookConfig] = None


def get_config() -> ChaletBookConfig:
    global _CONFIG
    if _CONFIG is None:
        class_path = os.getenv(CONFIG_ENV_KEY, DEFAULT_CONFIG_CLASS)
        cls = _import_config_class(class_path)
        _CONFIG = cls()
    return _CONFIG


def set_config(config: Optional[ChaletBookConfig]) -> None:
    global _CONFIG
    _CONFIG = config
