"""Runtime settings and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml

from extender.errors import StartupError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(filename)s:%(lineno)d %(message)s"
LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"

_LOG_LEVELS = {
	"TRACE": logging.DEBUG,
	"DEBUG": logging.DEBUG,
	"INFO": logging.INFO,
	"WARNING": logging.WARNING,
	"ERROR": logging.ERROR,
	"ALERT": logging.CRITICAL,
}


def parse_log_level(name: Optional[str]) -> int:
	level = (name or "").strip().upper()
	if level not in _LOG_LEVELS:
		logger.warning(f'LOG_LEVEL="{level}" is empty or invalid, falling back to "INFO".')
		return logging.INFO
	return _LOG_LEVELS[level]


def configure_logging(level_name: Optional[str]) -> int:
	level = parse_log_level(level_name)
	logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
	logging.getLogger().setLevel(level)
	logger.info(f"Log level was set to {logging.getLevelName(level)}")
	return level


@dataclass
class Settings:
	host: str = "0.0.0.0"
	port: int = 80
	log_level: str = "INFO"
	version: str = ""
	kubeconfig: Optional[str] = None
	resync_interval_s: float = 24 * 60 * 60
	watch_timeout_s: int = 300
	# 0 waits for the initial pod listing forever
	sync_timeout_s: float = 0.0

	@classmethod
	def from_env(cls) -> "Settings":
		settings = cls(
			host=os.getenv("EXTENDER_HOST", "0.0.0.0"),
			port=int(os.getenv("EXTENDER_PORT", "80")),
			log_level=os.getenv("LOG_LEVEL", "INFO"),
			version=os.getenv("EXTENDER_VERSION", ""),
			kubeconfig=os.getenv("KUBECONFIG") or None,
			resync_interval_s=float(os.getenv("EXTENDER_RESYNC_SECONDS", str(24 * 60 * 60))),
			watch_timeout_s=int(os.getenv("EXTENDER_WATCH_TIMEOUT_SECONDS", "300")),
			sync_timeout_s=float(os.getenv("EXTENDER_SYNC_TIMEOUT_SECONDS", "0")),
		)
		config_path = os.getenv("EXTENDER_CONFIG")
		if config_path:
			settings = settings.merged(load_config_file(config_path))
		return settings

	def merged(self, overrides: Dict[str, Any]) -> "Settings":
		known = {f.name for f in fields(self)}
		values = {f.name: getattr(self, f.name) for f in fields(self)}
		for key, value in overrides.items():
			if key not in known:
				logger.warning(f"Ignoring unknown setting {key!r}")
				continue
			values[key] = value
		return Settings(
			host=str(values["host"]),
			port=int(values["port"]),
			log_level=str(values["log_level"]),
			version=str(values["version"] or ""),
			kubeconfig=values["kubeconfig"] or None,
			resync_interval_s=float(values["resync_interval_s"]),
			watch_timeout_s=int(values["watch_timeout_s"]),
			sync_timeout_s=float(values["sync_timeout_s"]),
		)


def load_config_file(path: str) -> Dict[str, Any]:
	"""Read a YAML mapping of setting name -> value."""
	try:
		with open(path, 'r') as f:
			data = yaml.safe_load(f) or {}
	except (OSError, yaml.YAMLError) as e:
		raise StartupError(f"Failed to load config from {path}: {e}") from e
	if not isinstance(data, dict):
		raise StartupError(f"Config file {path} must contain a mapping")
	logger.info(f"Loaded settings from {path}: {sorted(data)}")
	return data
