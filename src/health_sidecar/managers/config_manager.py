"""
Config Manager

Builds SidecarConfig from built-in defaults, an optional YAML file and
environment variables (highest precedence).
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from health_sidecar.models.config import SidecarConfig
from health_sidecar.models.errors import ConfigError
from health_sidecar.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CONFIG)

CONFIG_PATH_ENV = "SIDECAR_CONFIG"


class ConfigManager:
    """
    Loads sidecar configuration.

    Sources, lowest to highest precedence:
    1. SidecarConfig defaults
    2. YAML file (path argument, or $SIDECAR_CONFIG)
    3. Environment: PORT, HOST, METADATA_BASE, SIM_KEY, LOG_LEVEL

    Example YAML:
        port: 8080
        metadata:
          ttl: 30
          timeout: 1
        shutdown:
          http_delay: 5
          sigterm_delay: 2
          drain_timeout: 15

    Example:
        config = ConfigManager().load()
        config.port           # 80 unless overridden
        config.shutdown.drain_timeout
    """

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        """
        Args:
            config_path: YAML file to load; falls back to $SIDECAR_CONFIG
            environ: Environment mapping (default: os.environ)
        """
        self.environ = os.environ if environ is None else environ
        path = config_path or self.environ.get(CONFIG_PATH_ENV)
        self.config_path = Path(path) if path else None
        self.data: Dict[str, Any] = {}
        self.config = SidecarConfig()

    def load(self) -> SidecarConfig:
        """
        Resolve the configuration.

        A missing or malformed YAML file is logged and ignored; malformed
        values (e.g. a non-numeric port) raise ConfigError.
        """
        self.data = self._load_yaml()
        config = SidecarConfig()
        self._apply_file(config, self.data)
        self._apply_env(config)
        self._validate(config)

        self.config = config
        log.info(
            "Configuration loaded",
            port=config.port,
            metadata_base=config.metadata.base_url,
            auth="enabled" if config.auth_enabled else "disabled",
        )
        return config

    def _load_yaml(self) -> Dict[str, Any]:
        if self.config_path is None:
            return {}

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as ex:
            log.error(f"Failed to load {self.config_path}", error=str(ex), error_type=type(ex).__name__)
            log.warn("Falling back to built-in defaults")
            return {}

        if not isinstance(data, dict):
            log.warn(f"Ignoring {self.config_path}: top level is not a mapping")
            return {}

        log.info(f"Loaded {self.config_path.name}", keys=str(list(data.keys())))
        return data

    def _apply_file(self, config: SidecarConfig, data: Dict[str, Any]) -> None:
        if "host" in data:
            config.host = str(data["host"])
        if "port" in data:
            config.port = self._to_int("port", data["port"])
        if "sim_key" in data:
            config.sim_key = str(data["sim_key"] or "")
        if "log_level" in data:
            config.log_level = str(data["log_level"])
        if "metadata_base" in data:
            config.metadata.base_url = str(data["metadata_base"])

        metadata = data.get("metadata") or {}
        for key in ("ttl", "timeout"):
            if key in metadata:
                setattr(config.metadata, key, self._to_seconds(f"metadata.{key}", metadata[key]))

        shutdown = data.get("shutdown") or {}
        for key in ("http_delay", "sigterm_delay", "sigint_delay", "drain_timeout"):
            if key in shutdown:
                setattr(config.shutdown, key, self._to_seconds(f"shutdown.{key}", shutdown[key]))

    def _apply_env(self, config: SidecarConfig) -> None:
        env = self.environ
        if env.get("PORT"):
            config.port = self._to_int("PORT", env["PORT"])
        if env.get("HOST"):
            config.host = env["HOST"]
        if env.get("METADATA_BASE"):
            config.metadata.base_url = env["METADATA_BASE"]
        if "SIM_KEY" in env:
            config.sim_key = env["SIM_KEY"]
        if env.get("LOG_LEVEL"):
            config.log_level = env["LOG_LEVEL"]

    def _validate(self, config: SidecarConfig) -> None:
        if not 0 <= config.port <= 65535:
            raise ConfigError(f"port out of range: {config.port}")
        config.metadata.base_url = config.metadata.base_url.rstrip("/")
        if config.metadata.timeout <= 0:
            raise ConfigError("metadata.timeout must be positive")
        if config.shutdown.drain_timeout <= 0:
            raise ConfigError("shutdown.drain_timeout must be positive")

    @staticmethod
    def _to_int(name: str, value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be an integer, got {value!r}")

    @staticmethod
    def _to_seconds(name: str, value: Any) -> float:
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be a number of seconds, got {value!r}")
        if seconds < 0:
            raise ConfigError(f"{name} must not be negative")
        return seconds
