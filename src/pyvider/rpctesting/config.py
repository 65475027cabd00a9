"""Configuration management for Pyvider RPC Testing.

This module provides the configuration system for the fake channel, allowing
both environment-based and programmatic configuration. It includes:

1. A configuration schema with default values and validation
2. Environment variable reading with appropriate type conversion
3. A singleton configuration object for global access
4. A simplified configuration helper and file loading

Usage:
    # Get a configuration value
    from pyvider.rpctesting import rpctesting_config
    host = rpctesting_config().request_host()

    # Use the simplified configuration helper
    from pyvider.rpctesting import configure
    configure(
        request_host="greeter.test",
        restore_on_type_mismatch=True,
    )
"""

import json
import os
from pathlib import Path
from typing import Any, cast

from pyvider.telemetry import logger

from pyvider.rpctesting.exception import ConfigError

CONFIG_PREFIX = "RPCTESTING_"

# Configuration Schema: Defines environment variables, requirements, defaults, and descriptions
CONFIG_SCHEMA: dict[str, dict[str, Any]] = {
    "RPCTESTING_REQUEST_SCHEME": {
        "required": True,
        "default": "http",
        "description": "Scheme placed in every synthesized request head.",
        "type": "str",
        "valid_values": ["http", "https"],
    },
    "RPCTESTING_REQUEST_HOST": {
        "required": True,
        "default": "localhost",
        "description": "Host placed in every synthesized request head.",
        "type": "str",
    },
    "RPCTESTING_RESTORE_ON_TYPE_MISMATCH": {
        "required": True,
        "default": "false",
        "description": "Put a fake response back on its queue when it is dequeued with the wrong types.",
        "type": "bool",
    },
    "RPCTESTING_REQUEST_ID_HEADER": {
        "required": False,
        "default": None,
        "description": "Metadata key under which the request id is exposed, if any.",
        "type": "str",
    },
    "RPCTESTING_BLOCKING_WAIT_TIMEOUT": {
        "required": True,
        "default": 5.0,
        "description": "Seconds the grpc multi-callables wait for a fake response to complete.",
        "type": "float",
    },
}


def fetch_env_variable(key: str, meta: dict[str, Any]) -> Any:
    """
    Fetches and processes an environment variable based on schema metadata.

    Args:
        key: The configuration key to fetch
        meta: Metadata about the configuration value

    Returns:
        The processed configuration value

    Raises:
        ConfigError: If type conversion fails
    """
    return convert_config_value(key, os.getenv(key, meta["default"]), meta)


def convert_config_value(key: str, value: Any, meta: dict[str, Any]) -> Any:
    """Convert a raw configuration value to the type named by its schema entry."""
    if value is None:
        return None

    try:
        match meta["type"]:
            case "str":
                return value

            case "float":
                if isinstance(value, float):
                    return value
                return float(value)

            case "bool":
                if isinstance(value, bool):
                    return value
                if isinstance(value, str):
                    return value.lower() in ("true", "yes", "1", "on")
                return bool(value)

            case _:
                logger.warning(f"⚙️⚠️ Unknown type {meta['type']} for {key}, returning raw value")
                return value

    except (ValueError, TypeError) as e:
        logger.error(f"⚙️❌ Type conversion failed for {key}", extra={"error": str(e)})
        raise ConfigError(
            f"Invalid value format for configuration key '{key}'. Expected type '{meta['type']}', got: {value}"
        ) from e


def validate_config_value(key: str, value: Any, meta: dict[str, Any]) -> bool:
    """
    Validates a configuration value against schema requirements.

    Args:
        key: The configuration key
        value: The value to validate
        meta: Schema metadata for the key

    Returns:
        True if valid

    Raises:
        ConfigError: For validation failures
    """
    if meta.get("required", False) and value is None:
        logger.error(f"⚙️❌ Missing required configuration: {key}")
        raise ConfigError(f"Missing required configuration key: '{key}'. {meta['description']}")

    if value is None:
        return True

    if "valid_values" in meta and value not in meta["valid_values"]:
        logger.error(
            f"⚙️❌ Invalid value for {key}: {value}",
            extra={"valid_values": meta["valid_values"]},
        )
        raise ConfigError(
            f"Invalid value '{value}' provided for configuration key '{key}'. "
            f"Allowed values are: {meta['valid_values']}"
        )

    return True


def get_config() -> dict[str, Any]:
    """
    Retrieves all configuration values from environment, applying defaults and validation.

    Returns:
        Dictionary of configuration key-value pairs

    Raises:
        ConfigError: For invalid configuration
    """
    config = {}
    logger.debug("⚙️🔄 Building configuration from environment and defaults")

    for key, meta in CONFIG_SCHEMA.items():
        value = fetch_env_variable(key, meta)
        validate_config_value(key, value, meta)
        config[key] = value

    logger.debug(f"⚙️✅ Configuration complete with {len(config)} values")
    return config


class RPCTestingConfig:
    """
    Configuration manager for Pyvider RPC Testing.

    Provides a singleton for accessing configuration values, loaded from
    environment variables and schema defaults on first use.

    Attributes:
        config: Dictionary of configuration values
    """

    _instance = None

    def __init__(self):
        self.config = get_config()
        logger.debug("⚙️✅ RPCTestingConfig initialized with environment variables")

    @classmethod
    def instance(cls) -> "RPCTestingConfig":
        """
        Get or create the singleton instance.

        Returns:
            The singleton RPCTestingConfig instance
        """
        if cls._instance is None:
            cls._instance = cls()
            logger.debug("⚙️🔄 Created new RPCTestingConfig singleton instance")
        return cls._instance

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value dynamically.

        Args:
            key: The configuration key
            value: The value to set

        Raises:
            ConfigError: If key is not in CONFIG_SCHEMA
        """
        if key not in CONFIG_SCHEMA:
            logger.warning(f"⚙️⚠️ Setting unknown config key: {key}")
            raise ConfigError(f"Unknown configuration key: {key}")

        value = convert_config_value(key, value, CONFIG_SCHEMA[key])
        validate_config_value(key, value, CONFIG_SCHEMA[key])
        logger.debug(f"⚙️📝 Updating config {key} -> {value}")
        self.config[key] = value

    def request_scheme(self) -> str:
        return cast(str, self.get("RPCTESTING_REQUEST_SCHEME"))

    def request_host(self) -> str:
        return cast(str, self.get("RPCTESTING_REQUEST_HOST"))

    def restore_on_type_mismatch(self) -> bool:
        return cast(bool, self.get("RPCTESTING_RESTORE_ON_TYPE_MISMATCH"))

    def request_id_header(self) -> str | None:
        return cast(str | None, self.get("RPCTESTING_REQUEST_ID_HEADER"))

    def blocking_wait_timeout(self) -> float:
        return cast(float, self.get("RPCTESTING_BLOCKING_WAIT_TIMEOUT"))


def rpctesting_config() -> RPCTestingConfig:
    """Return the process-wide configuration singleton."""
    return RPCTestingConfig.instance()


def configure(
    request_scheme: str | None = None,
    request_host: str | None = None,
    restore_on_type_mismatch: bool | None = None,
    request_id_header: str | None = None,
    blocking_wait_timeout: float | None = None,
    **kwargs: Any,
) -> None:
    """
    Configure Pyvider RPC Testing with simplified options.

    Args:
        request_scheme: Scheme placed in synthesized request heads
        request_host: Host placed in synthesized request heads
        restore_on_type_mismatch: Default mismatch policy for new channels
        request_id_header: Metadata key exposing the request id
        blocking_wait_timeout: Seconds the grpc multi-callables wait for a response
        **kwargs: Any additional schema keys, without the RPCTESTING_ prefix

    Raises:
        ConfigError: For invalid configuration values
    """
    config = rpctesting_config()
    logger.debug("⚙️🔄 Running simplified configuration")

    if request_scheme is not None:
        config.set("RPCTESTING_REQUEST_SCHEME", request_scheme)

    if request_host is not None:
        config.set("RPCTESTING_REQUEST_HOST", request_host)

    if restore_on_type_mismatch is not None:
        config.set("RPCTESTING_RESTORE_ON_TYPE_MISMATCH", restore_on_type_mismatch)

    if request_id_header is not None:
        config.set("RPCTESTING_REQUEST_ID_HEADER", request_id_header)

    if blocking_wait_timeout is not None:
        config.set("RPCTESTING_BLOCKING_WAIT_TIMEOUT", blocking_wait_timeout)

    for key, value in kwargs.items():
        config.set(f"{CONFIG_PREFIX}{key.upper()}", value)

    logger.debug("⚙️✅ Configuration completed successfully")


def load_config_from_file(config_file: str | Path) -> None:
    """
    Load configuration from a file into the environment and reload the singleton.

    The file can be a .env file with KEY=VALUE pairs, a JSON object, or a
    YAML mapping.

    Args:
        config_file: Path to the configuration file

    Raises:
        ConfigError: If the file is missing, unsupported, or fails to load
    """
    path = Path(config_file)

    if not path.exists():
        logger.error(f"⚙️❌ Configuration file not found: {path}")
        raise ConfigError(f"Configuration file not found: {path}")

    logger.debug(f"⚙️📂🚀 Loading configuration from {path}")

    match path.suffix.lower():
        case ".env":
            values = _read_dotenv_file(path)
        case ".json":
            values = _read_json_file(path)
        case ".yaml" | ".yml":
            values = _read_yaml_file(path)
        case _:
            logger.error(f"⚙️❌ Unsupported file format: {path.suffix}")
            raise ConfigError(
                f"Unsupported file format: {path.suffix}. Supported formats: .env, .json, .yaml, .yml"
            )

    for key, value in values.items():
        os.environ[key] = value
        logger.debug(f"⚙️📂✅ Set environment variable: {key}")

    rpctesting_config().config = get_config()
    logger.debug(f"⚙️📂✅ Successfully loaded configuration from {path}")


def _read_dotenv_file(path: Path) -> dict[str, str]:
    values = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            raise ConfigError(f"Malformed line in {path}: {line!r}")

        key, value = (part.strip() for part in line.split("=", 1))
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        values[key] = value
    return values


def _read_json_file(path: Path) -> dict[str, str]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.error(f"⚙️📂❌ Error loading JSON file: {path}", extra={"error": str(e)})
        raise ConfigError(f"Error loading JSON file: {path}") from e
    return {key: _env_string(value) for key, value in data.items()}


def _read_yaml_file(path: Path) -> dict[str, str]:
    import yaml

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        logger.error(f"⚙️📂❌ Error loading YAML file: {path}", extra={"error": str(e)})
        raise ConfigError(f"Error loading YAML file: {path}") from e
    return {key: _env_string(value) for key, value in data.items()}


def _env_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)

# 🐍🎭🔌
