"""
Configuration management for tunefetch.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - The list of equivalent mirror servers (API base URLs)
    - The region sent with trending and search requests
    - How many requests go to one server before rotating
    - Optional logging directory and level

Environment:
    TUNEFETCH_SERVERS, when set (directly or through a .env file), is a
    comma-separated list of base URLs that replaces the 'servers' section.

Example config.yaml:
    servers:
      - "https://invidious.example.org/api/v1"
      - "https://yewtu.example.net/api/v1"

    region: "NP"
    request_per_server: 10

    logging:
      directory: "~/.cache/tunefetch"
      level: "INFO"
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv

from tunefetch.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

SERVERS_ENV_VAR = "TUNEFETCH_SERVERS"

DEFAULT_REGION = "NP"
DEFAULT_REQUEST_PER_SERVER = 10
DEFAULT_LOG_LEVEL = "INFO"

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration.

    Attributes:
        directory: Directory for log files, or None to log to console only.
                   Path expansion is performed (~ is expanded to home directory).
        level: Console log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    directory: Path | None
    level: str


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable (frozen dataclass).

    Attributes:
        servers: Ordered base URLs of equivalent API mirrors. Never empty.
        region: Region code sent with trending and search requests.
        request_per_server: Request count after which the pool rotates.
        logging: Logging settings.

    Example:
        config = load_config()
        async with Fetcher(config.servers, region=config.region) as fetcher:
            tracks = await fetcher.get_trending_music(0)
    """
    servers: tuple[str, ...]
    region: str = DEFAULT_REGION
    request_per_server: int = DEFAULT_REQUEST_PER_SERVER
    logging: LoggingConfig = LoggingConfig(directory=None, level=DEFAULT_LOG_LEVEL)


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file is not found, has invalid YAML syntax,
                     has no usable server list, or contains invalid values.

    Behavior:
        1. Load .env (searched from the current directory upwards) so
           TUNEFETCH_SERVERS can come from it
        2. Locate config file (explicit path or CWD/config.yaml)
        3. Read and parse YAML content
        4. Take servers from TUNEFETCH_SERVERS if set, otherwise from the file
        5. Validate the optional sections and apply defaults

    A missing config file is only an error when no server list is
    available from the environment either.
    """
    load_dotenv(find_dotenv(usecwd=True))
    env_servers = _parse_env_servers(os.environ.get(SERVERS_ENV_VAR))

    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        if env_servers:
            return Config(servers=env_servers)
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return parse_config(raw_config, env_servers=env_servers)


def parse_config(raw_config: dict[str, Any], env_servers: tuple[str, ...] = ()) -> Config:
    """
    Build a Config from an already parsed dictionary.

    Args:
        raw_config: Dictionary parsed from config.yaml.
        env_servers: Servers from the environment; they win over the file.

    Returns:
        Config with defaults applied.

    Raises:
        ConfigError: On any invalid value.
    """
    servers = env_servers or _parse_servers(raw_config.get("servers"))

    region = raw_config.get("region", DEFAULT_REGION)
    if not isinstance(region, str) or not region.strip():
        raise ConfigError(
            "'region' must be a non-empty string",
            details={"field": "region", "value": region}
        )

    request_per_server = raw_config.get("request_per_server", DEFAULT_REQUEST_PER_SERVER)
    # bool is an int subclass
    if (
        not isinstance(request_per_server, int)
        or isinstance(request_per_server, bool)
        or request_per_server < 1
    ):
        raise ConfigError(
            "'request_per_server' must be a positive integer",
            details={"field": "request_per_server", "value": request_per_server}
        )

    return Config(
        servers=servers,
        region=region.strip(),
        request_per_server=request_per_server,
        logging=_parse_logging_config(raw_config.get("logging")),
    )


def _parse_env_servers(raw: str | None) -> tuple[str, ...]:
    """Split the TUNEFETCH_SERVERS value, dropping blank entries."""
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _parse_servers(raw_servers: Any) -> tuple[str, ...]:
    """
    Validate the 'servers' section.

    Raises:
        ConfigError: If missing, not a list, empty, or containing
                     anything other than http(s) URLs.
    """
    if raw_servers is None:
        raise ConfigError(
            "Missing required section: 'servers'",
            details={"missing_section": "servers"}
        )

    if not isinstance(raw_servers, list) or not raw_servers:
        raise ConfigError(
            "'servers' must be a non-empty list of base URLs",
            details={"field": "servers"}
        )

    servers = []
    for index, server in enumerate(raw_servers):
        if not isinstance(server, str) or not server.strip():
            raise ConfigError(
                f"'servers[{index}]' must be a non-empty string",
                details={"field": f"servers[{index}]", "value": server}
            )
        server = server.strip()
        if not server.startswith(("http://", "https://")):
            raise ConfigError(
                f"'servers[{index}]' must be an http(s) URL: {server}",
                details={"field": f"servers[{index}]", "value": server}
            )
        servers.append(server)

    return tuple(servers)


def _parse_logging_config(logging_section: dict[str, Any] | None) -> LoggingConfig:
    """
    Parse and validate the optional logging section.

    Returns:
        LoggingConfig: directory None (console only) and level INFO by default.

    Raises:
        ConfigError: If the section or its fields have the wrong type.
    """
    if logging_section is None:
        return LoggingConfig(directory=None, level=DEFAULT_LOG_LEVEL)

    if not isinstance(logging_section, dict):
        raise ConfigError(
            "Section 'logging' must be a dictionary",
            details={"section": "logging"}
        )

    directory = None
    raw_directory = logging_section.get("directory")
    if raw_directory is not None:
        if not isinstance(raw_directory, str) or not raw_directory.strip():
            raise ConfigError(
                "'logging.directory' must be a non-empty string",
                details={"field": "logging.directory"}
            )
        directory = Path(raw_directory.strip()).expanduser().resolve()

    level = logging_section.get("level", DEFAULT_LOG_LEVEL)
    if not isinstance(level, str) or level.upper() not in _VALID_LOG_LEVELS:
        raise ConfigError(
            f"'logging.level' must be one of {', '.join(_VALID_LOG_LEVELS)}",
            details={"field": "logging.level", "value": level}
        )

    return LoggingConfig(directory=directory, level=level.upper())
