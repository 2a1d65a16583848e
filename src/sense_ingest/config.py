"""Configuration loading and validation"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .errors import StartupError
from .models import SourceDescriptor

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SENSE_INGEST_CONFIG"

# Default config search paths (in order)
CONFIG_PATHS = [
    Path("config.yaml"),
    Path.home() / ".config" / "sense-ingest" / "config.yaml",
    Path("/etc/sense-ingest/config.yaml"),
]

DEFAULT_INTERVAL = 300  # five minutes


@dataclass
class RemoConfig:
    enabled: bool = True
    endpoint: str = "https://api.nature.global/1/devices"
    token_file: str = "./nature_remo_token.txt"
    interval: float = DEFAULT_INTERVAL


@dataclass
class Co2Config:
    enabled: bool = True
    ip: str = "192.168.0.116"
    endpoint: str = ""  # overrides http://<ip>/co2 when set
    interval: float = DEFAULT_INTERVAL

    @property
    def url(self) -> str:
        if self.endpoint:
            return self.endpoint
        return f"http://{self.ip}/co2"


@dataclass
class MeterConfig:
    """SwitchBot meter advertising over BLE"""
    enabled: bool = True
    address: str = "E1:EC:E9:82:8F:60"
    scan_timeout: float = 10.0  # length of one scan window
    scan_interval: float = 60.0  # pause between scan windows
    interval: float = DEFAULT_INTERVAL


@dataclass
class RedisConfig:
    url: str = "redis://localhost:6379"
    key_prefix: str = "reading"


@dataclass
class HttpConfig:
    timeout: float = 10.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: str = ""


@dataclass
class Config:
    remo: RemoConfig = field(default_factory=RemoConfig)
    co2: Co2Config = field(default_factory=Co2Config)
    meter: MeterConfig = field(default_factory=MeterConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def find_config_file() -> Optional[Path]:
    """Find config file via SENSE_INGEST_CONFIG or the standard locations"""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    for path in CONFIG_PATHS:
        if path.exists():
            return path
    return None


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from a YAML file.

    An explicit path must exist and parse. Without one, the search path is
    tried and defaults are used when nothing is found.

    Raises:
        StartupError: If the file is missing, unreadable, or malformed
    """
    if config_path:
        path: Optional[Path] = Path(config_path)
        if not path.exists():
            raise StartupError(f"Config file not found: {path}")
    else:
        path = find_config_file()

    if path is None:
        logger.warning(
            "No config file found, using defaults "
            f"(Remo token from {RemoConfig().token_file}, CO2 sensor at {Co2Config().url})"
        )
        return Config()

    logger.info(f"Loading config from: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise StartupError(f"Failed to read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise StartupError(f"Config file {path} must contain a mapping")

    try:
        return Config(
            remo=RemoConfig(**data.get("remo", {})),
            co2=Co2Config(**data.get("co2", {})),
            meter=MeterConfig(**data.get("meter", {})),
            redis=RedisConfig(**data.get("redis", {})),
            http=HttpConfig(**data.get("http", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )
    except TypeError as e:
        raise StartupError(f"Invalid config in {path}: {e}") from e


def read_token(token_path: str) -> str:
    """
    Read an API token from a plaintext file.

    One token per line; the last non-empty line wins.

    Raises:
        StartupError: If the file is missing or holds no token
    """
    try:
        with open(token_path) as f:
            lines = [line.strip() for line in f]
    except OSError as e:
        raise StartupError(f"Failed to open token file {token_path}: {e}") from e

    tokens = [line for line in lines if line]
    if not tokens:
        raise StartupError(f"Token file {token_path} is empty")

    logger.info("Succeeded to read Remo token")
    return tokens[-1]


def build_descriptors(config: Config) -> list[SourceDescriptor]:
    """
    Build descriptors for every enabled source.

    Reads the Remo token, so this is where a missing credential fails startup.
    """
    for name in ("remo", "co2", "meter"):
        section = getattr(config, name)
        if section.enabled and section.interval <= 0:
            raise StartupError(f"{name}.interval must be positive, got {section.interval}")

    descriptors = []
    if config.remo.enabled:
        descriptors.append(
            SourceDescriptor(
                source_id="remo",
                endpoint=config.remo.endpoint,
                poll_interval=config.remo.interval,
                credential=read_token(config.remo.token_file),
            )
        )
    if config.co2.enabled:
        if not (config.co2.ip or config.co2.endpoint):
            raise StartupError("co2 source enabled but neither ip nor endpoint is set")
        descriptors.append(
            SourceDescriptor(
                source_id="co2",
                endpoint=config.co2.url,
                poll_interval=config.co2.interval,
            )
        )
    if config.meter.enabled:
        descriptors.append(
            SourceDescriptor(
                source_id="meter",
                endpoint=config.meter.address.upper(),
                poll_interval=config.meter.interval,
            )
        )
    return descriptors
