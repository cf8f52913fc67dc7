# all configurations in one place

import os
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from checkout_client.exceptions import ConfigError, InvalidConfigError
from checkout_client.validator import validate_config

# Paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"

DEFAULT_BACKEND_URL = "http://192.168.137.154:5000"


@dataclass
class ConnectionConfig:
    backend_url: str = field(
        default_factory=lambda: os.environ.get("CHECKOUT_BACKEND_URL", DEFAULT_BACKEND_URL)
    )
    detection_event: str = "detection_results"
    ignore_event: str = "ignore_zone"
    ignore_ack_event: str = "ignore_zone_result"
    verify_tls: bool = False      # backend runs with a self-signed certificate
    reconnection: bool = True


@dataclass
class InstructionConfig:
    stall_seconds: float = 10.0    # no confirmation since scan start -> ask for help
    backlog_seconds: float = 3.0   # confirmed items waiting while others are undetermined


@dataclass
class CartConfig:
    escalation_threshold: float = 5.0  # currency units a self-service decrease may remove


@dataclass
class DisplayConfig:
    window_name: str = "Self Checkout"
    show: bool = True
    cart_panel_width: int = 360


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_path: Optional[Path] = DATA_DIR / "logs" / "checkout_client.log"


@dataclass
class PipelineConfig:
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    instructions: InstructionConfig = field(default_factory=InstructionConfig)
    cart: CartConfig = field(default_factory=CartConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _apply_section(section: Any, values: Dict[str, Any], name: str) -> None:
    if not isinstance(values, dict):
        raise InvalidConfigError(f"Section '{name}' must be a mapping")

    known = {f.name: f for f in fields(section)}
    for key, value in values.items():
        if key not in known:
            raise InvalidConfigError(f"Unknown option '{name}.{key}'")
        current = getattr(section, key)
        if isinstance(current, Path) or key.endswith("_path"):
            value = Path(value) if value is not None else None
        setattr(section, key, value)


def load_config(path: Union[str, Path, None] = None) -> PipelineConfig:
    """
    Build a PipelineConfig, optionally overridden by a YAML file.

    The file mirrors the dataclass layout, e.g.:

        connection:
          backend_url: http://localhost:5000
        cart:
          escalation_threshold: 7.5

    Missing sections keep their defaults.
    """
    config = PipelineConfig()
    if path is None:
        return config

    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise InvalidConfigError(f"Could not parse {path}: {e}") from e

    validate_config(data)

    for name, values in data.items():
        section = getattr(config, name)
        if not is_dataclass(section):
            raise InvalidConfigError(f"Unknown config section '{name}'")
        _apply_section(section, values, name)

    return config
