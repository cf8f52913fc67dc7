"""Configuration validation using JSON Schema."""

from __future__ import annotations

from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator

from checkout_client.exceptions import ConfigValidationError
from checkout_client.logger import get_logger

logger = get_logger(__name__)

LOG_LEVELS = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

# JSON Schema for the optional YAML override file. Every section is optional,
# unknown sections / options are rejected.
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "connection": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "backend_url": {"type": "string", "minLength": 1},
                "detection_event": {"type": "string", "minLength": 1},
                "ignore_event": {"type": "string", "minLength": 1},
                "ignore_ack_event": {"type": "string", "minLength": 1},
                "verify_tls": {"type": "boolean"},
                "reconnection": {"type": "boolean"},
            },
        },
        "instructions": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "stall_seconds": {"type": "number", "minimum": 0},
                "backlog_seconds": {"type": "number", "minimum": 0},
            },
        },
        "cart": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "escalation_threshold": {"type": "number", "minimum": 0},
            },
        },
        "display": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "window_name": {"type": "string"},
                "show": {"type": "boolean"},
                "cart_panel_width": {"type": "integer", "minimum": 1},
            },
        },
        "logging": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "level": {"type": "string", "enum": LOG_LEVELS},
                "log_path": {"type": ["string", "null"]},
            },
        },
    },
}


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration overrides against CONFIG_SCHEMA.

    Args:
        config: Parsed YAML document

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    try:
        validator = Draft7Validator(CONFIG_SCHEMA)
        errors = sorted(validator.iter_errors(config), key=lambda e: list(e.path))
    except jsonschema.exceptions.SchemaError as e:
        raise ConfigValidationError(f"Invalid schema definition: {e}") from e

    if errors:
        error_messages = []
        for error in errors:
            path = " -> ".join(str(p) for p in error.path) if error.path else "root"
            error_messages.append(f"{path}: {error.message}")

        logger.error(f"Configuration validation failed with {len(errors)} errors")
        for msg in error_messages:
            logger.error(f"  - {msg}")

        raise ConfigValidationError(
            f"Configuration validation failed: {'; '.join(error_messages)}",
            validation_errors=error_messages,
        )
