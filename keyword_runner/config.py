"""Runner configuration: defaults, optional config.json and environment."""
from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.json"

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "logging": {
        "enabled": True,
        "outputPath": "./test-results/logs",
    },
    "screenshots": {
        "enabled": True,
        "path": "./test-results/screenshots/",
    },
    "videos": {
        "enabled": False,
        "path": "./test-results/videos/",
        "recordOn": "failed",
    },
    "browser": {
        "headless": True,
        "slowMo": 50,
        "tracePath": None,
    },
}

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "logging": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "outputPath": {"type": "string", "minLength": 1},
            },
            "additionalProperties": False,
        },
        "screenshots": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "path": {"type": "string", "minLength": 1},
            },
            "additionalProperties": False,
        },
        "videos": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "path": {"type": "string", "minLength": 1},
                "recordOn": {"enum": ["all", "failed", "off"]},
            },
            "additionalProperties": False,
        },
        "browser": {
            "type": "object",
            "properties": {
                "headless": {"type": "boolean"},
                "slowMo": {"type": "integer", "minimum": 0},
                "tracePath": {"type": ["string", "null"]},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}


@dataclass
class LoggingSettings:
    enabled: bool = True
    output_path: Path = Path("test-results/logs")


@dataclass
class ScreenshotSettings:
    enabled: bool = True
    path: Path = Path("test-results/screenshots")


@dataclass
class VideoSettings:
    enabled: bool = False
    path: Path = Path("test-results/videos")
    record_on: str = "failed"  # values: all | failed | off


@dataclass
class BrowserSettings:
    headless: bool = True
    slow_mo_ms: int = 50
    trace_path: Optional[Path] = None


@dataclass
class RunnerSettings:
    """Resolved settings for one run."""

    logging: LoggingSettings = field(default_factory=LoggingSettings)
    screenshots: ScreenshotSettings = field(default_factory=ScreenshotSettings)
    videos: VideoSettings = field(default_factory=VideoSettings)
    browser: BrowserSettings = field(default_factory=BrowserSettings)


def validate_config(raw: Dict[str, Any]) -> None:
    validator = Draft7Validator(CONFIG_SCHEMA)
    errors = sorted(validator.iter_errors(raw), key=lambda err: list(err.path))
    if errors:
        details = "; ".join(f"{'/'.join(str(p) for p in err.path) or '<root>'}: {err.message}" for err in errors)
        raise ConfigError(f"Invalid configuration: {details}")


def merge_config(overrides: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in overrides.items():
        merged[section].update(values)
    return merged


def _env_flag(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


def build_settings(raw: Dict[str, Any], base_dir: Optional[Path] = None) -> RunnerSettings:
    """Validate ``raw`` overrides and resolve them into settings."""
    validate_config(raw)
    merged = merge_config(raw)
    root = base_dir or Path.cwd()

    browser = merged["browser"]
    headless = browser["headless"]
    env_headless = _env_flag("KEYWORD_RUNNER_HEADLESS")
    if env_headless is not None:
        headless = env_headless
    slow_mo = 0 if _env_flag("CI") else browser["slowMo"]
    trace_path = browser["tracePath"]

    return RunnerSettings(
        logging=LoggingSettings(
            enabled=merged["logging"]["enabled"],
            output_path=(root / merged["logging"]["outputPath"]).resolve(),
        ),
        screenshots=ScreenshotSettings(
            enabled=merged["screenshots"]["enabled"],
            path=(root / merged["screenshots"]["path"]).resolve(),
        ),
        videos=VideoSettings(
            enabled=merged["videos"]["enabled"],
            path=(root / merged["videos"]["path"]).resolve(),
            record_on=merged["videos"]["recordOn"],
        ),
        browser=BrowserSettings(
            headless=headless,
            slow_mo_ms=slow_mo,
            trace_path=(root / trace_path).resolve() if trace_path else None,
        ),
    )


def load_settings(config_path: Optional[Any] = None, base_dir: Optional[Path] = None) -> RunnerSettings:
    """Load settings from ``config_path`` (or ./config.json when present)."""
    root = base_dir or Path.cwd()
    path = Path(config_path) if config_path else root / DEFAULT_CONFIG_FILE

    raw: Dict[str, Any] = {}
    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Cannot parse {path}: {exc}") from exc
        logger.info("Loaded configuration from %s", path)
    elif config_path:
        raise FileNotFoundError(f"Config file not found: {path}")

    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration in {path} must be a JSON object")
    return build_settings(raw, base_dir=root)
