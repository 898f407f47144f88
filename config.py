"""
Central configuration — reads from .env file.

Everything the scanner needs is collected once at startup into an immutable
ScannerConfig and handed to ScannerSession. Nothing else reads os.environ,
so tests can build a config directly without touching the environment.

API keys are NOT validated eagerly by default: a missing key raises
ConfigError the first time the corresponding provider is used.
Set SCANNER_VALIDATE_KEYS=true to fail at startup instead.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


class ConfigError(RuntimeError):
    """A required setting is missing or has an invalid value."""


# ── Setting definitions ────────────────────────────────────────────────────────
# Each entry: field → env var, default, type
# type: "str" | "int" | "float" | "bool" | "secret" (str, empty → None)

SETTINGS_META: dict[str, dict] = {
    # ── Google Cloud Vision (OCR) ─────────────────────────────────────────────
    "google_vision_api_key": {
        "env": "GOOGLE_VISION_API_KEY",
        "default": "",
        "type": "secret",
    },
    "vision_endpoint": {
        "env": "VISION_ENDPOINT",
        "default": "https://vision.googleapis.com/v1/images:annotate",
        "type": "str",
    },
    # ── Google Gemini (text generation) ───────────────────────────────────────
    "gemini_api_key": {
        "env": "GEMINI_API_KEY",
        "default": "",
        "type": "secret",
    },
    "gemini_model": {
        "env": "GEMINI_MODEL",
        "default": "gemini-2.0-flash",
        "type": "str",
    },
    # ── Network behaviour ─────────────────────────────────────────────────────
    "request_timeout": {
        "env": "SCANNER_REQUEST_TIMEOUT",
        "default": "30",
        "type": "float",
    },
    # 0 = fail on the first error
    "max_retries": {
        "env": "SCANNER_MAX_RETRIES",
        "default": "0",
        "type": "int",
    },
    "retry_backoff": {
        "env": "SCANNER_RETRY_BACKOFF",
        "default": "1.0",
        "type": "float",
    },
    # ── Camera ────────────────────────────────────────────────────────────────
    "camera_index": {
        "env": "CAMERA_INDEX",
        "default": "0",
        "type": "int",
    },
    "camera_width": {
        "env": "CAMERA_WIDTH",
        "default": "400",
        "type": "int",
    },
    "validate_keys": {
        "env": "SCANNER_VALIDATE_KEYS",
        "default": "false",
        "type": "bool",
    },
}


def _cast(raw: str, typ: str) -> Any:
    if typ == "bool":
        return raw.strip().lower() in ("true", "1", "yes")
    if typ == "int":
        return int(raw.strip())
    if typ == "float":
        return float(raw.strip())
    if typ == "secret":
        return raw.strip() or None
    return raw.strip()


def _read(key: str) -> Any:
    """Return the typed value for a setting, env first then default."""
    meta = SETTINGS_META[key]
    env_val = os.getenv(meta["env"], "").strip()
    raw = env_val if env_val else meta["default"]
    try:
        return _cast(raw, meta["type"])
    except ValueError as exc:
        raise ConfigError(f"{meta['env']}={env_val!r} is not a valid {meta['type']}") from exc


@dataclass(frozen=True)
class ScannerConfig:
    google_vision_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    vision_endpoint: str = "https://vision.googleapis.com/v1/images:annotate"
    request_timeout: float = 30.0
    max_retries: int = 0
    retry_backoff: float = 1.0
    camera_index: int = 0
    camera_width: int = 400
    validate_keys: bool = False

    @classmethod
    def from_env(cls) -> "ScannerConfig":
        """Build a config from environment variables / .env."""
        return cls(**{key: _read(key) for key in SETTINGS_META})

    def require(self, key: str) -> str:
        """
        Return a setting that must be present (API keys).
        Raises ConfigError naming the env var when it is missing.
        """
        value = getattr(self, key)
        if not value:
            env = SETTINGS_META[key]["env"]
            raise ConfigError(f"{env} is not set. Add it to your environment or .env file.")
        return value

    def validate(self) -> None:
        """Eager check of keys and numeric ranges. Raises ConfigError."""
        self.require("google_vision_api_key")
        self.require("gemini_api_key")
        if self.request_timeout <= 0:
            raise ConfigError("SCANNER_REQUEST_TIMEOUT must be greater than 0")
        if self.max_retries < 0:
            raise ConfigError("SCANNER_MAX_RETRIES must be 0 or more")
        if self.retry_backoff < 0:
            raise ConfigError("SCANNER_RETRY_BACKOFF must be 0 or more")
        if self.camera_width <= 0:
            raise ConfigError("CAMERA_WIDTH must be greater than 0")
