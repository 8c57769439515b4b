"""Configuration handling."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional
import yaml

from .uploads import MAX_UPLOAD_BYTES

DEFAULT_CONFIG_PATH = "salescoach_config.yml"


@dataclass
class EngineConfig:
    model: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    temperature: float = 0.2
    timeout_seconds: float = 120.0
    api_key_env: str = "API_KEY"


@dataclass
class UploadConfig:
    max_bytes: int = MAX_UPLOAD_BYTES


@dataclass
class RecorderConfig:
    sample_rate_hz: int = 44100
    channels: int = 1
    device_name: Optional[str] = None


@dataclass
class Config:
    log_dir: str = "logs"
    engine: EngineConfig = field(default_factory=EngineConfig)
    uploads: UploadConfig = field(default_factory=UploadConfig)
    recorder: RecorderConfig = field(default_factory=RecorderConfig)


def load_config(path: str) -> Config:
    if not os.path.exists(path):
        return Config()
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    return Config(
        log_dir=data.get("log_dir", "logs"),
        engine=EngineConfig(**data.get("engine", {})),
        uploads=UploadConfig(**data.get("uploads", {})),
        recorder=RecorderConfig(**data.get("recorder", {})),
    )


def save_config(path: str, config: Config) -> None:
    data = {
        "log_dir": config.log_dir,
        "engine": {
            "model": config.engine.model,
            "base_url": config.engine.base_url,
            "temperature": config.engine.temperature,
            "timeout_seconds": config.engine.timeout_seconds,
            "api_key_env": config.engine.api_key_env,
        },
        "uploads": {
            "max_bytes": config.uploads.max_bytes,
        },
        "recorder": {
            "sample_rate_hz": config.recorder.sample_rate_hz,
            "channels": config.recorder.channels,
            "device_name": config.recorder.device_name,
        },
    }
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)


def resolve_api_key(
    config: Config, environ: Optional[Mapping[str, str]] = None
) -> Optional[str]:
    env = os.environ if environ is None else environ
    value = (env.get(config.engine.api_key_env) or "").strip()
    return value or None
