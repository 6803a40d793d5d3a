from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping


CONFIG_FILE = Path("config.toml")

MAX_PIXELS = 80_000_000
MAX_UNIQUE_SIZES = 6


@dataclass(slots=True)
class RuntimeConfig:
    max_pixels: int = MAX_PIXELS
    max_unique_sizes: int = MAX_UNIQUE_SIZES
    default_scale: float = 1.0
    output_dir: Path | None = None
    enable_local_api: bool = False
    log_level: str = "INFO"


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    api: APIConfig = field(default_factory=APIConfig)


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _optional_path(value: object | None) -> Path | None:
    if value is None or value == "":
        return None
    return Path(str(value))


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    return RuntimeConfig(
        max_pixels=int(data.get("max_pixels", MAX_PIXELS)),
        max_unique_sizes=int(data.get("max_unique_sizes", MAX_UNIQUE_SIZES)),
        default_scale=float(data.get("default_scale", 1.0)),
        output_dir=_optional_path(data.get("output_dir")),
        enable_local_api=bool(data.get("enable_local_api", False)),
        log_level=str(data.get("log_level", "INFO")).upper(),
    )


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(host=str(data.get("host", "127.0.0.1")), port=int(data.get("port", 8000)))


def load_config(path: Path | None = None) -> AppConfig:
    path = path or CONFIG_FILE
    raw = _read_toml(path)
    runtime_data = raw.get("runtime") if isinstance(raw, Mapping) else None
    api_data = raw.get("api") if isinstance(raw, Mapping) else None
    runtime = _build_runtime(runtime_data if isinstance(runtime_data, Mapping) else None)
    api = _build_api(api_data if isinstance(api_data, Mapping) else None)
    return AppConfig(runtime=runtime, api=api)


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "max_pixels": config.runtime.max_pixels,
            "max_unique_sizes": config.runtime.max_unique_sizes,
            "default_scale": config.runtime.default_scale,
            "output_dir": str(config.runtime.output_dir) if config.runtime.output_dir else None,
            "enable_local_api": config.runtime.enable_local_api,
            "log_level": config.runtime.log_level,
        },
        "api": {
            "host": config.api.host,
            "port": config.api.port,
        },
    }
    return json.dumps(payload, indent=2)
