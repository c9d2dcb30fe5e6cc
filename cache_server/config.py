from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"

_DEFAULTS: Dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 3000},
    "image": {
        "width": 10000,
        "height": 10000,
        "square_size": 100,
        "square_count": 1000,
        "font_scale": 1.6,
        "font_thickness": 3,
        "text_origin": [100, 100],
        "line_spacing": 100,
        "png_compression": 0,
        "size_label": "Size: ~100MB",
    },
    "cache": {"default_max_age": 31536000},
    "logging": {"level": "INFO"},
}


@dataclass(frozen=True)
class ImageSettings:
    """Canvas geometry, pattern and encoder settings for the image generator."""
    width: int = 10000
    height: int = 10000
    square_size: int = 100
    square_count: int = 1000
    font_scale: float = 1.6
    font_thickness: int = 3
    text_origin: Tuple[int, int] = (100, 100)
    line_spacing: int = 100
    png_compression: int = 0
    size_label: str = "Size: ~100MB"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("image width/height must be > 0")
        if self.square_size <= 0:
            raise ValueError("square_size must be > 0")
        if self.square_count < 0:
            raise ValueError("square_count must be >= 0")
        if not 0 <= self.png_compression <= 9:
            raise ValueError("png_compression must be within 0..9")
        if self.line_spacing <= 0:
            raise ValueError("line_spacing must be > 0")


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    default_max_age: int = 31536000
    log_level: str = "INFO"
    image: ImageSettings = field(default_factory=ImageSettings)

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError(f"port out of range: {self.port}")
        if self.default_max_age < 0:
            raise ValueError("default_max_age must be >= 0")


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _load_yaml(path: str) -> Dict:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_raw_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Defaults <- YAML file <- environment (PORT, HOST, LOG_LEVEL).
    Path precedence: explicit arg, env CACHE_SERVER_CONFIG, config/params.yaml.
    A missing file is not an error; defaults apply.
    """
    path = path or os.environ.get("CACHE_SERVER_CONFIG") or DEFAULT_CONFIG_PATH
    if Path(path).exists():
        P = _merge(_DEFAULTS, _load_yaml(path))
    else:
        P = copy.deepcopy(_DEFAULTS)

    if os.environ.get("PORT"):
        P["server"]["port"] = os.environ["PORT"]
    if os.environ.get("HOST"):
        P["server"]["host"] = os.environ["HOST"]
    if os.environ.get("LOG_LEVEL"):
        P["logging"]["level"] = os.environ["LOG_LEVEL"]
    return P


def image_settings_from_dict(d: Dict[str, Any]) -> ImageSettings:
    origin = d.get("text_origin", [100, 100])
    if not isinstance(origin, (list, tuple)) or len(origin) != 2:
        raise ValueError(f"text_origin must be [x, y], got {origin!r}")
    return ImageSettings(
        width=_as_int(d.get("width", 10000), "image.width"),
        height=_as_int(d.get("height", 10000), "image.height"),
        square_size=_as_int(d.get("square_size", 100), "image.square_size"),
        square_count=_as_int(d.get("square_count", 1000), "image.square_count"),
        font_scale=float(d.get("font_scale", 1.6)),
        font_thickness=_as_int(d.get("font_thickness", 3), "image.font_thickness"),
        text_origin=(_as_int(origin[0], "image.text_origin"), _as_int(origin[1], "image.text_origin")),
        line_spacing=_as_int(d.get("line_spacing", 100), "image.line_spacing"),
        png_compression=_as_int(d.get("png_compression", 0), "image.png_compression"),
        size_label=str(d.get("size_label", "Size: ~100MB")),
    )


def load_config(path: Optional[str] = None) -> ServerConfig:
    P = load_raw_config(path)
    srv = P.get("server", {})
    return ServerConfig(
        host=str(srv.get("host", "0.0.0.0")),
        port=_as_int(srv.get("port", 3000), "server.port"),
        default_max_age=_as_int(P.get("cache", {}).get("default_max_age", 31536000), "cache.default_max_age"),
        log_level=str(P.get("logging", {}).get("level", "INFO")).upper(),
        image=image_settings_from_dict(P.get("image", {})),
    )
