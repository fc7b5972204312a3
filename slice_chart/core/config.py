from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .models import ChartOptions


@dataclass
class Settings:
    value_font_size: int = 14
    show_border: bool = True
    border_thickness: float = 1
    export_scale: int = 3
    pdf_scale: int = 2
    image_timeout: float = 15.0
    surface_width: int = 800
    surface_height: int = 500
    surface_dpi: int = 100
    output_dir: str = "exports"

    def chart_options(self) -> ChartOptions:
        return ChartOptions(
            value_font_size=self.value_font_size,
            show_border=self.show_border,
            border_thickness=self.border_thickness,
        )


def _read_env_file() -> dict[str, str]:
    """Load a minimal .env to support SLICECHART_* keys if not in the environment.

    Existing os.environ values are never overwritten.
    """
    env_path = Path.cwd() / ".env"
    env: dict[str, str] = {}
    if not env_path.exists():
        return env
    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            k, v = line.split("=", 1)
            env[k.strip()] = v.strip().strip('"').strip("'")
    except OSError:
        return {}
    return env


def _get_env(name: str, env_file: dict[str, str]) -> str | None:
    # Priority: process env -> .env
    val = os.getenv(name)
    if val:
        return val
    return env_file.get(name) or None


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> Settings:
    env_file = _read_env_file()
    defaults = Settings()
    overrides: dict[str, object] = {}

    casts = {
        "value_font_size": int,
        "show_border": _as_bool,
        "border_thickness": float,
        "export_scale": int,
        "pdf_scale": int,
        "image_timeout": float,
        "surface_width": int,
        "surface_height": int,
        "surface_dpi": int,
        "output_dir": str,
    }
    for field_name, cast in casts.items():
        raw = _get_env(f"SLICECHART_{field_name.upper()}", env_file)
        if raw is None:
            continue
        try:
            overrides[field_name] = cast(raw)
        except ValueError as e:
            raise ValueError(
                f"Invalid value for SLICECHART_{field_name.upper()}: {raw!r}"
            ) from e

    return Settings(**{**defaults.__dict__, **overrides})
