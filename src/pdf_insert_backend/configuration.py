"""
Application configuration loading.

Defaults live in the packaged config/config.yaml. They are merged over a typed
OmegaConf schema built from the dataclasses below, so misspelled keys and wrong
types fail at startup rather than mid-request. Environment variables (and a .env
file, via python-dotenv) are pulled in through ${oc.env:...} interpolations.

The resulting AppConfig is created once at startup and handed explicitly to the
app factory and the PDF service.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

from .models import PlacementRegion

load_dotenv()

_HERE = Path(__file__).resolve()
DEFAULT_CONFIG_PATH = _HERE.parent / "config" / "config.yaml"
CONFIG_PATH_ENV = "PDF_INSERT_CONFIG"


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3001
    api_prefix: str = ""
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])


@dataclass
class PlacementBoxConfig:
    x: float = 0.0
    y: float = 335.0
    width: float = 1600.0
    height: float = 625.0


@dataclass
class TemplateConfig:
    path: str = "template.pdf"
    placement: PlacementBoxConfig = field(default_factory=PlacementBoxConfig)

    @property
    def template_path(self) -> Path:
        return Path(self.path).expanduser()

    @property
    def placement_region(self) -> PlacementRegion:
        box = self.placement
        return PlacementRegion(x=box.x, y=box.y, width=box.width, height=box.height)


@dataclass
class PageConfig:
    width: float = 612.0
    height: float = 792.0
    top_margin: float = 36.0


@dataclass
class UploadLimits:
    max_file_size_bytes: int = 50 * 1024 * 1024
    max_files: int = 50
    allowed_image_types: List[str] = field(default_factory=lambda: ["jpeg", "jpg", "png"])


@dataclass
class FrontendConfig:
    dist_dir: Optional[str] = None


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    template: TemplateConfig = field(default_factory=TemplateConfig)
    page: PageConfig = field(default_factory=PageConfig)
    uploads: UploadLimits = field(default_factory=UploadLimits)
    frontend: FrontendConfig = field(default_factory=FrontendConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def resolve_config_path() -> Path:
    override = os.environ.get(CONFIG_PATH_ENV)
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


@lru_cache(maxsize=4)
def _load_yaml(path: Path) -> DictConfig:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found at {path}")
    return OmegaConf.load(path)


def make_runtime_config(overrides: Optional[Mapping[str, Any]] = None, config_path: Optional[Path] = None) -> DictConfig:
    """
    Merge the schema, the YAML defaults and any caller overrides.

    Args:
        overrides: Nested mapping merged last, e.g. {"template": {"path": "x.pdf"}}
        config_path: YAML file to use instead of the packaged/env-selected one

    Returns:
        A struct-mode DictConfig; unresolved interpolations are kept until conversion
    """
    schema = OmegaConf.structured(AppConfig)
    defaults = _load_yaml(config_path or resolve_config_path())
    merged = OmegaConf.merge(schema, defaults, OmegaConf.create(dict(overrides or {})))
    OmegaConf.set_struct(merged, True)
    return merged  # type: ignore[return-value]


def load_config(overrides: Optional[Mapping[str, Any]] = None, config_path: Optional[Path] = None) -> AppConfig:
    """Build the typed AppConfig, resolving environment interpolations."""
    merged = make_runtime_config(overrides, config_path)
    config = OmegaConf.to_object(merged)
    return config  # type: ignore[return-value]


def config_to_dict(config: AppConfig) -> Dict[str, Any]:
    return OmegaConf.to_container(OmegaConf.structured(config), resolve=True)  # type: ignore[return-value]


def configure_logging(config: AppConfig) -> None:
    logging.basicConfig(level=config.logging.level.upper(), format=config.logging.format)
