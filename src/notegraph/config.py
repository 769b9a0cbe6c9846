"""Unified configuration loaded from .notegraph.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError


logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".notegraph.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "notegraph" / "config.toml"


class GraphSectionConfig(BaseModel):
    """[graph] section."""

    default_steps: int = Field(default=1, ge=1, le=3)


class AnalyticsSectionConfig(BaseModel):
    """[analytics] section."""

    top_centrality: int = 10
    max_iterations: int = 50
    diameter_sample_size: int = 50
    gain_formula: Literal["legacy", "canonical"] = "legacy"


class BacklinksSectionConfig(BaseModel):
    """[backlinks] section."""

    context_words: int = 10


class ExportSectionConfig(BaseModel):
    """[export] section."""

    directory: str = "./graph-exports"
    include_metadata: bool = True
    include_isolated: bool = True
    isolated_samples: int = 10
    node_paragraph_chars: int = 100
    isolated_paragraph_chars: int = 150


class NoteGraphConfig(BaseModel):
    """Top-level configuration model."""

    graph: GraphSectionConfig = Field(default_factory=GraphSectionConfig)
    analytics: AnalyticsSectionConfig = Field(default_factory=AnalyticsSectionConfig)
    backlinks: BacklinksSectionConfig = Field(default_factory=BacklinksSectionConfig)
    export: ExportSectionConfig = Field(default_factory=ExportSectionConfig)


def load_config(path: str | Path | None = None) -> NoteGraphConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .notegraph.toml in CWD
    3. ~/.config/notegraph/config.toml

    Then overlay environment variables. Invalid files are logged and
    ignored; this function does not raise.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        if not data and GLOBAL_CONFIG_PATH.exists():
            data = _load_toml(GLOBAL_CONFIG_PATH)
            logger.info("Loaded config from %s", GLOBAL_CONFIG_PATH)

    config = _validate(data) if data else NoteGraphConfig()
    return _apply_env_vars(config)


def merge_cli_overrides(config: NoteGraphConfig, **cli_kwargs: object) -> NoteGraphConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only values that are not ``None`` override the config.
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "steps": ("graph", "default_steps"),
        "gain_formula": ("analytics", "gain_formula"),
        "output_directory": ("export", "directory"),
        "include_metadata": ("export", "include_metadata"),
        "include_isolated": ("export", "include_isolated"),
        "context_words": ("backlinks", "context_words"),
    }

    for key, value in cli_kwargs.items():
        if value is None or key not in mapping:
            continue
        section, field = mapping[key]
        data[section][field] = value

    return NoteGraphConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _validate(data: dict[str, object]) -> NoteGraphConfig:
    try:
        return NoteGraphConfig.model_validate(data)
    except ValidationError as exc:
        logger.warning("Invalid configuration, using defaults: %s", exc)
        return NoteGraphConfig()


def _apply_env_vars(config: NoteGraphConfig) -> NoteGraphConfig:
    """Apply NOTEGRAPH_* environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "NOTEGRAPH_STEPS": ("graph", "default_steps"),
        "NOTEGRAPH_GAIN_FORMULA": ("analytics", "gain_formula"),
        "NOTEGRAPH_MAX_ITERATIONS": ("analytics", "max_iterations"),
        "NOTEGRAPH_DIAMETER_SAMPLE": ("analytics", "diameter_sample_size"),
        "NOTEGRAPH_CONTEXT_WORDS": ("backlinks", "context_words"),
        "NOTEGRAPH_EXPORT_DIR": ("export", "directory"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    for env_var, field in [
        ("NOTEGRAPH_INCLUDE_METADATA", "include_metadata"),
        ("NOTEGRAPH_INCLUDE_ISOLATED", "include_isolated"),
    ]:
        raw = os.environ.get(env_var)
        if raw is not None:
            data["export"][field] = raw.lower() in ("true", "1", "yes")

    try:
        return NoteGraphConfig.model_validate(data)
    except ValidationError as exc:
        logger.warning("Ignoring invalid NOTEGRAPH_* environment overrides: %s", exc)
        return config
