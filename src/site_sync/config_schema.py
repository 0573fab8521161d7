"""Unified configuration schema for site_sync.

Defines Pydantic models for the unified config structure with dedicated
sections for the engine, logging, and the site records whose publish
targets the engine serves.

Usage:
    from site_sync.config_schema import UnifiedConfig, build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    site = unified.get_site("my-blog")
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field

from .sync.models import PublishConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class EngineConfig(BaseModel):
    """Engine settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    data_root: str | None = Field(
        default=None,
        description="Directory holding sites/<key>/ staging dirs and temp/",
    )
    git_binary: str | None = Field(
        default=None, description="Path to the embedded git binary"
    )
    git_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds before a git subprocess is killed",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


class SiteSource(BaseModel):
    """Where a site's editable source tree lives."""

    type: Literal["folder"] = "folder"
    path: str

    model_config = {"frozen": True}


class SiteConfig(BaseModel):
    """A site record as persisted by the configuration layer.

    Attributes:
        key: Site key, used in staging paths (``sites/<key>/...``).
        name: Display name.
        source: Source tree location; pull/checkout actions write here.
        publish: Publish targets.  Keys are unique per site (enforced by
            whoever edits the list).
    """

    key: str
    name: str | None = None
    source: SiteSource | None = None
    publish: list[PublishConfig] = Field(default_factory=list)

    model_config = {"frozen": True}

    def get_publish_config(self, key: str) -> PublishConfig | None:
        """Return the publish target named *key*, or ``None``."""
        for entry in self.publish:
            if entry.key == key:
                return entry
        return None


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Aggregates all config sections. Every section has sensible defaults,
    so ``UnifiedConfig()`` (zero-config) is always valid.
    """

    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    sites: list[SiteConfig] = Field(default_factory=list)

    model_config = {"frozen": True}

    def get_site(self, key: str) -> SiteConfig | None:
        """Return the site named *key*, or ``None``."""
        for site in self.sites:
            if site.key == key:
                return site
        return None


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    unified = UnifiedConfig(**raw_data)
    logger.debug("Loaded %d site record(s)", len(unified.sites))
    return unified


def engine_fallbacks(unified: UnifiedConfig) -> dict:
    """Return the non-None ``engine`` values, for ``load_config(yaml_fallbacks=...)``."""
    return {
        k: v
        for k, v in unified.engine.model_dump().items()
        if v is not None
    }
