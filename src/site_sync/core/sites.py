"""Site lookup for sync services.

Pull and checkout actions need the site's source path, which lives with
the configuration persistence layer rather than in the publish config.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from ..sync.errors import SyncNotConfigured

if TYPE_CHECKING:
    from ..config_schema import SiteConfig, UnifiedConfig
    from ..sync.models import PublishConfig

logger = logging.getLogger(__name__)


class ConfigurationProvider(Protocol):
    def get_site(self, site_key: str) -> SiteConfig | None: ...


class UnifiedConfigProvider:
    """``ConfigurationProvider`` backed by the ``sites`` section of a ``UnifiedConfig``."""

    def __init__(self, unified: UnifiedConfig):
        self._unified = unified

    def get_site(self, site_key: str) -> SiteConfig | None:
        return self._unified.get_site(site_key)

    def list_sites(self) -> list[SiteConfig]:
        return list(self._unified.sites)


def resolve_source_path(provider: ConfigurationProvider, site_key: str) -> Path:
    """Return the site's source directory.

    Raises:
        SyncNotConfigured: If the site is unknown or has no source path.
    """
    site = provider.get_site(site_key)
    if site is None or site.source is None or not site.source.path:
        raise SyncNotConfigured(
            f"Site not found or invalid source path: {site_key}"
        )
    return Path(site.source.path).expanduser()


def find_publish_config(
    provider: ConfigurationProvider, site_key: str, publish_key: str
) -> PublishConfig:
    """Look up one publish target of a site.

    Raises:
        SyncNotConfigured: If the site or the publish key does not exist.
    """
    site = provider.get_site(site_key)
    if site is None:
        raise SyncNotConfigured(f"Site not found: {site_key}")
    entry = site.get_publish_config(publish_key)
    if entry is None:
        known = ", ".join(p.key for p in site.publish) or "none"
        raise SyncNotConfigured(
            f"Publish target '{publish_key}' not found for site {site_key} "
            f"(configured: {known})"
        )
    return entry
