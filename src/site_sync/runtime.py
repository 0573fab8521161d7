"""Wiring shared by the CLI and the MCP server.

Loads configuration with the usual precedence (CLI > env / .env > YAML >
defaults) and assembles a ``SyncFactory`` with its dependencies.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .config import Config, load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config, engine_fallbacks
from .core.console import LoggingConsole, OutputConsole
from .core.paths import PathHelper
from .core.sites import UnifiedConfigProvider
from .git.process import EmbeddedGit
from .sync.base import SyncServiceDependencies
from .sync.factory import SyncFactory
from .sync.progress import ProgressCallback

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    config: Config
    unified: UnifiedConfig
    provider: UnifiedConfigProvider
    factory: SyncFactory
    sources: list[str] = field(default_factory=list)


def load_runtime(
    overrides: dict[str, Any] | None = None,
    console: OutputConsole | None = None,
    progress_callback: ProgressCallback | None = None,
) -> Runtime:
    """Load configuration and build the sync factory.

    Args:
        overrides: CLI values: ``data_root``, ``git_binary``,
            ``git_timeout``, ``debug``, ``build_dir``.
        console: Output console for services (default: logging console).
        progress_callback: Factory-wide progress callback.

    Raises:
        ValueError: If a configuration value is invalid.
    """
    load_dotenv()
    overrides = overrides or {}
    sources: list[str] = []

    config_files = discover_config_files()
    unified = build_config(load_hierarchical_config())
    if config_files:
        sources.append(f"config file: {config_files[0]}")

    config = load_config(
        data_root=overrides.get("data_root"),
        git_binary=overrides.get("git_binary"),
        git_timeout=overrides.get("git_timeout"),
        debug=overrides.get("debug", False),
        yaml_fallbacks=engine_fallbacks(unified),
    )
    # Handlers are already installed; the YAML level only retunes our own loggers.
    if "level" in unified.logging.model_fields_set and not config.debug:
        logging.getLogger("site_sync").setLevel(unified.logging.level.upper())

    if overrides:
        sources.append("CLI arguments")
    sources.append("environment variables")
    logger.info("Configuration loaded from: %s", ", ".join(sources))

    console = console or LoggingConsole()
    build_dir = overrides.get("build_dir")
    path_helper = PathHelper(
        config.data_root, Path(build_dir).expanduser() if build_dir else None
    )
    provider = UnifiedConfigProvider(unified)
    deps = SyncServiceDependencies(
        path_helper=path_helper,
        configuration_provider=provider,
        git=EmbeddedGit(config.git_binary, console, config.git_timeout),
        console=console,
        progress_callback=progress_callback,
    )
    return Runtime(
        config=config,
        unified=unified,
        provider=provider,
        factory=SyncFactory(deps),
        sources=sources,
    )


def to_jsonable(result: Any) -> Any:
    """Convert an action result (bool, str, pydantic model) into JSON-ready data."""
    if hasattr(result, "model_dump"):
        return result.model_dump(mode="json", by_alias=True)
    return result
