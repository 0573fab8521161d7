"""
Hierarchical configuration loader for site_sync.

Discovers config files by convention, supports YAML ``!include`` (handy
for keeping deploy keys out of the main file) and ``${VAR:-default}``
interpolation, then merges all files with "project wins" semantics.

Site records are merged by ``key`` rather than replaced wholesale, so a
project-level file can override one site's publish targets while the
global file keeps the rest.

Usage:
    from site_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SITE_SYNC_CONFIG"
PROJECT_DIR_NAME = ".site_sync"

# ---------------------------------------------------------------------------
# Env var interpolation
# ---------------------------------------------------------------------------

# ${VAR} and ${VAR:-default}
_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` references in *value*.

    An unset or empty variable expands to its default, or to ``""`` when
    there is none.  An unterminated ``${`` is left alone.
    """

    def _expand(match: re.Match) -> str:
        current = os.environ.get(match.group(1))
        if current:
            return current
        return match.group(2) or ""

    return _ENV_REF.sub(_expand, value)


def _interpolate_tree(node: Any) -> Any:
    if isinstance(node, str):
        return interpolate_env_vars(node)
    if isinstance(node, dict):
        return {key: _interpolate_tree(val) for key, val in node.items()}
    if isinstance(node, list):
        return [_interpolate_tree(item) for item in node]
    return node


# ---------------------------------------------------------------------------
# YAML with !include
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """``yaml.SafeLoader`` with an ``!include`` tag.

    A subclass keeps the tag off the global SafeLoader.  Each load carries
    the chain of files being parsed so include cycles are reported instead
    of recursing forever.
    """


def _include_constructor(loader: ConfigLoader, node: yaml.ScalarNode) -> Any:
    """Load the file named by ``!include <path>`` in place of the tag."""
    requested = Path(loader.construct_scalar(node))
    including_file = Path(loader.name).resolve()
    if not requested.is_absolute():
        requested = including_file.parent / requested
    target = requested.resolve()

    chain: list[Path] = getattr(loader, "_include_stack", [])
    if target in chain:
        cycle = " -> ".join(str(p) for p in [*chain, target])
        raise ValueError(f"Circular include detected: {cycle}")

    if not target.exists():
        raise FileNotFoundError(
            f"Include file not found: {target} (referenced from {including_file})"
        )

    return _load_yaml_file(target, _include_stack=[*chain, target])


ConfigLoader.add_constructor("!include", _include_constructor)


def _load_yaml_file(
    path: Path, *, _include_stack: list[Path] | None = None
) -> Any:
    path = path.resolve()
    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader._include_stack = _include_stack or [path]  # type: ignore[attr-defined]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def _candidate_paths() -> list[Path]:
    candidates: list[Path] = []
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())

    project_dir = Path.cwd() / PROJECT_DIR_NAME
    candidates.append(project_dir / "config.yml")
    candidates.append(project_dir / "config.yaml")

    home = Path.home()
    candidates.append(home / ".config" / "site_sync" / "config.yml")
    candidates.append(home / PROJECT_DIR_NAME / "config.yaml")
    return candidates


def discover_config_files() -> list[Path]:
    """Return the config files that exist, highest precedence first.

    Search order:
        1. ``SITE_SYNC_CONFIG`` (explicit path)
        2. ``./.site_sync/config.yml``
        3. ``./.site_sync/config.yaml``
        4. ``~/.config/site_sync/config.yml``
        5. ``~/.site_sync/config.yaml``
    """
    return [p for p in _candidate_paths() if p.exists()]


# ---------------------------------------------------------------------------
# Bootstrapping
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# site-sync configuration
#
# Engine settings can also come from the environment:
#   SITE_SYNC_ROOT, EMBGIT_PATH, SITE_SYNC_GIT_TIMEOUT, SITE_SYNC_DEBUG
#
# engine:
#   data_root: ~/SiteSync
#   git_binary: /usr/local/bin/embgit
#   git_timeout: 300
#
# sites:
#   - key: my-blog
#     name: My Blog
#     source:
#       type: folder
#       path: ~/Sites/my-blog
#     publish:
#       - key: backup
#         config:
#           type: folder
#           path: /mnt/backup/my-blog
#           publishScope: build_and_source
#       - key: pages
#         config:
#           type: git
#           gitProvider: github
#           gitBaseUrl: github.com
#           username: me
#           repository: my-blog
#           email: me@example.com
#           branch: main
#           deployPrivateKey: !include keys/my-blog.yml
#
# logging:
#   level: INFO
#   file: null
"""


def resolve_config_path() -> Path:
    """Return the active config file, or the default project path if none exists.

    Never creates anything; see ``ensure_config()``.
    """
    existing = discover_config_files()
    if existing:
        return existing[0]
    return Path.cwd() / PROJECT_DIR_NAME / "config.yml"


def ensure_config(target: Path | None = None) -> Path:
    """Return the active config file, writing a commented starter file if none exists.

    Args:
        target: Where to create the starter file.  Defaults to
            ``resolve_config_path()``.
    """
    existing = discover_config_files()
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    config_path = target or resolve_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)
    return config_path


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def _merge_sites(lower: list, higher: list) -> list:
    """Merge two ``sites`` lists; a higher-precedence record replaces one with the same key."""
    merged: dict[Any, Any] = {}
    anonymous: list = []
    for record in [*lower, *higher]:
        if isinstance(record, dict) and "key" in record:
            merged[record["key"]] = record
        else:
            anonymous.append(record)
    return [*merged.values(), *anonymous]


def load_hierarchical_config() -> dict[str, Any]:
    """Load every discovered config file and merge them.

    Files are applied from lowest to highest precedence.  Top-level keys
    from a higher-precedence file replace earlier ones, except ``sites``,
    which is merged per site key.  Env var interpolation runs on the
    merged result.

    Returns ``{}`` when no config file exists.
    """
    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found, using defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = _load_yaml_file(path)
        except Exception:
            logger.exception("Failed to load config file %s", path)
            raise

        if data is None:
            continue
        if not isinstance(data, dict):
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )
            continue

        for key, value in data.items():
            if (
                key == "sites"
                and isinstance(value, list)
                and isinstance(merged.get("sites"), list)
            ):
                merged["sites"] = _merge_sites(merged["sites"], value)
            else:
                merged[key] = value

    return _interpolate_tree(merged)
