"""Engine configuration for the publish/sync engine.

Reads engine settings from CLI args, environment variables, .env files,
and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    SITE_SYNC_ROOT: Data root holding ``sites/`` and ``temp/`` (optional,
        default: ~/SiteSync)
    EMBGIT_PATH: Path to the embedded git binary (optional, default: embgit on PATH)
    SITE_SYNC_GIT_TIMEOUT: Seconds before a git subprocess is killed
        (optional, default: 300)
    SITE_SYNC_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_GIT_TIMEOUT = 300.0


def default_data_root() -> str:
    return str(Path.home() / "SiteSync")


@dataclass
class Config:
    data_root: str
    git_binary: str | None = None
    git_timeout: float = DEFAULT_GIT_TIMEOUT
    debug: bool = False


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the data root is empty or the git timeout is not positive.
    """
    config.data_root = config.data_root.strip()
    if not config.data_root:
        raise ValueError(
            "Data root cannot be empty. Set SITE_SYNC_ROOT or engine.data_root."
        )

    config.data_root = str(Path(config.data_root).expanduser())

    if config.git_binary is not None:
        config.git_binary = config.git_binary.strip() or None

    if not (0 < config.git_timeout <= 86400):
        raise ValueError(
            f"Invalid git timeout '{config.git_timeout}': must be between 0 and 86400 seconds"
        )


def load_config(
    data_root: str | None = None,
    git_binary: str | None = None,
    git_timeout: float | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        data_root: Override data root directory.
        git_binary: Override embedded git binary path.
        git_timeout: Override git subprocess timeout in seconds.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML config ``engine`` section.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If a value is malformed.
    """
    fb = yaml_fallbacks or {}

    final_root = (
        data_root
        or os.getenv("SITE_SYNC_ROOT")
        or fb.get("data_root")
        or default_data_root()
    )

    final_binary = (
        git_binary or os.getenv("EMBGIT_PATH") or fb.get("git_binary")
    )

    if git_timeout is not None:
        final_timeout = float(git_timeout)
    else:
        timeout_raw = os.getenv("SITE_SYNC_GIT_TIMEOUT")
        if timeout_raw is not None:
            try:
                final_timeout = float(timeout_raw)
            except ValueError:
                raise ValueError(
                    f"Invalid SITE_SYNC_GIT_TIMEOUT '{timeout_raw}': must be a number of seconds"
                ) from None
        elif fb.get("git_timeout") is not None:
            final_timeout = float(fb["git_timeout"])
        else:
            final_timeout = DEFAULT_GIT_TIMEOUT

    if debug:
        final_debug = True
    else:
        env_debug = os.getenv("SITE_SYNC_DEBUG")
        if env_debug is not None:
            final_debug = env_debug.lower() in ("true", "1", "yes", "on")
        else:
            final_debug = bool(fb.get("debug", False))

    config = Config(
        data_root=final_root,
        git_binary=final_binary,
        git_timeout=final_timeout,
        debug=final_debug,
    )

    validate_config(config)
    logger.debug(
        "Engine config: data_root=%s git_binary=%s git_timeout=%s",
        config.data_root,
        config.git_binary,
        config.git_timeout,
    )

    return config
