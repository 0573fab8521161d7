"""Directory staging primitives shared by every sync backend.

All functions here are blocking; services call them through
``run_sync`` so the event loop stays responsive.
"""

import logging
import shutil
from collections.abc import Callable, Iterable
from fnmatch import fnmatch
from pathlib import Path

from ..file_handler import read_file_with_encoding

logger = logging.getLogger(__name__)

# Tooling and VCS artifacts that never belong in a published tree.
UNWANTED_ARTIFACTS: tuple[str, ...] = (
    ".quiqr-cache",
    ".gitlab-ci.yml",
    ".gitignore",
    ".sukoh",
    ".hugo_build.lock",
    ".git",
)

# Remote-to-local copies keep the repository's own dotfiles.
PULL_EXCLUDES: tuple[str, ...] = (".git", ".quiqr-cache")

SYNC_IGNORE_FILE = Path("quiqr") / "sync_ignore.txt"


def ensure_dir(directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def force_remove(path: Path) -> None:
    """Remove a file, symlink or directory tree.  Missing paths are fine."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def ensure_sync_dir_empty(directory: Path) -> Path:
    """Make *directory* exist and be empty.

    Anything already inside is destroyed; there is no incremental resume.
    Calling it twice in a row leaves the same empty directory.
    """
    ensure_dir(directory)
    for child in directory.iterdir():
        force_remove(child)
    return ensure_dir(directory)


def remove_unwanted(directory: Path) -> None:
    """Force-remove ``UNWANTED_ARTIFACTS`` from the top level of *directory*."""
    for name in UNWANTED_ARTIFACTS:
        force_remove(directory / name)


def read_sync_ignore(site_path: Path) -> list[str]:
    """Read the site's ``quiqr/sync_ignore.txt`` glob patterns.

    One pattern per line; blank lines and ``#`` comments are skipped and
    duplicates dropped.  A missing or unreadable file yields no patterns.
    """
    ignore_file = site_path / SYNC_IGNORE_FILE
    if not ignore_file.is_file():
        return []
    try:
        content, _ = read_file_with_encoding(ignore_file)
    except OSError as e:
        logger.warning("Could not read %s: %s", ignore_file, e)
        return []

    patterns: list[str] = []
    for line in content.splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#") or entry in patterns:
            continue
        patterns.append(entry)
    return patterns


class IgnoreFilter:
    """Predicate deciding which paths under ``root`` get copied.

    Matching is on the path relative to ``root`` (posix form): the fixed
    artifact names and ``public`` match only at the top level, while glob
    patterns are matched with ``fnmatch`` against the whole relative path
    (``*`` also crosses ``/``).
    """

    def __init__(
        self,
        root: Path,
        exclude_public: bool = False,
        patterns: Iterable[str] = (),
        names: Iterable[str] = UNWANTED_ARTIFACTS,
    ):
        self.root = Path(root)
        excluded = set(names)
        if exclude_public:
            excluded.add("public")
        self.names = frozenset(excluded)
        self.patterns = tuple(p.strip("/") for p in patterns if p.strip("/"))

    def __call__(self, path: Path) -> bool:
        """Return ``True`` if *path* should be copied."""
        try:
            relative = Path(path).relative_to(self.root).as_posix()
        except ValueError:
            return True
        if relative in self.names:
            return False
        return not any(fnmatch(relative, p) for p in self.patterns)

    def as_copytree_ignore(self) -> Callable[[str, list[str]], set[str]]:
        """Adapt the predicate to ``shutil.copytree``'s ``ignore`` callback."""

        def _ignore(dirname: str, names: list[str]) -> set[str]:
            base = Path(dirname)
            return {name for name in names if not self(base / name)}

        return _ignore


def copy_tree(
    source: Path, destination: Path, ignore: IgnoreFilter | None = None
) -> Path:
    """Copy the contents of *source* into *destination*, merging with what is there.

    Raises:
        FileNotFoundError: If *source* is not a directory.
    """
    if not source.is_dir():
        raise FileNotFoundError(f"Source directory does not exist: {source}")
    shutil.copytree(
        source,
        destination,
        symlinks=True,
        ignore=ignore.as_copytree_ignore() if ignore else None,
        dirs_exist_ok=True,
    )
    return destination


def replace_subdirs(
    source: Path, destination: Path, names: Iterable[str]
) -> list[str]:
    """Replace each named top-level directory of *destination* with the one from *source*.

    Names missing from *source* are removed from *destination* and skipped.
    Returns the names that were copied.
    """
    copied: list[str] = []
    for name in names:
        force_remove(destination / name)
        if not (source / name).is_dir():
            logger.warning("Nothing to copy for %s: %s is missing", name, source / name)
            continue
        copy_tree(source / name, destination / name)
        copied.append(name)
    return copied
