"""Embedded git binary access."""

from .process import (
    ANONYMOUS,
    EmbeddedGit,
    GitIdentity,
    derive_public_key,
    resolve_git_binary,
)

__all__ = [
    "ANONYMOUS",
    "EmbeddedGit",
    "GitIdentity",
    "derive_public_key",
    "resolve_git_binary",
]
