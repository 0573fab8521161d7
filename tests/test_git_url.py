"""Tests for build_git_url."""

import pytest

from site_sync.sync.git import build_git_url


@pytest.mark.parametrize(
    ("args", "expected"),
    [
        (("github.com", "acme", "site", "ssh", 22), "git@github.com:acme/site.git"),
        (("github.com", "acme", "site.git", "ssh", 22), "git@github.com:acme/site.git"),
        (
            ("git.example.com", "acme", "site", "ssh", 2222),
            "ssh://git@git.example.com:2222/acme/site.git",
        ),
        (
            ("gitlab.example.com:3000", "acme", "site", "ssh", 22),
            "git@gitlab.example.com:acme/site.git",
        ),
        (
            ("gitlab.example.com:3000", "acme", "site", "https", 22),
            "https://gitlab.example.com:3000/acme/site.git",
        ),
        (
            ("localhost:3000", "acme", "site", "https", 22),
            "http://localhost:3000/acme/site.git",
        ),
        (
            ("127.0.0.1:3000", "acme", "site", "https", 22),
            "http://127.0.0.1:3000/acme/site.git",
        ),
    ],
)
def test_build_git_url(args, expected):
    assert build_git_url(*args) == expected


def test_defaults_to_ssh_port_22():
    """Protocol and port default to ssh on 22."""
    assert build_git_url("codeberg.org", "me", "blog") == "git@codeberg.org:me/blog.git"
