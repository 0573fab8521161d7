"""Async wrapper around the embedded git binary (``embgit``).

The binary is a trusted external tool with a fixed, positional command
surface.  This module only spawns it, bounds it with a timeout, and turns
a non-zero exit into ``ExternalProcessFailure``.  No state is kept between
calls: credentials travel in a ``GitIdentity`` passed to each call.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
import shutil
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from cryptography.hazmat.primitives import serialization

from ..config import DEFAULT_GIT_TIMEOUT
from ..core.console import LoggingConsole, OutputConsole
from ..sync.errors import ExternalProcessFailure, SyncNotConfigured

logger = logging.getLogger(__name__)

KEYGEN_PRIVATE_NAME = "id_ecdsa_quiqr"
KEYGEN_PUBLIC_NAME = "id_ecdsa_quiqr.pub"


@dataclass(frozen=True)
class GitIdentity:
    """Author identity and key for one git operation."""

    name: str = "anonymous"
    email: str = "anonymous@quiqr.org"
    private_key_path: Path | None = None

    def with_key(self, private_key_path: Path) -> GitIdentity:
        return replace(self, private_key_path=private_key_path)


ANONYMOUS = GitIdentity()


def resolve_git_binary(configured: str | None = None) -> str:
    """Locate the embedded git binary.

    Order: ``EMBGIT_PATH`` env var, then *configured*, then ``embgit``
    (``embgit.exe`` on Windows) on ``PATH``.

    Raises:
        SyncNotConfigured: If none of these yields a binary.
    """
    from_env = os.environ.get("EMBGIT_PATH")
    if from_env:
        return from_env
    if configured:
        return configured
    executable = "embgit.exe" if sys.platform == "win32" else "embgit"
    found = shutil.which(executable)
    if found:
        return found
    raise SyncNotConfigured(
        f"Embedded git binary not found: set EMBGIT_PATH, engine.git_binary, "
        f"or put {executable} on PATH"
    )


def derive_public_key(private_key_pem: str) -> str:
    """Return the OpenSSH public key line (``<type> <base64>``) for a PEM private key.

    Raises:
        ValueError: If the PEM cannot be parsed or the key type has no
            OpenSSH encoding.
    """
    key = serialization.load_pem_private_key(
        private_key_pem.encode("utf-8"), password=None
    )
    public = key.public_key().public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    )
    return public.decode("ascii")


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()


class EmbeddedGit:
    """Runs ``embgit`` subcommands.

    Each call writes a start line and a success/failure line to the output
    console, and raises ``ExternalProcessFailure`` on failure.  Every call
    is bounded by ``timeout`` seconds; on timeout or task cancellation the
    child process is killed before the exception propagates.
    """

    def __init__(
        self,
        binary: str | None = None,
        console: OutputConsole | None = None,
        timeout: float = DEFAULT_GIT_TIMEOUT,
    ):
        self._configured_binary = binary
        self.console = console or LoggingConsole()
        self.timeout = timeout

    @property
    def binary(self) -> str:
        return resolve_git_binary(self._configured_binary)

    async def run(
        self,
        args: list[str],
        log_message: str | None = None,
        cwd: Path | None = None,
    ) -> str:
        """Run ``embgit <args>`` and return its stdout."""
        binary = self.binary
        if log_message:
            self.console.append_line(log_message)
        logger.debug("Running %s %s", binary, " ".join(args))

        try:
            proc = await asyncio.create_subprocess_exec(
                binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
            )
        except OSError as e:
            raise ExternalProcessFailure(args, None, reason=str(e)) from e

        try:
            out, err = await asyncio.wait_for(
                proc.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            await _terminate(proc)
            self.console.append_line(
                f"Embgit error: {args[0]} timed out after {self.timeout:g}s"
            )
            raise ExternalProcessFailure(
                args, None, reason=f"timed out after {self.timeout:g}s"
            ) from None
        except asyncio.CancelledError:
            await _terminate(proc)
            raise

        stdout = out.decode("utf-8", errors="replace")
        stderr = err.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            self.console.append_line(
                f"Embgit error: {stderr.strip() or stdout.strip()}"
            )
            raise ExternalProcessFailure(
                args, proc.returncode, stderr=stderr, stdout=stdout
            )
        return stdout

    async def _step(
        self,
        args: list[str],
        start: str,
        failure: str,
        success: str | None = None,
        cwd: Path | None = None,
    ) -> str:
        try:
            stdout = await self.run(args, start, cwd=cwd)
        except ExternalProcessFailure:
            self.console.append_line(failure)
            raise
        if success:
            self.console.append_line(success)
        return stdout

    async def _step_json(self, args: list[str], start: str, failure: str) -> Any:
        stdout = await self._step(args, start, failure)
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            self.console.append_line(failure)
            raise ExternalProcessFailure(
                args, 0, stdout=stdout, reason=f"invalid JSON output: {e}"
            ) from e

    @staticmethod
    def _require_key(identity: GitIdentity | None, operation: str) -> str:
        if identity is None or identity.private_key_path is None:
            raise SyncNotConfigured(f"Private key not set for git {operation}")
        return str(identity.private_key_path)

    # ------------------------------------------------------------------
    # Working copy
    # ------------------------------------------------------------------

    async def clone(
        self, url: str, destination: Path, identity: GitIdentity | None = None
    ) -> None:
        """Clone *url* into *destination*, with key auth when *identity* carries a key."""
        args = ["clone", "-s"]
        if identity is not None and identity.private_key_path is not None:
            args += ["-i", str(identity.private_key_path)]
        args += [url, str(destination)]
        await self._step(
            args,
            f"Cloning {url} to {destination}",
            f"Clone error: {url}",
            "Clone success ...",
        )

    async def pull(self, destination: Path, identity: GitIdentity) -> None:
        key = self._require_key(identity, "pull")
        await self._step(
            ["pull", "-s", "-i", key, str(destination)],
            f"Pulling from remote: {destination}",
            f"Git pull failed: {destination}",
        )

    async def reset_hard(self, destination: Path) -> None:
        await self._step(
            ["reset_hard", str(destination)],
            f"Resetting hard: {destination}",
            f"Reset hard failed: {destination}",
            "Reset success ...",
        )

    async def add_all(self, destination: Path) -> None:
        await self._step(
            ["add_all", str(destination)],
            f"Adding all files: {destination}",
            f"Git add all failed: {destination}",
            "Git add all success ...",
        )

    async def commit(
        self, destination: Path, message: str, identity: GitIdentity = ANONYMOUS
    ) -> None:
        await self._step(
            [
                "commit",
                "-a",
                "-n",
                identity.name,
                "-e",
                identity.email,
                "-m",
                message,
                str(destination),
            ],
            f"Committing changes: {destination}",
            f"Git commit failed: {destination}",
            "Git commit success ...",
        )

    async def push(self, destination: Path, identity: GitIdentity) -> None:
        key = self._require_key(identity, "push")
        await self._step(
            ["push", "-s", "-i", key, str(destination)],
            f"Pushing to remote: {destination}",
            f"Git push failed: {destination}",
            "Git push success ...",
        )

    async def checkout(self, ref: str, destination: Path) -> None:
        await self._step(
            ["checkout", "-r", ref, str(destination)],
            f"Checking out ref {ref}: {destination}",
            f"Git checkout failed: {destination}",
            "Git checkout success ...",
        )

    # ------------------------------------------------------------------
    # Introspection (JSON on stdout)
    # ------------------------------------------------------------------

    async def log_remote(self, url: str, identity: GitIdentity) -> list[dict]:
        key = self._require_key(identity, "log remote")
        return await self._step_json(
            ["log_remote", "-s", "-i", key, url],
            f"Getting remote commits: {url}",
            f"Git log remote failed: {url}",
        )

    async def log_local(self, destination: Path) -> list[dict]:
        return await self._step_json(
            ["log_local", str(destination)],
            f"Getting local commits: {destination}",
            f"Git log local failed: {destination}",
        )

    async def repo_show_quiqrsite(self, url: str) -> dict:
        return await self._step_json(
            ["repo_show_quiqrsite", url],
            f"Checking site repo: {url}",
            f"repo_show_quiqrsite failed: {url}",
        )

    async def repo_show_hugotheme(self, url: str) -> dict:
        return await self._step_json(
            ["repo_show_hugotheme", url],
            f"Checking Hugo theme repo: {url}",
            f"repo_show_hugotheme failed: {url}",
        )

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    async def generate_key_pair(self, work_dir: Path) -> tuple[str, str]:
        """Generate an ECDSA deploy key pair and return ``(private_pem, public_line)``.

        ``keygen_ecdsa`` writes its files into the working directory; they
        are read back and removed.
        """
        work_dir.mkdir(parents=True, exist_ok=True)
        private_path = work_dir / KEYGEN_PRIVATE_NAME
        public_path = work_dir / KEYGEN_PUBLIC_NAME
        try:
            await self._step(
                ["keygen_ecdsa"],
                "Generating SSH key pair",
                "SSH key generation failed",
                cwd=work_dir,
            )
            private_key = private_path.read_text(encoding="utf-8")
            public_key = public_path.read_text(encoding="utf-8")
        finally:
            private_path.unlink(missing_ok=True)
            public_path.unlink(missing_ok=True)
        self.console.append_line("SSH key pair generated successfully")
        return private_key, public_key
