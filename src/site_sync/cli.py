"""Command-line entry point: ``site-sync``.

Runs one sync action against one configured publish target, lists
targets, and manages deploy keys.  Progress goes to stderr, results are
printed as JSON on stdout.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .config_loader import ensure_config
from .core.async_utils import run_sync
from .core.sites import find_publish_config
from .git.process import derive_public_key
from .logger import setup_logging
from .runtime import load_runtime, to_jsonable
from .sync.errors import SyncError
from .sync.models import ProgressEvent, SyncAction

logger = logging.getLogger(__name__)


def _print_progress(event: ProgressEvent) -> None:
    if event.error:
        print(f"[{event.progress:3d}%] failed: {event.error}", file=sys.stderr)
    else:
        print(f"[{event.progress:3d}%] {event.message}", file=sys.stderr)


def _overrides(args: argparse.Namespace) -> dict:
    overrides = {}
    for name in ("data_root", "git_binary", "git_timeout", "build_dir"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    if args.debug:
        overrides["debug"] = True
    return overrides


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _cmd_run(args: argparse.Namespace) -> int:
    runtime = load_runtime(_overrides(args), progress_callback=_print_progress)
    entry = find_publish_config(runtime.provider, args.site, args.target)
    service = runtime.factory.get_publisher(
        entry, site_key=args.site, workspace_key=args.workspace
    )
    parameters = {"ref": args.ref} if args.ref else None
    result = await service.action_dispatcher(args.action, parameters)
    print(json.dumps(to_jsonable(result), indent=2))
    return 0


async def _cmd_targets(args: argparse.Namespace) -> int:
    runtime = load_runtime(_overrides(args))
    sites = runtime.provider.list_sites()
    if args.site:
        sites = [s for s in sites if s.key == args.site]
    listing = [
        {
            "site": site.key,
            "targets": [
                {
                    "key": entry.key,
                    "type": entry.config.type,
                    "actions": runtime.factory.get_publisher(
                        entry, site.key, "cli"
                    ).supported_actions(),
                }
                for entry in site.publish
            ],
        }
        for site in sites
    ]
    print(json.dumps(listing, indent=2))
    return 0


async def _cmd_keygen(args: argparse.Namespace) -> int:
    runtime = load_runtime(_overrides(args))
    git = runtime.factory.dependencies.git
    work_dir = runtime.factory.dependencies.path_helper.root / "temp" / "keygen"
    private_key, public_key = await git.generate_key_pair(work_dir)
    print(json.dumps({"privateKey": private_key, "publicKey": public_key}, indent=2))
    return 0


async def _cmd_pubkey(args: argparse.Namespace) -> int:
    pem = await run_sync(Path(args.key_file).expanduser().read_text, encoding="utf-8")
    print(derive_public_key(pem))
    return 0


async def _cmd_init_config(args: argparse.Namespace) -> int:
    path = ensure_config(Path(args.path).expanduser() if args.path else None)
    print(str(path))
    return 0


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="site-sync",
        description="Publish a static site to a folder or git remote, or pull it back",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Publish the last build of my-blog to its "pages" target
  site-sync run my-blog pages pushWithSoftMerge --build-dir ~/Sites/my-blog

  # Reset the local source tree to the remote state
  site-sync run my-blog pages pullFromRemote

  # Check out an older commit into the site directory
  site-sync run my-blog pages checkoutRef --ref 4f2a9c1

  # Show configured targets
  site-sync targets
        """,
    )
    parser.add_argument("--data-root", help="Data root (overrides SITE_SYNC_ROOT)")
    parser.add_argument("--git-binary", help="Embedded git binary (overrides EMBGIT_PATH)")
    parser.add_argument(
        "--git-timeout", type=float, help="Seconds before a git call is killed"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", help="Also log to this file")
    parser.add_argument(
        "--debug-format",
        choices=["text", "json"],
        default="text",
        help="Log line format (default: text)",
    )
    parser.add_argument(
        "--version", action="version", version=f"site-sync version {__version__}"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Run one action on a publish target")
    run_p.add_argument("site", help="Site key")
    run_p.add_argument("target", help="Publish target key")
    run_p.add_argument(
        "action",
        help="Action name: " + ", ".join(a.value for a in SyncAction),
    )
    run_p.add_argument("--ref", help="Git ref for checkoutRef")
    run_p.add_argument("--build-dir", help="Directory of the last site build")
    run_p.add_argument("--workspace", default="main", help="Workspace key")
    run_p.set_defaults(handler=_cmd_run)

    targets_p = sub.add_parser("targets", help="List configured publish targets")
    targets_p.add_argument("site", nargs="?", help="Only this site")
    targets_p.set_defaults(handler=_cmd_targets)

    keygen_p = sub.add_parser("keygen", help="Generate an ECDSA deploy key pair")
    keygen_p.set_defaults(handler=_cmd_keygen)

    pubkey_p = sub.add_parser(
        "pubkey", help="Print the OpenSSH public key of a PEM private key"
    )
    pubkey_p.add_argument("key_file", help="PEM private key file")
    pubkey_p.set_defaults(handler=_cmd_pubkey)

    init_p = sub.add_parser("init-config", help="Write a starter config file")
    init_p.add_argument("--path", help="Where to write it")
    init_p.set_defaults(handler=_cmd_init_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        mode="cli",
        debug=args.debug,
        log_file=args.log_file,
        debug_format=args.debug_format,
    )
    try:
        return asyncio.run(args.handler(args))
    except (SyncError, ValueError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
