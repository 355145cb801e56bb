"""Command line surface for nodeswap."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Callable, Mapping, Sequence

from nodeswap_core import Event, NodeswapApp, SettingsResolver, UserDirs
from nodeswap_core.catalog import group_by_lts
from nodeswap_core.errors import NodeswapError
from nodeswap_core.installer import InstallState
from nodeswap_core.transport import TRANSPORT_NAMES, Transport

CLI_VERSION = "0.1.0"

_TAG_COMMANDS = ("install", "use", "default", "remove")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nodeswap",
        description="Install several runtime versions side by side and switch between them.",
    )
    parser.add_argument("--version", action="version", version=f"nodeswap v{CLI_VERSION}")
    parser.add_argument("--root", help="store root (default: per-user data directory)")
    parser.add_argument("--mirror", help="release host, e.g. https://nodejs.org")
    parser.add_argument("--platform", help="platform tag: win-x64, win-x86 or win-arm64")
    parser.add_argument("--timeout", help="network timeout in seconds")
    parser.add_argument("--transport", choices=TRANSPORT_NAMES, help="HTTP transport to use")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="increase log verbosity (repeat for debug output)",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = False

    install = subparsers.add_parser("install", help="download and install a version")
    install.add_argument("tag", nargs="?", help="version tag: 20, v20.11, 20.11.1, lts, latest")
    install.add_argument("--use", action="store_true", help="activate the version once installed")
    install.set_defaults(func=_handle_install)

    use = subparsers.add_parser("use", help="point the current link at an installed version")
    use.add_argument("tag", nargs="?", help="installed version tag")
    use.set_defaults(func=_handle_use)

    default = subparsers.add_parser("default", help="record a default version and activate it")
    default.add_argument("tag", nargs="?", help="installed version tag")
    default.set_defaults(func=_handle_default)

    remove = subparsers.add_parser("remove", help="delete an installed version")
    remove.add_argument("tag", nargs="?", help="installed version tag")
    remove.set_defaults(func=_handle_remove)

    list_cmd = subparsers.add_parser("list", help="list installed or available versions")
    list_cmd.add_argument("--available", action="store_true", help="show releases from the catalog")
    list_cmd.add_argument("--lts", action="store_true", help="with --available, only LTS releases")
    list_cmd.add_argument("--limit", type=int, default=10, help="releases per group with --available")
    list_cmd.set_defaults(func=_handle_list)

    current = subparsers.add_parser("current", help="show the active version")
    current.set_defaults(func=_handle_current)

    help_cmd = subparsers.add_parser("help", help="show this help")
    help_cmd.set_defaults(func=None)

    version_cmd = subparsers.add_parser("version", help="show the nodeswap version")
    version_cmd.set_defaults(func=_handle_version)

    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    transport: Transport | None = None,
    env: Mapping[str, str] | None = None,
    user_dirs: UserDirs | None = None,
) -> int:
    parser = build_parser()
    tokens = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        args = parser.parse_args(tokens)
    except SystemExit as exc:
        return exc.code or 0

    _configure_logging(args.verbose)

    handler: Callable[..., int] | None = getattr(args, "func", None)
    if args.command is None or handler is None:
        parser.print_help()
        return 0
    if args.command == "version":
        return handler(None, args)

    if args.command in _TAG_COMMANDS and not (args.tag or "").strip():
        print(f"[nodeswap:{args.command}] a version tag is required, e.g. nodeswap {args.command} 20")
        return 2

    env = os.environ if env is None else env
    try:
        settings = SettingsResolver(
            user_dirs=user_dirs,
            cli_overrides={
                "root": args.root,
                "mirror": args.mirror,
                "platform": args.platform,
                "timeout": args.timeout,
                "transport": args.transport,
            },
            env=env,
        ).resolve()
        app = NodeswapApp(settings, transport=transport)
        return handler(app, args, env=env)
    except NodeswapError as exc:
        print(f"[nodeswap:{args.command}] error: {exc.format()}")
        return 1
    except (OSError, ValueError) as exc:
        print(f"[nodeswap:{args.command}] error: {exc}")
        return 1


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _describe(version: str, platform: str) -> str:
    return f"{version} ({platform})"


def _print_progress(event: Event) -> None:
    state = event.payload["state"]
    if state in (InstallState.FETCHING, InstallState.EXTRACTING):
        label = _describe(event.payload["version"], event.payload["platform"])
        print(f"[nodeswap:install] {state.value} {label}")


def _handle_install(app: NodeswapApp, args: argparse.Namespace, **_: object) -> int:
    app.events.on("install.state", _print_progress)
    installed = app.install(args.tag, activate=bool(args.use))
    label = _describe(installed.version, installed.platform)
    print(f"[nodeswap:install] installed {label}")
    print(f"[nodeswap:install] dir={installed.install_path}")
    if args.use:
        print(f"[nodeswap:install] now using {label}")
    return 0


def _handle_use(app: NodeswapApp, args: argparse.Namespace, *, env: Mapping[str, str]) -> int:
    installed = app.use(args.tag)
    print(f"[nodeswap:use] now using {_describe(installed.version, installed.platform)}")
    _print_path_hint(app, env)
    return 0


def _handle_default(app: NodeswapApp, args: argparse.Namespace, *, env: Mapping[str, str]) -> int:
    installed = app.set_default(args.tag)
    label = _describe(installed.version, installed.platform)
    print(f"[nodeswap:default] default set to {label}")
    print(f"[nodeswap:default] now using {label}")
    _print_path_hint(app, env)
    return 0


def _handle_remove(app: NodeswapApp, args: argparse.Namespace, **_: object) -> int:
    installed, cleared = app.remove(args.tag)
    print(f"[nodeswap:remove] removed {_describe(installed.version, installed.platform)}")
    if cleared:
        print("[nodeswap:remove] it was the active version; no version is active now")
    return 0


def _handle_list(app: NodeswapApp, args: argparse.Namespace, **_: object) -> int:
    if args.available:
        return _list_available(app, lts_only=bool(args.lts), limit=max(int(args.limit), 1))
    summaries = app.list_installed()
    if not summaries:
        print("[nodeswap:list] no versions installed")
        return 0
    for summary in summaries:
        marker = "*" if summary.active else " "
        suffix = " [default]" if summary.default else ""
        item = summary.installed
        print(f"  {marker} {_describe(item.version, item.platform)}{suffix}")
    return 0


def _list_available(app: NodeswapApp, *, lts_only: bool, limit: int) -> int:
    groups = group_by_lts(app.list_available())
    installed = {(item.installed.version, item.installed.platform) for item in app.list_installed()}
    sections = [("LTS", groups["lts"])]
    if not lts_only:
        sections.append(("Current", groups["current"]))
    for title, entries in sections:
        print(f"{title}:")
        if not entries:
            print("  (none)")
        for entry in entries[:limit]:
            flags = []
            if entry.lts:
                flags.append(entry.lts)
            if (entry.version, app.platform) in installed:
                flags.append("installed")
            suffix = f"  [{', '.join(flags)}]" if flags else ""
            print(f"  {entry.version}{suffix}")
    return 0


def _handle_current(app: NodeswapApp, args: argparse.Namespace, **_: object) -> int:
    active = app.current()
    if active is None:
        print("no active version")
        return 0
    print(f"version={active.version} platform={active.platform}")
    return 0


def _handle_version(app: NodeswapApp | None, args: argparse.Namespace, **_: object) -> int:
    print(f"nodeswap v{CLI_VERSION}")
    return 0


def _print_path_hint(app: NodeswapApp, env: Mapping[str, str]) -> None:
    link = str(app.layout.current_link)
    entries = [item for item in env.get("PATH", "").split(os.pathsep) if item]
    if link not in entries:
        print(f"[nodeswap] add {link} to PATH to run the active version")
