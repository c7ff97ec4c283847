"""Command-line interface for PrefixSmith."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import ConfigStore, Settings
from .engine.bridge import NodeBridge
from .engine.differ import TextDiffer
from .engine.transformer import Transformer
from .errors import BridgeError
from .extension import COMMAND_NAME, COMMAND_TARGET, activate, deactivate
from .host.base import Range
from .host.memory import create_memory_host


def main(argv: Optional[list[str]] = None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="PrefixSmith - vendor prefixes for CSS, SCSS and HTML documents"
    )
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Prefix a file in place")
    run_parser.add_argument("file", type=Path, help="File to prefix")
    run_parser.add_argument(
        "--scope", help="Grammar scope (default: guessed from the extension)"
    )
    run_parser.add_argument(
        "--selection",
        metavar="START:END",
        help="Only prefix the characters between these offsets",
    )
    run_parser.add_argument(
        "--browsers", nargs="+", metavar="QUERY", help="Browserslist queries"
    )
    run_parser.add_argument(
        "--no-cascade", action="store_true", help="Disable cascade formatting"
    )
    run_parser.add_argument(
        "--no-remove", action="store_true", help="Keep outdated prefixes"
    )
    run_parser.add_argument(
        "--html", action="store_true", help="Process HTML documents structurally"
    )
    run_parser.add_argument(
        "--on-save",
        action="store_true",
        help="Go through the save hook instead of the command",
    )
    run_parser.add_argument(
        "--check",
        action="store_true",
        help="Don't write; exit 2 and print a diff if the file would change",
    )

    # Config command
    subparsers.add_parser("config", help="Print the effective configuration")

    # Install-helper command
    install_parser = subparsers.add_parser(
        "install-helper", help="Install the npm packages the prefixer helper needs"
    )
    install_parser.add_argument("--npm", default="npm", help="npm executable (default: npm)")

    args = parser.parse_args(argv)

    settings = Settings()
    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "run":
        try:
            selection = parse_selection(args.selection) if args.selection else None
        except ValueError as e:
            parser.error(str(e))
        overrides = {}
        if args.browsers:
            overrides["browsers"] = args.browsers
        if args.no_cascade:
            overrides["cascade"] = False
        if args.no_remove:
            overrides["remove"] = False
        if args.html:
            overrides["html_enabled"] = True
        code = asyncio.run(
            run_file(
                args.file,
                settings.model_copy(update=overrides),
                scope_name=args.scope,
                selection=selection,
                on_save=args.on_save,
                check=args.check,
            )
        )
        sys.exit(code)
    elif args.command == "config":
        print(json.dumps(settings.model_dump(mode="json"), indent=2))
    elif args.command == "install-helper":
        sys.exit(asyncio.run(install_helper(settings, npm_path=args.npm)))
    else:
        parser.print_help()
        sys.exit(1)


def parse_selection(value: str) -> tuple[int, int]:
    """Parse ``START:END`` character offsets."""
    try:
        start, end = (int(part) for part in value.split(":"))
    except ValueError:
        raise ValueError(f"Invalid selection {value!r}, expected START:END") from None
    if start < 0 or end < start:
        raise ValueError(f"Invalid selection {value!r}, expected 0 <= START <= END")
    return start, end


async def install_helper(settings: Settings, npm_path: str = "npm") -> int:
    """Install the helper's npm packages; returns the process exit code."""
    bridge = NodeBridge(settings.node_path, settings.script_path)
    try:
        await bridge.install(npm_path)
    except BridgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Installed prefixer helper packages in {bridge.script_path.parent}")
    return 0


async def run_file(
    path: Path,
    settings: Settings,
    scope_name: Optional[str] = None,
    selection: Optional[tuple[int, int]] = None,
    on_save: bool = False,
    check: bool = False,
    transformer: Optional[Transformer] = None,
) -> int:
    """
    Open ``path`` in a headless editor, prefix it and save it.

    Returns:
        Process exit code: 0 on success, 1 on failure, 2 when ``check``
        finds that the file would change
    """
    if not path.is_file():
        print(f"Error: {path} does not exist", file=sys.stderr)
        return 1

    host = create_memory_host()
    config = ConfigStore(settings)
    if on_save:
        config.update(run_on_save=True)
    activation = activate(host, config, transformer=transformer)

    editor = host.workspace.open(path, scope_name)
    buffer = editor.get_buffer()
    original = buffer.get_text()
    if selection is not None:
        start, end = selection
        editor.set_selected_buffer_range(
            Range(buffer.position_for_index(start), buffer.position_for_index(end))
        )

    try:
        if on_save:
            if check:
                # The save hook only runs as part of a save; keep the write off
                buffer.path = None
            await buffer.save()
        else:
            await host.commands.dispatch(COMMAND_TARGET, COMMAND_NAME)
    finally:
        deactivate(activation)

    notifications = host.notifications
    for notification in notifications.notifications:
        stream = sys.stderr if notification.type == "error" else sys.stdout
        print(f"{notification.type.upper()}: {notification.detail}", file=stream)
    if notifications.of_type("error"):
        return 1

    diff = TextDiffer().diff(original, buffer.get_text())
    if check:
        if diff.changed:
            print(diff.to_diff_string(label=str(path)), end="")
            return 2
        return 0

    if diff.changed and not on_save:
        await buffer.save()
    print(f"{path}: {'prefixed' if diff.changed else 'unchanged'}")
    return 0


if __name__ == "__main__":
    main()
