"""Main entry point for FabLab CLI."""
from __future__ import annotations

import asyncio
import logging
import sys

from composer.assembly import ModuleAssembly
from composer.drafts import DraftStore, JsonFileStorage
from composer.registry import MODULE_ENDPOINTS, ModuleRegistry

from fablab_cli import __version__
from fablab_cli.config import Config
from fablab_cli.repl import Repl, format_slots, write_preview

COMMANDS = {"modules", "preview", "download", "drafts", "token", "use", "kind", "envs", "forget"}


def print_help():
    """Print help message."""
    print(f"""
FabLab CLI v{__version__}

Usage:
  fablab [options] [command] [args]

Commands:
  modules           List Header, Body and Footer modules
  preview           Write the composed preview page
  download          Download the server-generated index.html
  drafts [list|mark ID|save ID|clear]
                    Manage tools that were never saved
  token VALUE       Store a bearer token for the current API URL
  use ID            Set the default notebook for the current API URL
  kind KIND         Set the endpoint family (rag_multimodal or notebook)
  envs              List configured API environments
  forget [URL]      Remove stored settings for an environment

Options:
  --api-url URL     Override API endpoint (default: http://localhost:8000)
  --notebook ID     Notebook to work on (default: last used)
  -V, --verbose     Log requests and failures
  -h, --help        Show this help
  -v, --version     Show version

Environment:
  FABLAB_API_URL        Override API endpoint (same as --api-url)
  FABLAB_TOKEN          Bearer token (overrides stored token)
  FABLAB_DOWNLOAD_DIR   Where previews and index downloads are written

Examples:
  fablab use 42                    # Remember notebook 42
  fablab                           # Edit modules interactively
  fablab preview --notebook 42     # Write preview-42.html
  fablab download                  # Save index-42.html
""")


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        command: str | None (None for REPL)
        command_args: list[str]
        api_url: str | None
        notebook_id: int | None
        verbose: bool
        show_help: bool
        show_version: bool
    """
    result = {
        "command": None,
        "command_args": [],
        "api_url": None,
        "notebook_id": None,
        "verbose": False,
        "show_help": False,
        "show_version": False,
    }

    i = 0
    while i < len(args):
        arg = args[i]

        if arg == "--api-url":
            if i + 1 < len(args):
                result["api_url"] = args[i + 1]
                i += 1
            else:
                print("Error: --api-url requires a URL")
                sys.exit(1)
        elif arg == "--notebook":
            if i + 1 < len(args) and args[i + 1].isdigit():
                result["notebook_id"] = int(args[i + 1])
                i += 1
            else:
                print("Error: --notebook requires a numeric ID")
                sys.exit(1)
        elif arg in ("--verbose", "-V"):
            result["verbose"] = True
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}")
            print("Run 'fablab --help' for usage.")
            sys.exit(1)
        elif result["command"] is None:
            if arg not in COMMANDS:
                print(f"Unknown command: {arg}")
                print("Run 'fablab --help' for usage.")
                sys.exit(1)
            result["command"] = arg
        else:
            result["command_args"].append(arg)

        i += 1

    return result


def run_drafts(config: Config, args: list[str]) -> int:
    """Handle `fablab drafts ...`."""
    store = DraftStore(JsonFileStorage(config.drafts_file))
    action = args[0] if args else "list"

    if action == "list":
        drafts = store.list_drafts()
        if not drafts:
            print("No unsaved tools.")
        for tool_id in drafts:
            print(f"  {tool_id}")
        return 0

    if action == "clear":
        store.clear()
        print("Draft list cleared.")
        return 0

    if action in ("mark", "save"):
        if len(args) < 2 or not args[1].isdigit():
            print(f"Usage: fablab drafts {action} <tool_id>")
            return 1
        tool_id = int(args[1])
        if action == "mark":
            store.mark_draft(tool_id)
            print(f"Tool {tool_id} marked as unsaved.")
        else:
            store.mark_saved(tool_id)
            print(f"Tool {tool_id} marked as saved.")
        return 0

    print(f"Unknown drafts action: {action}")
    return 1


async def run_once(config: Config, command: str, notebook_id: int) -> int:
    """Run one non-interactive notebook command."""
    registry = ModuleRegistry(config.api_url, config.token, kind=config.kind)
    assembly = ModuleAssembly(registry, notebook_id, notify=lambda msg: print(f"Error: {msg}"))
    try:
        if not await assembly.load():
            return 1

        if command == "modules":
            print(f"{assembly.title} (notebook {notebook_id})")
            for line in format_slots(assembly):
                print(line)
            return 0

        if command == "preview":
            try:
                target = await write_preview(assembly, config.download_dir)
            except OSError as e:
                print(f"Error: could not write preview: {e}")
                return 1
            if target is None:
                print("Error: modules changed while rendering")
                return 1
            print(f"Preview written to {target}")
            return 0

        if command == "download":
            target = await assembly.download_index(config.download_dir)
            if target is None:
                return 1
            print(f"Saved {target}")
            return 0

        return 1
    finally:
        assembly.close()
        await registry.aclose()


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    if args["show_help"]:
        print_help()
        return

    if args["show_version"]:
        print(f"fablab-cli {__version__}")
        return

    logging.basicConfig(
        level=logging.DEBUG if args["verbose"] else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = Config(api_url_override=args["api_url"])
    command = args["command"]
    command_args = args["command_args"]

    if command == "drafts":
        sys.exit(run_drafts(config, command_args))

    if command == "token":
        if not command_args:
            print("Usage: fablab token <value>")
            sys.exit(1)
        config.token = command_args[0]
        print(f"Token saved for {config.api_url}")
        return

    if command == "kind":
        if not command_args or command_args[0] not in MODULE_ENDPOINTS:
            print(f"Usage: fablab kind <{'|'.join(sorted(MODULE_ENDPOINTS))}>")
            sys.exit(1)
        config.kind = command_args[0]
        print(f"Using {config.kind} endpoints on {config.api_url}")
        return

    if command == "envs":
        envs = config.list_environments()
        if not envs:
            print("No environments configured.")
        for env in envs:
            marker = "*" if env["is_current"] else " "
            notebook = env["notebook"] if env["notebook"] is not None else "-"
            print(f"{marker} {env['url']}  kind={env['kind']}  notebook={notebook}")
        return

    if command == "forget":
        url = command_args[0] if command_args else None
        config.clear_environment(url)
        print(f"Forgot settings for {(url or config.api_url).rstrip('/')}")
        return

    if command == "use":
        if not command_args or not command_args[0].isdigit():
            print("Usage: fablab use <notebook_id>")
            sys.exit(1)
        config.default_notebook_id = int(command_args[0])
        print(f"Default notebook set to {config.default_notebook_id}")
        return

    notebook_id = args["notebook_id"] or config.default_notebook_id
    if not notebook_id:
        print("No notebook selected.")
        print("Pass --notebook ID or run 'fablab use ID' first.")
        sys.exit(1)

    if command is not None:
        sys.exit(asyncio.run(run_once(config, command, notebook_id)))

    Repl(config, notebook_id).start()


if __name__ == "__main__":
    main()
