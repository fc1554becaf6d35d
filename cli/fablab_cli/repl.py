"""REPL for FabLab CLI."""

from __future__ import annotations

import asyncio
import webbrowser
from pathlib import Path

from composer.assembly import DownloadInProgress, ModuleAssembly, SlotBusy
from composer.compositor import render_preview_page
from composer.registry import ModuleRegistry
from composer.types import SLOT_SPECS, slot_spec

from fablab_cli.config import Config


def format_slots(assembly: ModuleAssembly) -> list[str]:
    """Lines describing every slot and its modules."""
    lines = []
    for key, spec in SLOT_SPECS.items():
        modules = assembly.modules_of_type(key)
        lines.append(f"  {spec.label} [{assembly.slots.status(key)}]")
        for i, mod in enumerate(modules, 1):
            prefix = f"{i}. " if spec.multi else ""
            lines.append(f"    {prefix}{mod.source_name} ({mod.source_type}) #{mod.id}")
    return lines


def format_options(assembly: ModuleAssembly, module_type: str) -> list[str]:
    """Lines for the source picker of one slot."""
    options = assembly.source_options(module_type)
    if not options:
        return ["  No HTML sources. Upload HTML files to the notebook first."]

    lines = []
    for opt in options:
        if opt.disabled:
            marker = "[x]"
        elif opt.already_assigned:
            marker = "[+]"
        else:
            marker = "[ ]"
        suffix = " (already added)" if opt.already_assigned and not opt.disabled else ""
        lines.append(f"  {marker} {opt.source.id}: {opt.source.name}{suffix}")
    return lines


async def write_preview(assembly: ModuleAssembly, dest_dir: Path) -> Path | None:
    """Compose the preview and write it as a standalone page."""
    composition = await assembly.preview()
    if composition is None:
        return None
    page = render_preview_page(composition, title=assembly.title or "Preview")
    dest_dir.mkdir(parents=True, exist_ok=True)
    target = dest_dir / f"preview-{assembly.notebook_id}.html"
    target.write_text(page, encoding="utf-8")
    return target


class Repl:
    """Interactive module editor for one notebook."""

    def __init__(self, config: Config, notebook_id: int):
        self.config = config
        self.registry = ModuleRegistry(config.api_url, config.token, kind=config.kind)
        self.assembly = ModuleAssembly(self.registry, notebook_id, notify=self._notify)
        self.running = True
        self.last_preview: Path | None = None
        self.last_preview_ids: tuple[int, ...] = ()
        self._runner = asyncio.Runner()

    def _notify(self, message: str):
        print(f"  \033[31m!\033[0m {message}")

    def _run(self, coro):
        return self._runner.run(coro)

    def start(self):
        """Start the REPL."""
        try:
            if self._run(self.assembly.load()):
                print(f"fablab > {self.assembly.title} (notebook {self.assembly.notebook_id})")
                for line in format_slots(self.assembly):
                    print(line)
            else:
                print("fablab > Modules could not be loaded. Use /reload to retry.")

            while self.running:
                try:
                    line = input("fablab > ").strip()

                    if not line:
                        continue

                    if line.startswith("/"):
                        self._handle_command(line)
                    else:
                        print("  Commands start with '/'. Type /help.")

                except (EOFError, KeyboardInterrupt):
                    print()
                    break
                except (SlotBusy, DownloadInProgress) as e:
                    print(f"  Busy: {e}")
        finally:
            self.assembly.close()
            self._run(self.registry.aclose())
            self._runner.close()

    def _handle_command(self, line: str):
        """Handle REPL commands."""
        parts = line.split()
        cmd = parts[0].lower()
        args = parts[1:]

        if cmd == "/quit":
            self.running = False
            print("Goodbye.")
        elif cmd == "/list":
            for out in format_slots(self.assembly):
                print(out)
        elif cmd == "/reload":
            if self._run(self.assembly.load()):
                print("  Reloaded.")
        elif cmd == "/sources":
            self._show_sources(args)
        elif cmd == "/assign":
            self._assign(args)
        elif cmd == "/remove":
            self._remove(args)
        elif cmd == "/clear":
            self._clear(args)
        elif cmd == "/link":
            self._link(args)
        elif cmd == "/preview":
            self._preview()
        elif cmd == "/open":
            self._open_preview()
        elif cmd == "/download":
            self._download()
        elif cmd == "/help":
            self._show_help()
        else:
            print(f"Unknown command: {cmd}")
            print("Type /help for available commands.")

    def _slot_arg(self, args: list[str], usage: str) -> str | None:
        if not args:
            print(f"Usage: {usage}")
            return None
        try:
            return slot_spec(args[0]).type
        except ValueError as e:
            print(f"  {e}")
            return None

    def _show_sources(self, args: list[str]):
        key = self._slot_arg(args, "/sources <header|body|footer>")
        if key is None:
            return
        print(f"  Sources for {SLOT_SPECS[key].label}:")
        for out in format_options(self.assembly, key):
            print(out)

    def _assign(self, args: list[str]):
        key = self._slot_arg(args, "/assign <header|body|footer> <source_id>")
        if key is None:
            return
        if len(args) < 2 or not args[1].isdigit():
            print("Usage: /assign <header|body|footer> <source_id>")
            return

        source_id = int(args[1])
        if source_id not in {s.id for s in self.assembly.sources}:
            print(f"  No HTML source with id {source_id}. Use /sources {key.lower()}.")
            return
        if self.assembly.slots.is_bound(key, source_id) and not SLOT_SPECS[key].multi:
            print(f"  Source {source_id} is already the {SLOT_SPECS[key].label}.")
            return

        if self._run(self.assembly.assign(key, source_id)):
            for out in format_slots(self.assembly):
                print(out)

    def _remove(self, args: list[str]):
        """Remove the n-th BODY module (1-based)."""
        if not args or not args[0].isdigit():
            print("Usage: /remove <n>   (n as listed under Body)")
            return
        body = self.assembly.modules_of_type("BODY")
        idx = int(args[0]) - 1
        if not 0 <= idx < len(body):
            print("  Invalid index. Use /list to see Body modules.")
            return
        if self._run(self.assembly.unassign("BODY", body[idx].id)):
            print(f"  Removed {body[idx].source_name}.")

    def _clear(self, args: list[str]):
        key = self._slot_arg(args, "/clear <header|body|footer>")
        if key is None:
            return
        if not self.assembly.slots.has_assignment(key):
            print(f"  {SLOT_SPECS[key].label} is already empty.")
            return
        if self._run(self.assembly.unassign(key)):
            print(f"  {SLOT_SPECS[key].label} cleared.")

    def _link(self, args: list[str]):
        key = self._slot_arg(args, "/link <header|body|footer> [n]")
        if key is None:
            return
        modules = self.assembly.modules_of_type(key)
        idx = int(args[1]) - 1 if len(args) > 1 and args[1].isdigit() else 0
        if not 0 <= idx < len(modules):
            print(f"  Nothing assigned at that position in {SLOT_SPECS[key].label}.")
            return
        url = self.registry.resolve_url(modules[idx].source_file_path)
        print(f"  {url or '(no file path)'}")

    def _preview(self):
        if not len(self.assembly.slots):
            print("  No modules assigned yet.")
            return
        try:
            target = self._run(write_preview(self.assembly, self.config.download_dir))
        except OSError as e:
            print(f"  Error: could not write preview: {e}")
            return
        if target is None:
            print("  Modules changed while rendering. Run /preview again.")
            return
        self.last_preview = target
        self.last_preview_ids = self.assembly.slots.identity()
        print(f"  Preview written to {target}")

    def _open_preview(self):
        # Re-render when the module list moved on since the last /preview
        if self.last_preview is None or self.last_preview_ids != self.assembly.slots.identity():
            self.last_preview = None
            self._preview()
        if self.last_preview is not None:
            webbrowser.open(self.last_preview.resolve().as_uri())

    def _download(self):
        print("  Generating index.html...")
        target = self._run(self.assembly.download_index(self.config.download_dir))
        if target is not None:
            print(f"  Saved {target}")

    def _show_help(self):
        """Show help message."""
        print("""
  REPL Commands:
    /list                    - Show Header, Body and Footer modules
    /sources <slot>          - Show HTML sources for a slot
    /assign <slot> <id>      - Assign a source (replaces Header/Footer)
    /remove <n>              - Remove the n-th Body module
    /clear <slot>            - Unassign every module of a slot
    /link <slot> [n]         - Print the source file URL of a module
    /preview                 - Write the composed preview to a file
    /open                    - Open the preview in a browser
    /download                - Download the generated index.html
    /reload                  - Reload modules from the server
    /help                    - Show this help
    /quit                    - Exit REPL
""")
