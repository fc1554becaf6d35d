"""
Composer -- Assembly Layer

Sits between the pure pieces (slot model, fragment merger, compositor)
and the outside world (the module registry API). Coordinates the
lifecycle of one notebook's module assignment.

Operations: load, assign, unassign, preview, download_index

Every mutation is followed by a full reload; local state is never
patched. Reloads carry a sequence number so a slow response cannot
overwrite a newer one, and nothing is written after close().
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from composer.fragments import fetch_and_merge
from composer.models import Module, Source
from composer.registry import ApiError, ModuleRegistry
from composer.slots import SlotModel, html_sources
from composer.types import SLOT_SPECS, Composition, SourceOption, slot_spec

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]

_REQUEST_ERRORS = (ApiError, ValidationError)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SlotBusy(Exception):
    """A mutation on this slot is already in flight."""

    pass


class DownloadInProgress(Exception):
    """An index download for this notebook is already running."""

    pass


class AssemblyClosed(Exception):
    """The assembly was closed; no further operations are accepted."""

    pass


# ---------------------------------------------------------------------------
# Assembly class
# ---------------------------------------------------------------------------


class ModuleAssembly:
    """
    Client-side state for one notebook's HEADER/BODY/FOOTER modules.
    Coordinates registry calls, slot model and preview pass.
    """

    def __init__(self, registry: ModuleRegistry, notebook_id: int, notify: Notifier | None = None):
        self._registry = registry
        self.notebook_id = notebook_id
        self._notify = notify

        self.slots = SlotModel()
        self.sources: list[Source] = []
        self.title = ""
        self.loaded = False

        # Slots with a mutation in flight. Different slots may overlap.
        self.assigning: set[str] = set()
        self.downloading = False

        self._load_seq = 0
        self._closed = False

    # -- helpers --

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise AssemblyClosed(self.notebook_id)

    def _report(self, message: str) -> None:
        if self._notify is not None and not self._closed:
            self._notify(message)

    def modules_of_type(self, module_type: str) -> list[Module]:
        return self.slots.modules_of_type(module_type)

    def source_options(self, module_type: str) -> list[SourceOption]:
        return self.slots.source_options(module_type, self.sources)

    # -- load --

    async def load(self) -> bool:
        """
        Fetch modules, HTML sources and title together.
        Returns True if the result was committed to state.
        """
        self._check_open()
        self._load_seq += 1
        seq = self._load_seq

        try:
            modules, sources, title = await asyncio.gather(
                self._registry.list(self.notebook_id),
                self._registry.list_sources(self.notebook_id),
                self._registry.get_title(self.notebook_id),
            )
        except _REQUEST_ERRORS as e:
            logger.warning("assembly: failed to load notebook %s: %s", self.notebook_id, e)
            if seq == self._load_seq:
                self._report(f"Could not load modules: {e}")
            return False

        if self._closed:
            logger.debug("assembly: closed, dropping load %d", seq)
            return False
        if seq != self._load_seq:
            logger.debug("assembly: dropping stale load %d (latest %d)", seq, self._load_seq)
            return False

        self.slots = self.slots.replace(modules)
        self.sources = html_sources(sources)
        self.title = title
        self.loaded = True
        return True

    # -- mutations --

    def _begin(self, module_type: str) -> str:
        self._check_open()
        key = slot_spec(module_type).type
        if key in self.assigning:
            raise SlotBusy(key)
        self.assigning.add(key)
        return key

    async def assign(self, module_type: str, source_id: int) -> bool:
        """
        Bind a source to a slot, then reload.

        Re-binding the source already held by HEADER/FOOTER is a no-op.
        Returns False (and notifies) when the request fails.
        """
        spec = slot_spec(module_type)
        if not spec.multi and self.slots.is_bound(spec.type, source_id):
            logger.info("assembly: source %s already bound to %s", source_id, spec.type)
            return False

        key = self._begin(spec.type)
        try:
            await self._registry.assign(self.notebook_id, key, source_id)
            if not self._closed:
                await self.load()
            return True
        except _REQUEST_ERRORS as e:
            logger.warning("assembly: assign %s -> %s failed: %s", source_id, key, e)
            self._report(f"Could not assign source {source_id} to {spec.label}: {e}")
            return False
        finally:
            self.assigning.discard(key)

    async def unassign(self, module_type: str, module_id: int | None = None) -> bool:
        """
        Remove one module (module_id given) or clear the slot, then reload.
        Returns False (and notifies) when the request fails.
        """
        spec = slot_spec(module_type)
        key = self._begin(spec.type)
        try:
            await self._registry.unassign(self.notebook_id, key, module_id)
            if not self._closed:
                await self.load()
            return True
        except _REQUEST_ERRORS as e:
            logger.warning("assembly: unassign %s module=%s failed: %s", key, module_id, e)
            self._report(f"Could not remove from {spec.label}: {e}")
            return False
        finally:
            self.assigning.discard(key)

    # -- preview --

    async def preview(self) -> Composition | None:
        """
        Fetch and merge every slot of the current module list.

        Returns None if the module list changed while fetching, or the
        assembly was closed; the result would describe stale state.
        """
        self._check_open()
        slots = self.slots
        identity = slots.identity()

        merged = {}
        for key in SLOT_SPECS:
            merged[key] = await fetch_and_merge(slots.modules_of_type(key), self._registry.fetch_fragment)

        if self._closed or self.slots.identity() != identity:
            logger.debug("assembly: discarding preview for %s", identity)
            return None

        return Composition(
            header=merged["HEADER"],
            body=merged["BODY"],
            footer=merged["FOOTER"],
            module_ids=identity,
        )

    # -- export --

    async def download_index(self, dest_dir: Path | str = ".") -> Path | None:
        """
        Download the server-built index.html.
        Returns the file path, or None (after notifying) on failure.
        """
        self._check_open()
        if self.downloading:
            raise DownloadInProgress(self.notebook_id)

        self.downloading = True
        try:
            return await self._registry.download_index(self.notebook_id, dest_dir)
        except (ApiError, OSError) as e:
            logger.warning("assembly: index download for %s failed: %s", self.notebook_id, e)
            self._report(f"Could not download index: {e}")
            return None
        finally:
            self.downloading = False

    # -- lifecycle --

    def close(self) -> None:
        """Stop accepting work. Responses still in flight are dropped."""
        self._closed = True
