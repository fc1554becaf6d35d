"""
Composer -- HEADER/BODY/FOOTER module assembly for notebooks.

Components:
  registry    -- async client for the module/source endpoints
  slots       -- per-slot view of the module list
  fragments   -- sequential fetch + <style>/<body> merge per slot
  compositor  -- preview layout (pure)
  assembly    -- load / mutate / reload / preview / export
  drafts      -- tools not yet saved for the first time
"""

from composer.assembly import AssemblyClosed, DownloadInProgress, ModuleAssembly, SlotBusy
from composer.compositor import compose_preview, render_preview_page
from composer.drafts import DraftStore
from composer.fragments import extract_fragment, fetch_and_merge, merge_fragments
from composer.models import MODULE_TYPES, Module, ModuleType, Source
from composer.registry import ApiError, ModuleRegistry
from composer.slots import SlotModel, html_sources

__all__ = [
    "MODULE_TYPES",
    "Module",
    "ModuleType",
    "Source",
    "ApiError",
    "ModuleRegistry",
    "SlotModel",
    "html_sources",
    "extract_fragment",
    "merge_fragments",
    "fetch_and_merge",
    "compose_preview",
    "render_preview_page",
    "ModuleAssembly",
    "SlotBusy",
    "DownloadInProgress",
    "AssemblyClosed",
    "DraftStore",
]
