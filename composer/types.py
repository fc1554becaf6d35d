"""
Composer -- Shared Types

Value types passed between the slot model, the fragment merger,
the compositor and the assembly controller. Wire records live in
composer.models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from composer.models import Module, ModuleType, Source

# ---------------------------------------------------------------------------
# Slot registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SlotSpec:
    """Static description of one slot."""

    type: ModuleType
    label: str
    multi: bool
    tag: str
    style: str = ""


SLOT_SPECS: dict[str, SlotSpec] = {
    "HEADER": SlotSpec(type="HEADER", label="Header", multi=False, tag="header"),
    "BODY": SlotSpec(type="BODY", label="Body", multi=True, tag="main", style="flex: 1;"),
    "FOOTER": SlotSpec(type="FOOTER", label="Footer", multi=False, tag="footer", style="margin-top: auto;"),
}


def slot_spec(module_type: str) -> SlotSpec:
    """Look up a slot by name, case-insensitive. Raises ValueError for unknown slots."""
    key = module_type.upper()
    if key not in SLOT_SPECS:
        raise ValueError(f"Unknown module type: {module_type!r} (expected HEADER, BODY or FOOTER)")
    return SLOT_SPECS[key]


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class RenderedFragment:
    """Parsed output of one module's HTML endpoint."""

    body_html: str = ""
    styles: list[str] = field(default_factory=list)


@dataclass
class MergedSlot:
    """Concatenated html and css for every module of one slot, in order."""

    html: str = ""
    css: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.html


@dataclass
class Composition:
    """One preview pass over all three slots."""

    header: MergedSlot = field(default_factory=MergedSlot)
    body: MergedSlot = field(default_factory=MergedSlot)
    footer: MergedSlot = field(default_factory=MergedSlot)
    module_ids: tuple[int, ...] = ()

    def slot(self, module_type: str) -> MergedSlot:
        return {"HEADER": self.header, "BODY": self.body, "FOOTER": self.footer}[module_type.upper()]


@dataclass(frozen=True)
class SourceOption:
    """How a source is presented in the picker for one slot."""

    source: Source
    already_assigned: bool
    disabled: bool

    @property
    def selectable(self) -> bool:
        return not self.disabled


__all__ = [
    "Composition",
    "MergedSlot",
    "Module",
    "ModuleType",
    "RenderedFragment",
    "SLOT_SPECS",
    "SlotSpec",
    "Source",
    "SourceOption",
    "slot_spec",
]
