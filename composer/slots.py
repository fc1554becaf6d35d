"""
Composer -- Slot Assignment Model

Derives the per-slot view from the flat module list returned by the
registry. The list is treated as a read-through cache: it is replaced
wholesale after every reload, never patched.

HEADER and FOOTER are single-valued from the UI's point of view.
BODY holds 0..N modules in backend order.
"""

from __future__ import annotations

from collections.abc import Iterable

from composer.models import Module, Source
from composer.types import SLOT_SPECS, SourceOption, slot_spec


class SlotModel:
    """Immutable snapshot of which modules are bound to which slot."""

    def __init__(self, modules: Iterable[Module] = ()):
        self._modules: tuple[Module, ...] = tuple(modules)

    @property
    def modules(self) -> tuple[Module, ...]:
        return self._modules

    def replace(self, modules: Iterable[Module]) -> SlotModel:
        """Return a new model over a freshly loaded list."""
        return SlotModel(modules)

    def modules_of_type(self, module_type: str) -> list[Module]:
        """Modules of one slot, preserving list order."""
        key = slot_spec(module_type).type
        return [m for m in self._modules if m.module_type == key]

    def has_assignment(self, module_type: str) -> bool:
        return len(self.modules_of_type(module_type)) > 0

    def is_bound(self, module_type: str, source_id: int) -> bool:
        return any(m.source_id == source_id for m in self.modules_of_type(module_type))

    def status(self, module_type: str) -> str:
        """Short occupancy label, e.g. 'Unassigned', 'Assigned', '3 assigned'."""
        spec = slot_spec(module_type)
        count = len(self.modules_of_type(module_type))
        if count == 0:
            return "Unassigned"
        if spec.multi:
            return f"{count} assigned"
        return "Assigned"

    def source_options(self, module_type: str, sources: Iterable[Source]) -> list[SourceOption]:
        """
        Picker entries for a slot.

        A source already bound to HEADER/FOOTER is shown disabled (re-selecting
        it would be a no-op). For BODY it is flagged as added but stays
        selectable, so the same fragment can be bound twice.
        """
        spec = slot_spec(module_type)
        options: list[SourceOption] = []
        for source in html_sources(sources):
            bound = self.is_bound(spec.type, source.id)
            options.append(
                SourceOption(
                    source=source,
                    already_assigned=bound,
                    disabled=bound and not spec.multi,
                )
            )
        return options

    def identity(self, module_type: str | None = None) -> tuple[int, ...]:
        """Ids in order; equal identities mean equal merge input."""
        modules = self._modules if module_type is None else self.modules_of_type(module_type)
        return tuple(m.id for m in modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __repr__(self) -> str:
        counts = ", ".join(f"{k}={len(self.modules_of_type(k))}" for k in SLOT_SPECS)
        return f"SlotModel({counts})"


def html_sources(sources: Iterable[Source]) -> list[Source]:
    """Only HTML sources can be assigned to a slot."""
    return [s for s in sources if s.is_html]
