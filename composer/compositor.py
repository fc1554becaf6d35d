"""
Composer -- Preview Compositor

Pure function: Composition -> HTML string.
No IO. Deterministic: same input, same output.

Layout is a static flex column: header, a body region that grows to
fill the remaining height, then the footer pinned to the bottom.
Each slot's CSS goes in a <style> element directly before its content
instead of one merged stylesheet. Cross-slot collisions are reduced,
not eliminated.
"""

from __future__ import annotations

from html import escape as _html_escape

from composer.types import SLOT_SPECS, Composition, MergedSlot, SlotSpec

WRAPPER_STYLE = "min-height: 100vh; display: flex; flex-direction: column;"


def render_slot(spec: SlotSpec, merged: MergedSlot) -> str:
    """
    Render one slot. Returns "" for a slot without html, so an empty slot
    leaves no stray <style> or container element behind.
    """
    if merged.is_empty:
        return ""

    parts: list[str] = []
    if merged.css:
        parts.append(f'<style data-slot="{spec.type.lower()}">{merged.css}</style>')

    style_attr = f' style="{spec.style}"' if spec.style else ""
    parts.append(f'<{spec.tag} id="module-{spec.type.lower()}"{style_attr}>{merged.html}</{spec.tag}>')
    return "".join(parts)


def compose_preview(composition: Composition) -> str:
    """
    Inject the three merged slots into the preview layout.
    Returns "" when every slot is empty.
    """
    slots = [render_slot(spec, composition.slot(key)) for key, spec in SLOT_SPECS.items()]
    inner = "\n".join(s for s in slots if s)
    if not inner:
        return ""
    return f'<div class="modules-preview" style="{WRAPPER_STYLE}">\n{inner}\n</div>'


def render_preview_page(composition: Composition, title: str = "Preview") -> str:
    """Wrap the preview in a standalone document that a browser can open."""
    preview = compose_preview(composition)
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1">\n'
        f"<title>{_html_escape(title)}</title>\n"
        "<style>body { margin: 0; padding: 0; }</style>\n"
        "</head>\n"
        "<body>\n"
        f"{preview}\n"
        "</body>\n"
        "</html>\n"
    )
