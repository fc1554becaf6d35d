"""
Composer -- Fragment Fetcher/Merger

For an ordered list of modules in one slot, fetch each module's rendered
HTML document, pull out its <style> text and <body> markup, and
concatenate them in list order.

Fetches are awaited one after another. Merge order always equals
assignment order, whatever the network latency of each fetch.
A failed fetch is logged and contributes nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from bs4 import BeautifulSoup

from composer.models import Module
from composer.types import MergedSlot, RenderedFragment

logger = logging.getLogger(__name__)

FragmentFetcher = Callable[[int], Awaitable[str]]


def extract_fragment(html: str) -> RenderedFragment:
    """
    Parse one HTML document into its style texts and body inner markup.
    Pure function. No IO.

    html5lib builds the tree the way a browser does: a missing <body> is
    implied, stray head content is moved into it and misnested blocks
    are closed.
    """
    soup = BeautifulSoup(html, "html5lib")

    styles = [style.get_text() for style in soup.find_all("style")]
    body_html = soup.body.decode_contents() if soup.body is not None else ""

    return RenderedFragment(body_html=body_html, styles=styles)


def merge_fragments(fragments: Iterable[RenderedFragment]) -> MergedSlot:
    """Concatenate fragments in order. CSS blocks are newline-separated."""
    html_parts: list[str] = []
    css_parts: list[str] = []
    for fragment in fragments:
        html_parts.append(fragment.body_html)
        css_parts.extend(fragment.styles)
    return MergedSlot(html="".join(html_parts), css="\n".join(css_parts))


async def fetch_and_merge(modules: Iterable[Module], fetch: FragmentFetcher) -> MergedSlot:
    """
    Fetch every module of a slot sequentially and merge the results.

    Never raises for a single failing module: the error is logged and the
    module is skipped. An empty list yields an empty MergedSlot without
    any fetch.
    """
    fragments: list[RenderedFragment] = []

    for module in modules:
        if not module.id:
            continue
        try:
            html = await fetch(module.id)
        except Exception as e:
            logger.warning("fragments: failed to fetch module %s: %s", module.id, e)
            continue
        fragments.append(extract_fragment(html))

    return merge_fragments(fragments)
