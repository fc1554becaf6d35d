"""
Composer test configuration.

The registry talks to FakeBackend through httpx.MockTransport, so no
network or running server is needed.
"""

from __future__ import annotations

import pytest
import pytest_asyncio

from composer.assembly import ModuleAssembly
from composer.tests.fake_backend import NOTEBOOK_ID, FakeBackend, fragment_doc, make_registry


@pytest.fixture
def backend():
    """Backend with three HTML sources and one PDF on notebook 7."""
    fake = FakeBackend()
    fake.titles[NOTEBOOK_ID] = "Landing Page"
    fake.add_source(NOTEBOOK_ID, 1, "Hero", fragment_doc("<section>hero</section>", ".hero { color: red; }"))
    fake.add_source(NOTEBOOK_ID, 2, "CTA", fragment_doc("<a class='cta'>Go</a>", ".cta { color: blue; }"))
    fake.add_source(NOTEBOOK_ID, 3, "Nav", fragment_doc("<nav>menu</nav>", "nav { display: flex; }"))
    fake.add_source(NOTEBOOK_ID, 4, "Brochure", type="pdf")
    return fake


@pytest_asyncio.fixture
async def registry(backend):
    reg = make_registry(backend)
    yield reg
    await reg.aclose()


@pytest.fixture
def notices():
    """Messages passed to the assembly's notify callback."""
    return []


@pytest.fixture
def assembly(registry, notices):
    return ModuleAssembly(registry, NOTEBOOK_ID, notify=notices.append)
