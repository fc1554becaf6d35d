"""
Composer Assembly -- Preview Tests

preview() merges every slot of the current module list in assignment
order and hands the result to the compositor.
"""

import asyncio

import pytest

from composer.compositor import compose_preview


class TestPreview:
    @pytest.mark.asyncio
    async def test_body_css_and_html_in_assignment_order(self, assembly):
        await assembly.assign("BODY", 1)
        await assembly.assign("BODY", 2)

        composition = await assembly.preview()
        assert composition.body.css == ".hero { color: red; }\n.cta { color: blue; }"
        assert composition.body.html == '<section>hero</section><a class="cta">Go</a>'

        out = compose_preview(composition)
        assert '<style data-slot="body">.hero { color: red; }\n.cta { color: blue; }</style>' in out
        assert "<header" not in out
        assert "<footer" not in out

    @pytest.mark.asyncio
    async def test_order_survives_latency(self, assembly, backend):
        await assembly.assign("BODY", 1)
        await assembly.assign("BODY", 2)
        first, second = assembly.modules_of_type("BODY")
        backend.delays[first.id] = 0.04

        composition = await assembly.preview()
        assert composition.body.html.index("hero") < composition.body.html.index("Go")
        assert backend.fetch_log == [("start", first.id), ("end", first.id), ("start", second.id), ("end", second.id)]

    @pytest.mark.asyncio
    async def test_all_slots(self, assembly):
        await assembly.assign("HEADER", 3)
        await assembly.assign("BODY", 1)
        await assembly.assign("FOOTER", 2)

        composition = await assembly.preview()
        assert composition.header.html == "<nav>menu</nav>"
        assert composition.footer.css == ".cta { color: blue; }"
        assert composition.module_ids == assembly.slots.identity()

    @pytest.mark.asyncio
    async def test_failing_module_skipped(self, assembly, backend):
        await assembly.assign("BODY", 1)
        await assembly.assign("BODY", 2)
        await assembly.assign("BODY", 3)
        _, broken, _ = assembly.modules_of_type("BODY")
        backend.failing_modules.add(broken.id)

        composition = await assembly.preview()
        assert composition.body.html == "<section>hero</section><nav>menu</nav>"
        assert composition.body.css == ".hero { color: red; }\nnav { display: flex; }"

    @pytest.mark.asyncio
    async def test_empty_assignment(self, assembly, backend):
        await assembly.load()
        composition = await assembly.preview()
        assert compose_preview(composition) == ""
        assert backend.fetch_log == []

    @pytest.mark.asyncio
    async def test_stale_preview_discarded(self, assembly, backend):
        await assembly.assign("BODY", 1)
        (module,) = assembly.modules_of_type("BODY")
        backend.delays[module.id] = 0.05

        pending = asyncio.create_task(assembly.preview())
        await asyncio.sleep(0.01)
        await assembly.assign("FOOTER", 3)

        assert await pending is None

    @pytest.mark.asyncio
    async def test_repeatable(self, assembly):
        await assembly.assign("HEADER", 1)
        await assembly.assign("BODY", 2)
        first = compose_preview(await assembly.preview())
        second = compose_preview(await assembly.preview())
        assert first == second
