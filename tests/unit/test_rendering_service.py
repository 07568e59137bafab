"""Unit tests for RenderingService lifecycle, retries and concurrency."""

import asyncio

import pytest

from safira.contexts.intake import validate_cv_data
from safira.contexts.rendering import RenderingService, ServiceState
from safira.exceptions import (
    EngineUnavailableError,
    RasterizeError,
    RenderError,
    UnknownTemplateError,
    ValidationError,
)
from tests.conftest import FAKE_PDF, FakeRasterizer


def make_service(rasterizer=None, **kwargs) -> RenderingService:
    return RenderingService(rasterizer=rasterizer or FakeRasterizer(), **kwargs)


@pytest.mark.unit
def test_generate_launches_engine_lazily(sample_cv_data):
    service = make_service()
    assert service.state is ServiceState.UNINITIALIZED

    pdf = asyncio.run(service.generate(sample_cv_data, "classic"))

    assert pdf == FAKE_PDF
    assert service.state is ServiceState.READY
    assert service.rasterizer.launch_count == 1
    assert "Biruh Tesfaye" in service.rasterizer.rasterized[0]


@pytest.mark.unit
def test_generate_accepts_cv_document(sample_cv_data):
    service = make_service()

    pdf = asyncio.run(service.generate(validate_cv_data(sample_cv_data), "teal-sidebar"))

    assert pdf.startswith(b"%PDF-")


@pytest.mark.unit
@pytest.mark.parametrize(
    "cv_data, template_id, error",
    [
        (None, "classic", ValidationError),
        ({"personalInfo": {"firstName": "A", "lastName": "B"}}, "classic", ValidationError),
        ({"personalInfo": {"firstName": "A", "lastName": "B", "email": "a@b.c"}}, "fancy", UnknownTemplateError),
        ({"personalInfo": {"firstName": "A", "lastName": "B", "email": "a@b.c"}, "experience": 7}, "classic", RenderError),
    ],
)
def test_input_errors_never_reach_engine(cv_data, template_id, error):
    """Validation, template and binding errors are raised before the engine is touched."""
    service = make_service()

    with pytest.raises(error):
        asyncio.run(service.generate(cv_data, template_id))

    assert service.rasterizer.launch_count == 0
    assert service.rasterizer.rasterized == []
    assert service.state is ServiceState.UNINITIALIZED


@pytest.mark.unit
def test_default_template_when_none(sample_cv_data):
    service = make_service()

    html = asyncio.run(service.preview(sample_cv_data, None))

    assert 'data-template="classic-teal"' in html


@pytest.mark.unit
def test_retry_once_on_rasterize_error(sample_cv_data):
    service = make_service(FakeRasterizer(failures=1))

    pdf = asyncio.run(service.generate(sample_cv_data, "modern"))

    assert pdf == FAKE_PDF
    assert len(service.rasterizer.rasterized) == 1


@pytest.mark.unit
def test_rasterize_error_after_retries(sample_cv_data):
    service = make_service(FakeRasterizer(failures=2))

    with pytest.raises(RasterizeError):
        asyncio.run(service.generate(sample_cv_data, "modern"))

    assert service.state is ServiceState.READY


@pytest.mark.unit
def test_single_attempt_configuration(sample_cv_data):
    service = make_service(FakeRasterizer(failures=1), render_attempts=1)

    with pytest.raises(RasterizeError):
        asyncio.run(service.generate(sample_cv_data, "modern"))


@pytest.mark.unit
def test_start_is_single_flight():
    """Concurrent first callers share one engine launch."""
    service = make_service()

    async def scenario():
        await asyncio.gather(service.start(), service.start(), service.start())

    asyncio.run(scenario())

    assert service.rasterizer.launch_count == 1
    assert service.state is ServiceState.READY


@pytest.mark.unit
def test_concurrent_generates_share_engine(sample_cv_data):
    service = make_service(FakeRasterizer(delay=0.01), max_concurrent=2)

    async def scenario():
        return await asyncio.gather(*(service.generate(sample_cv_data, "graduate") for _ in range(5)))

    results = asyncio.run(scenario())

    assert results == [FAKE_PDF] * 5
    assert service.rasterizer.launch_count == 1
    assert service.in_flight == 0


@pytest.mark.unit
def test_start_is_idempotent():
    service = make_service()

    async def scenario():
        await service.start()
        await service.start()

    asyncio.run(scenario())

    assert service.rasterizer.launch_count == 1


@pytest.mark.unit
def test_launch_failure_allows_retry(sample_cv_data):
    """A failed launch returns to UNINITIALIZED; the next call launches again."""
    rasterizer = FakeRasterizer(fail_launch=True)
    service = make_service(rasterizer)

    with pytest.raises(EngineUnavailableError):
        asyncio.run(service.generate(sample_cv_data, "classic"))
    assert service.state is ServiceState.UNINITIALIZED

    rasterizer.fail_launch = False
    pdf = asyncio.run(service.generate(sample_cv_data, "classic"))

    assert pdf == FAKE_PDF
    assert rasterizer.launch_count == 2
    assert service.state is ServiceState.READY


@pytest.mark.unit
def test_dead_engine_between_requests_is_relaunched(sample_cv_data):
    rasterizer = FakeRasterizer()
    service = make_service(rasterizer)

    async def scenario():
        await service.generate(sample_cv_data, "classic")
        rasterizer.crash()
        return await service.generate(sample_cv_data, "classic")

    assert asyncio.run(scenario()) == FAKE_PDF
    assert rasterizer.launch_count == 2


@pytest.mark.unit
def test_engine_dying_mid_render_resets_state(sample_cv_data):
    rasterizer = FakeRasterizer(die_on_rasterize=True)
    service = make_service(rasterizer)

    with pytest.raises(EngineUnavailableError):
        asyncio.run(service.generate(sample_cv_data, "classic"))

    assert service.state is ServiceState.UNINITIALIZED
    assert rasterizer.close_count == 1


@pytest.mark.unit
def test_stop_closes_engine(sample_cv_data):
    service = make_service()

    async def scenario():
        await service.generate(sample_cv_data, "classic")
        await service.stop()

    asyncio.run(scenario())

    assert service.state is ServiceState.CLOSED
    assert service.rasterizer.close_count == 1
    assert not service.rasterizer.is_connected


@pytest.mark.unit
def test_stop_without_start():
    service = make_service()

    asyncio.run(service.stop())

    assert service.state is ServiceState.CLOSED
    assert service.rasterizer.launch_count == 0


@pytest.mark.unit
def test_generate_after_close_relaunches(sample_cv_data):
    service = make_service()

    async def scenario():
        await service.start()
        await service.stop()
        return await service.generate(sample_cv_data, "classic")

    assert asyncio.run(scenario()) == FAKE_PDF
    assert service.state is ServiceState.READY
    assert service.rasterizer.launch_count == 2


@pytest.mark.unit
def test_stop_waits_for_in_flight_and_rejects_new_work(sample_cv_data):
    service = make_service(FakeRasterizer(delay=0.05))

    async def scenario():
        await service.start()
        render = asyncio.create_task(service.generate(sample_cv_data, "classic"))
        await asyncio.sleep(0.01)

        stopping = asyncio.create_task(service.stop(grace_seconds=5))
        await asyncio.sleep(0)
        assert service.state is ServiceState.SHUTTING_DOWN

        with pytest.raises(EngineUnavailableError):
            await service.generate(sample_cv_data, "classic")
        with pytest.raises(EngineUnavailableError):
            await service.preview(sample_cv_data, "classic")

        pdf = await render
        await stopping
        return pdf

    assert asyncio.run(scenario()) == FAKE_PDF
    assert service.state is ServiceState.CLOSED


@pytest.mark.unit
def test_preview_does_not_launch_engine(sample_cv_data):
    service = make_service()

    html = asyncio.run(service.preview(sample_cv_data, "blue-header"))

    assert "Biruh Tesfaye" in html
    assert service.rasterizer.launch_count == 0
    assert service.state is ServiceState.UNINITIALIZED


@pytest.mark.unit
def test_preview_matches_rasterized_html(sample_cv_data):
    service = make_service()

    async def scenario():
        html = await service.preview(sample_cv_data, "pink-creative")
        await service.generate(sample_cv_data, "pink-creative")
        return html

    assert asyncio.run(scenario()) == service.rasterizer.rasterized[0]


@pytest.mark.unit
def test_list_templates():
    templates = make_service().list_templates()

    assert len(templates) == 11
    assert templates[0].id == "classic-teal"


@pytest.mark.unit
def test_async_context_manager(sample_cv_data):
    service = make_service()

    async def scenario():
        async with service as running:
            assert running.state is ServiceState.READY
            return await running.generate(sample_cv_data, "classic")

    assert asyncio.run(scenario()) == FAKE_PDF
    assert service.state is ServiceState.CLOSED
