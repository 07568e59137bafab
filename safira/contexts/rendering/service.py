"""
Rendering Service

Facade over the whole pipeline: validate -> resolve template -> render HTML
-> rasterize. Owns the lifecycle of the shared rendering engine.

Lifecycle:
    UNINITIALIZED -> INITIALIZING -> READY -> SHUTTING_DOWN -> CLOSED

The engine launches once (single-flight: concurrent first callers await the
same launch). A failed launch or a dead engine drops the service back to
UNINITIALIZED so the next request relaunches. A CLOSED service relaunches
lazily on the next generate().
"""

import asyncio
import os
import time
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, List, Mapping, Optional, Union

from dotenv import load_dotenv

from safira.contexts.intake.cv_data_structure import CVDocument
from safira.contexts.intake.validator import missing_identity_fields, validate_cv_data
from safira.contexts.rendering.logger import (
    _log_debug,
    _log_info,
    _log_warning,
    log_render_result,
    log_render_start,
    log_state_change,
)
from safira.contexts.rendering.rasterizer import DocumentRasterizer, PlaywrightRasterizer
from safira.contexts.templating.html_generator import HTMLGenerator
from safira.contexts.templating.registries import TemplateDescriptor, TemplateRegistry
from safira.exceptions import EngineUnavailableError, RasterizeError, SafiraError, ValidationError

load_dotenv()
MAX_CONCURRENT_RENDERS = int(os.getenv("SAFIRA_MAX_CONCURRENT_RENDERS", "4"))
SHUTDOWN_GRACE_S = float(os.getenv("SAFIRA_SHUTDOWN_GRACE_S", "10"))
DEFAULT_TEMPLATE = os.getenv("SAFIRA_DEFAULT_TEMPLATE", "classic")

# One retry with a fresh browser context on transient export failures
RENDER_ATTEMPTS = 2


class ServiceState(Enum):
    """Lifecycle state of the rendering service."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    SHUTTING_DOWN = "shutting_down"
    CLOSED = "closed"


class RenderingService:
    """
    Entry point for CV generation.

    Construct one per process (or per test) and inject it where needed; the
    rendering engine it owns is shared by all concurrent generate() calls,
    each of which gets an isolated browser context.

    Example:
        async with RenderingService() as service:
            pdf = await service.generate(cv_data, "classic")
    """

    def __init__(
        self,
        template_registry: Optional[TemplateRegistry] = None,
        rasterizer: Optional[DocumentRasterizer] = None,
        max_concurrent: int = MAX_CONCURRENT_RENDERS,
        render_attempts: int = RENDER_ATTEMPTS,
    ):
        """
        Args:
            template_registry: Catalog to resolve templates against (bundled catalog when None)
            rasterizer: HTML -> PDF engine (headless Chromium when None)
            max_concurrent: Upper bound on simultaneous rasterizations
            render_attempts: Total rasterization attempts per request (>= 1)
        """
        self.template_registry = template_registry or TemplateRegistry()
        self.html_generator = HTMLGenerator(self.template_registry)
        self.rasterizer = rasterizer or PlaywrightRasterizer()
        self.max_concurrent = max(1, max_concurrent)
        self.render_attempts = max(1, render_attempts)

        self._state = ServiceState.UNINITIALIZED
        self._start_task: Optional[asyncio.Task] = None
        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def in_flight(self) -> int:
        """Number of generate() calls currently queued or rasterizing."""
        return self._in_flight

    def _set_state(self, new_state: ServiceState) -> None:
        if new_state is not self._state:
            log_state_change(self._state, new_state)
            self._state = new_state

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """
        Launch the rendering engine if it is not already running.

        Idempotent and single-flight: concurrent callers share one launch.

        Raises:
            EngineUnavailableError: If the engine fails to launch, or the
                                    service is shutting down
        """
        if self._state is ServiceState.SHUTTING_DOWN:
            raise EngineUnavailableError("Rendering service is shutting down.")
        if self._state is ServiceState.READY:
            if self.rasterizer.is_connected:
                return
            await self._discard_engine()

        if self._start_task is None:
            self._set_state(ServiceState.INITIALIZING)
            self._start_task = asyncio.create_task(self._launch())

        # Shielded so one cancelled caller does not abort the shared launch
        await asyncio.shield(self._start_task)

    async def _launch(self) -> None:
        try:
            await self.rasterizer.launch()
        except BaseException:
            if self._state is ServiceState.INITIALIZING:
                self._set_state(ServiceState.UNINITIALIZED)
            raise
        finally:
            self._start_task = None

        # stop() may have begun while the engine was launching
        if self._state is ServiceState.INITIALIZING:
            self._set_state(ServiceState.READY)

    async def stop(self, grace_seconds: float = SHUTDOWN_GRACE_S) -> None:
        """
        Stop accepting work, wait for in-flight renders, then close the engine.

        Args:
            grace_seconds: How long to wait for in-flight renders before the
                           engine is closed underneath them
        """
        if self._state in (ServiceState.SHUTTING_DOWN, ServiceState.CLOSED):
            return

        self._set_state(ServiceState.SHUTTING_DOWN)

        if self._start_task is not None:
            try:
                await asyncio.shield(self._start_task)
            except EngineUnavailableError as e:
                _log_debug(f"Engine launch failed during shutdown: {e.message}")

        if self._in_flight:
            _log_info(f"Waiting up to {grace_seconds:g}s for {self._in_flight} render(s) in flight")
            try:
                await asyncio.wait_for(self._idle.wait(), timeout=grace_seconds)
            except asyncio.TimeoutError:
                _log_warning(f"Grace period elapsed with {self._in_flight} render(s) still in flight")

        await self.rasterizer.close()
        self._set_state(ServiceState.CLOSED)

    async def __aenter__(self) -> "RenderingService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def _ensure_ready(self) -> None:
        if self._state is ServiceState.SHUTTING_DOWN:
            raise EngineUnavailableError("Rendering service is shutting down.")
        await self.start()

    async def _discard_engine(self) -> None:
        """Forget a dead engine so the next request relaunches it."""
        if self._state is not ServiceState.READY:
            return
        _log_warning(f"{self.rasterizer.name} is no longer connected; it will be relaunched")
        self._set_state(ServiceState.UNINITIALIZED)
        await self.rasterizer.close()

    @asynccontextmanager
    async def _render_slot(self) -> AsyncIterator[None]:
        self._in_flight += 1
        self._idle.clear()
        try:
            async with self._semaphore:
                yield
        finally:
            self._in_flight -= 1
            if not self._in_flight:
                self._idle.set()

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def _prepare(self, cv_data: Union[CVDocument, Mapping[str, Any]], template_id: str):
        """Validate input and resolve the template; never touches the engine."""
        if isinstance(cv_data, CVDocument):
            missing = missing_identity_fields(cv_data.personal_info)
            if missing:
                raise ValidationError(
                    f"First name, last name, and email are required (missing: {', '.join(missing)})"
                )
            cv = cv_data
        else:
            cv = validate_cv_data(cv_data)
        descriptor = self.template_registry.resolve(template_id or DEFAULT_TEMPLATE)
        return cv, descriptor

    async def generate(
        self, cv_data: Union[CVDocument, Mapping[str, Any]], template_id: str = DEFAULT_TEMPLATE
    ) -> bytes:
        """
        Produce the PDF for a CV.

        Args:
            cv_data: Wire-format CV mapping (or an already-built CVDocument)
            template_id: Canonical template id or legacy alias

        Returns:
            Complete PDF bytes (A4, starts with %PDF-)

        Raises:
            ValidationError: Missing data, identity fields, or unknown template
            RenderError: Template binding failed
            RasterizeError: Export failed on every attempt
            EngineUnavailableError: Engine cannot launch, died, or service is shutting down
        """
        if self._state is ServiceState.SHUTTING_DOWN:
            raise EngineUnavailableError("Rendering service is shutting down.")

        cv, descriptor = self._prepare(cv_data, template_id)
        html = self.html_generator.render_document(cv, descriptor)

        start_time = time.time()
        try:
            await self._ensure_ready()
            async with self._render_slot():
                pdf = await self._rasterize_with_retry(html, cv, descriptor)
        except SafiraError as e:
            log_render_result(cv.full_name, descriptor.id, time.time() - start_time, error=e)
            raise

        log_render_result(cv.full_name, descriptor.id, time.time() - start_time, pdf_size=len(pdf))
        return pdf

    async def _rasterize_with_retry(self, html: str, cv: CVDocument, descriptor: TemplateDescriptor) -> bytes:
        for attempt in range(1, self.render_attempts + 1):
            log_render_start(cv.full_name, descriptor.id, attempt)
            try:
                return await self.rasterizer.rasterize(html)
            except RasterizeError as e:
                if attempt == self.render_attempts:
                    raise
                _log_debug(f"Attempt {attempt} failed: {e.message}")
            except EngineUnavailableError:
                await self._discard_engine()
                raise

    async def preview(
        self, cv_data: Union[CVDocument, Mapping[str, Any]], template_id: str = DEFAULT_TEMPLATE
    ) -> str:
        """
        Produce the HTML that generate() would rasterize.

        Does not launch the engine.

        Raises:
            ValidationError: Missing data, identity fields, or unknown template
            RenderError: Template binding failed
            EngineUnavailableError: Service is shutting down
        """
        if self._state is ServiceState.SHUTTING_DOWN:
            raise EngineUnavailableError("Rendering service is shutting down.")

        cv, descriptor = self._prepare(cv_data, template_id)
        return self.html_generator.render_document(cv, descriptor)

    def list_templates(self) -> List[TemplateDescriptor]:
        """Canonical templates in catalog order."""
        return self.template_registry.list()
