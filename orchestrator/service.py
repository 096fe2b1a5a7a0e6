"""Audit request orchestrator: debounce, metadata, cost, admission and streaming analysis."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple

from clients import AnalysisGateway, MetadataResolver
from config import Settings, get_settings
from core import (
    AnalysisOutcome,
    AuditMode,
    AuditRequest,
    AuditResult,
    AuditState,
    CostEstimate,
    MediaReference,
    ReferenceKind,
    VideoMetadata,
)
from media import validate_article_reference, validate_video_reference
from pricing import LINK_ARTICLE_PRICE, estimate, fallback_cost
from utils.exceptions import (
    AuditInProgressError,
    AuthRequiredError,
    FactAuditError,
    InsufficientPointsError,
    MetadataError,
    RateLimitError,
    ValidationError,
)
from .debounce import Debouncer
from .progress import LOADING_PHASES, ProgressChannel, Ticker
from .session import SessionContext


logger = logging.getLogger(__name__)

MSG_SELECT_MODE = "Изберете режим на одит."
MSG_INVALID_VIDEO = "Невалиден YouTube URL."
MSG_INVALID_URL = "Невалиден URL адрес."
MSG_SIGN_IN = "Влезте в профила си."
MSG_NEED_POINTS = "Нужни са {cost} точки. Купете от Pricing."
MSG_IN_PROGRESS = "Одитът вече е в процес."
MSG_BAD_REFERENCE = "Невалиден линк или видео."
MSG_INSUFFICIENT = "Недостатъчно точки."
MSG_RATE_LIMITED = "Изчакайте 1–2 мин."
MSG_GENERIC = "Грешка при анализа. Опитайте отново."
MSG_CANCELLED = "Одитът беше прекъснат."

_BUSY_STATES = {AuditState.SUBMITTING, AuditState.STREAMING}

Runner = Callable[[Callable[[str], None]], Awaitable[AnalysisOutcome]]
Preview = Tuple[VideoMetadata, Dict[AuditMode, CostEstimate]]


class AuditOrchestrator:
    """
    State machine turning a user-entered reference into a completed or failed audit.

    Input side: `set_video_reference` debounces metadata lookups and keeps the
    metadata and its cost estimates together as one preview value. Audit side:
    `submit_video` / `submit_link` run admission checks, then exactly one
    analysis call at a time.
    """

    def __init__(
        self,
        session: SessionContext,
        resolver: MetadataResolver,
        gateway: AnalysisGateway,
        *,
        settings: Optional[Settings] = None,
        debounce_seconds: Optional[float] = None,
        phase_interval: Optional[float] = None,
        elapsed_interval: float = 1.0,
    ) -> None:
        audit_settings = (settings or get_settings()).audit
        if debounce_seconds is None:
            debounce_seconds = audit_settings.debounce_ms / 1000
        if phase_interval is None:
            phase_interval = audit_settings.phase_interval_sec

        self._session = session
        self._resolver = resolver
        self._gateway = gateway
        self._redirect_delay = audit_settings.auth_redirect_delay_sec
        self._debouncer = Debouncer(debounce_seconds)

        self._video_reference = ""
        self._preview: Optional[Preview] = None
        self._input_state = AuditState.IDLE
        self._run_state: Optional[AuditState] = None
        self._active: Optional[AuditRequest] = None

        self.error: Optional[str] = None
        self.progress = ProgressChannel()
        self.elapsed_seconds = 0
        self._phase = 0
        self._elapsed_ticker = Ticker(elapsed_interval, self._tick_elapsed)
        self._phase_ticker = Ticker(phase_interval, self._advance_phase)

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> AuditState:
        if self._run_state is not None:
            return self._run_state
        return self._input_state

    @property
    def is_busy(self) -> bool:
        return self._run_state in _BUSY_STATES

    @property
    def active_request(self) -> Optional[AuditRequest]:
        return self._active

    @property
    def video_reference(self) -> str:
        return self._video_reference

    @property
    def metadata(self) -> Optional[VideoMetadata]:
        return self._preview[0] if self._preview else None

    @property
    def cost_estimates(self) -> Optional[Dict[AuditMode, CostEstimate]]:
        return self._preview[1] if self._preview else None

    @property
    def loading_phase(self) -> str:
        return LOADING_PHASES[self._phase]

    @property
    def status_line(self) -> Optional[str]:
        """Latest progress text, or the rotating phase while the stream is silent."""
        if not self.is_busy:
            return None
        return self.progress.latest or self.loading_phase

    def cost_for(self, mode: AuditMode) -> int:
        estimates = self.cost_estimates
        if estimates and mode in estimates:
            return estimates[mode].points_cost
        return fallback_cost(mode)

    # ------------------------------------------------------------------
    # Input side
    # ------------------------------------------------------------------

    def set_video_reference(self, text: str) -> None:
        """
        Record a keystroke in the video-reference input.

        Must be called from inside the running event loop. Empty input clears
        the preview synchronously and retires any lookup still in flight.
        """
        self._video_reference = text or ""
        self._preview = None
        if not self.is_busy:
            self._run_state = None

        if not self._video_reference.strip():
            self._debouncer.invalidate()
            self._input_state = AuditState.IDLE
            return

        self.error = None
        self._input_state = AuditState.RESOLVING_METADATA
        reference = self._video_reference
        self._debouncer.schedule(lambda token: self._resolve(reference, token))

    async def wait_for_metadata(self) -> None:
        await self._debouncer.wait_idle()

    async def _resolve(self, reference: str, token: int) -> None:
        try:
            metadata = await self._resolver.resolve(reference)
        except MetadataError as exc:
            if not self._debouncer.is_current(token):
                logger.debug(f"Discarding stale metadata failure for {reference}")
                return
            logger.warning(f"Metadata lookup failed for {reference}: {exc}")
            self._preview = None
            self._input_state = AuditState.IDLE
            self.error = MSG_BAD_REFERENCE
            return

        if not self._debouncer.is_current(token):
            logger.debug(f"Discarding stale metadata for {reference}")
            return

        self._preview = (metadata, estimate(metadata.duration_seconds))
        self._input_state = AuditState.READY
        logger.info(f"Resolved '{metadata.title}' ({metadata.duration_formatted})")

    # ------------------------------------------------------------------
    # Audit side
    # ------------------------------------------------------------------

    async def submit_video(self, mode: Optional[AuditMode], include_transcription: bool = True) -> AuditResult:
        """
        Admit and run a video audit.

        Raises:
            AuditInProgressError, ValidationError, AuthRequiredError,
            InsufficientPointsError: admission refused; state is unchanged.
        """
        self._ensure_not_busy()
        if mode is None:
            self._reject(ValidationError(MSG_SELECT_MODE))

        reference = self._video_reference
        validation = validate_video_reference(reference)
        if not validation.valid:
            self._reject(ValidationError(validation.error or MSG_INVALID_VIDEO, reference=reference))

        self._ensure_session()
        self._ensure_balance(self.cost_for(mode))

        request = AuditRequest(
            reference=MediaReference(raw=reference, kind=ReferenceKind.VIDEO),
            mode=mode,
            include_transcription=include_transcription,
        )
        metadata = self.metadata

        async def run(on_progress: Callable[[str], None]) -> AnalysisOutcome:
            return await self._gateway.run_video_analysis(
                request.reference.raw,
                metadata,
                mode,
                on_progress,
                include_transcription,
            )

        return await self._execute(request, run)

    async def submit_link(self, url: str) -> AuditResult:
        """Admit and run an article audit at the fixed link price."""
        self._ensure_not_busy()
        validation = validate_article_reference(url)
        if not validation.valid:
            self._reject(ValidationError(validation.error or MSG_INVALID_URL, reference=url))

        self._ensure_session()
        self._ensure_balance(LINK_ARTICLE_PRICE)

        request = AuditRequest(reference=MediaReference(raw=url, kind=ReferenceKind.LINK))

        async def run(on_progress: Callable[[str], None]) -> AnalysisOutcome:
            scraped = await self._gateway.run_link_analysis(request.reference.raw)
            self._mark_streaming()
            return await self._gateway.run_link_synthesis(
                request.reference.raw,
                scraped.content,
                scraped.title,
                on_progress,
            )

        return await self._execute(request, run)

    def _reject(self, exc: FactAuditError) -> None:
        self.error = exc.message
        logger.info(f"Submission rejected: {exc.message}")
        raise exc

    def _ensure_not_busy(self) -> None:
        if self.is_busy:
            self._reject(AuditInProgressError(MSG_IN_PROGRESS))

    def _ensure_session(self) -> None:
        if not self._session.is_authenticated:
            self._reject(AuthRequiredError(MSG_SIGN_IN, redirect_delay=self._redirect_delay))

    def _ensure_balance(self, cost: int) -> None:
        balance = self._session.balance
        if balance < cost:
            self._reject(InsufficientPointsError(MSG_NEED_POINTS.format(cost=cost), required=cost, balance=balance))

    async def _execute(self, request: AuditRequest, runner: Runner) -> AuditResult:
        reference = request.reference
        self._active = request
        self._run_state = AuditState.SUBMITTING
        self.error = None
        self.elapsed_seconds = 0
        self._phase = 0
        self.progress.clear()
        self._elapsed_ticker.start()
        self._phase_ticker.start()
        logger.info(f"Audit started: {reference.kind.value} {reference.raw}")

        try:
            outcome = await runner(self._on_progress)
            await self._apply_balance(outcome)
        except asyncio.CancelledError:
            logger.warning(f"Audit cancelled: {reference.raw}")
            self._run_state = AuditState.FAILED
            self.error = MSG_CANCELLED
            raise
        except InsufficientPointsError as exc:
            logger.warning(f"Audit refused upstream, insufficient points: {exc}")
            result = AuditResult.insufficient_points(reference, MSG_INSUFFICIENT)
        except RateLimitError as exc:
            logger.warning(f"Audit rate limited: {exc}")
            result = AuditResult.rate_limited(reference, MSG_RATE_LIMITED)
        except FactAuditError as exc:
            logger.error(f"Audit failed: {exc}")
            result = AuditResult.failed(reference, MSG_GENERIC)
        except Exception as exc:
            logger.exception(f"Unexpected audit failure: {exc}")
            result = AuditResult.failed(reference, MSG_GENERIC)
        else:
            result = AuditResult.success(reference, outcome)
        finally:
            await self._elapsed_ticker.stop()
            await self._phase_ticker.stop()
            self.progress.clear()
            self.progress.close()
            self._active = None

        if result.ok:
            self._run_state = AuditState.COMPLETED
            logger.info(f"Audit completed in {self.elapsed_seconds}s: {reference.raw}")
        else:
            self._run_state = AuditState.FAILED
            self.error = result.reason
        return result

    def _mark_streaming(self) -> None:
        if self._run_state == AuditState.SUBMITTING:
            self._run_state = AuditState.STREAMING

    def _on_progress(self, status: str) -> None:
        self._mark_streaming()
        self.progress.publish(status)

    async def _apply_balance(self, outcome: AnalysisOutcome) -> None:
        if outcome.new_balance is not None:
            self._session.set_balance(outcome.new_balance)
            return
        try:
            await self._session.refresh_balance()
        except Exception as exc:
            logger.error(f"Balance refresh after audit failed: {exc}", exc_info=True)

    def _tick_elapsed(self) -> None:
        self.elapsed_seconds += 1

    def _advance_phase(self) -> None:
        self._phase = (self._phase + 1) % len(LOADING_PHASES)
