"""
Analysis Gateway
Runs video and article audits against the analysis service and relays its
server-sent progress events.
"""
from typing import Any, Awaitable, Callable, Dict, Optional
import json
import logging

import httpx

from clients.base import BaseClient
from clients.sse import iter_sse_events
from config import Settings
from core import AnalysisOutcome, AuditMode, ScrapedContent, VideoMetadata
from utils.exceptions import AnalysisError, FactAuditError, InsufficientPointsError, RateLimitError


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], Any]
TokenProvider = Callable[[], Awaitable[Optional[str]]]

STREAM_PATH = "/api/gemini/generate-stream"
SCRAPE_PATH = "/api/link/scrape"

CODE_INSUFFICIENT_POINTS = "INSUFFICIENT_POINTS"
CODE_RATE_LIMIT = "RATE_LIMIT"


def classify_upstream_error(payload: Dict[str, Any], status_code: Optional[int] = None) -> FactAuditError:
    """Map an error body (and HTTP status, when known) onto the error taxonomy."""
    code = str(payload.get("code") or "").strip().upper()
    message = str(payload.get("error") or (f"HTTP {status_code}" if status_code else "Analysis failed"))

    if code == CODE_INSUFFICIENT_POINTS:
        return InsufficientPointsError(message, balance=payload.get("currentBalance"))
    if code == CODE_RATE_LIMIT or status_code == 429:
        return RateLimitError(message, retry_after=payload.get("retryAfter"))
    return AnalysisError(message, code=code or None)


def extract_report(text: str) -> Dict[str, Any]:
    """The report is the outermost JSON object embedded in the model text."""
    raw = str(text or "")
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        raise AnalysisError("Analysis returned no report", code="AI_INVALID_FORMAT")
    try:
        report = json.loads(raw[start:end + 1])
    except ValueError as exc:
        raise AnalysisError("Analysis returned malformed JSON", cause=exc, code="AI_INVALID_FORMAT") from exc
    if not isinstance(report, dict):
        raise AnalysisError("Analysis returned malformed JSON", code="AI_INVALID_FORMAT")
    return report


class AnalysisGateway(BaseClient):
    """
    Client of the analysis service.

    Video audits and article synthesis stream `progress`, `complete` and
    `error` events from the same endpoint; article scraping is a plain JSON
    call that precedes synthesis.
    """

    def __init__(self, settings: Optional[Settings] = None, token_provider: Optional[TokenProvider] = None):
        super().__init__(settings)
        self._analysis = self.settings.analysis
        self._token_provider = token_provider

    @property
    def name(self) -> str:
        return "Analysis"

    def _url(self, path: str) -> str:
        return f"{self._analysis.base_url.rstrip('/')}{path}"

    async def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "text/event-stream"}
        if self._token_provider is not None:
            token = await self._token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    async def run_video_analysis(
        self,
        reference: str,
        metadata: Optional[VideoMetadata],
        mode: AuditMode,
        on_progress: Optional[ProgressCallback] = None,
        include_transcription: bool = True,
    ) -> AnalysisOutcome:
        payload: Dict[str, Any] = {
            "model": self._analysis.model_name,
            "videoUrl": reference,
            "mode": mode.value,
            "serviceType": "video",
        }
        if mode == AuditMode.DEEP:
            payload["includeTranscription"] = bool(include_transcription)
        if metadata is not None:
            payload["metadata"] = metadata.model_dump()

        self._log_request(f"Video analysis ({mode.value})", reference)
        return await self._stream_analysis(payload, on_progress)

    async def run_link_analysis(self, reference: str) -> ScrapedContent:
        """Fetch the article text the synthesis step works from."""
        self._log_request("Scraping", reference)
        headers = await self._headers()
        headers["Accept"] = "application/json"

        try:
            async with httpx.AsyncClient(timeout=self._timeout()) as client:
                response = await client.post(self._url(SCRAPE_PATH), json={"url": reference}, headers=headers)
        except httpx.HTTPError as exc:
            self._log_error(f"Scrape failed for '{reference}'", exc)
            raise AnalysisError("Scrape request failed", cause=exc) from exc

        data = self._safe_json(response)
        if response.status_code != 200:
            raise classify_upstream_error(data, response.status_code)

        return ScrapedContent(
            url=reference,
            title=str(data.get("title") or ""),
            content=str(data.get("content") or ""),
        )

    async def run_link_synthesis(
        self,
        reference: str,
        content: str,
        title: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> AnalysisOutcome:
        payload = {
            "model": self._analysis.model_name,
            "url": reference,
            "title": title,
            "content": content,
            "mode": AuditMode.DEEP.value,
            "serviceType": "linkArticle",
        }
        self._log_request("Article synthesis", reference)
        return await self._stream_analysis(payload, on_progress)

    async def _stream_analysis(self, payload: Dict[str, Any], on_progress: Optional[ProgressCallback]) -> AnalysisOutcome:
        headers = await self._headers()
        try:
            async with httpx.AsyncClient(timeout=self._timeout(read=self._analysis.stream_timeout)) as client:
                async with client.stream("POST", self._url(STREAM_PATH), json=payload, headers=headers) as response:
                    if response.status_code != 200:
                        await response.aread()
                        raise classify_upstream_error(self._safe_json(response), response.status_code)

                    async for event in iter_sse_events(response.aiter_lines()):
                        if event.event == "progress":
                            status = str(event.data.get("status") or "").strip()
                            if status and on_progress is not None:
                                on_progress(status)
                        elif event.event == "complete":
                            return self._to_outcome(event.data)
                        elif event.event == "error":
                            raise classify_upstream_error(event.data)
        except httpx.HTTPError as exc:
            self._log_error("Analysis stream failed", exc)
            raise AnalysisError("Analysis stream failed", cause=exc) from exc

        raise AnalysisError("Analysis stream ended without a result")

    @staticmethod
    def _to_outcome(data: Dict[str, Any]) -> AnalysisOutcome:
        points = data.get("points") or {}
        new_balance = points.get("newBalance")
        cost = points.get("costInPoints")
        return AnalysisOutcome(
            report=extract_report(data.get("text")),
            new_balance=int(new_balance) if new_balance is not None else None,
            points_cost=int(cost) if cost is not None else None,
        )
