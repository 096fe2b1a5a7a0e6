"""CLI entrypoint for cost estimates, one-shot audits and ledger views."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.table import Table

from clients import AnalysisGateway, MetadataResolver
from config import Settings, get_settings
from core import AuditMode, AuditResult
from ledger import CategoryFilter, LedgerFeed, LedgerTab, SortOrder
from orchestrator import AuditOrchestrator, InMemorySession
from pricing import LINK_ARTICLE_PRICE, estimate
from storage import JsonFileLedgerStore
from utils import FactAuditError, setup_logger


console = Console()


def _print_json(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, default=str))


def _result_payload(result: AuditResult) -> dict:
    return result.model_dump(mode="json")


def _build_session(args, settings: Settings) -> InMemorySession:
    token = getattr(args, "token", None) or settings.analysis.api_token

    async def load_token(user_id: str) -> Optional[str]:
        return token

    return InMemorySession(args.user_id, args.balance, token_loader=load_token)


def _build_orchestrator(args, settings: Optional[Settings] = None) -> AuditOrchestrator:
    settings = settings or get_settings()
    session = _build_session(args, settings)
    return AuditOrchestrator(
        session,
        MetadataResolver(settings),
        AnalysisGateway(settings, token_provider=session.id_token),
        settings=settings,
        debounce_seconds=0,
    )


def _status_printer(orchestrator: AuditOrchestrator):
    async def follow() -> None:
        async for status in orchestrator.progress.subscribe():
            console.print(f"[dim]{status}[/dim]")
    return asyncio.get_running_loop().create_task(follow())


async def _run_audit(orchestrator: AuditOrchestrator, submit) -> int:
    follower = _status_printer(orchestrator)
    try:
        result = await submit()
    except FactAuditError as exc:
        _print_json({"rejected": True, "error": exc.message, "type": type(exc).__name__})
        return 2
    finally:
        follower.cancel()
    _print_json(_result_payload(result))
    return 0 if result.ok else 1


async def _audit_video(args) -> int:
    orchestrator = _build_orchestrator(args)
    orchestrator.set_video_reference(args.url)
    await orchestrator.wait_for_metadata()
    if orchestrator.metadata is None:
        _print_json({"rejected": True, "error": orchestrator.error})
        return 2

    metadata = orchestrator.metadata
    console.print(f"[bold]{metadata.title}[/bold] ({metadata.author}, {metadata.duration_formatted})")
    mode = AuditMode(args.mode)
    console.print(f"Cost: {orchestrator.cost_for(mode)} points, balance: {args.balance}")
    return await _run_audit(
        orchestrator,
        lambda: orchestrator.submit_video(mode, include_transcription=not args.no_transcription),
    )


async def _audit_link(args) -> int:
    orchestrator = _build_orchestrator(args)
    console.print(f"Cost: {LINK_ARTICLE_PRICE} points, balance: {args.balance}")
    return await _run_audit(orchestrator, lambda: orchestrator.submit_link(args.url))


async def _ledger(args) -> int:
    feed = LedgerFeed(JsonFileLedgerStore(args.file), args.user_id)
    if not await feed.refresh():
        _print_json({"error": feed.last_error})
        return 1

    rows = feed.view(
        tab=LedgerTab(args.tab),
        category=CategoryFilter(args.filter),
        search=args.search,
        sort=SortOrder(args.sort),
    )
    table = Table(title=f"Transactions ({args.tab})")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Points", justify="right")
    table.add_column("Description")
    for tx in rows:
        title = tx.metadata.video_title if tx.metadata and tx.metadata.video_title else tx.description
        table.add_row(tx.created_at.strftime("%Y-%m-%d %H:%M"), tx.type.value, str(tx.amount), title)
    console.print(table)

    summary = feed.summary()
    console.print(
        f"Deductions: {summary.deduction_count} ({summary.total_spent} pts) | "
        f"Purchases: {summary.credit_count} ({summary.total_purchased} pts)"
    )
    return 0


def _estimate(args) -> int:
    costs = estimate(args.duration)
    _print_json(
        {
            "duration_seconds": max(0, args.duration),
            "standard": costs[AuditMode.STANDARD].points_cost,
            "deep": costs[AuditMode.DEEP].points_cost,
            "link_article": LINK_ARTICLE_PRICE,
        }
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="FactAudit CLI")
    parser.add_argument("--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    est = sub.add_parser("estimate")
    est.add_argument("--duration", type=int, required=True, help="video length in seconds")

    video = sub.add_parser("audit-video")
    video.add_argument("--url", required=True)
    video.add_argument("--mode", choices=[mode.value for mode in AuditMode], default=AuditMode.STANDARD.value)
    video.add_argument("--no-transcription", action="store_true")
    video.add_argument("--user-id", required=True)
    video.add_argument("--balance", type=int, required=True)
    video.add_argument("--token", help="analysis service bearer token (overrides ANALYSIS_API_TOKEN)")

    link = sub.add_parser("audit-link")
    link.add_argument("--url", required=True)
    link.add_argument("--user-id", required=True)
    link.add_argument("--balance", type=int, required=True)
    link.add_argument("--token", help="analysis service bearer token (overrides ANALYSIS_API_TOKEN)")

    ledger = sub.add_parser("ledger")
    ledger.add_argument("--file", required=True, help="JSON export of transactions")
    ledger.add_argument("--user-id", default="local")
    ledger.add_argument("--tab", choices=[tab.value for tab in LedgerTab], default=LedgerTab.DEDUCTIONS.value)
    ledger.add_argument("--filter", choices=[c.value for c in CategoryFilter], default=CategoryFilter.ALL.value)
    ledger.add_argument("--search", default="")
    ledger.add_argument("--sort", choices=[s.value for s in SortOrder], default=SortOrder.DATE_DESC.value)

    args = parser.parse_args()
    level = logging.DEBUG if args.verbose else getattr(logging, get_settings().general.log_level.upper(), logging.INFO)
    setup_logger("", level=level)

    if args.command == "estimate":
        sys.exit(_estimate(args))
    if args.command == "audit-video":
        sys.exit(asyncio.run(_audit_video(args)))
    if args.command == "audit-link":
        sys.exit(asyncio.run(_audit_link(args)))
    if args.command == "ledger":
        sys.exit(asyncio.run(_ledger(args)))


if __name__ == "__main__":
    main()
