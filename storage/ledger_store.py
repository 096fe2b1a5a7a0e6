"""Transaction ledger stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
import json
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List

from pydantic import ValidationError as ModelValidationError

from core import Transaction
from utils.exceptions import LedgerError


class LedgerStore(ABC):
    """Append-only record of balance-affecting transactions."""

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[Transaction]:
        """Transactions in persisted order; consumers re-sort."""

    @abstractmethod
    async def append(self, user_id: str, transaction: Transaction) -> None:
        pass


class InMemoryLedgerStore(LedgerStore):
    """Thread-safe in-memory ledger."""

    def __init__(self) -> None:
        self._rows: Dict[str, List[Transaction]] = {}
        self._lock = Lock()

    async def list_for_user(self, user_id: str) -> List[Transaction]:
        with self._lock:
            return list(self._rows.get(user_id, []))

    async def append(self, user_id: str, transaction: Transaction) -> None:
        with self._lock:
            self._rows.setdefault(user_id, []).append(transaction)


class JsonFileLedgerStore(LedgerStore):
    """
    Read-only ledger over a JSON export.

    Accepts either a list of transactions or `{"transactions": [...]}`; rows
    may carry a `userId` key, rows without one belong to every user.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    async def list_for_user(self, user_id: str) -> List[Transaction]:
        rows = self._load_rows()
        try:
            return [
                Transaction.model_validate(row)
                for row in rows
                if str(row.get("userId") or user_id) == user_id
            ]
        except ModelValidationError as exc:
            raise LedgerError(f"Malformed transaction in {self._path}", {"error": str(exc)}) from exc

    async def append(self, user_id: str, transaction: Transaction) -> None:
        raise LedgerError("JSON ledger export is read-only")

    def _load_rows(self) -> List[Dict[str, Any]]:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise LedgerError(f"Cannot read ledger file {self._path}", {"error": str(exc)}) from exc
        if isinstance(payload, dict):
            payload = payload.get("transactions") or []
        if not isinstance(payload, list):
            raise LedgerError(f"Unexpected ledger layout in {self._path}")
        return [row for row in payload if isinstance(row, dict)]
