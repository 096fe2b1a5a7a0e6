"""Session context: current identity and the authoritative point balance."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Awaitable, Callable, Optional


logger = logging.getLogger(__name__)

BalanceLoader = Callable[[str], Awaitable[int]]
TokenLoader = Callable[[str], Awaitable[Optional[str]]]


class SessionContext(ABC):
    """
    Read/write contract shared by the orchestrator and the ledger views.

    Only the session mutates the balance: either through an explicit override
    with a server-reported value, or through a full refresh.
    """

    @property
    @abstractmethod
    def user_id(self) -> Optional[str]:
        pass

    @property
    @abstractmethod
    def balance(self) -> int:
        pass

    @abstractmethod
    def set_balance(self, value: int) -> None:
        pass

    @abstractmethod
    async def refresh_balance(self) -> int:
        pass

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    async def id_token(self) -> Optional[str]:
        return None


class InMemorySession(SessionContext):
    """Session backed by optional async loaders for balance and auth token."""

    def __init__(
        self,
        user_id: Optional[str] = None,
        balance: int = 0,
        *,
        balance_loader: Optional[BalanceLoader] = None,
        token_loader: Optional[TokenLoader] = None,
    ) -> None:
        self._user_id = str(user_id).strip() if user_id else None
        self._balance = int(balance)
        self._balance_loader = balance_loader
        self._token_loader = token_loader
        self.refresh_count = 0

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def balance(self) -> int:
        return self._balance

    def set_balance(self, value: int) -> None:
        self._balance = int(value)

    async def refresh_balance(self) -> int:
        self.refresh_count += 1
        if self._balance_loader is not None and self._user_id:
            self._balance = int(await self._balance_loader(self._user_id))
            logger.debug(f"Balance refreshed for {self._user_id}: {self._balance}")
        return self._balance

    async def id_token(self) -> Optional[str]:
        if self._token_loader is None or not self._user_id:
            return None
        return await self._token_loader(self._user_id)

    def sign_out(self) -> None:
        self._user_id = None
