"""
Base Client
Shared plumbing for clients of external HTTP services
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import logging

import httpx

from config import Settings, get_settings


logger = logging.getLogger(__name__)


class BaseClient(ABC):
    """
    Base class for outbound service clients.
    Each call opens its own httpx.AsyncClient, so instances hold no sockets.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    @abstractmethod
    def name(self) -> str:
        """Client name used in logs"""
        pass

    def is_configured(self) -> bool:
        """Subclasses override to check credentials"""
        return True

    def _timeout(self, read: Optional[float] = None) -> httpx.Timeout:
        request_timeout = float(self.settings.general.request_timeout)
        if read is None:
            return httpx.Timeout(request_timeout)
        return httpx.Timeout(read, connect=request_timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Nothing to release; kept for the async context manager protocol"""
        return None

    @staticmethod
    def _safe_json(response: Any) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def _log_request(self, what: str, target: str):
        logger.info(f"[{self.name}] {what}: {target}")

    def _log_error(self, message: str, error: Exception):
        logger.error(f"[{self.name}] {message}: {error}")
