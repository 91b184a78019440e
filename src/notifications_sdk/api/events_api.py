"""
Events API.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .base import ApiAccessor, require

MANUAL_EVENT_PATH = "/api/manualevent"


class EventsApiInterface(ABC):
    """Operations on events."""

    @abstractmethod
    def trigger_manual_event(
        self, manual_event_request: Dict[str, Any], timeout: Optional[float] = None
    ) -> Any:
        ...

    @abstractmethod
    async def trigger_manual_event_async(
        self, manual_event_request: Dict[str, Any], timeout: Optional[float] = None
    ) -> Any:
        ...


class EventsApi(ApiAccessor, EventsApiInterface):
    def trigger_manual_event(
        self, manual_event_request: Dict[str, Any], timeout: Optional[float] = None
    ) -> Any:
        """
        Trigger a manual event, which fires every subscription whose
        matching pattern has eventType ``Manual``.
        """
        require(manual_event_request, "manual_event_request", "trigger_manual_event")
        return self._call(
            "POST", MANUAL_EVENT_PATH, "trigger_manual_event",
            body=manual_event_request, timeout=timeout,
        )

    async def trigger_manual_event_async(
        self, manual_event_request: Dict[str, Any], timeout: Optional[float] = None
    ) -> Any:
        require(manual_event_request, "manual_event_request", "trigger_manual_event_async")
        return await self._call_async(
            "POST", MANUAL_EVENT_PATH, "trigger_manual_event_async",
            body=manual_event_request, timeout=timeout,
        )
