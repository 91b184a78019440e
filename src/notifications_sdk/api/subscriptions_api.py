"""
Subscriptions API: event subscriptions identified by scope and code.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .base import ApiAccessor, require

SUBSCRIPTIONS_PATH = "/api/subscriptions"
SUBSCRIPTION_PATH = "/api/subscriptions/{scope}/{code}"


class SubscriptionsApiInterface(ABC):
    """Operations on event subscriptions."""

    @abstractmethod
    def create_subscription(
        self, create_subscription: Dict[str, Any], timeout: Optional[float] = None
    ) -> Any:
        ...

    @abstractmethod
    async def create_subscription_async(
        self, create_subscription: Dict[str, Any], timeout: Optional[float] = None
    ) -> Any:
        ...

    @abstractmethod
    def get_subscription(self, scope: str, code: str, timeout: Optional[float] = None) -> Any:
        ...

    @abstractmethod
    async def get_subscription_async(
        self, scope: str, code: str, timeout: Optional[float] = None
    ) -> Any:
        ...

    @abstractmethod
    def list_subscriptions(
        self,
        filter: Optional[str] = None,
        sort_by: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        ...

    @abstractmethod
    async def list_subscriptions_async(
        self,
        filter: Optional[str] = None,
        sort_by: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        ...

    @abstractmethod
    def update_subscription(
        self,
        scope: str,
        code: str,
        update_subscription: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        ...

    @abstractmethod
    async def update_subscription_async(
        self,
        scope: str,
        code: str,
        update_subscription: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        ...

    @abstractmethod
    def delete_subscription(self, scope: str, code: str, timeout: Optional[float] = None) -> Any:
        ...

    @abstractmethod
    async def delete_subscription_async(
        self, scope: str, code: str, timeout: Optional[float] = None
    ) -> Any:
        ...


class SubscriptionsApi(ApiAccessor, SubscriptionsApiInterface):
    """
    Create, read, list, update and delete subscriptions.

    Request and response bodies are plain JSON dicts, e.g.::

        api.create_subscription({
            "id": {"scope": "demo", "code": "TransactionsLoaded"},
            "displayName": "Transactions loaded",
            "status": "Active",
            "matchingPattern": {"eventType": "Manual"},
        })
    """

    def create_subscription(
        self, create_subscription: Dict[str, Any], timeout: Optional[float] = None
    ) -> Any:
        """Create a subscription. Returns the created subscription."""
        require(create_subscription, "create_subscription", "create_subscription")
        return self._call(
            "POST", SUBSCRIPTIONS_PATH, "create_subscription",
            body=create_subscription, timeout=timeout,
        )

    async def create_subscription_async(
        self, create_subscription: Dict[str, Any], timeout: Optional[float] = None
    ) -> Any:
        require(create_subscription, "create_subscription", "create_subscription_async")
        return await self._call_async(
            "POST", SUBSCRIPTIONS_PATH, "create_subscription_async",
            body=create_subscription, timeout=timeout,
        )

    def get_subscription(self, scope: str, code: str, timeout: Optional[float] = None) -> Any:
        """Get the subscription identified by scope and code."""
        require(scope, "scope", "get_subscription")
        require(code, "code", "get_subscription")
        return self._call(
            "GET", SUBSCRIPTION_PATH, "get_subscription",
            path_params={"scope": scope, "code": code}, timeout=timeout,
        )

    async def get_subscription_async(
        self, scope: str, code: str, timeout: Optional[float] = None
    ) -> Any:
        require(scope, "scope", "get_subscription_async")
        require(code, "code", "get_subscription_async")
        return await self._call_async(
            "GET", SUBSCRIPTION_PATH, "get_subscription_async",
            path_params={"scope": scope, "code": code}, timeout=timeout,
        )

    def list_subscriptions(
        self,
        filter: Optional[str] = None,
        sort_by: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        List subscriptions.

        Args:
            filter: Filter expression, e.g. ``status eq 'Active'``
            sort_by: Field to sort by
            limit: Maximum number of results per page
            page: Page token from a previous call
        """
        return self._call(
            "GET", SUBSCRIPTIONS_PATH, "list_subscriptions",
            query={"filter": filter, "sortBy": sort_by, "limit": limit, "page": page},
            timeout=timeout,
        )

    async def list_subscriptions_async(
        self,
        filter: Optional[str] = None,
        sort_by: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        return await self._call_async(
            "GET", SUBSCRIPTIONS_PATH, "list_subscriptions_async",
            query={"filter": filter, "sortBy": sort_by, "limit": limit, "page": page},
            timeout=timeout,
        )

    def update_subscription(
        self,
        scope: str,
        code: str,
        update_subscription: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """Replace the mutable fields of an existing subscription."""
        require(scope, "scope", "update_subscription")
        require(code, "code", "update_subscription")
        require(update_subscription, "update_subscription", "update_subscription")
        return self._call(
            "PUT", SUBSCRIPTION_PATH, "update_subscription",
            path_params={"scope": scope, "code": code},
            body=update_subscription, timeout=timeout,
        )

    async def update_subscription_async(
        self,
        scope: str,
        code: str,
        update_subscription: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        require(scope, "scope", "update_subscription_async")
        require(code, "code", "update_subscription_async")
        require(update_subscription, "update_subscription", "update_subscription_async")
        return await self._call_async(
            "PUT", SUBSCRIPTION_PATH, "update_subscription_async",
            path_params={"scope": scope, "code": code},
            body=update_subscription, timeout=timeout,
        )

    def delete_subscription(self, scope: str, code: str, timeout: Optional[float] = None) -> Any:
        """Delete a subscription and its notifications."""
        require(scope, "scope", "delete_subscription")
        require(code, "code", "delete_subscription")
        return self._call(
            "DELETE", SUBSCRIPTION_PATH, "delete_subscription",
            path_params={"scope": scope, "code": code}, timeout=timeout,
        )

    async def delete_subscription_async(
        self, scope: str, code: str, timeout: Optional[float] = None
    ) -> Any:
        require(scope, "scope", "delete_subscription_async")
        require(code, "code", "delete_subscription_async")
        return await self._call_async(
            "DELETE", SUBSCRIPTION_PATH, "delete_subscription_async",
            path_params={"scope": scope, "code": code}, timeout=timeout,
        )
