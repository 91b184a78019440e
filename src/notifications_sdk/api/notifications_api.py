"""
Notifications API: delivery targets attached to a subscription.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .base import ApiAccessor, require

NOTIFICATIONS_PATH = "/api/subscriptions/{scope}/{code}/notifications"
EMAIL_NOTIFICATION_PATH = NOTIFICATIONS_PATH + "/email"
WEBHOOK_NOTIFICATION_PATH = NOTIFICATIONS_PATH + "/webhook"
NOTIFICATION_PATH = NOTIFICATIONS_PATH + "/{id}"


class NotificationsApiInterface(ABC):
    """Operations on the notifications of a subscription."""

    @abstractmethod
    def create_email_notification(
        self, scope: str, code: str, create_email_notification: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        ...

    @abstractmethod
    async def create_email_notification_async(
        self, scope: str, code: str, create_email_notification: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        ...

    @abstractmethod
    def create_webhook_notification(
        self, scope: str, code: str, create_webhook_notification: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        ...

    @abstractmethod
    async def create_webhook_notification_async(
        self, scope: str, code: str, create_webhook_notification: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        ...

    @abstractmethod
    def list_notifications(self, scope: str, code: str, timeout: Optional[float] = None) -> Any:
        ...

    @abstractmethod
    async def list_notifications_async(
        self, scope: str, code: str, timeout: Optional[float] = None
    ) -> Any:
        ...

    @abstractmethod
    def delete_notification(
        self, scope: str, code: str, id: str, timeout: Optional[float] = None
    ) -> Any:
        ...

    @abstractmethod
    async def delete_notification_async(
        self, scope: str, code: str, id: str, timeout: Optional[float] = None
    ) -> Any:
        ...


class NotificationsApi(ApiAccessor, NotificationsApiInterface):
    """Email and webhook notifications for a subscription."""

    def create_email_notification(
        self, scope: str, code: str, create_email_notification: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Attach an email notification to the subscription scope/code.

        Example body::

            {"description": "Upload finished", "subject": "Upload finished",
             "plainTextBody": "Done", "emailAddressTo": ["ops@example.com"]}
        """
        method_name = "create_email_notification"
        require(scope, "scope", method_name)
        require(code, "code", method_name)
        require(create_email_notification, "create_email_notification", method_name)
        return self._call(
            "POST", EMAIL_NOTIFICATION_PATH, method_name,
            path_params={"scope": scope, "code": code},
            body=create_email_notification, timeout=timeout,
        )

    async def create_email_notification_async(
        self, scope: str, code: str, create_email_notification: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        method_name = "create_email_notification_async"
        require(scope, "scope", method_name)
        require(code, "code", method_name)
        require(create_email_notification, "create_email_notification", method_name)
        return await self._call_async(
            "POST", EMAIL_NOTIFICATION_PATH, method_name,
            path_params={"scope": scope, "code": code},
            body=create_email_notification, timeout=timeout,
        )

    def create_webhook_notification(
        self, scope: str, code: str, create_webhook_notification: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """Attach a webhook notification to the subscription scope/code."""
        method_name = "create_webhook_notification"
        require(scope, "scope", method_name)
        require(code, "code", method_name)
        require(create_webhook_notification, "create_webhook_notification", method_name)
        return self._call(
            "POST", WEBHOOK_NOTIFICATION_PATH, method_name,
            path_params={"scope": scope, "code": code},
            body=create_webhook_notification, timeout=timeout,
        )

    async def create_webhook_notification_async(
        self, scope: str, code: str, create_webhook_notification: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        method_name = "create_webhook_notification_async"
        require(scope, "scope", method_name)
        require(code, "code", method_name)
        require(create_webhook_notification, "create_webhook_notification", method_name)
        return await self._call_async(
            "POST", WEBHOOK_NOTIFICATION_PATH, method_name,
            path_params={"scope": scope, "code": code},
            body=create_webhook_notification, timeout=timeout,
        )

    def list_notifications(self, scope: str, code: str, timeout: Optional[float] = None) -> Any:
        """List the notifications attached to a subscription."""
        require(scope, "scope", "list_notifications")
        require(code, "code", "list_notifications")
        return self._call(
            "GET", NOTIFICATIONS_PATH, "list_notifications",
            path_params={"scope": scope, "code": code}, timeout=timeout,
        )

    async def list_notifications_async(
        self, scope: str, code: str, timeout: Optional[float] = None
    ) -> Any:
        require(scope, "scope", "list_notifications_async")
        require(code, "code", "list_notifications_async")
        return await self._call_async(
            "GET", NOTIFICATIONS_PATH, "list_notifications_async",
            path_params={"scope": scope, "code": code}, timeout=timeout,
        )

    def delete_notification(
        self, scope: str, code: str, id: str, timeout: Optional[float] = None
    ) -> Any:
        method_name = "delete_notification"
        require(scope, "scope", method_name)
        require(code, "code", method_name)
        require(id, "id", method_name)
        return self._call(
            "DELETE", NOTIFICATION_PATH, method_name,
            path_params={"scope": scope, "code": code, "id": id}, timeout=timeout,
        )

    async def delete_notification_async(
        self, scope: str, code: str, id: str, timeout: Optional[float] = None
    ) -> Any:
        method_name = "delete_notification_async"
        require(scope, "scope", method_name)
        require(code, "code", method_name)
        require(id, "id", method_name)
        return await self._call_async(
            "DELETE", NOTIFICATION_PATH, method_name,
            path_params={"scope": scope, "code": code, "id": id}, timeout=timeout,
        )
