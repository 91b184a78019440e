"""
API accessors for the notifications service.
"""
from .base import ApiAccessor
from .subscriptions_api import SubscriptionsApi, SubscriptionsApiInterface
from .notifications_api import NotificationsApi, NotificationsApiInterface
from .events_api import EventsApi, EventsApiInterface

__all__ = [
    "ApiAccessor",
    "SubscriptionsApi",
    "SubscriptionsApiInterface",
    "NotificationsApi",
    "NotificationsApiInterface",
    "EventsApi",
    "EventsApiInterface",
]
