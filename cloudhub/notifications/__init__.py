from ..models import (
    ConfirmationConfig,
    ConfirmationTone,
    Notification,
    NotificationKind,
    ProgressState,
    ProgressStatus,
)
from .broker import NotificationBroker

__all__ = [
    "ConfirmationConfig",
    "ConfirmationTone",
    "Notification",
    "NotificationBroker",
    "NotificationKind",
    "ProgressState",
    "ProgressStatus",
]
