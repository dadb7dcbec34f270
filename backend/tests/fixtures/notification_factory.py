"""Factory functions for creating test notification and settings rows."""

from typing import Any, Dict, List, Optional


def create_test_payload(**overrides) -> Dict[str, Any]:
    """Factory for a notification_data payload."""
    payload = {
        "conversation_id": 1,
        "user_name": "Jane Buyer",
        "user_email": "jane@example.com",
        "user_message": "Is 70 Phillips St still available?",
        "ai_response": "Yes, it is still on the market.",
        "session_url": "https://example.com/listings",
        "timestamp": "2026-01-24T12:00:00+00:00",
    }
    payload.update(overrides)
    return payload


def create_test_notification(
    notification_id: Optional[int] = None,
    admin_email: str = "admin@example.com",
    status: str = "pending",
    retry_count: int = 0,
    **overrides,
) -> Dict[str, Any]:
    """Factory for a chat_admin_notifications row."""
    notification = {
        "conversation_id": 1,
        "message_id": 1,
        "admin_email": admin_email,
        "notification_status": status,
        "notification_data": create_test_payload(),
        "retry_count": retry_count,
        "error_message": None,
        "created_at": "2026-01-24T12:00:00+00:00",
        "sent_at": None,
    }
    if notification_id is not None:
        notification["id"] = notification_id
    notification.update(overrides)
    return notification


def create_test_settings(**values: str) -> List[Dict[str, Any]]:
    """
    chat_settings rows, with admin notifications and summaries enabled by default.

    Pass a value of None to leave a default setting out.
    """
    settings = {
        "admin_notification_enabled": "1",
        "admin_notification_email": "admin@example.com",
        "user_summaries_enabled": "1",
    }
    settings.update(values)
    return [
        {"setting_key": key, "setting_value": value}
        for key, value in settings.items()
        if value is not None
    ]
