"""
Admin notification queue for chatbot messages.

Every new user message produces an admin alert that is queued, sent right
away, and retried by the scheduled sweep if the first send failed:

    pending --send ok--> sent
    pending --send fails--> failed --sweep retry--> failed (retry_count + 1) ... --> sent

A sent notification is never sent again. After MAX_RETRY_ATTEMPTS failed
sweep attempts a notification stays failed and is left for manual review.
"""

from datetime import timedelta
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from models.conversation import ChatMessage, Conversation
from models.notification import (
    MAX_RETRY_ATTEMPTS,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_SENT,
    AdminNotification,
    NotificationAttempt,
    NotificationPayload,
    NotificationStatistics,
    SweepResult,
)
from models.types import ConversationID, MessageID, NotificationID
from notifications.email_sender import (
    MailSender,
    build_admin_alert_html,
    build_admin_alert_subject,
)
from notifications.error_logger import log_notification_error
from shared import config
from shared.db import DataStore, Query
from shared.errors import DeliveryError, NotFoundError, ValidationError
from shared.settings import SettingsProvider
from shared.utils import (
    format_timestamp,
    is_valid_email,
    parse_timestamp,
    timestamp_days_ago,
    utc_now,
)

NOTIFICATIONS_TABLE = "chat_admin_notifications"
HISTORY_TABLE = "chat_notification_history"
CONVERSATIONS_TABLE = "chat_conversations"
MESSAGES_TABLE = "chat_messages"

SWEEP_LEASE_KEY = "notification_sweep_lease"
DEFAULT_SWEEP_LIMIT = 50


class AdminNotifier:
    """Queue, send, and retry admin alert emails."""

    def __init__(
        self,
        store: DataStore,
        mail_sender: MailSender,
        settings: SettingsProvider,
        site_url: str | None = None,
        site_name: str | None = None,
        lease_seconds: int | None = None,
    ):
        self.store = store
        self.mail_sender = mail_sender
        self.settings = settings
        self.site_url = site_url or config.SITE_URL
        self.site_name = site_name or config.SITE_NAME
        self.lease_seconds = (
            lease_seconds if lease_seconds is not None else config.SWEEP_LEASE_SECONDS
        )

    # Queue operations

    def enqueue(
        self,
        recipient: str,
        payload: NotificationPayload | dict[str, Any],
        conversation_id: ConversationID | None = None,
        message_id: MessageID | None = None,
    ) -> NotificationID | None:
        """
        Queue a notification for delivery.

        Declined (no row written) when the recipient is not a valid email
        address or admin notifications are disabled.

        Returns:
            ID of the new pending notification, or None if declined or not stored
        """
        try:
            self._validate_enqueue(recipient)
            if isinstance(payload, dict):
                payload = NotificationPayload.model_validate(payload)
        except (ValidationError, PydanticValidationError) as e:
            print(f"  ⚠️  Notification declined: {e}")
            return None
        except Exception as e:
            log_notification_error(
                error_type="queuing",
                error_message=f"Could not check notification settings: {e}",
                context={"conversation_id": conversation_id, "message_id": message_id},
            )
            return None

        row = {
            "conversation_id": conversation_id,
            "message_id": message_id,
            "admin_email": recipient.strip(),
            "notification_status": STATUS_PENDING,
            "notification_data": payload.model_dump(mode="json"),
            "retry_count": 0,
            "created_at": format_timestamp(utc_now()),
        }

        try:
            inserted = self.store.insert(NOTIFICATIONS_TABLE, row)
        except Exception as e:
            log_notification_error(
                error_type="queuing",
                error_message=str(e),
                context={"conversation_id": conversation_id, "message_id": message_id},
            )
            return None

        if not inserted or inserted.get("id") is None:
            return None

        return NotificationID(inserted["id"])

    def deliver(self, notification_id: NotificationID) -> bool:
        """
        Attempt to send one notification.

        Already-sent notifications return True without sending again.
        Never raises: failures are recorded on the row and in the history table.

        Returns:
            True if the notification is (now) sent
        """
        notification = self._get_notification(notification_id)
        if notification is None:
            return False

        if notification.is_sent:
            return True

        payload = notification.payload
        subject = build_admin_alert_subject(payload)
        body = build_admin_alert_html(
            payload,
            self._conversation_url(notification.conversation_id or payload.conversation_id),
            self.site_name,
        )
        headers = {"X-Chatbot-Notification-ID": str(notification_id)}

        error_message: str | None = None
        try:
            if not self.mail_sender.send(notification.recipient, subject, body, headers):
                raise DeliveryError("Mail sender declined the message")
        except DeliveryError as e:
            error_message = str(e)
        except Exception as e:
            error_message = f"Unexpected mail sender error: {e}"

        sent = error_message is None
        if sent:
            fields = {
                "notification_status": STATUS_SENT,
                "sent_at": format_timestamp(utc_now()),
                "error_message": None,
            }
        else:
            fields = {
                "notification_status": STATUS_FAILED,
                "error_message": error_message,
            }

        try:
            self.store.update(NOTIFICATIONS_TABLE, fields, notification_id)
            self._record_attempt(notification_id, sent, error_message)
        except Exception as e:
            log_notification_error(
                error_type="status_update",
                error_message=str(e),
                context={"notification_id": notification_id, "sent": sent},
            )

        if sent:
            print(f"  ✓ Notification {notification_id} sent to {notification.recipient}")
        else:
            log_notification_error(
                error_type="sending",
                error_message=error_message or "Unknown error",
                context={
                    "notification_id": notification_id,
                    "conversation_id": notification.conversation_id,
                    "retry_count": notification.retry_count,
                },
            )

        return sent

    def sweep(self, limit: int = DEFAULT_SWEEP_LIMIT) -> SweepResult:
        """
        Retry pending and failed notifications (called by the scheduler).

        Picks up to `limit` notifications below the retry ceiling, oldest
        first. Every failed attempt bumps retry_count; once it reaches
        MAX_RETRY_ATTEMPTS the notification is no longer picked up.

        Returns:
            SweepResult with sent/failed counts (skipped=True if another sweep holds the lease)
        """
        if not self._acquire_sweep_lease():
            print("Another notification sweep is in progress, skipping.")
            return SweepResult(skipped=True)

        result = SweepResult()
        try:
            try:
                rows = self.store.get_results(
                    Query(
                        NOTIFICATIONS_TABLE,
                        in_={"notification_status": [STATUS_PENDING, STATUS_FAILED]},
                        lt={"retry_count": MAX_RETRY_ATTEMPTS},
                        order_by="created_at",
                        limit=limit,
                    )
                )
            except Exception as e:
                log_notification_error(
                    error_type="sweep",
                    error_message=str(e),
                    context={"limit": limit},
                )
                return result

            for row in rows:
                notification_id = NotificationID(row["id"])
                if self.deliver(notification_id):
                    result.sent_count += 1
                    continue

                result.failed_count += 1
                retry_count = int(row.get("retry_count") or 0)
                try:
                    self.store.update(
                        NOTIFICATIONS_TABLE,
                        {"retry_count": retry_count + 1},
                        notification_id,
                    )
                except Exception as e:
                    log_notification_error(
                        error_type="sweep",
                        error_message=f"Could not update retry count: {e}",
                        context={"notification_id": notification_id},
                    )
        finally:
            self._release_sweep_lease()

        print(
            f"Notification queue processed: {result.sent_count} sent, {result.failed_count} failed"
        )
        return result

    def retention_sweep(self, days: int = 30) -> int:
        """
        Delete sent notifications older than `days`.

        Pending and failed notifications are kept regardless of age.

        Returns:
            Number of notifications deleted
        """
        try:
            deleted = self.store.delete(
                NOTIFICATIONS_TABLE,
                Query(
                    NOTIFICATIONS_TABLE,
                    eq={"notification_status": STATUS_SENT},
                    lt={"sent_at": timestamp_days_ago(days)},
                ),
            )
        except Exception as e:
            log_notification_error(
                error_type="retention",
                error_message=str(e),
                context={"days": days},
            )
            return 0

        print(f"Cleaned up {deleted} sent notifications older than {days} days")
        return deleted

    # Chat engine entry point

    def send_immediate_notification(
        self,
        conversation_id: ConversationID,
        user_message_id: MessageID,
        ai_message_id: MessageID | None = None,
    ) -> bool:
        """
        Alert the admin about a new user message, without waiting for the sweep.

        Returns:
            True if the alert was queued and sent
        """
        try:
            conversation_row = self._require_row(
                Query(CONVERSATIONS_TABLE, eq={"id": conversation_id}),
                f"Conversation {conversation_id}",
            )
            user_row = self._require_row(
                Query(MESSAGES_TABLE, eq={"id": user_message_id}),
                f"User message {user_message_id}",
            )
            ai_row = (
                self.store.get_row(Query(MESSAGES_TABLE, eq={"id": ai_message_id}))
                if ai_message_id
                else None
            )

            conversation = Conversation.model_validate(conversation_row)
            user_message = ChatMessage.model_validate(user_row)
            ai_message = ChatMessage.model_validate(ai_row) if ai_row else None

            admin_email = self.get_admin_email()
        except NotFoundError as e:
            print(f"  ⚠️  {e}")
            return False
        except Exception as e:
            log_notification_error(
                error_type="queuing",
                error_message=str(e),
                context={"conversation_id": conversation_id, "message_id": user_message_id},
            )
            return False

        if not admin_email:
            print("  ⚠️  No admin email configured")
            return False

        payload = NotificationPayload(
            conversation_id=conversation_id,
            user_name=conversation.user_name or "Anonymous",
            user_email=conversation.user_email or "Not provided",
            user_message=user_message.message_text,
            ai_response=ai_message.message_text if ai_message else "No response yet",
            session_url=conversation.page_url or self.site_url,
            timestamp=format_timestamp(utc_now()),
        )

        notification_id = self.enqueue(
            admin_email, payload, conversation_id=conversation_id, message_id=user_message_id
        )
        if notification_id is None:
            return False

        return self.deliver(notification_id)

    # Settings

    def get_admin_email(self) -> str | None:
        return self.settings.get_admin_email()

    def are_admin_notifications_enabled(self) -> bool:
        return self.settings.get_bool(
            "admin_notification_enabled", "admin_notifications_enabled"
        )

    # Reporting

    def get_statistics(self, days: int = 7) -> NotificationStatistics:
        """Delivery counts for the last `days` days plus the current backlog."""
        since = timestamp_days_ago(days)
        try:
            sent_rows = self.store.get_results(
                Query(
                    NOTIFICATIONS_TABLE,
                    columns="id, created_at, sent_at",
                    eq={"notification_status": STATUS_SENT},
                    gte={"sent_at": since},
                )
            )
            failed_rows = self.store.get_results(
                Query(
                    NOTIFICATIONS_TABLE,
                    columns="id",
                    eq={"notification_status": STATUS_FAILED},
                    gte={"created_at": since},
                )
            )
            pending_rows = self.store.get_results(
                Query(
                    NOTIFICATIONS_TABLE,
                    columns="id",
                    eq={"notification_status": STATUS_PENDING},
                )
            )
        except Exception as e:
            log_notification_error(
                error_type="statistics",
                error_message=str(e),
                context={"days": days},
            )
            return NotificationStatistics()

        delays = []
        for row in sent_rows:
            created = parse_timestamp(row.get("created_at"))
            sent = parse_timestamp(row.get("sent_at"))
            if created and sent:
                delays.append((sent - created).total_seconds())

        total_sent = len(sent_rows)
        total_failed = len(failed_rows)
        attempted = total_sent + total_failed

        return NotificationStatistics(
            total_sent=total_sent,
            total_failed=total_failed,
            pending=len(pending_rows),
            avg_delivery_seconds=sum(delays) / len(delays) if delays else None,
            success_rate=round(total_sent / attempted * 100, 2) if attempted else 0.0,
        )

    # Internals

    def _validate_enqueue(self, recipient: str) -> None:
        if not is_valid_email(recipient):
            raise ValidationError(f"Invalid recipient email: {recipient!r}")
        if not self.are_admin_notifications_enabled():
            raise ValidationError("Admin notifications are disabled")

    def _require_row(self, query: Query, label: str) -> dict[str, Any]:
        row = self.store.get_row(query)
        if not row:
            raise NotFoundError(f"{label} not found")
        return row

    def _get_notification(self, notification_id: NotificationID) -> AdminNotification | None:
        try:
            row = self.store.get_row(Query(NOTIFICATIONS_TABLE, eq={"id": notification_id}))
        except Exception as e:
            log_notification_error(
                error_type="sending",
                error_message=f"Could not load notification: {e}",
                context={"notification_id": notification_id},
            )
            return None

        if not row:
            print(f"  ⚠️  Notification {notification_id} not found")
            return None

        try:
            return AdminNotification.model_validate(row)
        except PydanticValidationError as e:
            log_notification_error(
                error_type="sending",
                error_message=f"Invalid notification row: {e}",
                context={"notification_id": notification_id},
            )
            return None

    def _record_attempt(
        self, notification_id: NotificationID, success: bool, error_message: str | None
    ) -> None:
        attempt = NotificationAttempt(
            notification_id=notification_id,
            success=success,
            error_message=error_message,
            attempted_at=format_timestamp(utc_now()),
        )
        self.store.insert(HISTORY_TABLE, attempt.model_dump())

    def _conversation_url(self, conversation_id: ConversationID | None) -> str:
        base = f"{self.site_url.rstrip('/')}/admin/conversations"
        if conversation_id is None:
            return base
        return f"{base}/{conversation_id}"

    def _acquire_sweep_lease(self) -> bool:
        """Claim the single-row sweep lease unless another run holds a live one."""
        try:
            current = parse_timestamp(self.settings.get(SWEEP_LEASE_KEY))
            now = utc_now()
            if current is not None and current > now:
                return False
            expires = now + timedelta(seconds=self.lease_seconds)
            self.settings.set(SWEEP_LEASE_KEY, format_timestamp(expires))
        except Exception as e:
            log_notification_error(
                error_type="sweep",
                error_message=f"Could not acquire sweep lease: {e}",
            )
            return False
        return True

    def _release_sweep_lease(self) -> None:
        try:
            self.settings.set(SWEEP_LEASE_KEY, "")
        except Exception as e:
            log_notification_error(
                error_type="sweep",
                error_message=f"Could not release sweep lease: {e}",
            )
