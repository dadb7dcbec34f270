"""
Data retention sweeps run by the daily maintenance job.

Retention windows come from the retention_days_<kind> settings:
- conversations: conversations inactive for longer are deleted together
  with their messages and summaries
- notifications: sent admin notifications are deleted (pending and failed
  ones are kept for inspection)
- knowledge: inactive knowledge entries are deleted
"""

from typing import Any

from knowledge.scanner import KnowledgeScanner
from notifications.admin_notifier import AdminNotifier
from notifications.error_logger import log_notification_error
from shared.db import DataStore, Query
from shared.settings import SettingsProvider
from shared.utils import timestamp_days_ago

CONVERSATIONS_TABLE = "chat_conversations"

# Child tables removed along with their conversation
CONVERSATION_CHILD_TABLES = ("chat_messages", "chat_email_summaries")

BATCH_SIZE = 200


def purge_old_conversations(store: DataStore, days: int) -> int:
    """
    Delete conversations not updated in the last `days` days.

    Messages and summaries go first so no orphaned rows are left if the
    conversation delete fails.

    Returns:
        Number of conversations deleted
    """
    cutoff = timestamp_days_ago(days)
    deleted = 0

    while True:
        rows = store.get_results(
            Query(
                CONVERSATIONS_TABLE,
                columns="id",
                lt={"updated_at": cutoff},
                order_by="id",
                limit=BATCH_SIZE,
            )
        )
        if not rows:
            break

        ids = [row["id"] for row in rows]
        for table in CONVERSATION_CHILD_TABLES:
            store.delete(table, Query(table, in_={"conversation_id": ids}))
        deleted += store.delete(
            CONVERSATIONS_TABLE, Query(CONVERSATIONS_TABLE, in_={"id": ids})
        )

        if len(rows) < BATCH_SIZE:
            break

    return deleted


def run_data_retention(
    store: DataStore,
    settings: SettingsProvider,
    notifier: AdminNotifier,
    scanner: KnowledgeScanner,
) -> dict[str, Any]:
    """
    Run every retention sweep.

    Returns:
        Deleted row counts per kind
    """
    results: dict[str, Any] = {}

    conversation_days = settings.retention_days("conversations")
    try:
        results["conversations"] = purge_old_conversations(store, conversation_days)
        print(
            f"  ✓ Deleted {results['conversations']} conversations older than {conversation_days} days"
        )
    except Exception as e:
        log_notification_error(
            error_type="retention",
            error_message=str(e),
            context={"kind": "conversations", "days": conversation_days},
        )
        results["conversations"] = 0

    results["notifications"] = notifier.retention_sweep(settings.retention_days("notifications"))
    results["knowledge"] = scanner.cleanup_old_entries(settings.retention_days("knowledge"))

    return results
