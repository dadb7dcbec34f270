"""
CLI script for the chatbot's scheduled jobs.

Usage:
    # Retry pending and failed admin notifications (every 5 minutes)
    uv run python -m notifications.process_notification_queue --sweep

    # Daily retention cleanup of conversations, notifications and knowledge entries
    uv run python -m notifications.process_notification_queue --cleanup

    # Daily rescan of site content into the knowledge base
    uv run python -m notifications.process_notification_queue --knowledge-scan

    # Send the summary email for one conversation
    uv run python -m notifications.process_notification_queue --summary 42 --reason user_closed
"""

import argparse

from maintenance.retention import run_data_retention
from models.types import ConversationID
from notifications.admin_notifier import DEFAULT_SWEEP_LIMIT
from shared.services import Services, build_services
from shared.utils import print_summary


def run_sweep(services: Services, limit: int = DEFAULT_SWEEP_LIMIT) -> dict[str, int]:
    print(f"Processing admin notification queue (limit {limit})...")
    result = services.notifier.sweep(limit=limit)

    stats = {
        "Sent": result.sent_count,
        "Failed": result.failed_count,
        "Skipped": 1 if result.skipped else 0,
    }
    print_summary("Notification Sweep Complete", stats)
    return stats


def run_cleanup(services: Services) -> dict[str, int]:
    print("Running data retention cleanup...")
    results = run_data_retention(
        services.store, services.settings, services.notifier, services.scanner
    )

    stats = {
        "Chats": results.get("conversations", 0),
        "Alerts": results.get("notifications", 0),
        "Entries": results.get("knowledge", 0),
    }
    print_summary("Data Retention Complete", stats)
    return stats


def run_knowledge_scan(services: Services) -> dict[str, int]:
    result = services.scanner.run_full_scan()

    stats = {
        "Scanned": result.scanned,
        "Updated": result.updated,
        "Errors": result.errors,
    }
    print_summary("Knowledge Scan Complete", stats)
    return stats


def run_summary(services: Services, conversation_id: int, reason: str) -> bool:
    print(f"Generating summary for conversation {conversation_id} ({reason})...")
    sent = services.summaries.generate_and_send_summary(ConversationID(conversation_id), reason)
    if sent:
        print(f"✓ Summary sent for conversation {conversation_id}")
    else:
        print(f"⊘ No summary sent for conversation {conversation_id}")
    return sent


def main(argv: list[str] | None = None, services: Services | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run scheduled chatbot jobs (notification sweep, cleanup, knowledge scan)"
    )

    parser.add_argument(
        "--sweep", action="store_true", help="Retry pending and failed admin notifications"
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_SWEEP_LIMIT,
        help=f"Maximum notifications per sweep (default {DEFAULT_SWEEP_LIMIT})",
    )

    parser.add_argument(
        "--cleanup", action="store_true", help="Delete data older than the retention windows"
    )

    parser.add_argument(
        "--knowledge-scan", action="store_true", help="Rescan site content into the knowledge base"
    )

    parser.add_argument(
        "--summary",
        type=int,
        metavar="CONVERSATION_ID",
        help="Send the summary email for a conversation",
    )

    parser.add_argument(
        "--reason",
        type=str,
        default="manual",
        help="Why the conversation ended, recorded with the summary (default: manual)",
    )

    args = parser.parse_args(argv)

    if not (args.sweep or args.cleanup or args.knowledge_scan or args.summary is not None):
        parser.error("Must specify --sweep, --cleanup, --knowledge-scan or --summary")

    if services is None:
        services = build_services()

    exit_code = 0

    if args.sweep:
        run_sweep(services, limit=args.limit)

    if args.cleanup:
        run_cleanup(services)

    if args.knowledge_scan:
        stats = run_knowledge_scan(services)
        if stats["Errors"]:
            exit_code = 1

    if args.summary is not None:
        if not run_summary(services, args.summary, args.reason):
            exit_code = 1

    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
