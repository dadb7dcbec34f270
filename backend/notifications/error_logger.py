"""
Error logging utility for the chatbot services.

Writes one timestamped report file per error so failed deliveries, store
errors, and scan failures can be inspected after a cron run.
"""

import os
from datetime import datetime
from typing import Any

LOG_DIR = os.getenv(
    "CHATBOT_ERROR_LOG_DIR", os.path.join(os.path.dirname(__file__), "logs")
)


def log_notification_error(
    error_type: str, error_message: str, context: dict[str, Any] | None = None
) -> str:
    """
    Log an error to a timestamped file.

    Args:
        error_type: Type of error (e.g., 'queuing', 'sending', 'sweep', 'context_save')
        error_message: The error message
        context: Optional dictionary with additional context (notification_id, conversation_id, etc.)

    Returns:
        Path to the log file created
    """
    os.makedirs(LOG_DIR, exist_ok=True)

    # Microseconds keep reports from the same sweep in separate files
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filename = os.path.join(LOG_DIR, f"{error_type}_error_{timestamp}.txt")

    with open(filename, "w", encoding="utf-8") as f:
        f.write(f"Chatbot Error Report - {datetime.now()}\n")
        f.write("=" * 60 + "\n\n")
        f.write(f"Error Type: {error_type}\n")
        f.write(f"Error Message: {error_message}\n\n")

        if context:
            f.write("Context:\n")
            f.write("-" * 60 + "\n")
            for key, value in context.items():
                f.write(f"{key}: {value}\n")

    print(f"  ✗ {error_type} error: {error_message} (details: {filename})")
    return filename
