"""
Notification system for the real estate chatbot.

This module handles:
- Queuing admin alerts for new chat messages and retrying failed sends
- Emailing conversation summaries to visitors
- Sending email via Resend
"""

from .admin_notifier import AdminNotifier
from .email_sender import MailSender, ResendMailSender
from .summary_generator import SummaryGenerator

__all__ = [
    'AdminNotifier',
    'MailSender',
    'ResendMailSender',
    'SummaryGenerator',
]
