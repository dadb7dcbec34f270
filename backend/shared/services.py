"""
Service wiring for the chatbot jobs.

build_services() constructs each component once and hands the shared
store, settings and mail sender to the components that need them.
"""

from dataclasses import dataclass

from knowledge.scanner import KnowledgeScanner
from knowledge.wordpress_client import WordPressContentClient
from notifications.admin_notifier import AdminNotifier
from notifications.email_sender import MailSender, ResendMailSender
from notifications.summary_generator import SummaryGenerator
from processing.ai_providers import build_ai_provider
from shared import config
from shared.db import DataStore, SupabaseStore
from shared.settings import SettingsProvider


@dataclass
class Services:
    store: DataStore
    settings: SettingsProvider
    mail_sender: MailSender
    notifier: AdminNotifier
    summaries: SummaryGenerator
    scanner: KnowledgeScanner


def build_services(
    store: DataStore | None = None, mail_sender: MailSender | None = None
) -> Services:
    """
    Build the service graph from environment configuration.

    Args:
        store: Data store to use (defaults to a SupabaseStore)
        mail_sender: Mail sender to use (defaults to a ResendMailSender)
    """
    store = store if store is not None else SupabaseStore()
    mail_sender = mail_sender if mail_sender is not None else ResendMailSender()
    settings = SettingsProvider(store)

    notifier = AdminNotifier(store, mail_sender, settings)
    summaries = SummaryGenerator(
        store,
        mail_sender,
        settings,
        ai_provider=build_ai_provider(settings.get("ai_provider")),
    )
    scanner = KnowledgeScanner(store, settings, WordPressContentClient(config.SITE_URL))

    return Services(
        store=store,
        settings=settings,
        mail_sender=mail_sender,
        notifier=notifier,
        summaries=summaries,
        scanner=scanner,
    )
