"""
Environment configuration for the chatbot services.

Values are read once at import time after loading a local .env file.
Runtime feature toggles (notifications enabled, retention windows) live in
the chat_settings table and are read through shared.settings instead.
"""

import os

from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")

SITE_NAME = os.getenv("SITE_NAME", "Real Estate Chatbot")
SITE_URL = os.getenv("SITE_URL", "http://localhost")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")

NOTIFICATION_FROM_EMAIL = os.getenv("NOTIFICATION_FROM_EMAIL", "chatbot@example.com")

# Mail sends that take longer than this are treated as failed deliveries
MAIL_SEND_TIMEOUT_SECONDS = float(os.getenv("MAIL_SEND_TIMEOUT_SECONDS", "30"))

# A sweep lease older than this is considered abandoned
SWEEP_LEASE_SECONDS = int(os.getenv("SWEEP_LEASE_SECONDS", "300"))

OLLAMA_HOST = os.getenv("OLLAMA_HOST")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.1:8b")
OLLAMA_TIMEOUT_SECONDS = float(os.getenv("OLLAMA_TIMEOUT_SECONDS", "120"))
