"""
Email sending via Resend API for the chatbot services.

Provides the MailSender used by the admin notifier and summary generator,
plus the HTML bodies for admin alerts and conversation summaries.
"""

import os
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from html import escape
from typing import Any, Protocol

import resend
from html2text import html2text

from models.conversation import SummaryData
from models.notification import NotificationPayload
from shared import config
from shared.errors import DeliveryError


# Initialize Resend with API key from environment
resend.api_key = os.getenv("RESEND_API_KEY")


class MailSender(Protocol):
    def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        headers: dict[str, str] | None = None,
    ) -> bool: ...


class ResendMailSender:
    """
    MailSender backed by Resend.

    Each send runs on a worker thread so it can be abandoned after
    `timeout` seconds; a timeout is reported as a DeliveryError.
    """

    def __init__(
        self,
        from_email: str | None = None,
        from_name: str | None = None,
        timeout: float | None = None,
    ):
        self.from_email = from_email or config.NOTIFICATION_FROM_EMAIL
        self.from_name = from_name or config.SITE_NAME
        self.timeout = timeout if timeout is not None else config.MAIL_SEND_TIMEOUT_SECONDS
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="mail-send")

    def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        headers: dict[str, str] | None = None,
    ) -> bool:
        """
        Send an HTML email.

        Returns:
            True when Resend accepted the message

        Raises:
            DeliveryError: If Resend rejected the message or the send timed out
        """
        params: dict[str, Any] = {
            "from": f"{self.from_name} <{self.from_email}>",
            "to": to,
            "subject": subject,
            "html": html_body,
            "text": html2text(html_body),
        }
        if headers:
            params["headers"] = headers

        future = self._executor.submit(resend.Emails.send, params)
        try:
            response = future.result(timeout=self.timeout)
        except FutureTimeoutError:
            future.cancel()
            raise DeliveryError(f"Mail send timed out after {self.timeout}s")
        except Exception as e:
            raise DeliveryError(str(e)) from e

        if not response or not response.get("id"):
            raise DeliveryError("Resend did not return an email id")

        return True


def build_admin_alert_subject(payload: NotificationPayload) -> str:
    return f"[Chatbot Alert] New message from {payload.user_name}"


def build_admin_alert_html(
    payload: NotificationPayload, conversation_url: str, site_name: str
) -> str:
    """
    Build HTML email body for an admin new-message alert.

    Args:
        payload: Stored notification payload
        conversation_url: Link to the conversation in the admin UI
        site_name: Site name for the footer

    Returns:
        HTML string
    """
    user_message = escape(payload.user_message).replace("\n", "<br>\n")
    ai_response = escape(payload.ai_response).replace("\n", "<br>\n")

    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>New Chatbot Message</title>
    <style>
        body {{
            font-family: Arial, sans-serif;
            line-height: 1.6;
            color: #333;
            max-width: 600px;
            margin: 0 auto;
            padding: 20px;
        }}
        .header {{
            background: #0073aa;
            color: white;
            padding: 20px;
            border-radius: 5px 5px 0 0;
        }}
        .content {{
            background: #f9f9f9;
            padding: 20px;
            border: 1px solid #ddd;
            border-top: none;
        }}
        .message-box {{
            background: white;
            padding: 15px;
            margin: 10px 0;
            border-left: 4px solid #0073aa;
        }}
        .label {{
            font-weight: bold;
            color: #555;
        }}
        .footer {{
            padding: 15px;
            text-align: center;
            font-size: 12px;
            color: #666;
        }}
    </style>
</head>
<body>
    <div class="header">
        <h2 style="margin: 0;">New Chatbot Message</h2>
        <p style="margin: 5px 0 0 0;">A user has sent a new message via your chatbot</p>
    </div>
    <div class="content">
        <p><span class="label">Name:</span> {escape(payload.user_name)}</p>
        <p><span class="label">Email:</span> {escape(payload.user_email)}</p>
        <p><span class="label">Page:</span> {escape(payload.session_url)}</p>
        <p><span class="label">Time:</span> {escape(payload.timestamp)}</p>

        <div class="message-box">
            <p class="label">User Message:</p>
            <p>{user_message}</p>
        </div>

        <div class="message-box" style="border-left-color: #46b450;">
            <p class="label">AI Response:</p>
            <p>{ai_response}</p>
        </div>

        <a href="{escape(conversation_url)}">View Full Conversation</a>
    </div>
    <div class="footer">
        <p>This is an automated notification from {escape(site_name)}</p>
    </div>
</body>
</html>
"""


def build_summary_html(
    user_name: str, summary: SummaryData, site_name: str, site_url: str
) -> str:
    """
    Build HTML email body for a visitor's conversation summary.

    Args:
        user_name: Visitor name ("there" when unknown)
        summary: Generated summary data
        site_name: Site name for the header and footer
        site_url: Link back to the site

    Returns:
        HTML string
    """
    paragraphs = "".join(
        f"<p>{escape(paragraph)}</p>\n"
        for paragraph in summary.summary_text.split("\n\n")
        if paragraph.strip()
    )

    html = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Your Conversation Summary</title>
    <style>
        body {{
            font-family: Arial, sans-serif;
            line-height: 1.6;
            color: #333;
            max-width: 600px;
            margin: 0 auto;
            padding: 20px;
        }}
        .header {{
            border-bottom: 3px solid #0073aa;
            padding-bottom: 15px;
            margin-bottom: 20px;
        }}
        .topics li, .properties li {{
            margin-bottom: 4px;
        }}
        .footer {{
            margin-top: 30px;
            padding-top: 20px;
            border-top: 1px solid #e5e7eb;
            font-size: 13px;
            color: #6b7280;
            text-align: center;
        }}
    </style>
</head>
<body>
    <div class="header">
        <h1>Hi {escape(user_name)},</h1>
        <p>Here's a summary of your conversation with {escape(site_name)}.</p>
    </div>
    {paragraphs}
"""

    if summary.key_topics:
        items = "".join(f"<li>{escape(topic)}</li>" for topic in summary.key_topics)
        html += f"""
    <h3>Topics discussed</h3>
    <ul class="topics">{items}</ul>
"""

    if summary.properties_mentioned:
        items = "".join(f"<li>{escape(p)}</li>" for p in summary.properties_mentioned)
        html += f"""
    <h3>Properties mentioned</h3>
    <ul class="properties">{items}</ul>
"""

    html += f"""
    <div class="footer">
        <p>Have more questions? <a href="{escape(site_url)}">Chat with us again</a>.</p>
        <p>{escape(site_name)}</p>
    </div>
</body>
</html>
"""

    return html
