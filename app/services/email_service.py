"""
Transactional email via SendGrid.

Falls back to logging the message when SENDGRID_API_KEY or MAIL_FROM is not set.
Sending is best-effort: failures are logged and reported as False, never raised.
"""
import html
import logging
from datetime import datetime
from typing import Optional
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from app.core import config

logger = logging.getLogger(__name__)


class EmailService:
    """Thin wrapper around the SendGrid client."""

    def __init__(self, api_key: Optional[str] = None, sender_email: Optional[str] = None):
        self.api_key = api_key if api_key is not None else config.SENDGRID_API_KEY
        self.sender_email = sender_email if sender_email is not None else config.MAIL_FROM
        self.enabled = bool(self.api_key and self.sender_email)
        if not self.enabled:
            logger.warning("Email service not configured - missing SENDGRID_API_KEY or MAIL_FROM")

    def send(self, to_email: str, subject: str, html_content: str) -> bool:
        if not self.enabled:
            logger.info(f"[Mock Email] to={to_email}, subject={subject}")
            return True

        try:
            message = Mail(
                from_email=self.sender_email,
                to_emails=to_email,
                subject=subject,
                html_content=html_content,
            )
            response = SendGridAPIClient(self.api_key).send(message)
            logger.info(f"Email sent: to={to_email}, status={response.status_code}")
            return True
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False


def _format_card_number(card_number: str) -> str:
    return " ".join(card_number[i:i + 4] for i in range(0, len(card_number), 4))


def render_subscription_confirmation(
    full_name: str,
    plan_type: str,
    card_number: str,
    start_date: datetime,
    end_date: datetime,
) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <h2>Hello {html.escape(full_name or 'there')},</h2>
        <p>Your <strong>{html.escape(plan_type.title())}</strong> membership is now active.</p>
        <table style="margin: 16px 0;">
            <tr><td>Membership card</td><td><strong>{_format_card_number(card_number)}</strong></td></tr>
            <tr><td>Valid from</td><td>{start_date.strftime('%d %b %Y')}</td></tr>
            <tr><td>Valid until</td><td>{end_date.strftime('%d %b %Y')}</td></tr>
            <tr><td>Expiry</td><td>{end_date.strftime('%m/%Y')}</td></tr>
        </table>
        <p>Thank you for subscribing.</p>
    </div>
    """


def send_subscription_confirmation(
    to_email: str,
    full_name: str,
    plan_type: str,
    card_number: str,
    start_date: datetime,
    end_date: datetime,
    service: Optional[EmailService] = None,
) -> bool:
    """Send the membership card email after activation. Never raises."""
    try:
        body = render_subscription_confirmation(full_name, plan_type, card_number, start_date, end_date)
        return (service or EmailService()).send(
            to_email, f"Your {plan_type.title()} membership is active", body
        )
    except Exception as e:
        logger.error(f"Subscription confirmation email failed: to={to_email}, error={e}")
        return False
