"""
Transactional email via the Resend HTTP API.
Templates cover low-credit warnings and payment confirmations.
"""
import html
import logging
from typing import Optional, Tuple

import httpx

from ideaboard.config import settings

logger = logging.getLogger(__name__)


def _layout(heading: str, body_html: str, cta_label: str, cta_path: str) -> str:
    return f"""<!DOCTYPE html>
<html>
  <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background-color: #0a0a0a; color: #ffffff; padding: 40px 20px;">
    <div style="max-width: 600px; margin: 0 auto; background: #1a1a1a; border-radius: 16px; border: 1px solid #333;">
      <div style="background: linear-gradient(135deg, #6366f1 0%, #8b5cf6 100%); padding: 32px; text-align: center;">
        <h1 style="margin: 0; font-size: 24px;">{heading}</h1>
      </div>
      <div style="padding: 32px;">
        {body_html}
        <div style="text-align: center; margin-top: 32px;">
          <a href="{settings.app_url}{cta_path}" style="display: inline-block; background: #6366f1; color: #fff; text-decoration: none; padding: 14px 32px; border-radius: 8px; font-weight: bold;">{cta_label}</a>
        </div>
      </div>
    </div>
  </body>
</html>"""


def low_credits_email(name: Optional[str], remaining: int, limit: int, plan_name: str) -> Tuple[str, str]:
    """
    Build the low-credit warning email.

    Returns:
        Tuple of (subject, html)
    """
    greeting = html.escape(name or "there")
    if remaining == 0:
        subject = "You've used all your IdeaBoard generations this month"
        line = "You have no generations left this month. Upgrade to keep validating ideas."
    elif remaining == 1:
        subject = "Only 1 IdeaBoard generation left"
        line = f"You have only 1 of {limit} generations left on the {plan_name} plan."
    else:
        subject = f"Only {remaining} IdeaBoard generations left"
        line = f"You have only {remaining} of {limit} generations left on the {plan_name} plan."

    body = f"<p style=\"font-size: 18px;\">Hey {greeting}!</p><p>{line}</p>"
    return subject, _layout("⚠️ Credits running low", body, "Get More Credits", "/pricing")


def payment_succeeded_email(name: Optional[str], plan_name: str, monthly_quota: int) -> Tuple[str, str]:
    greeting = html.escape(name or "there")
    subject = f"Payment received: you're on IdeaBoard {plan_name}"
    body = (
        f"<p style=\"font-size: 18px;\">Hey {greeting}!</p>"
        f"<p>Your payment was successful. Your {plan_name} plan is active with "
        f"{monthly_quota} idea generations per month, and your usage has been reset.</p>"
    )
    return subject, _layout("✅ Payment successful", body, "Go to Dashboard", "/dashboard")


def payment_failed_email(name: Optional[str], plan_name: str) -> Tuple[str, str]:
    greeting = html.escape(name or "there")
    subject = "Your IdeaBoard payment didn't go through"
    body = (
        f"<p style=\"font-size: 18px;\">Hey {greeting}!</p>"
        f"<p>We couldn't process your payment for the {plan_name} plan. "
        f"No charge was applied. You can try again from the pricing page.</p>"
    )
    return subject, _layout("❌ Payment failed", body, "Try Again", "/pricing")


class EmailService:
    """Sends email through Resend."""

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.resend_api_key)

    @staticmethod
    async def send_email(
        to: str,
        subject: str,
        html_body: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> bool:
        """
        Send a single email.

        Args:
            to: Recipient address
            subject: Subject line
            html_body: HTML content
            client: Optional shared httpx client

        Returns:
            True if Resend accepted the email, False otherwise
        """
        if not EmailService.is_configured():
            logger.debug("Resend API key not configured, skipping email")
            return False

        payload = {
            "from": settings.email_from,
            "to": [to],
            "subject": subject,
            "html": html_body,
        }
        headers = {"Authorization": f"Bearer {settings.resend_api_key}"}

        try:
            if client is not None:
                response = await client.post(settings.resend_api_url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=settings.notification_timeout_seconds) as own_client:
                    response = await own_client.post(settings.resend_api_url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send email '{subject}': {e}")
            return False

        logger.info(f"Email sent: '{subject}'")
        return True
