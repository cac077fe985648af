"""
Firebase Cloud Messaging (FCM) service for sending push notifications.
Uses Firebase Admin SDK to send notifications to user devices.
"""
import asyncio
import logging
from typing import Dict, Optional, Tuple
from firebase_admin import messaging
from sqlalchemy.ext.asyncio import AsyncSession

from ideaboard.models.profile import UserProfile
from ideaboard.auth.firebase import get_firebase_app

logger = logging.getLogger(__name__)


def low_credits_push(remaining: int) -> Tuple[str, str]:
    """
    Low-credit push notification text.

    Returns:
        Tuple of (title, body)
    """
    title = "Credits running low!"
    if remaining == 0:
        body = "You have no generations left this month. Upgrade to continue."
    elif remaining == 1:
        body = "You have only 1 generation left this month."
    else:
        body = f"You have only {remaining} generations left this month."
    return title, body


def payment_push(succeeded: bool, plan_name: str) -> Tuple[str, str]:
    if succeeded:
        return "Payment successful", f"Your {plan_name} plan is now active."
    return "Payment failed", f"We couldn't process your payment for the {plan_name} plan."


class FCMService:
    """Service for sending FCM push notifications."""

    @staticmethod
    async def send_to_profile(
        db: AsyncSession,
        profile: UserProfile,
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> bool:
        """
        Send a push notification to the profile's registered device.

        Args:
            db: Database session (used to drop unregistered tokens)
            profile: Recipient profile
            title: Notification title
            body: Notification body
            data: Optional string key/value payload

        Returns:
            True if notification was sent successfully, False otherwise
        """
        if not profile.fcm_token:
            logger.debug(f"User {profile.id} has no FCM token, skipping notification")
            return False

        firebase_app = get_firebase_app()
        if not firebase_app:
            logger.warning("Firebase Admin SDK not initialized, cannot send FCM notification")
            return False

        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data=data or {},
            token=profile.fcm_token,
        )

        try:
            response = await asyncio.to_thread(messaging.send, message, app=firebase_app)
            logger.info(f"FCM notification sent to user {profile.id}: {response}")
            return True

        except messaging.UnregisteredError:
            logger.warning(
                f"FCM token for user {profile.id} is invalid or unregistered, removing it"
            )
            profile.fcm_token = None
            await db.commit()
            return False
        except Exception as e:
            logger.error(
                f"Failed to send FCM notification to user {profile.id}: {str(e)}",
                exc_info=True
            )
            return False
