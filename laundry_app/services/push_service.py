"""
Firebase Cloud Messaging push provider
Sends one push per device token via the Firebase Admin SDK.

Contract: send() returns True on success, False when push is not configured,
raises InvalidDeviceTokenError when FCM reports the token as permanently
invalid and PushDeliveryError for anything else (including timeouts).
"""

import asyncio
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin import exceptions as firebase_exceptions

from ..config import (
    FIREBASE_CREDENTIALS_PATH,
    FIREBASE_PROJECT_ID,
    PUSH_ANDROID_ICON,
    PUSH_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

def is_dead_token_error(error: Exception) -> bool:
    """True when FCM says the registration token will never work again.

    InvalidArgumentError is also raised for malformed payloads, so it only
    counts when it is about the registration token itself.
    """
    if isinstance(error, messaging.UnregisteredError):
        return True
    return isinstance(error, firebase_exceptions.InvalidArgumentError) and "registration token" in str(error).lower()


class PushDeliveryError(Exception):
    """Push could not be delivered (provider error or timeout)"""


class InvalidDeviceTokenError(PushDeliveryError):
    """Provider says this token is permanently invalid; it should be purged"""


def _stringify(data: Optional[dict]) -> dict:
    # FCM data payload values must be strings
    return {str(k): "" if v is None else str(v) for k, v in (data or {}).items()}


class FirebasePushProvider:
    """Push provider backed by firebase_admin.messaging"""

    def __init__(self, timeout: float = PUSH_TIMEOUT_SECONDS):
        self.timeout = timeout
        self.app = self._init_app()

    def _init_app(self):
        if not FIREBASE_CREDENTIALS_PATH:
            logger.warning("FIREBASE_CREDENTIALS_PATH not set; push notifications disabled")
            return None

        # Initialize Firebase Admin SDK (only once)
        try:
            return firebase_admin.get_app()
        except ValueError:
            pass

        try:
            cred = credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
            options = {"projectId": FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None
            app = firebase_admin.initialize_app(cred, options)
            logger.info("Firebase Admin initialized for push messaging")
            return app
        except Exception as e:
            logger.error(f"❌ Firebase Admin initialization failed; push disabled: {e}")
            return None

    def is_available(self) -> bool:
        return self.app is not None

    def _build_message(self, token: str, title: str, body: str, data: Optional[dict]) -> messaging.Message:
        return messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            android=messaging.AndroidConfig(
                notification=messaging.AndroidNotification(icon=PUSH_ANDROID_ICON),
            ),
            data=_stringify(data),
        )

    async def send(self, token: str, title: str, body: str, data: Optional[dict] = None) -> bool:
        if not self.app:
            logger.debug("Push not configured; skipping send")
            return False

        message = self._build_message(token, title, body, data)
        try:
            await asyncio.wait_for(
                asyncio.to_thread(messaging.send, message, app=self.app),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise PushDeliveryError(f"FCM did not respond within {self.timeout}s") from e
        except firebase_exceptions.FirebaseError as e:
            if is_dead_token_error(e):
                raise InvalidDeviceTokenError(str(e)) from e
            raise PushDeliveryError(str(e)) from e

        logger.info(f"✅ Push sent to token {token[:20]}...")
        return True
