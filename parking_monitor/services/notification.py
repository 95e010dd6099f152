"""
Notification Service - Pushes booking results to Telegram and e-mail
"""
from datetime import datetime
from email.mime.text import MIMEText
from typing import Dict, List, Optional, Tuple

import aiosmtplib
import httpx
from loguru import logger

from ..app.config import settings as default_settings, Settings
from ..app.schemas import StatusEvent, StatusKind


# Status events a person should hear about, and the title to send them under
ALERT_TITLES: Dict[StatusKind, str] = {
    StatusKind.SUCCESS: "Parking Booked!",
    StatusKind.ERROR: "Parking Booking Needs Attention",
}


def needs_alert(event: StatusEvent) -> bool:
    """Bookings always; errors only when the spot may be half-booked"""
    if event.kind is StatusKind.SUCCESS:
        return True
    return event.kind is StatusKind.ERROR and "check manually" in event.message.lower()


class NotificationService:
    """Sends alerts over every configured channel"""

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or default_settings
        self.transport = transport

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.settings.telegram_bot_token and self.settings.telegram_chat_id)

    @property
    def email_enabled(self) -> bool:
        return bool(self.settings.smtp_user and self.settings.smtp_password)

    async def handle_event(self, event: StatusEvent):
        """Status sink: forward the events that need a person"""
        if needs_alert(event):
            await self.notify(event.message, title=ALERT_TITLES[event.kind])

    async def notify(self, message: str, title: str = "Alta Parking Monitor") -> List[Tuple[str, bool]]:
        """Send via all enabled channels; returns (channel, delivered) pairs"""
        results = []

        if self.telegram_enabled:
            results.append(("telegram", await self.send_telegram(message, title)))

        if self.email_enabled:
            results.append(("email", await self.send_email(message, title)))

        if not results:
            logger.debug(f"No notification channel configured, dropped: {title}")
        return results

    async def send_telegram(self, message: str, title: Optional[str] = None) -> bool:
        if not self.telegram_enabled:
            logger.warning("Telegram not configured")
            return False

        # Plain text - no Markdown to avoid parse errors
        text = f"[ {title} ]\n\n{message}" if title else message
        text += f"\n\n{_stamp()}"
        url = f"https://api.telegram.org/bot{self.settings.telegram_bot_token}/sendMessage"

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(
                    url,
                    json={"chat_id": self.settings.telegram_chat_id, "text": text},
                    timeout=10,
                )
        except httpx.HTTPError as e:
            logger.error(f"Telegram notification failed: {e}")
            return False

        if response.status_code != 200:
            logger.error(f"Telegram error: {response.text}")
            return False

        logger.info("Telegram notification sent")
        return True

    async def send_email(self, message: str, subject: str = "Alta Parking Monitor") -> bool:
        """Mail the account owner (the SMTP user sends to itself)"""
        if not self.email_enabled:
            logger.warning("Email not configured")
            return False

        msg = MIMEText(f"{message}\n\nSent at {_stamp()}", "plain")
        msg["From"] = self.settings.smtp_user
        msg["To"] = self.settings.smtp_user
        msg["Subject"] = subject

        try:
            await aiosmtplib.send(
                msg,
                hostname=self.settings.smtp_host,
                port=self.settings.smtp_port,
                username=self.settings.smtp_user,
                password=self.settings.smtp_password,
                start_tls=True,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Email notification failed: {e}")
            return False

        logger.info("Email notification sent")
        return True


def _stamp() -> str:
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')
