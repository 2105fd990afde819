import asyncio
import os
import requests
from datetime import timezone, tzinfo
from typing import Callable, Optional
from app.core.logger import logger
from app.core.config_loader import load_spa_config, get_timezone
from app.core.exceptions import NotificationError
from app.models.db_models import Booking, NOT_SPECIFIED
from app.services.time_normalizer import normalize
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Telegram Configuration
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_CHAT_ID = os.getenv("TELEGRAM_CHAT_ID")
TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/sendMessage"


def get_notification_config(config=None):
    """Notification section of spa_config.json (or of an already loaded config)"""
    if config is None:
        config = load_spa_config()
    return config.get("notifications", {})


def _display_datetime(booking: Booking, tz: tzinfo):
    # Stored instants without an offset are UTC
    return normalize(booking.datetime, tz, default_tz=timezone.utc)


def format_created_message(booking: Booking, tz: tzinfo) -> str:
    when = _display_datetime(booking, tz)
    return f"""
Customer's name: {booking.name}
Telegram: {booking.phone}
Treatment: {booking.service}
Therapist: {booking.therapy_name}
Duration: {booking.duration}
Date: *{when.date}*
Time: *{when.time}*

Remark:
1. Aroma Oil: {booking.aroma_oil or NOT_SPECIFIED}
2. Pressure: {booking.pressure or NOT_SPECIFIED}
3. Body area to focus: {booking.focus_area or NOT_SPECIFIED}
4. Body area to avoid: {booking.avoid_area or NOT_SPECIFIED}

🔔 Please prepare the room and therapist.
"""


def format_cancelled_message(booking: Booking, tz: tzinfo) -> str:
    when = _display_datetime(booking, tz)
    return f"""
❌ BOOKING CANCELLED

Customer's name: {booking.name}
Treatment: {booking.service}
Date: *{when.date}*
Time: *{when.time}*

⚠️ This booking has been cancelled.
"""


def send_telegram_message(text: str, notifications: Optional[dict] = None) -> bool:
    """
    Sends a Markdown message to the spa's Telegram chat.
    Returns False when Telegram notifications are disabled.
    Raises NotificationError if the message could not be delivered.
    """
    if notifications is None:
        notifications = get_notification_config()
    if not notifications.get("telegram_enabled", False):
        logger.info("ℹ️ Telegram notifications are disabled in config.")
        return False

    if not TELEGRAM_BOT_TOKEN or not TELEGRAM_CHAT_ID:
        raise NotificationError("Telegram credentials missing (TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID).")

    payload = {
        "chat_id": TELEGRAM_CHAT_ID,
        "text": text,
        "parse_mode": "Markdown",
    }

    try:
        response = requests.post(TELEGRAM_API_URL.format(token=TELEGRAM_BOT_TOKEN), json=payload, timeout=10)
    except requests.RequestException as e:
        raise NotificationError(f"Telegram request failed: {e}") from e

    if response.status_code != 200:
        raise NotificationError(f"Telegram Error {response.status_code}: {response.text}")
    return True


def _deliver(formatter: Callable[[Booking, tzinfo], str], booking: Booking) -> bool:
    """Reads spa_config.json once, then formats and sends. Blocking, run it in a worker thread."""
    config = load_spa_config()
    text = formatter(booking, get_timezone(config))
    return send_telegram_message(text, get_notification_config(config))


async def notify_booking_created(booking: Booking) -> bool:
    sent = await asyncio.to_thread(_deliver, format_created_message, booking)
    if sent:
        logger.info(f"✅ Telegram alert sent for booking {booking.id}.")
    return sent


async def notify_booking_cancelled(booking: Booking) -> bool:
    sent = await asyncio.to_thread(_deliver, format_cancelled_message, booking)
    if sent:
        logger.info(f"📣 Telegram cancellation alert sent for {booking.name}")
    return sent
