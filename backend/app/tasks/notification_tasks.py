import asyncio
import logging

from app.core.celery_app import celery_app
from app.services.notifications.email_sender import EmailDeliveryError, EmailSender
from app.services.notifications.whatsapp import WhatsAppDeliveryError, WhatsAppSender

logger = logging.getLogger(__name__)


def _run(coro):
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _send_whatsapp(to: str, body: str) -> str:
    async with WhatsAppSender() as sender:
        return await sender.send(to, body)


@celery_app.task(name="notifications.send_email")
def send_email_task(to: str, subject: str, text: str):
    """
    Deliver one notification email.

    Delivery is best-effort: failures are logged and reported in the
    result, never retried.
    """
    try:
        message_id = _run(EmailSender().send(to, subject, text))
    except EmailDeliveryError as e:
        logger.error(f"Email '{subject}' to {to} failed: {e}")
        return {"status": "failed", "error": str(e)}
    return {"status": "sent", "message_id": message_id}


@celery_app.task(name="notifications.send_whatsapp")
def send_whatsapp_task(to: str, body: str):
    try:
        sid = _run(_send_whatsapp(to, body))
    except WhatsAppDeliveryError as e:
        logger.error(f"WhatsApp message to {to} failed: {e}")
        return {"status": "failed", "error": str(e)}
    return {"status": "sent", "sid": sid}
