from .notification_tasks import send_email_task, send_whatsapp_task
