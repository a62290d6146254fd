"""
Email service with template support
Uses aiosmtplib for async email sending
"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Dict, Any, Optional
from pathlib import Path
from jinja2 import Environment, FileSystemLoader, select_autoescape
import logging

from wellness.core.config import settings

logger = logging.getLogger(__name__)

STATUS_TEXT = {
    "PENDING": "Ожидает подтверждения",
    "CONFIRMED": "Подтверждена",
    "COMPLETED": "Завершена",
    "CANCELLED": "Отменена",
    "ARCHIVED": "В архиве",
}

MONTHS_GENITIVE = [
    "января", "февраля", "марта", "апреля", "мая", "июня",
    "июля", "августа", "сентября", "октября", "ноября", "декабря",
]


class EmailService:
    """Email service with template rendering"""

    def __init__(self):
        self.enabled = settings.EMAIL_ENABLED
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS
        self.from_email = settings.SMTP_FROM_EMAIL
        self.from_name = settings.SMTP_FROM_NAME

        # Setup Jinja2 for email templates
        template_dir = Path(__file__).parent.parent / "templates" / "emails"
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(['html', 'xml'])
        )

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> bool:
        """Send email, returns False instead of raising on delivery errors"""
        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            msg.attach(MIMEText(body, 'plain', 'utf-8'))
            if html_body:
                msg.attach(MIMEText(html_body, 'html', 'utf-8'))

            async with aiosmtplib.SMTP(
                hostname=self.smtp_host,
                port=self.smtp_port,
                start_tls=self.use_tls,
            ) as smtp:
                if self.smtp_user:
                    await smtp.login(self.smtp_user, self.smtp_password)
                await smtp.send_message(msg)

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            return False

    async def send_booking_confirmation(self, to_email: str, context: Dict[str, Any]) -> bool:
        """
        Notify a client about a new booking

        Args:
            to_email: Client address
            context: user_name, specialist_name, service_name, date,
                time_start, time_end, status, price
        """
        status = context.get("status", "PENDING")
        if status == "PENDING":
            subject = "Запись на прием создана - Вдохновение"
        else:
            subject = "Запись на прием подтверждена - Вдохновение"

        template_context = {
            **context,
            "subject": subject,
            "date_text": format_date(context.get("date")),
            "status_text": STATUS_TEXT.get(status, status),
            "cabinet_url": f"{settings.FRONTEND_URL}/cabinet/appointments",
        }

        template = self.env.get_template("booking_confirmation.html")
        html_body = template.render(**template_context)
        text_body = (
            f"{subject}\n\n"
            f"Специалист: {template_context.get('specialist_name') or '-'}\n"
            f"Услуга: {template_context.get('service_name') or '-'}\n"
            f"Дата: {template_context['date_text']}\n"
            f"Время: {context.get('time_start')} - {context.get('time_end')}\n"
            f"Статус: {template_context['status_text']}\n"
        )

        return await self.send_email(to_email, subject, text_body, html_body)


def format_date(value) -> str:
    if value is None:
        return ""
    return f"{value.day} {MONTHS_GENITIVE[value.month - 1]} {value.year}"
