import asyncio
from typing import Optional

from loguru import logger
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, To

from parkwell.config.settings_env import settings

EMAIL_WRAPPER = """
<html>
    <body style="font-family: Arial, sans-serif; padding: 20px; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #333;">{title}</h2>
        {body}
        <hr style="border: 1px solid #eee; margin: 20px 0;">
        <p style="color: #666; font-size: 12px;">{app_name}. This is an automated message, please do not reply.</p>
    </body>
</html>
"""

CODE_BLOCK = (
    '<div style="background-color: #f4f4f4; padding: 15px; border-radius: 5px; text-align: center; '
    'font-size: 24px; letter-spacing: 5px; margin: 20px 0;"><strong>{code}</strong></div>'
)


class EmailSender:
    """Outgoing e-mail through SendGrid.

    Delivery problems are logged and reported as False; they never propagate
    into the request that triggered the message.
    """

    def __init__(self, api_key: Optional[str] = None, sender_email: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.SENDGRID_API_KEY
        self.sender_email = sender_email if sender_email is not None else settings.SENDER_EMAIL

    def has_credentials(self) -> bool:
        if not self.api_key:
            logger.warning("SendGrid API key not configured, e-mail not sent")
            return False
        if not self.sender_email:
            logger.warning("Sender e-mail not configured, e-mail not sent")
            return False
        return True

    def _deliver(self, to: str, subject: str, text: str, html: Optional[str]) -> bool:
        message = Mail(
            from_email=Email(self.sender_email, settings.APP_NAME),
            to_emails=To(to),
            subject=subject,
            plain_text_content=Content("text/plain", text),
            html_content=Content("text/html", html) if html else None,
        )
        try:
            response = SendGridAPIClient(self.api_key).send(message)
        except Exception as e:
            logger.error(f"Failed to send e-mail to {to}: {e}")
            return False
        logger.info(f"E-mail '{subject}' sent to {to} (status {response.status_code})")
        return 200 <= response.status_code < 300

    async def send_email(self, to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
        if not self.has_credentials():
            return False
        return await asyncio.to_thread(self._deliver, to, subject, text, html)

    def _html(self, title: str, body: str) -> str:
        return EMAIL_WRAPPER.format(title=title, body=body, app_name=settings.APP_NAME)

    async def send_verification_code(self, to: str, first_name: str, code: str) -> bool:
        text = (
            f"Hello {first_name},\n\nYour {settings.APP_NAME} verification code is {code}.\n"
            f"Enter it at {settings.FRONTEND_URL}/verify-email to activate your account."
        )
        html = self._html(
            "Verify your e-mail",
            f"<p>Hello {first_name}, use this code to verify your account:</p>" + CODE_BLOCK.format(code=code),
        )
        return await self.send_email(to, "Verify your e-mail", text, html)

    async def send_password_reset(self, to: str, first_name: str, otp: str) -> bool:
        minutes = settings.RESET_OTP_EXPIRES_MINUTES
        text = (
            f"Hello {first_name},\n\nYour password reset code is {otp}. "
            f"It expires in {minutes} minutes.\nIf you didn't request this code, please ignore this email."
        )
        html = self._html(
            "Password reset",
            f"<p>Hello {first_name}, use this code to reset your password:</p>"
            + CODE_BLOCK.format(code=otp)
            + f"<p>This code will expire in {minutes} minutes.</p>",
        )
        return await self.send_email(to, "Password reset code", text, html)

    async def send_slot_approval(
        self, to: str, first_name: str, slot_number: str, plate_number: str, hours: int, cost
    ) -> bool:
        text = (
            f"Hello {first_name},\n\nYour request for slot {slot_number} has been approved.\n"
            f"Vehicle: {plate_number}\nDuration: {hours} hour(s)\nCost: {cost}\n"
            f"Download your ticket from {settings.FRONTEND_URL}/slot-requests."
        )
        html = self._html(
            "Slot request approved",
            f"<p>Hello {first_name}, your request for slot <strong>{slot_number}</strong> has been approved.</p>"
            f"<p>Vehicle: {plate_number}<br>Duration: {hours} hour(s)<br>Cost: {cost}</p>",
        )
        return await self.send_email(to, "Your parking slot request was approved", text, html)
