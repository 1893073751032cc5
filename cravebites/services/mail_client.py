"""SMTP mail transport for admin password reset emails"""
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr
import smtplib
import ssl
import logging

from cravebites.errors import MailError

logger = logging.getLogger(__name__)

OTP_HTML = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e0e0e0; border-radius: 5px;">
  <h2 style="color: #1a3b39; text-align: center;">CraveBites Admin Password Reset</h2>
  <p>Hello,</p>
  <p>Use the following One-Time Password (OTP) to reset your CraveBites Admin password:</p>
  <div style="text-align: center; padding: 15px; background-color: #f5f5f5; border-radius: 5px; margin: 20px 0; font-size: 24px; letter-spacing: 5px; font-weight: bold;">{otp}</div>
  <p>This OTP is valid for {minutes} minutes and can be used only once.</p>
  <p>If you did not request this password reset, please ignore this email.</p>
  <p style="margin-top: 30px; font-size: 12px; color: #666; text-align: center;">&copy; {year} CraveBites. All rights reserved.</p>
</div>
"""

CONFIRMATION_HTML = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e0e0e0; border-radius: 5px;">
  <h2 style="color: #1a3b39; text-align: center;">Password Reset Successful</h2>
  <p>Hello,</p>
  <p>Your password for the CraveBites Admin account has been reset. You can now log in with your new password.</p>
  <p>If you did not make this change, please contact support immediately.</p>
  <p style="margin-top: 30px; font-size: 12px; color: #666; text-align: center;">&copy; {year} CraveBites. All rights reserved.</p>
</div>
"""


class MailClient:
    """Sends transactional email through one SMTP account"""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        use_ssl: bool = True,
        timeout: float = 20.0,
        sender_name: str = "CraveBites Admin"
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.timeout = timeout
        self.sender_name = sender_name

    @classmethod
    def from_settings(cls, settings) -> "MailClient":
        return cls(
            host=settings.email_host,
            port=settings.email_port,
            username=settings.email_user,
            password=settings.email_pass,
            use_ssl=settings.email_secure,
            timeout=settings.email_timeout,
            sender_name=settings.email_sender_name
        )

    def is_configured(self) -> bool:
        return bool(self.host and self.username and self.password)

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.use_ssl:
            smtp = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        else:
            smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls(context=context)
                smtp.ehlo()
        smtp.login(self.username, self.password)
        return smtp

    def send(self, to: str, subject: str, text: str, html: str) -> None:
        """
        Deliver one message

        Raises:
            MailError: not configured, or the SMTP exchange failed
        """
        if not self.is_configured():
            raise MailError("Email service is not configured")

        message = EmailMessage()
        message["From"] = formataddr((self.sender_name, self.username))
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        message.add_alternative(html, subtype="html")

        try:
            with self._connect() as smtp:
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{subject}' to {to}: {e}")
            raise MailError("Failed to send email") from e

        logger.info(f"Sent '{subject}' to {to}")

    def send_otp_email(self, to: str, otp: str, expires_minutes: int = 10) -> None:
        year = datetime.now().year
        self.send(
            to,
            "Password Reset OTP - CraveBites Admin",
            f"Your OTP for CraveBites Admin password reset is: {otp}. "
            f"This code is valid for {expires_minutes} minutes.",
            OTP_HTML.format(otp=otp, minutes=expires_minutes, year=year)
        )

    def send_password_reset_confirmation(self, to: str) -> None:
        self.send(
            to,
            "Password Reset Successful - CraveBites Admin",
            "Your password for CraveBites Admin has been successfully reset. "
            "You can now log in with your new password.",
            CONFIRMATION_HTML.format(year=datetime.now().year)
        )
