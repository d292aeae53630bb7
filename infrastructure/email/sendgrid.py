"""SendGrid implementation of EmailProvider.

Talks to the SendGrid v3 mail/send HTTP API through HttpClient and renders
one Jinja2 template per OTP purpose.
"""

import os
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from infrastructure.http_client import HttpClient
from shared.logging import get_logger, mask_email

log = get_logger(__name__)

_SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)

# purpose -> (subject, html template, plain-text body format)
OTP_TEMPLATES = {
    "signup": (
        "Welcome! Verify your email address",
        "otp_signup.html",
        "Welcome! Your verification code is: {code}. "
        "This code will expire in {minutes} minutes.",
    ),
    "login": (
        "Your login verification code",
        "otp_login.html",
        "Your login verification code is: {code}. "
        "This code will expire in {minutes} minutes.",
    ),
}


class SendGridProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: Optional[HttpClient] = None,
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
        expiry_minutes: int = 10,
    ) -> None:
        self._settings = settings
        self._http = http_client or HttpClient(timeout=settings.email_timeout_seconds)
        self._expiry_minutes = expiry_minutes
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    async def _send(
        self, to_email: str, subject: str, html_body: str, text_body: str
    ) -> bool:
        if not self._settings.sendgrid_api_key:
            log.error("sendgrid_send_failed", reason="api_key_not_configured")
            return False

        payload = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {
                "email": self._settings.from_email,
                "name": self._settings.from_name,
            },
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": text_body},
                {"type": "text/html", "value": html_body},
            ],
        }
        headers = {
            "Authorization": f"Bearer {self._settings.sendgrid_api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._http.post(
                _SENDGRID_API_URL, json=payload, headers=headers
            )
        except Exception as e:
            log.error(
                "email_send_error",
                to_email=mask_email(to_email),
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if response.status_code in (200, 201, 202):
            log.info("email_sent_success", to_email=mask_email(to_email), subject=subject)
            return True
        log.error(
            "email_send_failed",
            to_email=mask_email(to_email),
            subject=subject,
            status_code=response.status_code,
            response=response.text[:200],
        )
        return False

    async def send_otp(self, email: str, code: str, purpose: str) -> bool:
        if purpose not in OTP_TEMPLATES:
            raise ValueError(f"Invalid email template type: {purpose}")
        subject, template_name, text_format = OTP_TEMPLATES[purpose]
        html_body = self._jinja.get_template(template_name).render(
            otp_code=code, expiry_minutes=self._expiry_minutes
        )
        text_body = text_format.format(code=code, minutes=self._expiry_minutes)
        return await self._send(email, subject, html_body, text_body)

    async def aclose(self) -> None:
        await self._http.aclose()
