"""Development EmailProvider that logs instead of sending.

Selected with EMAIL_BACKEND=console. Outside production the code is logged
at debug level under ``console_code``, a key the redaction processor leaves
alone, so it can be read off the development console.
"""

from shared.logging import IS_PRODUCTION, get_logger, mask_email

log = get_logger(__name__)


class ConsoleEmailProvider:
    async def send_otp(self, email: str, code: str, purpose: str) -> bool:
        log.info("email_console_delivery", to_email=mask_email(email), purpose=purpose)
        if not IS_PRODUCTION:
            log.debug(
                "email_console_code",
                to_email=mask_email(email),
                purpose=purpose,
                console_code=code,
            )
        return True

    async def aclose(self) -> None:
        return None
