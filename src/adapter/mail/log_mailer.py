"""MailerPort that only logs messages. Used when SEND_EMAILS is off (local development)."""

from logging import getLogger

from domain.model.mail import MailConfig, MailMessage

logger = getLogger(__name__)


class LogMailer:
    async def send(self, config: MailConfig, message: MailMessage) -> None:
        logger.info("[DEV EMAIL] not sent", extra={
            "to": message.to_email,
            "subject": message.subject,
            "from": config.from_address,
            "body": message.html_body,
        })
