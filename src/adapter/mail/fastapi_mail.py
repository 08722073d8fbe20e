"""fastapi-mail implementation of MailerPort.

A FastMail client is built per send from the resolved MailConfig, so SMTP
changes made through the settings store apply without a restart.
"""

from logging import getLogger

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from domain.model.mail import MailConfig, MailMessage

logger = getLogger(__name__)


def build_connection_config(config: MailConfig) -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=config.username,
        MAIL_PASSWORD=config.password,
        MAIL_FROM=config.from_address,
        MAIL_FROM_NAME=config.from_name,
        MAIL_SERVER=config.host,
        MAIL_PORT=config.port,
        MAIL_STARTTLS=config.uses_starttls,
        MAIL_SSL_TLS=config.secure,
        USE_CREDENTIALS=config.uses_credentials,
        VALIDATE_CERTS=True,
        TIMEOUT=config.timeout,
    )


class FastMailAdapter:
    async def send(self, config: MailConfig, message: MailMessage) -> None:
        fast_mail = FastMail(build_connection_config(config))
        schema = MessageSchema(
            subject=message.subject,
            recipients=[message.to_email],
            body=message.html_body,
            subtype=MessageType.html,
        )
        logger.debug("Sending email via SMTP", extra={"host": config.host, "port": config.port})
        await fast_mail.send_message(schema)
