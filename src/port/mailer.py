"""Port definition for outbound mail delivery."""

from typing import Protocol

from domain.model.mail import MailConfig, MailMessage


class MailerPort(Protocol):
    async def send(self, config: MailConfig, message: MailMessage) -> None:
        """Deliver one message. Raises on transport failure."""
        ...
