"""In-memory implementation of MailerPort for testing."""

from domain.model.mail import MailConfig, MailMessage


class FakeMailer:
    def __init__(self, error: Exception | None = None):
        self.sent: list[tuple[MailConfig, MailMessage]] = []
        self.error = error

    async def send(self, config: MailConfig, message: MailMessage) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((config, message))

    @property
    def messages(self) -> list[MailMessage]:
        return [message for _, message in self.sent]
