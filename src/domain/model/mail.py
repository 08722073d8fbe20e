"""Domain models for outbound mail."""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class MailConfig:
    """Outbound SMTP configuration (Value Object).

    Attributes:
        host: SMTP server hostname.
        port: SMTP server port.
        secure: Implicit TLS on connect. When False, STARTTLS is used on port 587.
        username: SMTP login, empty when the server needs no authentication.
        password: SMTP password.
        from_address: Envelope sender address.
        from_name: Display name shown next to the sender address.
        timeout: Socket timeout in seconds.
    """
    host: str
    port: int
    secure: bool = False
    username: str = ''
    password: str = ''
    from_address: str = 'noreply@formation.io'
    from_name: str | None = None
    timeout: int = 30

    @property
    def uses_credentials(self) -> bool:
        return bool(self.username)

    @property
    def uses_starttls(self) -> bool:
        return not self.secure and self.port == 587

    def with_overrides(self, **changes) -> 'MailConfig':
        return replace(self, **changes)


@dataclass(frozen=True)
class MailMessage:
    """A rendered message ready for delivery."""
    to_email: str
    subject: str
    html_body: str
