"""Notification dispatcher — renders and delivers verification emails.

Delivery is best effort and at most once: failures are logged and never
reach the caller, and nothing is retried. The resend endpoint is the
recovery path for a message that never arrived.
"""

import asyncio
import logging
import os
from urllib.parse import urlencode

from domain.model.mail import MailMessage
from port.mailer import MailerPort
from services.mail_config_service import MailConfigResolver
from utils.email_templates import build_resend_email, build_verification_email

logger = logging.getLogger(__name__)

VERIFY_PATH = "/verify-email"
DEFAULT_FRONTEND_URL = "http://localhost:5173"


def frontend_url_from_env() -> str:
    return os.getenv("FRONTEND_URL", DEFAULT_FRONTEND_URL)


class NotificationDispatcher:
    """Send verification and resend emails through a resolved mail configuration."""

    def __init__(self, mailer: MailerPort, resolver: MailConfigResolver, frontend_url: str = DEFAULT_FRONTEND_URL):
        self._mailer = mailer
        self._resolver = resolver
        self._frontend_url = frontend_url.rstrip('/')
        # Strong references so detached tasks are not garbage collected mid-flight
        self._pending: set[asyncio.Task] = set()

    @property
    def resolver(self) -> MailConfigResolver:
        return self._resolver

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def build_verification_url(self, token: str) -> str:
        return f"{self._frontend_url}{VERIFY_PATH}?{urlencode({'token': token})}"

    async def send_verification(self, to_email: str, display_name: str, token: str) -> bool:
        """Send the post-registration verification email. Returns True if delivered."""
        message = build_verification_email(to_email, display_name, self.build_verification_url(token))
        return await self._deliver(message, kind="verification")

    async def send_resend(self, to_email: str, display_name: str, token: str) -> bool:
        """Send a reissued verification link. Returns True if delivered."""
        message = build_resend_email(to_email, display_name, self.build_verification_url(token))
        return await self._deliver(message, kind="resend")

    def schedule_verification(self, to_email: str, display_name: str, token: str) -> asyncio.Task:
        """Start send_verification as a detached task and return it without waiting."""
        return self._detach(self.send_verification(to_email, display_name, token), kind="verification")

    def schedule_resend(self, to_email: str, display_name: str, token: str) -> asyncio.Task:
        """Start send_resend as a detached task and return it without waiting."""
        return self._detach(self.send_resend(to_email, display_name, token), kind="resend")

    async def drain(self) -> None:
        """Wait for every pending send. Called on application shutdown."""
        if self._pending:
            logger.info("Waiting for pending notification tasks", extra={"count": len(self._pending)})
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _deliver(self, message: MailMessage, kind: str) -> bool:
        try:
            config = self._resolver.resolve()
            await self._mailer.send(config, message)
        except Exception as e:
            logger.warning("Email delivery failed", extra={
                "kind": kind,
                "to": message.to_email,
                "error": str(e)[:200],
            })
            return False

        logger.info("Email sent", extra={"kind": kind, "to": message.to_email})
        return True

    def _detach(self, coro, kind: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=f"notify-{kind}")
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Notification task cancelled", extra={"task": task.get_name()})
            return
        error = task.exception()
        if error is not None:
            logger.error("Notification task crashed", extra={"task": task.get_name(), "error": str(error)})
