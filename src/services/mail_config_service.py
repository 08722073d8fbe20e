"""Mail configuration resolver.

Layers settings-store overrides on top of environment defaults. The result is
cached for a short TTL and dropped explicitly when settings change, so admins
can reconfigure SMTP at runtime without a restart.
"""

import logging
import os
import time
from email.utils import parseaddr
from typing import Callable

from domain.model.mail import MailConfig
from port.settings_repository import SettingsRepository
from utils.env import bool_env, int_env

logger = logging.getLogger(__name__)

# Settings keys that may override environment defaults
OVERRIDE_KEYS = ('smtp_host', 'smtp_port', 'smtp_user', 'smtp_pass', 'smtp_from')

DEFAULT_TTL_SECONDS = 60


def _split_sender(raw: str) -> tuple[str | None, str]:
    """Split 'Name <addr>' or 'addr' into (name, address)."""
    name, address = parseaddr(raw)
    return (name or None), (address or raw.strip())


def default_mail_config() -> MailConfig:
    """Build the environment-declared defaults. Read at call time."""
    from_name, from_address = _split_sender(os.getenv("SMTP_FROM", "noreply@formation.io"))
    return MailConfig(
        host=os.getenv("SMTP_HOST", "localhost"),
        port=int_env("SMTP_PORT", 587),
        secure=bool_env("SMTP_SECURE", default=False),
        username=os.getenv("SMTP_USER", ""),
        password=os.getenv("SMTP_PASS", ""),
        from_address=from_address,
        from_name=from_name,
        timeout=int_env("SMTP_TIMEOUT", 30),
    )


def apply_overrides(base: MailConfig, settings: dict[str, str]) -> MailConfig:
    """Overwrite defaults with recognized, non-empty settings values."""
    changes = {}
    values = {key: str(settings[key]).strip() for key in OVERRIDE_KEYS if settings.get(key) not in (None, '')}

    if values.get('smtp_host'):
        changes['host'] = values['smtp_host']
    if values.get('smtp_port'):
        try:
            changes['port'] = int(values['smtp_port'])
        except ValueError:
            logger.warning("Ignoring invalid smtp_port setting", extra={"value": values['smtp_port']})
    if values.get('smtp_user'):
        changes['username'] = values['smtp_user']
    if values.get('smtp_pass'):
        changes['password'] = values['smtp_pass']
    if values.get('smtp_from'):
        from_name, from_address = _split_sender(values['smtp_from'])
        changes['from_address'] = from_address
        changes['from_name'] = from_name or base.from_name

    return base.with_overrides(**changes) if changes else base


class MailConfigResolver:
    """Resolve the effective MailConfig with a TTL cache and explicit invalidation.

    Args:
        settings_source: Returns a SettingsRepository, or None when the store is unavailable.
        ttl_seconds: Cache lifetime; 0 rebuilds on every call.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        settings_source: Callable[[], SettingsRepository | None],
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._settings_source = settings_source
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._cached: MailConfig | None = None
        self._cached_at = 0.0

    def invalidate(self) -> None:
        """Drop the cached config; the next resolve() reads the settings store again."""
        self._cached = None
        logger.debug("Mail configuration cache invalidated")

    def resolve(self) -> MailConfig:
        """Return the effective config. Never raises on settings-store failure."""
        if self._cached is not None and self._clock() - self._cached_at < self._ttl_seconds:
            return self._cached

        config = default_mail_config()
        settings = self._read_settings()
        if settings is None:
            # Degraded result is not cached so the next call retries the store
            return config

        config = apply_overrides(config, settings)
        if self._ttl_seconds > 0:
            self._cached = config
            self._cached_at = self._clock()
        return config

    def _read_settings(self) -> dict[str, str] | None:
        try:
            repo = self._settings_source()
            if repo is None:
                logger.warning("Settings store unavailable, using default mail configuration")
                return None
            settings = repo.get_all()
        except Exception as e:
            logger.warning("Failed to read mail settings, using defaults", extra={"error": str(e)})
            return None

        if settings is None:
            logger.warning("Settings store read failed, using default mail configuration")
        return settings
