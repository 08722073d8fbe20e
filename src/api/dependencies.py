import os
from functools import lru_cache

from fastapi import HTTPException

from adapter.mail.fastapi_mail import FastMailAdapter
from adapter.mail.log_mailer import LogMailer
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.settings_repository import MongoSettingsRepository
from adapter.mongodb.user_repository import MongoUserRepository
from port.mailer import MailerPort
from port.settings_repository import SettingsRepository
from port.user_repository import UserRepository
from services.mail_config_service import DEFAULT_TTL_SECONDS, MailConfigResolver
from services.notification_service import NotificationDispatcher, frontend_url_from_env
from utils.env import bool_env


def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


def get_user_repo() -> UserRepository:
    return MongoUserRepository(_get_db())


def get_settings_repo() -> SettingsRepository:
    return MongoSettingsRepository(_get_db())


def _settings_repo_or_none() -> SettingsRepository | None:
    """Settings source for mail resolution; None lets the resolver fall back to defaults."""
    client = get_mongodb_client()
    if client is None:
        return None
    return MongoSettingsRepository(client[DATABASE_NAME])


def _build_mailer() -> MailerPort:
    if bool_env("SEND_EMAILS", default=True):
        return FastMailAdapter()
    return LogMailer()


@lru_cache(maxsize=1)
def get_notification_dispatcher() -> NotificationDispatcher:
    """Process-wide dispatcher; its resolver cache is invalidated by settings updates."""
    resolver = MailConfigResolver(
        settings_source=_settings_repo_or_none,
        ttl_seconds=float(os.getenv("MAIL_CONFIG_TTL_SECONDS", DEFAULT_TTL_SECONDS)),
    )
    return NotificationDispatcher(
        mailer=_build_mailer(),
        resolver=resolver,
        frontend_url=frontend_url_from_env(),
    )
