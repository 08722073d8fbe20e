"""Platform settings routes.

Settings are a flat key/value store. Writing them also refreshes the
outbound mail configuration, since smtp_* keys override the environment.
"""

import logging

from fastapi import APIRouter, Body, Depends, HTTPException, status

from api.dependencies import get_notification_dispatcher, get_settings_repo
from port.settings_repository import SettingsRepository
from services.mail_config_service import OVERRIDE_KEYS
from services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["settings"])


def _as_setting_value(value: str | int | float | bool) -> str:
    # JSON spelling for booleans, so "true" rather than "True"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@router.get("", response_model=dict[str, str | None])
async def get_settings(repo: SettingsRepository = Depends(get_settings_repo)):
    settings = repo.get_all()
    if settings is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch settings")
    return settings


@router.put("", response_model=dict[str, str | None])
async def update_settings(
    values: dict[str, str | int | float | bool] = Body(...),
    repo: SettingsRepository = Depends(get_settings_repo),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Upsert settings. Values are stored as strings."""
    settings = repo.upsert({key: _as_setting_value(value) for key, value in values.items()})
    if settings is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update settings")

    if any(key in OVERRIDE_KEYS for key in values):
        logger.info("Mail settings changed, refreshing mail configuration")
    dispatcher.resolver.invalidate()
    return settings
