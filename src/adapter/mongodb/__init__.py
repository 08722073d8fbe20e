"""MongoDB adapters for the user and settings stores."""

USERS_COLLECTION_NAME = 'users'
SETTINGS_COLLECTION_NAME = 'settings'
