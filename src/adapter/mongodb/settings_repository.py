"""MongoDB implementation of SettingsRepository.

One document per setting: {'key': str, 'value': str}.
"""

from datetime import datetime, timezone
from logging import getLogger

from pymongo import UpdateOne
from pymongo.database import Database
from pymongo.errors import PyMongoError

from adapter.mongodb import SETTINGS_COLLECTION_NAME

logger = getLogger(__name__)


class MongoSettingsRepository:
    def __init__(self, db: Database):
        self.collection = db[SETTINGS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for settings collection."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(self.collection, [('key', 1)], 'idx_settings_key', unique=True)
            return True
        except Exception as e:
            logger.error("Failed to create settings indexes", extra={"error": str(e)})
            return False

    def get_all(self) -> dict[str, str] | None:
        try:
            return {doc['key']: doc.get('value') for doc in self.collection.find({}, {'_id': 0, 'key': 1, 'value': 1})}
        except PyMongoError as e:
            logger.error("Failed to read settings", extra={"error": str(e)})
            return None

    def upsert(self, values: dict[str, str]) -> dict[str, str] | None:
        if not values:
            return self.get_all()

        now = datetime.now(timezone.utc)
        operations = [
            UpdateOne({'key': key}, {'$set': {'value': str(value), 'updated_at': now}}, upsert=True)
            for key, value in values.items()
        ]
        try:
            self.collection.bulk_write(operations, ordered=False)
        except PyMongoError as e:
            logger.error("Failed to update settings", extra={"keys": sorted(values), "error": str(e)})
            return None

        logger.info("Settings updated", extra={"keys": sorted(values)})
        return self.get_all()
