"""MongoDB implementation of UserRepository."""

import uuid
from datetime import datetime, timezone
from logging import getLogger

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb import USERS_COLLECTION_NAME
from domain.model.errors import DuplicateError, StoreError
from domain.model.user import Role, User, UserProfile, VerificationState, VerificationToken

logger = getLogger(__name__)

UPDATABLE_FIELDS = {'full_name', 'job_title', 'organization', 'city', 'role', 'password_hash'}


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection."""
        from adapter.mongodb.indexes import create_index_safe

        try:
            create_index_safe(self.collection, [('email', 1)], 'idx_users_email', unique=True)
            create_index_safe(self.collection, [('registered_at', -1)], 'idx_users_registered_at')
            # Tokens are cleared after use, so only index documents that hold one
            create_index_safe(
                self.collection,
                [('verification_token', 1)],
                'idx_users_verification_token',
                unique=True,
                partialFilterExpression={'verification_token': {'$type': 'string'}},
            )
            return True
        except Exception as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        registered_at = doc.get('registered_at') or doc.get('created_at')
        return User(
            id=doc['_id'],
            email=doc['email'],
            registered_at=registered_at,
            updated_at=doc.get('updated_at') or registered_at,
            full_name=doc.get('full_name'),
            job_title=doc.get('job_title'),
            organization=doc.get('organization'),
            city=doc.get('city'),
            role=Role(doc.get('role') or Role.USER.value),
            password_hash=doc.get('password_hash'),
            verification_state=VerificationState.from_document(doc),
            verification_token=doc.get('verification_token'),
            verification_token_expires_at=doc.get('verification_token_expires_at'),
        )

    # ── write operations ─────────────────────────────────────

    def create(
        self,
        profile: UserProfile,
        password_hash: str,
        verification: VerificationToken,
    ) -> User | None:
        """Create an unverified user holding the given token.

        Raises:
            DuplicateError: the unique email index rejected the insert
        """
        try:
            user_id = uuid.uuid4().hex
            now = datetime.now(timezone.utc)
            user_doc = {
                '_id': user_id,
                'email': profile.email,
                'full_name': profile.full_name,
                'job_title': profile.job_title,
                'organization': profile.organization,
                'city': profile.city,
                'role': Role.USER.value,
                'password_hash': password_hash,
                'verification_state': VerificationState.UNVERIFIED.value,
                'verification_token': verification.value,
                'verification_token_expires_at': verification.expires_at,
                'registered_at': now,
                'updated_at': now,
            }
            self.collection.insert_one(user_doc)

            logger.info("User created", extra={"userId": user_id, "email": profile.email})
            return self._to_domain(user_doc)
        except DuplicateKeyError as e:
            logger.warning("User creation failed: email already exists", extra={"email": profile.email})
            raise DuplicateError("Email already registered") from e
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"email": profile.email, "error": str(e)})
            return None

    def update_fields(self, user_id: str, fields: dict) -> User | None:
        """Apply a partial update and return the updated user."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        update = {k: (v.value if isinstance(v, Role) else v) for k, v in fields.items()}
        update['updated_at'] = datetime.now(timezone.utc)
        try:
            doc = self.collection.find_one_and_update(
                {'_id': user_id},
                {'$set': update},
                return_document=ReturnDocument.AFTER,
            )
            return self._to_domain(doc) if doc else None
        except PyMongoError as e:
            logger.error("Failed to update user", extra={"userId": user_id, "error": str(e)})
            return None

    def set_verification_token(self, user_id: str, token: str, expires_at: datetime) -> bool:
        """Store a new token pair and mark unverified. Never touches verified accounts."""
        try:
            result = self.collection.update_one(
                {
                    '_id': user_id,
                    'verification_state': {'$ne': VerificationState.VERIFIED.value},
                    'email_verified': {'$ne': True},
                },
                {
                    '$set': {
                        'verification_state': VerificationState.UNVERIFIED.value,
                        'verification_token': token,
                        'verification_token_expires_at': expires_at,
                        'updated_at': datetime.now(timezone.utc),
                    },
                    '$unset': {'email_verified': ''},
                },
            )
            return result.matched_count > 0
        except PyMongoError as e:
            logger.error("Failed to store verification token", extra={"userId": user_id, "error": str(e)})
            return False

    def mark_verified(self, user_id: str, token: str) -> bool:
        """Atomically consume `token`: verified state, token pair removed."""
        try:
            result = self.collection.update_one(
                {'_id': user_id, 'verification_token': token},
                {
                    '$set': {
                        'verification_state': VerificationState.VERIFIED.value,
                        'updated_at': datetime.now(timezone.utc),
                    },
                    '$unset': {
                        'verification_token': '',
                        'verification_token_expires_at': '',
                        'email_verified': '',
                    },
                },
            )
            return result.modified_count > 0
        except PyMongoError as e:
            logger.error("Failed to mark user verified", extra={"userId": user_id, "error": str(e)})
            return False

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email. Return User or None if not found.

        Raises:
            StoreError: the lookup itself failed
        """
        try:
            doc = self.collection.find_one({'email': email})
            return self._to_domain(doc) if doc else None
        except PyMongoError as e:
            logger.error("Failed to get user by email", extra={"email": email, "error": str(e)})
            raise StoreError("Failed to read user by email") from e

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        try:
            doc = self.collection.find_one({'_id': user_id})
            return self._to_domain(doc) if doc else None
        except PyMongoError as e:
            logger.error("Failed to get user by ID", extra={"userId": user_id, "error": str(e)})
            return None

    def get_by_verification_token(self, token: str) -> User | None:
        try:
            doc = self.collection.find_one({'verification_token': token})
            return self._to_domain(doc) if doc else None
        except PyMongoError as e:
            logger.error("Failed to look up verification token", extra={"error": str(e)})
            raise StoreError("Failed to look up verification token") from e

    def list_all(self) -> list[User] | None:
        try:
            cursor = self.collection.find({}).sort('registered_at', -1)
            return [self._to_domain(doc) for doc in cursor]
        except PyMongoError as e:
            logger.error("Failed to list users", extra={"error": str(e)})
            return None
