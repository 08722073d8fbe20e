"""Create or promote an administrator account.

Usage:
    python scripts/create_admin.py admin@example.com 'S3cret-pass' --name "Platform Admin"

The account is created verified with role admin. If the email already
exists, the account is promoted and its password reset.
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from adapter.mongodb.connection import DATABASE_NAME, get_mongodb_client  # noqa: E402
from adapter.mongodb.user_repository import MongoUserRepository  # noqa: E402
from domain.model.errors import StoreError  # noqa: E402
from domain.model.user import Role, UserProfile, VerificationState  # noqa: E402
from services.credential_service import hash_password  # noqa: E402
from services.verification_service import new_token  # noqa: E402
from utils.logging import setup_structured_logging  # noqa: E402

logger = logging.getLogger("create_admin")


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or promote an administrator account")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--name", default=None, help="Full name for a new account")
    args = parser.parse_args()

    setup_structured_logging()

    client = get_mongodb_client()
    if client is None:
        logger.error("MongoDB unavailable, check MONGO_URL")
        return 1

    repo = MongoUserRepository(client[DATABASE_NAME])
    password_hash = hash_password(args.password)
    try:
        existing = repo.get_by_email(args.email)
    except StoreError:
        logger.exception("Could not read users collection", extra={"email": args.email})
        return 1

    if existing:
        repo.update_fields(existing.id, {'role': Role.ADMIN, 'password_hash': password_hash})
        # A pending token would otherwise keep the admin locked out
        if existing.verification_state == VerificationState.UNVERIFIED and existing.verification_token:
            repo.mark_verified(existing.id, existing.verification_token)
        logger.info("Admin account updated", extra={"userId": existing.id, "email": args.email})
        return 0

    token = new_token()
    admin = repo.create(UserProfile(email=args.email, full_name=args.name), password_hash, token)
    if admin is None:
        logger.error("Failed to create admin account", extra={"email": args.email})
        return 1
    repo.update_fields(admin.id, {'role': Role.ADMIN})
    repo.mark_verified(admin.id, token.value)
    logger.info("Admin account created", extra={"userId": admin.id, "email": args.email})
    return 0


if __name__ == "__main__":
    sys.exit(main())
