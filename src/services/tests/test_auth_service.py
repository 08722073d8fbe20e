"""Unit tests for auth_service using in-memory fakes."""

import unittest
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from adapter.fake.mailer import FakeMailer
from adapter.fake.settings_repository import FakeSettingsRepository
from adapter.fake.user_repository import FakeUserRepository
from domain.model.errors import (
    AccountUnverifiedError,
    DomainError,
    DuplicateError,
    InvalidCredentialsError,
    NotFoundError,
    StoreError,
    TokenExpiredError,
    TokenInvalidError,
    ValidationError,
)
from domain.model.user import Role, User, UserProfile, VerificationState
from services import auth_service, credential_service
from services.credential_service import hash_password, verify_password
from services.mail_config_service import MailConfigResolver
from services.notification_service import NotificationDispatcher

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


def _token_from(message) -> str:
    marker = "token="
    start = message.html_body.index(marker) + len(marker)
    end = message.html_body.index('"', start)
    return message.html_body[start:end]


class _AuthTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        # Fast hashes; the work factor itself is covered by the credential tests
        rounds = patch.object(credential_service, 'BCRYPT_ROUNDS', 4)
        rounds.start()
        self.addCleanup(rounds.stop)

        self.repo = FakeUserRepository()
        self.mailer = FakeMailer()
        resolver = MailConfigResolver(lambda: FakeSettingsRepository(), ttl_seconds=0)
        self.dispatcher = NotificationDispatcher(self.mailer, resolver, "https://formation.example")

    async def register(self, email='alice@example.com', password='Secret-123', now=T0, **profile):
        user = await auth_service.register(
            self.repo, self.dispatcher,
            UserProfile(email=email, full_name=profile.pop('full_name', 'Alice'), **profile),
            password, now=now,
        )
        await self.dispatcher.drain()
        return user

    def add_legacy_user(self, email='legacy@example.com', password='Old-Pass-1', **fields) -> User:
        now = datetime.now(timezone.utc)
        return self.repo.add(User(
            id=uuid.uuid4().hex,
            email=email,
            registered_at=now,
            updated_at=now,
            full_name='Legacy',
            password_hash=hash_password(password),
            **fields,
        ))


class TestRegister(_AuthTestCase):

    async def test_creates_unverified_user_with_token(self):
        user = await self.register(job_title='Trainer', organization='ACME', city='Lyon')

        stored = self.repo.store[user.id]
        self.assertEqual(stored.verification_state, VerificationState.UNVERIFIED)
        self.assertEqual(stored.role, Role.USER)
        self.assertEqual(stored.job_title, 'Trainer')
        self.assertEqual(stored.verification_token_expires_at, T0 + timedelta(hours=24))
        self.assertEqual(len(stored.verification_token), 64)

    async def test_password_stored_as_hash(self):
        user = await self.register(password='Secret-123')

        stored = self.repo.store[user.id]
        self.assertNotEqual(stored.password_hash, 'Secret-123')
        self.assertTrue(verify_password('Secret-123', stored.password_hash))

    async def test_sends_verification_email_with_stored_token(self):
        user = await self.register()

        self.assertEqual(len(self.mailer.sent), 1)
        message = self.mailer.messages[0]
        self.assertEqual(message.to_email, 'alice@example.com')
        self.assertEqual(_token_from(message), self.repo.store[user.id].verification_token)

    async def test_duplicate_email_rejected(self):
        await self.register()

        with self.assertRaises(DuplicateError):
            await self.register(full_name='Other')
        self.assertEqual(len(self.repo.store), 1)
        self.assertEqual(len(self.mailer.sent), 1)

    async def test_concurrent_duplicate_caught_by_store(self):
        """Both requests pass the lookup; the second insert is rejected."""
        await self.register()

        with patch.object(self.repo, 'get_by_email', return_value=None):
            with self.assertRaises(DuplicateError):
                await self.register(full_name='Other')
        self.assertEqual(len(self.repo.store), 1)
        self.assertEqual(len(self.mailer.sent), 1)

    async def test_invalid_password_rejected_before_store(self):
        with self.assertRaises(ValidationError):
            await self.register(password='')
        self.assertEqual(self.repo.store, {})

    async def test_mail_failure_does_not_fail_registration(self):
        self.mailer.error = ConnectionRefusedError("smtp down")

        user = await self.register()

        self.assertIn(user.id, self.repo.store)
        self.assertEqual(self.mailer.sent, [])

    async def test_store_failure_raises(self):
        with patch.object(self.repo, 'create', return_value=None):
            with self.assertRaises(DomainError):
                await self.register()
        self.assertEqual(self.mailer.sent, [])


class TestAuthenticate(_AuthTestCase):

    async def test_unverified_user_blocked_with_correct_password(self):
        user = await self.register()

        with self.assertRaises(AccountUnverifiedError) as ctx:
            auth_service.authenticate(self.repo, 'alice@example.com', 'Secret-123')
        self.assertEqual(ctx.exception.user_id, user.id)

    async def test_unverified_user_with_wrong_password_gets_invalid_credentials(self):
        await self.register()

        with self.assertRaises(InvalidCredentialsError):
            auth_service.authenticate(self.repo, 'alice@example.com', 'wrong')

    async def test_unknown_email_and_wrong_password_are_indistinguishable(self):
        self.add_legacy_user()

        with self.assertRaises(InvalidCredentialsError) as unknown:
            auth_service.authenticate(self.repo, 'nobody@example.com', 'Old-Pass-1')
        with self.assertRaises(InvalidCredentialsError) as wrong:
            auth_service.authenticate(self.repo, 'legacy@example.com', 'nope')

        self.assertEqual(str(unknown.exception), str(wrong.exception))

    async def test_legacy_account_without_state_can_log_in(self):
        legacy = self.add_legacy_user()

        user = auth_service.authenticate(self.repo, 'legacy@example.com', 'Old-Pass-1')

        self.assertEqual(user.id, legacy.id)
        self.assertEqual(user.verification_state, VerificationState.LEGACY_UNKNOWN)

    async def test_lookup_failure_is_not_invalid_credentials(self):
        self.add_legacy_user()

        with patch.object(self.repo, 'get_by_email', side_effect=StoreError("down")):
            with self.assertRaises(StoreError):
                auth_service.authenticate(self.repo, 'legacy@example.com', 'Old-Pass-1')

    async def test_account_without_password_hash_is_rejected(self):
        now = datetime.now(timezone.utc)
        self.repo.add(User(id='u1', email='nohash@example.com', registered_at=now, updated_at=now))

        with self.assertRaises(InvalidCredentialsError):
            auth_service.authenticate(self.repo, 'nohash@example.com', 'anything')


class TestVerificationFlow(_AuthTestCase):

    async def test_register_verify_login(self):
        """Registration, first login refused, verification, then login succeeds."""
        user = await self.register()
        token = _token_from(self.mailer.messages[0])

        with self.assertRaises(AccountUnverifiedError):
            auth_service.authenticate(self.repo, 'alice@example.com', 'Secret-123')

        verified_id = auth_service.verify_email(self.repo, token, now=T0 + timedelta(hours=1))
        self.assertEqual(verified_id, user.id)

        logged_in = auth_service.authenticate(self.repo, 'alice@example.com', 'Secret-123')
        self.assertEqual(logged_in.id, user.id)
        self.assertTrue(logged_in.is_verified)
        self.assertIsNone(self.repo.store[user.id].verification_token)

        with self.assertRaises(TokenInvalidError):
            auth_service.verify_email(self.repo, token, now=T0 + timedelta(hours=2))

    async def test_expired_link_then_resend(self):
        """A link older than 24h fails; a resent link works and the old one stays dead."""
        user = await self.register(email='bob@example.com', full_name='Bob')
        first = _token_from(self.mailer.messages[0])

        later = T0 + timedelta(hours=25)
        with self.assertRaises(TokenExpiredError):
            auth_service.verify_email(self.repo, first, now=later)
        self.assertEqual(self.repo.store[user.id].verification_state, VerificationState.UNVERIFIED)

        self.assertTrue(await auth_service.resend_verification(
            self.repo, self.dispatcher, 'bob@example.com', now=later))
        await self.dispatcher.drain()

        self.assertEqual(len(self.mailer.sent), 2)
        resent = self.mailer.messages[1]
        self.assertIn("new verification link", resent.subject)
        second = _token_from(resent)
        self.assertNotEqual(first, second)

        with self.assertRaises(TokenInvalidError):
            auth_service.verify_email(self.repo, first, now=later)

        auth_service.verify_email(self.repo, second, now=later + timedelta(hours=23))
        self.assertTrue(auth_service.authenticate(self.repo, 'bob@example.com', 'Secret-123').is_verified)


class TestResendVerification(_AuthTestCase):

    async def test_unknown_email_raises(self):
        with self.assertRaises(NotFoundError):
            await auth_service.resend_verification(self.repo, self.dispatcher, 'nobody@example.com')
        self.assertEqual(self.dispatcher.pending_count, 0)

    async def test_lookup_failure_is_not_not_found(self):
        with patch.object(self.repo, 'get_by_email', side_effect=StoreError("down")):
            with self.assertRaises(StoreError):
                await auth_service.resend_verification(self.repo, self.dispatcher, 'alice@example.com')
        self.assertEqual(self.dispatcher.pending_count, 0)

    async def test_verified_account_is_left_untouched(self):
        user = await self.register()
        auth_service.verify_email(self.repo, self.repo.store[user.id].verification_token, now=T0)

        resent = await auth_service.resend_verification(self.repo, self.dispatcher, 'alice@example.com')
        await self.dispatcher.drain()

        self.assertFalse(resent)
        stored = self.repo.store[user.id]
        self.assertEqual(stored.verification_state, VerificationState.VERIFIED)
        self.assertIsNone(stored.verification_token)
        self.assertEqual(len(self.mailer.sent), 1)

    async def test_legacy_account_becomes_unverified(self):
        legacy = self.add_legacy_user()

        resent = await auth_service.resend_verification(self.repo, self.dispatcher, 'legacy@example.com')
        await self.dispatcher.drain()

        self.assertTrue(resent)
        self.assertEqual(self.repo.store[legacy.id].verification_state, VerificationState.UNVERIFIED)
        self.assertEqual(len(self.mailer.sent), 1)

    async def test_mail_failure_still_issues_token(self):
        user = await self.register()
        first = self.repo.store[user.id].verification_token
        self.mailer.error = OSError("unreachable")

        self.assertTrue(await auth_service.resend_verification(self.repo, self.dispatcher, 'alice@example.com'))
        await self.dispatcher.drain()

        self.assertNotEqual(self.repo.store[user.id].verification_token, first)


class TestUpdateProfile(_AuthTestCase):

    async def test_updates_only_given_fields(self):
        user = await self.register(city='Lyon')

        updated = auth_service.update_profile(self.repo, user.id, {'job_title': 'Coach', 'city': None})

        self.assertEqual(updated.job_title, 'Coach')
        self.assertEqual(updated.city, 'Lyon')
        self.assertEqual(updated.full_name, 'Alice')

    async def test_unknown_keys_ignored(self):
        user = await self.register()

        updated = auth_service.update_profile(self.repo, user.id, {'role': 'admin', 'email': 'x@example.com'})

        self.assertEqual(updated.role, Role.USER)
        self.assertEqual(updated.email, 'alice@example.com')

    async def test_password_change_rehashes(self):
        user = await self.register()
        old_hash = self.repo.store[user.id].password_hash

        auth_service.update_profile(self.repo, user.id, {}, password='New-Pass-9')

        new_hash = self.repo.store[user.id].password_hash
        self.assertNotEqual(old_hash, new_hash)
        self.assertTrue(verify_password('New-Pass-9', new_hash))

    async def test_unknown_user(self):
        with self.assertRaises(NotFoundError):
            auth_service.update_profile(self.repo, 'missing', {'city': 'Paris'})

    async def test_store_failure_raises(self):
        user = await self.register()

        with patch.object(self.repo, 'update_fields', return_value=None):
            with self.assertRaises(DomainError):
                auth_service.update_profile(self.repo, user.id, {'city': 'Paris'})


class TestAdminUpdateUser(_AuthTestCase):

    async def test_promote_to_admin(self):
        user = await self.register()

        updated = auth_service.admin_update_user(self.repo, user.id, role='admin')

        self.assertEqual(updated.role, Role.ADMIN)

    async def test_reset_password(self):
        legacy = self.add_legacy_user()

        auth_service.admin_update_user(self.repo, legacy.id, password='Reset-Pass-2')

        self.assertEqual(
            auth_service.authenticate(self.repo, 'legacy@example.com', 'Reset-Pass-2').id, legacy.id)

    async def test_nothing_to_change_returns_current(self):
        legacy = self.add_legacy_user()

        user = auth_service.admin_update_user(self.repo, legacy.id)

        self.assertEqual(user.id, legacy.id)

    async def test_unknown_user(self):
        with self.assertRaises(NotFoundError):
            auth_service.admin_update_user(self.repo, 'missing', role=Role.ADMIN)

    async def test_invalid_role_rejected(self):
        legacy = self.add_legacy_user()

        with self.assertRaises(ValueError):
            auth_service.admin_update_user(self.repo, legacy.id, role='superuser')


if __name__ == '__main__':
    unittest.main()
