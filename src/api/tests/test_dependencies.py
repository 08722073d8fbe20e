"""Unit tests for API dependencies — repository and dispatcher wiring."""

import os
import unittest
from unittest.mock import MagicMock, patch

from fastapi import HTTPException

from adapter.mail.fastapi_mail import FastMailAdapter
from adapter.mail.log_mailer import LogMailer
from adapter.mongodb.settings_repository import MongoSettingsRepository
from adapter.mongodb.user_repository import MongoUserRepository
from api import dependencies
from api.dependencies import DATABASE_NAME, get_settings_repo, get_user_repo


class TestRepositoryDependencies(unittest.TestCase):

    @patch('api.dependencies.get_mongodb_client')
    def test_returns_mongo_repositories_when_connected(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client

        self.assertIsInstance(get_user_repo(), MongoUserRepository)
        self.assertIsInstance(get_settings_repo(), MongoSettingsRepository)
        mock_client.__getitem__.assert_called_with(DATABASE_NAME)

    @patch('api.dependencies.get_mongodb_client', return_value=None)
    def test_raises_503_when_mongodb_unavailable(self, _):
        for dependency in (get_user_repo, get_settings_repo):
            with self.assertRaises(HTTPException) as context:
                dependency()
            self.assertEqual(context.exception.status_code, 503)
            self.assertEqual(context.exception.detail, "Database unavailable")

    @patch('api.dependencies.get_mongodb_client', return_value=None)
    def test_mail_settings_source_tolerates_missing_database(self, _):
        self.assertIsNone(dependencies._settings_repo_or_none())


class TestNotificationDispatcherDependency(unittest.TestCase):

    def setUp(self):
        dependencies.get_notification_dispatcher.cache_clear()
        self.addCleanup(dependencies.get_notification_dispatcher.cache_clear)

    def test_single_instance_per_process(self):
        self.assertIs(dependencies.get_notification_dispatcher(), dependencies.get_notification_dispatcher())

    @patch.dict(os.environ, {"SEND_EMAILS": "false"})
    def test_log_mailer_when_sending_disabled(self):
        self.assertIsInstance(dependencies._build_mailer(), LogMailer)

    @patch.dict(os.environ, {"SEND_EMAILS": "true"})
    def test_smtp_mailer_by_default(self):
        self.assertIsInstance(dependencies._build_mailer(), FastMailAdapter)

    @patch.dict(os.environ, {"FRONTEND_URL": "https://app.example.com/"})
    def test_frontend_url_from_environment(self):
        dispatcher = dependencies.get_notification_dispatcher()
        self.assertEqual(dispatcher.build_verification_url("t"), "https://app.example.com/verify-email?token=t")


if __name__ == '__main__':
    unittest.main()
