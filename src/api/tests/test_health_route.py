"""Route tests for /api/health and the service root."""

import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from api.main import VERSION, app


class TestHealth(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)

    @patch('api.routes.health.get_mongodb_client')
    def test_healthy(self, mock_get_client):
        mock_get_client.return_value = MagicMock()

        response = self.client.get("/api/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "OK")
        self.assertEqual(response.json()["services"]["mongodb"]["status"], "healthy")

    @patch('api.routes.health.get_mongodb_client', return_value=None)
    def test_degraded_without_database(self, _):
        response = self.client.get("/api/health")

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["status"], "degraded")

    @patch('api.routes.health.get_mongodb_client')
    def test_ping_error_is_degraded(self, mock_get_client):
        mock_get_client.return_value.admin.command.side_effect = RuntimeError("timeout")

        response = self.client.get("/api/health")

        self.assertEqual(response.status_code, 503)
        self.assertIn("timeout", response.json()["services"]["mongodb"]["message"])

    def test_root(self):
        response = self.client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["version"], VERSION)


if __name__ == '__main__':
    unittest.main()
