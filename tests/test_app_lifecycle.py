import importlib
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi.middleware.cors import CORSMiddleware
from fastapi.testclient import TestClient

import finadvisor.main
from finadvisor.config.settings import Settings, get_settings
from finadvisor.integrations.alpha_vantage import AlphaVantageClient
from finadvisor.main import _bind_runtime_clients, app
from finadvisor.services.pacing import LinearPacer, TokenBucketPacer


class AppLifecycleTest(unittest.TestCase):
    def setUp(self):
        self.original_get_settings = app.state.get_settings

    def tearDown(self):
        app.state.get_settings = self.original_get_settings

    def test_startup_binds_handles_and_shutdown_closes_session(self):
        with tempfile.TemporaryDirectory() as tmp:
            users_path = Path(tmp) / "users.json"
            users_path.write_text(json.dumps([{"id": "u1", "name": "Asha"}]), encoding="utf-8")
            settings = Settings(
                ALPHA_VANTAGE_KEY="av-key",
                JWT_SECRET="secret",
                AUTH_USERS_FILE=str(users_path),
                STOCK_WATCHLIST=["TCS.BSE"],
                UPSTREAM_TIMEOUT_SEC=3,
            )
            app.state.get_settings = lambda: settings

            with patch("finadvisor.main.requests.Session") as session_cls:
                with TestClient(app) as client:
                    self.assertEqual(client.get("/api/health").status_code, 200)
                    service = app.state.stock_service
                    self.assertIsInstance(service.client, AlphaVantageClient)
                    self.assertEqual(service.client.timeout_sec, 3)
                    self.assertIs(service.client.session, session_cls.return_value)
                    self.assertIsInstance(service.pacer, LinearPacer)
                    self.assertEqual(service.watchlist, ["TCS.BSE"])
                    self.assertEqual(app.state.user_directory.get_user("u1").name, "Asha")
                    self.assertIsNotNone(app.state.authenticator)
                    session_cls.return_value.close.assert_not_called()

                session_cls.return_value.close.assert_called_once_with()

    def test_bind_without_secret_disables_authenticator(self):
        _bind_runtime_clients(app, Settings(STOCK_PACING_POLICY="token_bucket"), session=object())

        self.assertIsNone(app.state.authenticator)
        self.assertIsInstance(app.state.stock_service.pacer, TokenBucketPacer)

    def test_import_with_invalid_quota_env_defers_failure_to_startup(self):
        env = {"STOCK_QUOTA_PER_MINUTE": "0", "CORS_ORIGINS": "https://a.example, https://b.example"}
        get_settings.cache_clear()
        try:
            with patch.dict(os.environ, env):
                module = importlib.reload(finadvisor.main)
                cors = [m for m in module.app.user_middleware if m.cls is CORSMiddleware]
                self.assertEqual(cors[0].kwargs["allow_origins"], ["https://a.example", "https://b.example"])

                with self.assertRaises(ValueError):
                    with TestClient(module.app):
                        pass
        finally:
            get_settings.cache_clear()
            finadvisor.main.app = app


if __name__ == "__main__":
    unittest.main()
