from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from config import Config
from suprimentos import create_app
from suprimentos.extensions import db


def build_temp_app(temp_dir: str, **overrides):
    attrs = {
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{Path(temp_dir) / 'suprimentos_test.db'}",
        "WTF_CSRF_ENABLED": False,
        "PREFERENCES_PATH": str(Path(temp_dir) / "preferences.json"),
        "LOG_LEVEL": "WARNING",
        "AUTO_SEED": True,
    }
    attrs.update(overrides)
    temp_config = type("TempConfig", (Config,), attrs)
    return create_app(temp_config)


class AppTestCase(unittest.TestCase):
    create_tables = True
    config_overrides: dict = {}

    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory(prefix="suprimentos_")
        self.app = build_temp_app(self._temp_dir.name, **self.config_overrides)
        if self.create_tables:
            with self.app.app_context():
                db.create_all()
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        with self.app.app_context():
            db.session.remove()
            db.engine.dispose()
        self._temp_dir.cleanup()

    @property
    def workspace(self):
        return self.app.extensions["suprimentos.workspace"]

    def login(self, email: str = "admin@empresa.com", password: str = "admin123"):
        response = self.client.post("/auth/login", json={"email": email, "password": password})
        self.assertEqual(response.status_code, 200, response.get_data(as_text=True))
        return response.get_json()

    def logout(self) -> None:
        self.client.post("/auth/logout")
