"""Tests for the health endpoint and error rendering."""

from fastapi.testclient import TestClient

from lumina.db.database import Database
from lumina.web.api import create_app


class TestHealth:
    """Tests for GET /health."""

    def test_health_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "0.1.0"
        assert "timestamp" in data


class TestLifespan:
    """Tests for the database lifecycle owned by the app."""

    def test_app_opens_and_closes_its_database(self, tmp_path, app_config, generator):
        """A database the app opened is closed when the app stops."""
        database = Database(tmp_path / "owned.db")
        app = create_app(config=app_config, database=database, generator=generator)

        with TestClient(app) as client:
            assert database.is_open
            assert client.get("/health").json()["status"] == "ok"
        assert not database.is_open

    def test_injected_open_database_left_open(self, app, db):
        """An already open database stays open after shutdown."""
        with TestClient(app):
            pass
        assert db.is_open

    def test_database_path_from_config(self, tmp_path, app_config, generator):
        """Without an injected handle the configured path is used."""
        app_config.database.path = str(tmp_path / "configured.db")
        app = create_app(config=app_config, generator=generator)

        assert str(app.state.database.path) == app_config.database.path
