"""Tests for POST /api/login."""


class TestLoginValidation:
    """Tests for rejected login requests."""

    def test_missing_identifier(self, client):
        """Missing identifier returns 400 with an error body."""
        response = client.post("/api/login", json={"role": "parent"})
        assert response.status_code == 400
        assert response.json() == {"error": "Identifier is required"}

    def test_blank_identifier(self, client):
        response = client.post("/api/login", json={"identifier": "   ", "role": "student"})
        assert response.status_code == 400

    def test_unknown_role(self, client):
        """Roles other than parent/student are invalid request data."""
        response = client.post("/api/login", json={"identifier": "Jane", "role": "admin"})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request data"}


class TestAutoRegistration:
    """Tests for first-seen identifiers."""

    def test_email_identifier(self, client):
        """An email identifier is stored as-is with its local part as name."""
        response = client.post(
            "/api/login", json={"identifier": "jane@example.com", "role": "parent"}
        )
        assert response.status_code == 200
        user = response.json()
        assert user["email"] == "jane@example.com"
        assert user["name"] == "jane"
        assert user["role"] == "parent"

    def test_name_identifier_gets_synthesized_email(self, client):
        """A name identifier gets a slug email on the configured domain."""
        user = client.post(
            "/api/login", json={"identifier": "Mary Ann", "role": "student"}
        ).json()
        assert user["name"] == "Mary Ann"
        assert user["email"] == "mary.ann@lumina.edu"

    def test_role_defaults_to_parent(self, client):
        user = client.post("/api/login", json={"identifier": "Jane"}).json()
        assert user["role"] == "parent"

    def test_login_is_idempotent(self, client):
        """Logging in twice converges on one account."""
        first = client.post("/api/login", json={"identifier": "Sam", "role": "student"}).json()
        second = client.post("/api/login", json={"identifier": "Sam", "role": "student"}).json()
        assert first["id"] == second["id"]

    def test_parent_login_by_name_after_email(self, client):
        """A parent registered by email can log in by name."""
        first = client.post(
            "/api/login", json={"identifier": "jane@example.com", "role": "parent"}
        ).json()
        second = client.post("/api/login", json={"identifier": "jane", "role": "parent"}).json()
        assert first["id"] == second["id"]


class TestRoleSeparation:
    """A student login never resolves to a parent account, and vice versa."""

    def test_same_name_different_roles(self, client):
        """Same name in both roles yields two distinct accounts."""
        parent = client.post("/api/login", json={"identifier": "Alex", "role": "parent"}).json()
        student = client.post("/api/login", json={"identifier": "Alex", "role": "student"}).json()

        assert parent["id"] != student["id"]
        assert parent["role"] == "parent"
        assert student["role"] == "student"

    def test_separation_is_stable(self, client):
        """Repeated logins keep each role on its own account."""
        ids = set()
        for role in ("parent", "student", "parent", "student"):
            user = client.post("/api/login", json={"identifier": "Alex", "role": role}).json()
            assert user["role"] == role
            ids.add((role, user["id"]))
        assert len(ids) == 2
