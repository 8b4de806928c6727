# Overview: Pytest coverage for the auth HTTP API and CLI bootstrap.

from classifieds.models import AuditLog, Category, User

from conftest import PASSWORD, auth_headers


class TestAuthApi:

    def test_register_and_me(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "name": "Ali",
            "email": "ali@example.com",
            "password": PASSWORD,
            "role": "seller",
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["user"]["role"] == "seller"

        me = client.get("/api/auth/me", headers=auth_headers(body["token"]))
        assert me.status_code == 200
        assert me.get_json()["user"]["email"] == "ali@example.com"

        assert db_session.query(AuditLog).filter_by(action="user_registered").count() == 1

    def test_register_duplicate(self, client, seller):
        resp = client.post("/api/auth/register", json={
            "name": "Again", "email": seller.email, "password": PASSWORD,
        })
        assert resp.status_code == 409

    def test_register_weak_password(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "name": "Ali", "email": "ali@example.com", "password": "password",
        })
        assert resp.status_code == 400

    def test_register_admin_refused(self, client, db_session):
        resp = client.post("/api/auth/register", json={
            "name": "Eve", "email": "eve@example.com", "password": PASSWORD, "role": "admin",
        })
        assert resp.status_code == 400

    def test_login_logout(self, client, seller):
        resp = client.post("/api/auth/login", json={"email": seller.email, "password": PASSWORD})
        assert resp.status_code == 200
        token = resp.get_json()["token"]

        assert client.post("/api/auth/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401

    def test_login_bad_password(self, client, seller):
        resp = client.post("/api/auth/login", json={"email": seller.email, "password": "Wrong123!"})
        assert resp.status_code == 401

    def test_login_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={"email": "a@b.c"}).status_code == 400


class TestCli:

    def test_system_init(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "init"])
        assert result.exit_code == 0, result.output
        assert db_session.query(Category).count() == 8
        admin = db_session.query(User).filter_by(role="admin").one()
        assert admin.email == "admin@classifieds.local"

        again = runner.invoke(args=["system", "init"])
        assert again.exit_code == 0
        assert "already exists" in again.output
        assert db_session.query(Category).count() == 8

    def test_create_admin_and_list(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            "users", "create-admin", "--name", "Root", "--email", "root@example.com", "--password", PASSWORD,
        ])
        assert result.exit_code == 0, result.output

        listing = runner.invoke(args=["users", "list", "--role", "admin"])
        assert "root@example.com" in listing.output

    def test_create_admin_weak_password(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create-admin", "--name", "Root", "--email", "root@example.com", "--password", "weak",
        ])
        assert result.exit_code == 1
        assert "FAIL" in result.output

    def test_expire_nothing(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["ads", "expire"])
        assert result.exit_code == 0
        assert "No ads to expire." in result.output
