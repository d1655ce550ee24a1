"""
Unit tests for API v1 routes.

Tests endpoint responses with mocked workflows, error-kind to status
mapping, and one in-memory end-to-end pass through the real workflows.
"""

from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import (
    get_current_user,
    get_email_verification_workflow,
    get_password_reset_workflow,
    get_registration_workflow,
    get_session_workflow,
    get_user_administration,
)
from src.api.errors import register_error_handlers
from src.api.v1 import router
from src.domain.email_verification import EmailVerificationWorkflow
from src.domain.exceptions import (
    ConfigurationError,
    Conflict,
    InvalidArgument,
    NotFound,
    Unauthenticated,
)
from src.domain.password_reset import PasswordResetWorkflow
from src.domain.ports import Session, User
from src.domain.registration import RegistrationStarted, RegistrationWorkflow
from src.domain.sessions import SessionWorkflow
from src.domain.users import UserAdministration, UserPage

SESSION = Session(access_token="access.jwt.token", refresh_token="refresh.jwt.token")
ALICE = User(id="u-1", username="alice", email="a@x.com", password_hash="$2b$hash")


@pytest.fixture
def mocks() -> dict[str, MagicMock]:
    return {
        "registration": MagicMock(spec=RegistrationWorkflow),
        "sessions": MagicMock(spec=SessionWorkflow),
        "password_reset": MagicMock(spec=PasswordResetWorkflow),
        "email_verification": MagicMock(spec=EmailVerificationWorkflow),
        "admin": MagicMock(spec=UserAdministration),
    }


@pytest.fixture
def app(mocks: dict[str, MagicMock]) -> FastAPI:
    """Create test FastAPI application with every workflow mocked."""
    test_app = FastAPI()
    register_error_handlers(test_app)
    test_app.include_router(router, prefix="/v1")

    test_app.dependency_overrides[get_registration_workflow] = lambda: mocks["registration"]
    test_app.dependency_overrides[get_session_workflow] = lambda: mocks["sessions"]
    test_app.dependency_overrides[get_password_reset_workflow] = lambda: mocks["password_reset"]
    test_app.dependency_overrides[get_email_verification_workflow] = lambda: mocks[
        "email_verification"
    ]
    test_app.dependency_overrides[get_user_administration] = lambda: mocks["admin"]
    test_app.dependency_overrides[get_current_user] = lambda: ALICE
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


class TestRegisterGhostEndpoint:
    """Tests for POST /v1/auth/register-ghost."""

    def test_success_returns_201(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["registration"].start.return_value = RegistrationStarted(
            register_token="register.jwt.token", expires_in_seconds=120
        )

        response = client.post(
            "/v1/auth/register-ghost",
            json={"username": "alice", "email": "a@x.com", "password": "secret1"},
        )

        assert response.status_code == 201
        assert response.json() == {
            "metadata": {"status": "success", "code": "0", "message": "Register ghost successful"},
            "register_token": "register.jwt.token",
            "expires_in_seconds": 120,
        }
        mocks["registration"].start.assert_called_once_with("alice", "a@x.com", "secret1")

    def test_conflict_returns_409_with_both_messages(
        self, client: TestClient, mocks: dict[str, MagicMock]
    ) -> None:
        mocks["registration"].start.side_effect = Conflict(
            "Email a@x.com already in use", "Username alice already in use"
        )

        response = client.post(
            "/v1/auth/register-ghost",
            json={"username": "alice", "email": "a@x.com", "password": "secret1"},
        )

        assert response.status_code == 409
        assert response.json() == {
            "detail": "Email a@x.com already in use, Username alice already in use"
        }

    @pytest.mark.parametrize(
        "body",
        [
            {"username": "alice", "email": "invalid-email", "password": "secret1"},
            {"username": "alice", "email": "a@x.com", "password": "short"},
            {"email": "a@x.com", "password": "secret1"},
        ],
    )
    def test_validation_errors_return_422(
        self, client: TestClient, mocks: dict[str, MagicMock], body: dict
    ) -> None:
        response = client.post("/v1/auth/register-ghost", json=body)
        assert response.status_code == 422
        mocks["registration"].start.assert_not_called()


class TestRegisterEndpoint:
    """Tests for POST /v1/auth/register."""

    def test_success_returns_session(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["registration"].finish.return_value = SESSION

        response = client.post(
            "/v1/auth/register",
            json={"register_token": "register.jwt.token", "verification_code": "012345"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["metadata"]["message"] == "Register successful"
        assert body["access_token"] == "access.jwt.token"
        assert body["refresh_token"] == "refresh.jwt.token"
        mocks["registration"].finish.assert_called_once_with("register.jwt.token", "012345")

    def test_unauthenticated_returns_401(
        self, client: TestClient, mocks: dict[str, MagicMock]
    ) -> None:
        mocks["registration"].finish.side_effect = Unauthenticated("Invalid verification code")

        response = client.post(
            "/v1/auth/register",
            json={"register_token": "t", "verification_code": "123456"},
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid verification code"}

    def test_replay_returns_409(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["registration"].finish.side_effect = Conflict("User already exists")
        response = client.post(
            "/v1/auth/register",
            json={"register_token": "t", "verification_code": "123456"},
        )
        assert response.status_code == 409

    def test_non_numeric_code_returns_422(self, client: TestClient) -> None:
        response = client.post(
            "/v1/auth/register",
            json={"register_token": "t", "verification_code": "abc123"},
        )
        assert response.status_code == 422


class TestSessionEndpoints:
    """Tests for login, refresh-token and logout."""

    def test_login(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["sessions"].login.return_value = SESSION

        response = client.post(
            "/v1/auth/login", json={"email_or_username": "alice", "password": "secret1"}
        )

        assert response.status_code == 200
        assert response.json()["metadata"]["message"] == "Login successful"
        mocks["sessions"].login.assert_called_once_with("alice", "secret1")

    def test_login_failure_is_401(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["sessions"].login.side_effect = Unauthenticated("Email or password is incorrect")

        response = client.post(
            "/v1/auth/login", json={"email_or_username": "alice", "password": "wrong"}
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Email or password is incorrect"}

    def test_refresh_token(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["sessions"].refresh.return_value = SESSION

        response = client.post("/v1/auth/refresh-token", json={"refresh_token": "r"})

        assert response.status_code == 200
        assert response.json()["metadata"]["message"] == "Refresh token successful"
        mocks["sessions"].refresh.assert_called_once_with("r")

    def test_logout(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["sessions"].logout.return_value = None

        response = client.post("/v1/auth/logout", json={"access_token": "a"})

        assert response.status_code == 200
        assert response.json() == {
            "metadata": {"status": "success", "code": "0", "message": "Logout successful"}
        }


class TestPasswordResetEndpoints:
    """Tests for forgot-password, forgot-password/verify and reset-password."""

    def test_forgot_password(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["password_reset"].request.return_value = "verify.jwt.token"

        response = client.post("/v1/auth/forgot-password", json={"email_or_username": "alice"})

        assert response.status_code == 200
        assert response.json()["verification_token"] == "verify.jwt.token"

    def test_forgot_password_unknown_user_is_404(
        self, client: TestClient, mocks: dict[str, MagicMock]
    ) -> None:
        mocks["password_reset"].request.side_effect = NotFound("User not found")
        response = client.post("/v1/auth/forgot-password", json={"email_or_username": "nobody"})
        assert response.status_code == 404

    def test_verify(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["password_reset"].verify.return_value = "reset.jwt.token"

        response = client.post(
            "/v1/auth/forgot-password/verify",
            json={"verification_token": "verify.jwt.token", "code": "654321"},
        )

        assert response.status_code == 200
        assert response.json()["verification_token"] == "reset.jwt.token"
        mocks["password_reset"].verify.assert_called_once_with("verify.jwt.token", "654321")

    def test_reset_password(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        response = client.post(
            "/v1/auth/reset-password",
            json={"verification_token": "t", "password": "n3wpass", "confirm_password": "n3wpass"},
        )

        assert response.status_code == 200
        assert response.json()["metadata"]["message"] == "Password reset successful"
        mocks["password_reset"].reset.assert_called_once_with("t", "n3wpass")

    def test_reset_password_bad_token_is_400(
        self, client: TestClient, mocks: dict[str, MagicMock]
    ) -> None:
        mocks["password_reset"].reset.side_effect = InvalidArgument(
            "Invalid or expired verification token"
        )
        response = client.post(
            "/v1/auth/reset-password",
            json={"verification_token": "t", "password": "n3wpass", "confirm_password": "n3wpass"},
        )
        assert response.status_code == 400

    def test_reset_password_mismatch_is_422(
        self, client: TestClient, mocks: dict[str, MagicMock]
    ) -> None:
        response = client.post(
            "/v1/auth/reset-password",
            json={"verification_token": "t", "password": "n3wpass", "confirm_password": "other1"},
        )
        assert response.status_code == 422
        mocks["password_reset"].reset.assert_not_called()


class TestEmailVerifyEndpoints:
    """Tests for email-verify/start and email-verify/finish."""

    def test_start(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["email_verification"].start.return_value = "email.jwt.token"

        response = client.post("/v1/auth/email-verify/start", json={"email": "a@x.com"})

        assert response.status_code == 200
        assert response.json()["verification_token"] == "email.jwt.token"

    def test_finish(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        response = client.post(
            "/v1/auth/email-verify/finish",
            json={"verification_token": "email.jwt.token", "code": "anything"},
        )

        assert response.status_code == 200
        assert response.json()["metadata"]["message"] == "Email verification successful"
        mocks["email_verification"].finish.assert_called_once_with("email.jwt.token", "anything")


class TestUserEndpoints:
    """Tests for the bearer-protected /v1/users routes."""

    def test_create(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["admin"].create_user.return_value = ALICE

        response = client.post(
            "/v1/users", json={"username": "alice", "email": "a@x.com", "password": "secret1"}
        )

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["username"] == "alice"
        assert "password_hash" not in user

    def test_list(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["admin"].list_users.return_value = UserPage(
            users=[ALICE], current_page=2, page_items=1, total_pages=2, total_items=6
        )

        response = client.get("/v1/users", params={"page": 2, "items_per_page": 5})

        assert response.status_code == 200
        assert response.json()["pagination_metadata"] == {
            "page_items": 1,
            "current_page": 2,
            "total_pages": 2,
            "total_items": 6,
        }
        mocks["admin"].list_users.assert_called_once_with(2, 5)

    def test_get_missing_is_404(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["admin"].get_user.side_effect = NotFound("User not found")
        response = client.get("/v1/users/nope")
        assert response.status_code == 404
        assert response.json() == {"detail": "User not found"}

    def test_update(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        mocks["admin"].update_user.return_value = ALICE

        response = client.patch("/v1/users/u-1", json={"username": "alicia"})

        assert response.status_code == 200
        mocks["admin"].update_user.assert_called_once_with(
            "u-1", username="alicia", email=None, password=None
        )

    def test_delete(self, client: TestClient, mocks: dict[str, MagicMock]) -> None:
        response = client.delete("/v1/users/u-1")
        assert response.status_code == 200
        mocks["admin"].delete_user.assert_called_once_with("u-1")

    def test_missing_bearer_is_401(self, app: FastAPI, mocks: dict[str, MagicMock]) -> None:
        """Without an override, get_current_user rejects a missing header."""
        del app.dependency_overrides[get_current_user]

        response = TestClient(app).get("/v1/users")

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid auth metadata"}
        mocks["admin"].list_users.assert_not_called()

    def test_bearer_token_is_authenticated(
        self, app: FastAPI, mocks: dict[str, MagicMock]
    ) -> None:
        del app.dependency_overrides[get_current_user]
        mocks["sessions"].authenticate.return_value = ALICE
        mocks["admin"].get_user.return_value = ALICE

        response = TestClient(app).get(
            "/v1/users/u-1", headers={"Authorization": "Bearer access.jwt.token"}
        )

        assert response.status_code == 200
        mocks["sessions"].authenticate.assert_called_once_with("access.jwt.token")

    def test_rejected_bearer_is_401(self, app: FastAPI, mocks: dict[str, MagicMock]) -> None:
        del app.dependency_overrides[get_current_user]
        mocks["sessions"].authenticate.side_effect = Unauthenticated("Invalid access token")

        response = TestClient(app).get(
            "/v1/users", headers={"Authorization": "Bearer refresh.jwt.token"}
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid access token"}


class TestErrorHandlers:
    """Tests for internal error handling."""

    def test_configuration_error_is_generic_500(
        self, app: FastAPI, mocks: dict[str, MagicMock]
    ) -> None:
        mocks["sessions"].login.side_effect = ConfigurationError("Encryption key not found")

        response = TestClient(app).post(
            "/v1/auth/login", json={"email_or_username": "alice", "password": "secret1"}
        )

        assert response.status_code == 500
        assert response.json() == {"detail": "An internal error occurred"}

    def test_unhandled_exception_is_generic_500(
        self, app: FastAPI, mocks: dict[str, MagicMock]
    ) -> None:
        mocks["sessions"].login.side_effect = RuntimeError("connection refused at 10.0.0.5")

        response = TestClient(app, raise_server_exceptions=False).post(
            "/v1/auth/login", json={"email_or_username": "alice", "password": "secret1"}
        )

        assert response.status_code == 500
        assert "10.0.0.5" not in response.text
        assert response.json() == {"detail": "An internal error occurred"}
