"""Tests for the authentication middleware and token validation."""

from __future__ import annotations

import time
from unittest.mock import AsyncMock, MagicMock, patch

import jwt
import pytest
from fastapi import HTTPException

from survey_validation.auth import (
    BYPASS_USER_ID,
    AuthMiddleware,
    AuthUser,
    TokenValidator,
    _is_ci_environment,
    _is_docker_environment,
    extract_bearer_token,
    get_current_user,
    require_admin,
    user_from_claims,
)
from survey_validation.core.models import UserType

SECRET = "test-secret-with-at-least-thirty-two-bytes"


def make_token(claims: dict, secret: str = SECRET) -> str:
    payload = {"exp": int(time.time()) + 300, **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


def make_user(is_admin: bool = False) -> AuthUser:
    return AuthUser(
        user_id="LYDO001",
        user_type=UserType.LYDO_STAFF,
        display_name="Ana Reyes",
        groups=["admin"] if is_admin else [],
        is_admin=is_admin,
    )


class TestAuthUser:
    """Tests for AuthUser class."""

    def test_to_dict(self):
        result = make_user(is_admin=True).to_dict()

        assert result == {
            "user_id": "LYDO001",
            "user_type": "lydo_staff",
            "display_name": "Ana Reyes",
            "groups": ["admin"],
            "is_admin": True,
        }

    def test_to_actor(self):
        actor = make_user().to_actor()

        assert actor.user_id == "LYDO001"
        assert actor.user_type is UserType.LYDO_STAFF
        assert actor.display_name == "Ana Reyes"


class TestEnvironmentDetection:
    def test_docker_env_var_true(self):
        with patch.dict("os.environ", {"DOCKER_CONTAINER": "true"}):
            assert _is_docker_environment() is True

    def test_docker_env_var_false(self):
        with patch.dict("os.environ", {"DOCKER_CONTAINER": "false"}, clear=True):
            with patch("pathlib.Path.exists", return_value=False):
                with patch("builtins.open", side_effect=FileNotFoundError):
                    assert _is_docker_environment() is False

    def test_dockerenv_file_exists(self):
        with patch.dict("os.environ", {}, clear=True):
            with patch("pathlib.Path.exists", return_value=True):
                assert _is_docker_environment() is True

    def test_ci_requires_both_signals(self):
        with patch.dict("os.environ", {"CI": "true", "GITHUB_ACTIONS": "true"}):
            assert _is_ci_environment() is True
        with patch.dict("os.environ", {"GITHUB_ACTIONS": "true"}, clear=True):
            assert _is_ci_environment() is False


class TestExtractBearerToken:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("Bearer abc.def", "abc.def"),
            ("bearer abc", "abc"),
            ("Basic abc", None),
            ("Bearer", None),
            ("", None),
            (None, None),
        ],
    )
    def test_extract(self, header, expected):
        assert extract_bearer_token(header) == expected


class TestTokenValidator:
    def test_requires_secret(self):
        with pytest.raises(ValueError, match="JWT_SECRET"):
            TokenValidator("")

    def test_valid_token(self):
        claims = TokenValidator(SECRET).validate_token(make_token({"sub": "LYDO001"}))

        assert claims is not None
        assert claims["sub"] == "LYDO001"

    def test_expired_token(self):
        token = make_token({"sub": "LYDO001", "exp": int(time.time()) - 60})

        assert TokenValidator(SECRET).validate_token(token) is None

    def test_wrong_signature(self):
        token = make_token({"sub": "LYDO001"}, secret="another-secret-that-is-also-long-enough")

        assert TokenValidator(SECRET).validate_token(token) is None

    def test_missing_subject(self):
        assert TokenValidator(SECRET).validate_token(make_token({"name": "nobody"})) is None

    def test_audience_checked_only_when_configured(self):
        token = make_token({"sub": "LYDO001", "aud": "other-app"})

        assert TokenValidator(SECRET).validate_token(token) is not None
        assert TokenValidator(SECRET, audience="lydo-portal").validate_token(token) is None


class TestUserFromClaims:
    def test_staff_claims(self):
        user = user_from_claims({"sub": "LYDO002", "name": "Ben Lim", "groups": "staff, reviewers"}, "admin")

        assert user.user_id == "LYDO002"
        assert user.user_type is UserType.LYDO_STAFF
        assert user.display_name == "Ben Lim"
        assert user.groups == ["staff", "reviewers"]
        assert user.is_admin is False

    def test_sk_official_claims(self):
        user = user_from_claims({"sub": "SK001", "user_type": "SK_OFFICIAL"}, "admin")

        assert user.user_type is UserType.SK_OFFICIAL
        assert user.display_name == "SK001"

    def test_admin_by_group_or_type(self):
        assert user_from_claims({"sub": "A", "groups": ["admin"]}, "admin").is_admin is True
        assert user_from_claims({"sub": "B", "user_type": "admin"}, "admin").is_admin is True

    def test_unknown_user_type_defaults_to_staff(self):
        assert user_from_claims({"sub": "X", "user_type": "wizard"}, "admin").user_type is UserType.LYDO_STAFF


class TestAuthMiddlewareInit:
    def test_invalid_mode(self):
        with patch("survey_validation.auth._is_docker_environment", return_value=False):
            with pytest.raises(ValueError, match="Invalid AUTH_MODE"):
                AuthMiddleware(MagicMock(), "invalid_mode")

    def test_bypass_blocked_in_docker(self):
        with patch("survey_validation.auth._is_docker_environment", return_value=True):
            with patch("survey_validation.auth._is_ci_environment", return_value=False):
                with pytest.raises(ValueError, match="SECURITY ERROR"):
                    AuthMiddleware(MagicMock(), "bypass")

    def test_bypass_allowed_in_docker_on_ci(self):
        with patch("survey_validation.auth._is_docker_environment", return_value=True):
            with patch("survey_validation.auth._is_ci_environment", return_value=True):
                assert AuthMiddleware(MagicMock(), "bypass").auth_mode == "bypass"

    def test_production_requires_secret(self):
        with pytest.raises(ValueError, match="JWT_SECRET must be set"):
            AuthMiddleware(MagicMock(), "production")


class TestAuthMiddlewareDispatch:
    @pytest.fixture
    def bypass_middleware(self):
        with patch("survey_validation.auth._is_docker_environment", return_value=False):
            return AuthMiddleware(MagicMock(), "bypass", "admin")

    @pytest.fixture
    def production_middleware(self):
        return AuthMiddleware(MagicMock(), "production", "admin", jwt_secret=SECRET)

    @staticmethod
    def _request(path: str = "/api/validation-queue", method: str = "GET", headers: dict | None = None):
        request = MagicMock()
        request.url.path = path
        request.method = method
        request.headers = headers or {}
        request.state = MagicMock(spec=[])
        return request

    @pytest.mark.asyncio
    async def test_health_endpoint_skipped(self, production_middleware):
        request = self._request("/health")
        call_next = AsyncMock(return_value=MagicMock())

        await production_middleware.dispatch(request, call_next)

        call_next.assert_called_once_with(request)

    @pytest.mark.asyncio
    async def test_bypass_sets_dev_admin(self, bypass_middleware):
        request = self._request()
        call_next = AsyncMock(return_value=MagicMock())

        await bypass_middleware.dispatch(request, call_next)

        assert request.state.user.user_id == BYPASS_USER_ID
        assert request.state.user.is_admin is True
        call_next.assert_called_once()

    @pytest.mark.asyncio
    async def test_valid_bearer_token_sets_user(self, production_middleware):
        token = make_token({"sub": "SK001", "user_type": "sk_official", "name": "Paolo Cruz"})
        request = self._request(headers={"Authorization": f"Bearer {token}"})
        call_next = AsyncMock(return_value=MagicMock())

        await production_middleware.dispatch(request, call_next)

        assert request.state.user.user_id == "SK001"
        assert request.state.user.user_type is UserType.SK_OFFICIAL
        call_next.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_token_is_rejected(self, production_middleware):
        call_next = AsyncMock()

        response = await production_middleware.dispatch(self._request(), call_next)

        assert response.status_code == 401
        assert b"Authentication required" in response.body
        call_next.assert_not_called()

    @pytest.mark.asyncio
    async def test_options_allowed_without_auth(self, production_middleware):
        call_next = AsyncMock(return_value=MagicMock())

        await production_middleware.dispatch(self._request(method="OPTIONS"), call_next)

        call_next.assert_called_once()


class TestDependencies:
    def test_get_current_user(self):
        request = MagicMock()
        request.state.user = make_user()

        assert get_current_user(request).user_id == "LYDO001"

    def test_get_current_user_not_authenticated(self):
        request = MagicMock()
        request.state = MagicMock(spec=[])

        with pytest.raises(HTTPException) as exc_info:
            get_current_user(request)

        assert exc_info.value.status_code == 401

    def test_require_admin(self):
        assert require_admin(make_user(is_admin=True)).is_admin is True

        with pytest.raises(HTTPException) as exc_info:
            require_admin(make_user())
        assert exc_info.value.status_code == 403
