"""Tests for api/settings module."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from api.settings import Settings, _is_github_actions


class TestIsGitHubActions:
    """Tests for _is_github_actions function."""

    def test_both_signals_required(self):
        with patch.dict("os.environ", {"CI": "true", "GITHUB_ACTIONS": "true"}):
            assert _is_github_actions() is True

    def test_missing_ci_signal(self):
        with patch.dict("os.environ", {"GITHUB_ACTIONS": "true"}, clear=True):
            assert _is_github_actions() is False

    def test_neither_signal(self):
        with patch.dict("os.environ", {}, clear=True):
            assert _is_github_actions() is False


class TestGetEffectiveAuthMode:
    """Tests for Settings.get_effective_auth_mode method."""

    def test_non_docker_returns_configured_mode(self):
        with patch.dict("os.environ", {"AUTH_MODE": "bypass"}, clear=True):
            with patch("api.settings._is_docker_environment", return_value=False):
                assert Settings().get_effective_auth_mode() == "bypass"

    def test_docker_forces_production(self):
        with patch.dict("os.environ", {"AUTH_MODE": "bypass"}, clear=True):
            with patch("api.settings._is_docker_environment", return_value=True):
                settings = Settings()
                settings.is_docker = True
                assert settings.get_effective_auth_mode() == "production"

    def test_docker_allows_bypass_in_github_actions(self):
        with patch.dict("os.environ", {"AUTH_MODE": "bypass", "CI": "true", "GITHUB_ACTIONS": "true"}, clear=True):
            with patch("api.settings._is_docker_environment", return_value=True):
                assert Settings().get_effective_auth_mode() == "bypass"


class TestSettingsFields:
    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.auth_mode == "production"
        assert settings.timezone == "Asia/Manila"
        assert settings.default_page_size == 10
        assert settings.jwt_audience is None
        assert settings.allowed_origins == ["http://localhost:3000", "http://localhost:5173"]

    def test_auth_mode_is_validated(self):
        with patch.dict("os.environ", {"AUTH_MODE": "open"}, clear=True):
            with pytest.raises(ValidationError, match="Invalid AUTH_MODE"):
                Settings(_env_file=None)

    def test_allowed_origins_are_split_and_trimmed(self):
        with patch.dict("os.environ", {"ALLOWED_ORIGINS": " https://a.example , ,https://b.example"}, clear=True):
            assert Settings(_env_file=None).allowed_origins == ["https://a.example", "https://b.example"]

    def test_blank_audience_is_none(self):
        with patch.dict("os.environ", {"JWT_AUDIENCE": ""}, clear=True):
            assert Settings(_env_file=None).jwt_audience is None

    @pytest.mark.parametrize(("requested", "expected"), [(None, 10), (0, 1), (-5, 1), (25, 25), (1000, 100)])
    def test_clamp_page_size(self, requested, expected):
        with patch.dict("os.environ", {}, clear=True):
            assert Settings(_env_file=None).clamp_page_size(requested) == expected
