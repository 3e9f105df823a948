"""Unit tests for core/config.py -- startup validation of the signing secret.

Missing, short and placeholder secrets must stop the process (ValueError from
Settings construction); a strong secret loads and the derived helpers work.
"""

from __future__ import annotations

import pytest

from core.config import ConfigurationError, Settings, validate_signing_secret
from tests.conftest import TEST_SECRET


def test_missing_secret_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(ValueError, match="JWT_SECRET must be set"):
        Settings(_env_file=None)


@pytest.mark.parametrize(
    "secret",
    [
        "x" * 31,
        "secret",
        "CHANGEME-CHANGEME-CHANGEME-CHANGEME-42",
        "my-example-jwt-secret-for-local-dev-only-0123",
    ],
)
def test_weak_secret_is_fatal(monkeypatch: pytest.MonkeyPatch, secret: str) -> None:
    monkeypatch.setenv("JWT_SECRET", secret)
    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_secret_length_is_counted_in_bytes() -> None:
    # 16 two-byte characters: 16 chars but 32 bytes.
    assert validate_signing_secret("é" * 16) == "é" * 16
    with pytest.raises(ConfigurationError):
        validate_signing_secret("é" * 15)


def test_error_message_never_contains_secret() -> None:
    weak = "example-but-long-enough-to-pass-the-length-check"
    with pytest.raises(ConfigurationError) as excinfo:
        validate_signing_secret(weak)
    assert weak not in str(excinfo.value)


def test_strong_secret_loads_with_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://leetshare.dev, http://localhost:3000,")
    settings = Settings(_env_file=None)
    assert settings.jwt_secret == TEST_SECRET
    assert settings.origins == ["https://leetshare.dev", "http://localhost:3000"]
    assert settings.github_enabled is False


def test_github_enabled_needs_both_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("GITHUB_CLIENT_ID", "Iv1.abc")
    assert Settings(_env_file=None).github_enabled is False
    monkeypatch.setenv("GITHUB_CLIENT_SECRET", "shh")
    assert Settings(_env_file=None).github_enabled is True
