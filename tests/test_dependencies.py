"""Unit tests for auth/dependencies.py -- parse_bearer_header().

The parser is independent of any request object, so it is tested with plain
header strings.
"""

from __future__ import annotations

import pytest

from auth.dependencies import parse_bearer_header
from auth.errors import AuthenticationError
from auth.tokens import TokenService
from tests.conftest import TEST_SECRET, FakeClock


@pytest.fixture
def tokens(fake_clock: FakeClock) -> TokenService:
    return TokenService(TEST_SECRET, clock=fake_clock)


def test_valid_bearer_header(tokens: TokenService) -> None:
    token = tokens.issue("user-7")
    claims = parse_bearer_header(f"Bearer {token}", tokens)
    assert claims.subject == "user-7"


@pytest.mark.parametrize(
    "header",
    [None, "", "Bearer", "Bearer ", "Basic dXNlcjpwYXNz", "bearer abc.def.ghi", "Token abc"],
)
def test_bad_header_rejected(tokens: TokenService, header: str | None) -> None:
    with pytest.raises(AuthenticationError):
        parse_bearer_header(header, tokens)


def test_expired_token_in_header_rejected(tokens: TokenService, fake_clock: FakeClock) -> None:
    header = f"Bearer {tokens.issue('user-7')}"
    fake_clock.advance(tokens.validity_seconds + 1)
    with pytest.raises(AuthenticationError, match="invalid token"):
        parse_bearer_header(header, tokens)
