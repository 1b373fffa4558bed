"""Tests for callback token signing."""

from __future__ import annotations

import hashlib
import hmac
from uuid import uuid4

import pytest
from pydantic import SecretStr

from reminder_service.core.exceptions import ConfigurationError
from reminder_service.features.reminders import tokens
from reminder_service.features.reminders.tokens import TokenAuthority


def test_sign_is_hex_hmac_sha256_of_reminder_id() -> None:
    reminder_id = uuid4()

    token = TokenAuthority("s3cret").sign(reminder_id)

    expected = hmac.new(b"s3cret", str(reminder_id).encode(), hashlib.sha256).hexdigest()
    assert token == expected
    assert len(token) == 64


def test_sign_is_deterministic_and_accepts_str_ids() -> None:
    reminder_id = uuid4()
    authority = TokenAuthority("s3cret")

    assert authority.sign(reminder_id) == authority.sign(str(reminder_id))


def test_verify_accepts_own_token() -> None:
    reminder_id = uuid4()
    authority = TokenAuthority("s3cret")

    assert authority.verify(reminder_id, authority.sign(reminder_id))


@pytest.mark.parametrize("token", ["", None, 42, "deadbeef", "é" * 64])
def test_verify_rejects_malformed_tokens(token: object) -> None:
    assert not TokenAuthority("s3cret").verify(uuid4(), token)


def test_verify_rejects_token_for_other_reminder() -> None:
    authority = TokenAuthority("s3cret")

    assert not authority.verify(uuid4(), authority.sign(uuid4()))


def _flip(char: str) -> str:
    return "0" if char != "0" else "1"


def test_verify_compares_with_compare_digest(monkeypatch: pytest.MonkeyPatch) -> None:
    reminder_id = uuid4()
    authority = TokenAuthority("s3cret")
    token = authority.sign(reminder_id)
    calls: list[tuple[bytes, bytes]] = []
    compare_digest = hmac.compare_digest

    def recording_compare_digest(a: bytes, b: bytes) -> bool:
        calls.append((a, b))
        return compare_digest(a, b)

    monkeypatch.setattr(tokens.hmac, "compare_digest", recording_compare_digest)

    assert authority.verify(reminder_id, token)
    assert not authority.verify(reminder_id, _flip(token[0]) + token[1:])
    assert not authority.verify(reminder_id, token[:-1] + _flip(token[-1]))

    assert len(calls) == 3
    assert all(expected == token.encode() for expected, _ in calls)


def test_verify_rejects_token_from_other_secret() -> None:
    reminder_id = uuid4()

    assert not TokenAuthority("s3cret").verify(reminder_id, TokenAuthority("other").sign(reminder_id))


def test_accepts_secret_str() -> None:
    reminder_id = uuid4()

    assert TokenAuthority(SecretStr("s3cret")).sign(reminder_id) == TokenAuthority("s3cret").sign(reminder_id)


@pytest.mark.parametrize("secret", [None, "", SecretStr("")])
def test_missing_secret_is_a_configuration_error(secret: object) -> None:
    with pytest.raises(ConfigurationError):
        TokenAuthority(secret)


def test_repr_hides_secret() -> None:
    assert "s3cret" not in repr(TokenAuthority("s3cret"))
