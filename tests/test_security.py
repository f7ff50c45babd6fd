from datetime import timedelta

import pytest
from jose import JWTError

from sitechat.core import security
from sitechat.core.security import (
    create_access_token,
    decode_access_token,
    hash_chat_token,
    issue_chat_token,
    verify_admin_credentials,
    verify_chat_token,
)


def test_issued_token_has_256_bits_and_matching_digest():
    raw, digest = issue_chat_token()
    assert len(raw) == 64
    assert digest == hash_chat_token(raw)
    assert digest != raw
    assert verify_chat_token(raw, digest)


def test_tokens_are_unique():
    assert issue_chat_token()[0] != issue_chat_token()[0]


def test_wrong_or_missing_token_fails_verification():
    raw, digest = issue_chat_token()
    other, _ = issue_chat_token()
    assert not verify_chat_token(other, digest)
    assert not verify_chat_token("", digest)
    assert not verify_chat_token(None, digest)
    assert not verify_chat_token(raw, "")


def test_access_token_roundtrip():
    token = create_access_token({"sub": "admin", "role": "admin"})
    payload = decode_access_token(token)
    assert payload["sub"] == "admin"
    assert payload["role"] == "admin"


def test_expired_access_token_is_rejected():
    token = create_access_token({"sub": "admin", "role": "admin"}, timedelta(seconds=-10))
    with pytest.raises(JWTError):
        decode_access_token(token)


def test_admin_credentials(monkeypatch):
    monkeypatch.setattr(security, "ADMIN_USERNAME", "admin")
    monkeypatch.setattr(security, "ADMIN_PASSWORD", "pw")
    assert verify_admin_credentials(" admin ", "pw")
    assert not verify_admin_credentials("admin", "wrong")
    assert not verify_admin_credentials("root", "pw")


def test_admin_credentials_require_configuration(monkeypatch):
    monkeypatch.setattr(security, "ADMIN_USERNAME", "")
    monkeypatch.setattr(security, "ADMIN_PASSWORD", "")
    assert not security.admin_login_configured()
    assert not verify_admin_credentials("", "")
