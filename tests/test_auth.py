from __future__ import annotations

import pytest

from dnd_sheet.auth import (
    EmailTaken,
    InvalidCredentials,
    KeyTaken,
    UserNotFound,
    check_password,
    hash_password,
    normalize_public_key,
)

from conftest import PASSWORD


def test_hash_round_trip():
    stored = hash_password("correct horse", iterations=1000)
    assert stored.startswith("pbkdf2_sha256$1000$")
    assert check_password("correct horse", stored)
    assert not check_password("wrong horse", stored)


def test_hashes_are_salted():
    assert hash_password("same", iterations=1000) != hash_password("same", iterations=1000)


@pytest.mark.parametrize("stored", ["", "plain", "md5$1$salt$digest", "pbkdf2_sha256$many$salt$digest"])
def test_check_password_rejects_malformed(stored):
    assert not check_password("anything", stored)


def test_normalize_public_key_drops_comment():
    assert normalize_public_key("  ssh-ed25519 AAAAB3Nz user@host  ") == "ssh-ed25519 AAAAB3Nz"
    assert normalize_public_key("ssh-rsa AAAA") == "ssh-rsa AAAA"


def test_password_login(auth, user):
    assert auth.login_with_password("hero@example.com", PASSWORD).id == user.id
    with pytest.raises(InvalidCredentials, match="invalid email or password"):
        auth.login_with_password("hero@example.com", "not-it")
    with pytest.raises(UserNotFound, match="user not found"):
        auth.login_with_password("ghost@example.com", PASSWORD)


def test_duplicate_email(auth, user):
    with pytest.raises(EmailTaken, match="email already registered"):
        auth.register_with_password("hero@example.com", "another1")


def test_public_key_flow(auth, store):
    user = auth.register_with_public_key("ssh-ed25519 AAAAkey laptop")
    assert user.public_key == "ssh-ed25519 AAAAkey"
    assert user.email is None

    assert auth.login_with_public_key("ssh-ed25519 AAAAkey desktop").id == user.id
    with pytest.raises(KeyTaken, match="SSH key already registered"):
        auth.register_with_public_key("ssh-ed25519 AAAAkey")
    with pytest.raises(UserNotFound):
        auth.login_with_public_key("ssh-ed25519 BBBBother")


def test_key_user_cannot_password_login(auth):
    auth.register_with_public_key("ssh-ed25519 AAAAkey")
    with pytest.raises(UserNotFound):
        auth.login_with_password("", "whatever")
