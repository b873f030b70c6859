"""Tests for the identity layer (channel links and MongoIdentityProvider) against mongomock."""

import hashlib
import uuid

import mongomock
import pytest

from contactdeck.application import IdentityUnavailable, resolve_session_identity
from contactdeck.application.session import METHOD_CUSTOM_TOKEN
from contactdeck.infrastructure import (
    CHANNEL_ANONYMOUS,
    CHANNEL_CUSTOM_TOKEN,
    MongoIdentityProvider,
    ensure_channel_link_index,
    get_or_create_user_id,
)
from contactdeck.infrastructure.identity import ACCOUNTS, CHANNEL_LINKS


@pytest.fixture
def database():
    client = mongomock.MongoClient()
    database = client["contactdeck_test"]
    ensure_channel_link_index(database)
    yield database
    client.close()


def test_get_or_create_returns_uuid_and_is_new(database):
    user_id, is_new = get_or_create_user_id(database, CHANNEL_CUSTOM_TOKEN, "12345")
    uuid.UUID(user_id)
    assert is_new is True
    assert database[ACCOUNTS].count_documents({"_id": user_id}) == 1


def test_same_channel_and_external_id_returns_same_user_id_second_call_not_new(database):
    a, is_new_a = get_or_create_user_id(database, CHANNEL_CUSTOM_TOKEN, "99999")
    b, is_new_b = get_or_create_user_id(database, CHANNEL_CUSTOM_TOKEN, "99999")
    assert a == b
    assert is_new_a is True
    assert is_new_b is False


def test_different_external_id_returns_different_user_id(database):
    a, _ = get_or_create_user_id(database, CHANNEL_CUSTOM_TOKEN, "111")
    b, _ = get_or_create_user_id(database, CHANNEL_CUSTOM_TOKEN, "222")
    assert a != b


def test_empty_external_id_raises(database):
    with pytest.raises(ValueError, match="external_id"):
        get_or_create_user_id(database, CHANNEL_CUSTOM_TOKEN, "")


def test_empty_channel_raises(database):
    with pytest.raises(ValueError, match="channel"):
        get_or_create_user_id(database, "", "12345")


def test_custom_token_is_stable_and_stored_hashed(database):
    provider = MongoIdentityProvider(database)
    first = provider.sign_in_with_custom_token("secret-token")
    second = provider.sign_in_with_custom_token("  secret-token ")
    assert first == second
    assert database[CHANNEL_LINKS].count_documents({"external_id": "secret-token"}) == 0


def test_empty_custom_token_is_unavailable(database):
    with pytest.raises(IdentityUnavailable):
        MongoIdentityProvider(database).sign_in_with_custom_token("  ")


def test_anonymous_with_device_id_is_stable(database):
    provider = MongoIdentityProvider(database, device_id="device-1")
    user_id = provider.sign_in_anonymously()
    assert provider.sign_in_anonymously() == user_id
    link = database[CHANNEL_LINKS].find_one({"channel": CHANNEL_ANONYMOUS, "external_id": "device-1"})
    assert link["user_id"] == user_id


def test_anonymous_without_device_id_creates_new_account(database):
    provider = MongoIdentityProvider(database)
    a = provider.sign_in_anonymously()
    b = provider.sign_in_anonymously()
    assert a != b
    assert database[ACCOUNTS].find_one({"_id": a})["anonymous"] is True


def test_identity_listeners_notified(database):
    provider = MongoIdentityProvider(database)
    seen = []
    unsubscribe = provider.on_identity_change(seen.append)
    user_id = provider.sign_in_anonymously()
    unsubscribe()
    provider.sign_in_anonymously()
    assert seen == [user_id]


def test_resolve_session_identity_with_mongo_provider(database):
    provider = MongoIdentityProvider(database)
    identity = resolve_session_identity(provider, "secret-token")
    assert identity.method == METHOD_CUSTOM_TOKEN
    token_key = hashlib.sha256(b"secret-token").hexdigest()
    link = database[CHANNEL_LINKS].find_one({"channel": CHANNEL_CUSTOM_TOKEN, "external_id": token_key})
    assert link["user_id"] == identity.user_id
