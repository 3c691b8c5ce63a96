"""Tests for SupabaseJournalStore against a mocked supabase client."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from errors import AUTH_FAILED, STORE_ERROR, StoreError
from models import DreamStatus, InputType, SubscriptionTier
from store import SupabaseJournalStore

DREAM_ROW = {
    "id": "d1",
    "user_id": "u1",
    "title": "Sea",
    "content": "I sailed",
    "input_type": "voice",
    "status": "completed",
    "is_favorite": True,
}


def _auth_response() -> SimpleNamespace:
    return SimpleNamespace(
        session=SimpleNamespace(access_token="access", refresh_token="refresh", expires_at=123),
        user=SimpleNamespace(id="u1", email="ada@example.com"),
    )


def _table(client: MagicMock) -> MagicMock:
    return client.table.return_value


def test_requires_url_and_key() -> None:
    with pytest.raises(StoreError):
        SupabaseJournalStore(url="", key="")


def test_sign_in_returns_session() -> None:
    client = MagicMock()
    client.auth.sign_in_with_password.return_value = _auth_response()
    store = SupabaseJournalStore(client=client)

    session = store.sign_in("ada@example.com", "secret")

    client.auth.sign_in_with_password.assert_called_once_with(
        {"email": "ada@example.com", "password": "secret"}
    )
    assert session.user_id == "u1"
    assert session.access_token == "access"
    assert session.expires_at == 123


def test_sign_in_failure_is_auth_error() -> None:
    client = MagicMock()
    client.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")
    store = SupabaseJournalStore(client=client)

    with pytest.raises(StoreError) as info:
        store.sign_in("ada@example.com", "wrong")
    assert info.value.code == AUTH_FAILED


def test_sign_up_creates_profile_row() -> None:
    client = MagicMock()
    client.auth.sign_up.return_value = _auth_response()
    store = SupabaseJournalStore(client=client)

    store.sign_up("ada@example.com", "secret", "Ada")

    payload = client.auth.sign_up.call_args.args[0]
    assert payload["options"]["data"]["display_name"] == "Ada"
    client.table.assert_called_with("profiles")
    _table(client).upsert.assert_called_once_with({"id": "u1", "display_name": "Ada"})


def test_get_session_none_when_signed_out() -> None:
    client = MagicMock()
    client.auth.get_session.return_value = None
    assert SupabaseJournalStore(client=client).get_session() is None


def test_get_profile_maps_row() -> None:
    client = MagicMock()
    _table(client).select.return_value.eq.return_value.execute.return_value = SimpleNamespace(
        data=[{"id": "u1", "display_name": "Ada", "subscription_tier": "premium", "dream_count": 4}]
    )
    profile = SupabaseJournalStore(client=client).get_profile("u1")

    assert profile is not None
    assert profile.subscription_tier == SubscriptionTier.PREMIUM
    assert profile.dream_count == 4


def test_get_profile_missing_returns_none() -> None:
    client = MagicMock()
    _table(client).select.return_value.eq.return_value.execute.return_value = SimpleNamespace(data=[])
    assert SupabaseJournalStore(client=client).get_profile("u1") is None


def test_create_dream_maps_inserted_row() -> None:
    client = MagicMock()
    _table(client).insert.return_value.execute.return_value = SimpleNamespace(data=[DREAM_ROW])

    dream = SupabaseJournalStore(client=client).create_dream({"user_id": "u1", "content": "I sailed"})

    client.table.assert_called_with("dreams")
    assert dream.input_type == InputType.VOICE
    assert dream.status == DreamStatus.COMPLETED
    assert dream.is_favorite is True


def test_update_with_no_rows_is_an_error() -> None:
    client = MagicMock()
    _table(client).update.return_value.eq.return_value.execute.return_value = SimpleNamespace(data=[])

    with pytest.raises(StoreError) as info:
        SupabaseJournalStore(client=client).update_dream("d1", {"status": "failed"})
    assert info.value.code == STORE_ERROR


def test_list_dreams_newest_first() -> None:
    client = MagicMock()
    query = _table(client).select.return_value.eq.return_value.order.return_value
    query.execute.return_value = SimpleNamespace(data=[DREAM_ROW, dict(DREAM_ROW, id="d0")])

    dreams = SupabaseJournalStore(client=client).list_dreams("u1")

    _table(client).select.return_value.eq.return_value.order.assert_called_once_with(
        "created_at", desc=True
    )
    assert [d.id for d in dreams] == ["d1", "d0"]


def test_client_errors_become_store_errors() -> None:
    client = MagicMock()
    _table(client).delete.return_value.eq.return_value.execute.side_effect = Exception("permission denied")

    with pytest.raises(StoreError, match="delete dream failed"):
        SupabaseJournalStore(client=client).delete_dream("d1")
