"""Supabase-backed auth and journal rows."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, TypeVar

from supabase import Client, create_client

from errors import AUTH_FAILED, StoreError
from models import AuthSession, Dream, DreamStatus, InputType, Profile, SubscriptionTier

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROFILES = "profiles"
DREAMS = "dreams"

DREAM_FIELDS = (
    "id",
    "user_id",
    "title",
    "content",
    "input_type",
    "status",
    "audio_url",
    "interpretation",
    "interpretation_summary",
    "symbols_detected",
    "mood_analysis",
    "is_favorite",
    "created_at",
    "updated_at",
)


def profile_from_row(row: dict[str, Any]) -> Profile:
    return Profile(
        id=str(row["id"]),
        display_name=row.get("display_name"),
        avatar_url=row.get("avatar_url"),
        subscription_tier=SubscriptionTier(row.get("subscription_tier") or "free"),
        dream_count=int(row.get("dream_count") or 0),
        created_at=row.get("created_at") or "",
        updated_at=row.get("updated_at") or "",
    )


def dream_from_row(row: dict[str, Any]) -> Dream:
    return Dream(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        content=row.get("content") or "",
        input_type=InputType(row.get("input_type") or "text"),
        status=DreamStatus(row.get("status") or "processing"),
        title=row.get("title"),
        audio_url=row.get("audio_url"),
        interpretation=row.get("interpretation"),
        interpretation_summary=row.get("interpretation_summary"),
        symbols_detected=row.get("symbols_detected"),
        mood_analysis=row.get("mood_analysis"),
        is_favorite=bool(row.get("is_favorite")),
        created_at=row.get("created_at") or "",
        updated_at=row.get("updated_at") or "",
    )


class SupabaseJournalStore:
    def __init__(self, url: str = "", key: str = "", client: Client | None = None) -> None:
        if client is None:
            if not url or not key:
                raise StoreError("Missing Supabase URL or key")
            client = create_client(url, key)
        self._client = client

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def sign_in(self, email: str, password: str) -> AuthSession:
        response = self._call(
            "sign in",
            lambda: self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            ),
            code=AUTH_FAILED,
        )
        return self._to_session(response.session, response.user)

    def sign_up(self, email: str, password: str, display_name: str) -> AuthSession:
        response = self._call(
            "sign up",
            lambda: self._client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"display_name": display_name}},
                }
            ),
            code=AUTH_FAILED,
        )
        session = self._to_session(response.session, response.user)
        self._call(
            "create profile",
            lambda: self._client.table(PROFILES)
            .upsert({"id": session.user_id, "display_name": display_name})
            .execute(),
        )
        return session

    def sign_out(self) -> None:
        self._call("sign out", self._client.auth.sign_out)

    def get_session(self) -> Optional[AuthSession]:
        session = self._call("get session", self._client.auth.get_session)
        if session is None:
            return None
        return self._to_session(session, session.user)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def get_profile(self, user_id: str) -> Optional[Profile]:
        response = self._call(
            "load profile",
            lambda: self._client.table(PROFILES).select("*").eq("id", user_id).execute(),
        )
        rows = response.data or []
        return profile_from_row(rows[0]) if rows else None

    def update_profile(self, user_id: str, changes: dict[str, Any]) -> Profile:
        response = self._call(
            "update profile",
            lambda: self._client.table(PROFILES).update(changes).eq("id", user_id).execute(),
        )
        return profile_from_row(self._single(response, "profile"))

    # ------------------------------------------------------------------
    # Dreams
    # ------------------------------------------------------------------

    def create_dream(self, row: dict[str, Any]) -> Dream:
        response = self._call(
            "create dream",
            lambda: self._client.table(DREAMS).insert(row).execute(),
        )
        return dream_from_row(self._single(response, "dream"))

    def update_dream(self, dream_id: str, changes: dict[str, Any]) -> Dream:
        response = self._call(
            "update dream",
            lambda: self._client.table(DREAMS).update(changes).eq("id", dream_id).execute(),
        )
        return dream_from_row(self._single(response, "dream"))

    def get_dream(self, dream_id: str) -> Optional[Dream]:
        response = self._call(
            "load dream",
            lambda: self._client.table(DREAMS).select("*").eq("id", dream_id).execute(),
        )
        rows = response.data or []
        return dream_from_row(rows[0]) if rows else None

    def list_dreams(self, user_id: str) -> list[Dream]:
        response = self._call(
            "list dreams",
            lambda: self._client.table(DREAMS)
            .select(", ".join(DREAM_FIELDS))
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute(),
        )
        return [dream_from_row(row) for row in response.data or []]

    def delete_dream(self, dream_id: str) -> None:
        self._call(
            "delete dream",
            lambda: self._client.table(DREAMS).delete().eq("id", dream_id).execute(),
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _call(self, action: str, fn: Callable[[], T], code: str | None = None) -> T:
        try:
            return fn()
        except StoreError:
            raise
        except Exception as exc:
            logger.error("Supabase %s failed: %s", action, exc)
            raise StoreError(f"{action} failed: {exc}", code=code) from exc

    def _single(self, response: Any, what: str) -> dict[str, Any]:
        rows = response.data or []
        if not rows:
            raise StoreError(f"No {what} row returned")
        return rows[0]

    def _to_session(self, session: Any, user: Any) -> AuthSession:
        if user is None:
            raise StoreError("No user returned", code=AUTH_FAILED)
        return AuthSession(
            access_token=getattr(session, "access_token", "") or "",
            refresh_token=getattr(session, "refresh_token", "") or "",
            user_id=str(user.id),
            email=getattr(user, "email", "") or "",
            expires_at=getattr(session, "expires_at", None),
        )
