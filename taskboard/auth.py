"""Session helpers: who is signed in, sign-in and sign-out.

The session is any mutable mapping; the Streamlit pages pass
``st.session_state``. The identity itself (``open_id``) comes from the
external login provider and is trusted as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, MutableMapping, Optional

from taskboard.errors import store_errors
from taskboard.tasks import repo
from taskboard.tasks.db import Database

SESSION_KEY = "taskboard_open_id"


@dataclass(frozen=True)
class Caller:
    id: int
    open_id: str
    role: str = "user"
    name: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_user(cls, user: Mapping[str, Any]) -> "Caller":
        return cls(
            id=int(user["id"]),
            open_id=str(user["open_id"]),
            role=str(user.get("role") or "user"),
            name=user.get("name"),
            email=user.get("email"),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.open_id


def login(
    session_state: MutableMapping[str, Any],
    db: Database,
    open_id: str,
    *,
    name: Optional[str] = None,
    email: Optional[str] = None,
    login_method: Optional[str] = None,
) -> Caller:
    """Record a sign-in and remember the identity in the session."""
    user: Dict[str, Any] = {"open_id": open_id}
    if name is not None:
        user["name"] = name
    if email is not None:
        user["email"] = email
    if login_method is not None:
        user["login_method"] = login_method

    with store_errors("auth.login"):
        row = repo.upsert_user(db, user)
    session_state[SESSION_KEY] = row["open_id"]
    return Caller.from_user(row)


def me(session_state: Mapping[str, Any], db: Database) -> Optional[Caller]:
    """The signed-in caller, or None."""
    open_id = session_state.get(SESSION_KEY)
    if not open_id:
        return None
    with store_errors("auth.me"):
        user = repo.get_user_by_open_id(db, open_id)
    return Caller.from_user(user) if user else None


def logout(session_state: MutableMapping[str, Any]) -> Dict[str, bool]:
    session_state.pop(SESSION_KEY, None)
    return {"success": True}
