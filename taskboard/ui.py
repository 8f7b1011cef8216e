"""Shared Streamlit plumbing for the taskboard pages."""

from __future__ import annotations

from typing import Optional, Tuple

import streamlit as st

from taskboard import auth
from taskboard.auth import Caller
from taskboard.config import get_config
from taskboard.errors import TaskboardError
from taskboard.logging_setup import setup_logging
from taskboard.service import TaskService
from taskboard.tasks.db import get_database
from taskboard.theme import set_theme


@st.cache_resource
def _init_logging() -> bool:
    config = get_config()
    setup_logging(level=config.log_level, log_dir=config.log_dir)
    return True


def bootstrap(page_title: str, page_icon: str = "📋") -> Tuple[TaskService, Optional[Caller]]:
    """Theme the page, resolve the signed-in caller and draw the account sidebar."""
    set_theme(page_title=page_title, page_icon=page_icon)
    _init_logging()

    db = get_database()
    service = TaskService(db)
    try:
        caller = auth.me(st.session_state, db)
    except TaskboardError as exc:
        show_error(exc)
        caller = None

    with st.sidebar:
        st.header("Account")
        if not db.configured:
            st.warning("No database configured (set DATABASE_URL). Showing empty data.")
        if caller is None:
            with st.form("tb-login"):
                open_id = st.text_input("Identity (open id)")
                name = st.text_input("Display name")
                submitted = st.form_submit_button("Sign in")
            if submitted and open_id.strip():
                try:
                    caller = auth.login(st.session_state, db, open_id.strip(), name=name.strip() or None, login_method="form")
                except TaskboardError as exc:
                    show_error(exc)
                else:
                    st.rerun()
        else:
            st.write(f"Signed in as **{caller.display_name}** ({caller.role})")
            if st.button("Sign out"):
                auth.logout(st.session_state)
                st.rerun()

    return service, caller


def show_error(exc: TaskboardError) -> None:
    st.error(f"{exc.code.value}: {exc.message}")
