from typing import Any, Dict, Optional

import streamlit as st


def wide_button(label: str, **kwargs):
    """Render a full-width Streamlit button, safely ignoring any width kwarg.

    - Pops an accidental "width" kwarg to avoid TypeError on st.button
    - Defaults to use_container_width=True so the button spans its container
    """
    kwargs.pop("width", None)
    kwargs.setdefault("use_container_width", True)
    return st.button(label, **kwargs)


def apply_direction(locale: str) -> None:
    """Flip the page to right-to-left for Arabic."""
    direction = "rtl" if locale == "ar" else "ltr"
    st.markdown(
        f"""
        <style>
        .block-container {{ direction: {direction}; text-align: {'right' if direction == 'rtl' else 'left'}; }}
        </style>
        """,
        unsafe_allow_html=True,
    )


def current_user() -> Optional[Dict[str, Any]]:
    """Signed-in user ({id, email, ...}) placed in session state by the auth layer, if any."""
    user = st.session_state.get("user")
    return user if isinstance(user, dict) and user.get("id") else None
