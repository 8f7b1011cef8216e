import html

import streamlit as st

STATUS_LABELS = {
    "todo": "To Do",
    "in-progress": "In Progress",
    "completed": "Completed",
}

_CSS = """
.tb-badge { display:inline-block; font-size:0.72rem; font-weight:700; border-radius:30px;
            padding:0.2rem 0.65rem; letter-spacing:.5px; text-transform:uppercase; color:#fff; }
.tb-status-todo { background:linear-gradient(120deg,#74b9ff,#0984e3); }
.tb-status-in-progress { background:linear-gradient(120deg,#ffeaa7,#fdcb6e); color:#222; }
.tb-status-completed { background:linear-gradient(120deg,#55efc4,#00b894); color:#103b2f; }
.tb-priority-low { background:linear-gradient(120deg,#00b894,#55efc4); }
.tb-priority-medium { background:linear-gradient(120deg,#0984e3,#74b9ff); }
.tb-priority-high { background:linear-gradient(120deg,#e17055,#d63031); }
.tb-kpi-box { background:linear-gradient(145deg,#ffffff,#eef4fa); border-radius:14px;
              box-shadow:0 4px 14px -4px rgba(11,99,214,0.18); padding:1.1rem .9rem; text-align:center; }
.tb-kpi-label { color:#51658a; font-size:.75rem; font-weight:700; letter-spacing:.6px; text-transform:uppercase; }
.tb-kpi-value { font-size:1.65rem; font-weight:700; color:#0b63d6; line-height:1.2; }
"""


def set_theme(
    page_title: str = "Taskboard",
    page_icon: str = "📋",
    layout: str = "wide",
    initial_sidebar_state: str = "expanded",
):
    """Configure the Streamlit page and inject the badge/KPI CSS.

    Safe to call once at top of each page. Subsequent calls will be ignored by
    Streamlit for page_config but CSS will still be (re)injected.
    """
    try:
        st.set_page_config(
            page_title=page_title,
            page_icon=page_icon,
            layout=layout,
            initial_sidebar_state=initial_sidebar_state,
        )
    except Exception:
        # set_page_config can only be called once; ignore if already set.
        pass

    st.markdown(f"<style>{_CSS}</style>", unsafe_allow_html=True)


def status_label(status):
    return STATUS_LABELS.get(status, str(status).replace("-", " ").title())


def status_badge(status):
    return f'<span class="tb-badge tb-status-{html.escape(str(status))}">{html.escape(status_label(status))}</span>'


def priority_badge(priority):
    return f'<span class="tb-badge tb-priority-{html.escape(str(priority))}">{html.escape(str(priority))}</span>'


def kpi_box(label, value):
    return (
        '<div class="tb-kpi-box">'
        f'<div class="tb-kpi-label">{html.escape(str(label))}</div>'
        f'<div class="tb-kpi-value">{html.escape(str(value))}</div>'
        "</div>"
    )
