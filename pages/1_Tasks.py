from datetime import datetime, time

import pandas as pd
import streamlit as st

from taskboard import policy
from taskboard.errors import TaskboardError
from taskboard.schemas import TaskPriority, TaskStatus
from taskboard.theme import priority_badge, status_badge, status_label
from taskboard.ui import bootstrap, show_error

service, caller = bootstrap("Tasks", "🗂️")

st.title("Tasks")

try:
    users = service.users(caller)
except TaskboardError as exc:
    show_error(exc)
    users = []
user_names = {u["id"]: (u.get("name") or u.get("email") or u["open_id"]) for u in users}
statuses = [s.value for s in TaskStatus]
priorities = [p.value for p in TaskPriority]


def _user_label(user_id):
    if user_id is None:
        return "Unassigned"
    return user_names.get(user_id, f"#{user_id}")


def _due(value):
    return datetime.combine(value, time()) if value else None


# --- Filters ---
f1, f2 = st.columns(2)
status_filter = f1.selectbox("Status", [None] + statuses, format_func=lambda s: "All statuses" if s is None else status_label(s))
priority_filter = f2.selectbox("Priority", [None] + priorities, format_func=lambda p: "All priorities" if p is None else p.title())

try:
    tasks = service.list(caller, {"status": status_filter, "priority": priority_filter})
except TaskboardError as exc:
    show_error(exc)
    tasks = []

if not tasks:
    st.info("No tasks found." if caller else "Sign in to see your tasks.")
else:
    df = pd.DataFrame(tasks)
    df["status"] = df["status"].map(status_label)
    df["created_by"] = df["created_by"].map(_user_label)
    df["assigned_to"] = df["assigned_to"].map(_user_label)
    st.dataframe(
        df[["id", "title", "status", "priority", "assigned_to", "created_by", "due_date"]],
        use_container_width=True,
        hide_index=True,
    )

# --- Create ---
if caller is not None:
    with st.expander("New task"):
        with st.form("tb-create", clear_on_submit=True):
            title = st.text_input("Title", max_chars=255)
            description = st.text_area("Description")
            c1, c2, c3 = st.columns(3)
            priority = c1.selectbox("Priority", priorities, index=priorities.index("medium"))
            assignee = c2.selectbox("Assign to", [None] + list(user_names), format_func=_user_label)
            due = c3.date_input("Due date", value=None)
            if st.form_submit_button("Create"):
                try:
                    task_id = service.create(
                        caller,
                        {
                            "title": title,
                            "description": description or None,
                            "priority": priority,
                            "assigned_to": assignee,
                            "due_date": _due(due),
                        },
                    )
                except TaskboardError as exc:
                    show_error(exc)
                else:
                    st.success(f"Task #{task_id} created")
                    st.rerun()

# --- Details / edit ---
if tasks:
    st.subheader("Task details")
    selected_id = st.selectbox("Task", [t["id"] for t in tasks], format_func=lambda i: f"#{i} {next(t['title'] for t in tasks if t['id'] == i)}")
    try:
        task = service.get_by_id(caller, {"id": selected_id})
    except TaskboardError as exc:
        show_error(exc)
        st.stop()

    st.markdown(f"### {task['title']} {status_badge(task['status'])} {priority_badge(task['priority'])}", unsafe_allow_html=True)
    st.write(task.get("description") or "_No description_")
    st.caption(f"Created by {_user_label(task['created_by'])} · Assigned to {_user_label(task['assigned_to'])} · Due {task['due_date'] or '-'}")

    if policy.can_modify(caller, task):
        with st.form(f"tb-edit-{task['id']}"):
            new_title = st.text_input("Title", value=task["title"], max_chars=255)
            e1, e2, e3 = st.columns(3)
            new_status = e1.selectbox("Status", statuses, index=statuses.index(task["status"]), format_func=status_label)
            new_priority = e2.selectbox("Priority", priorities, index=priorities.index(task["priority"]))
            assignee_ids = [None] + list(user_names)
            current = task["assigned_to"] if task["assigned_to"] in assignee_ids else None
            new_assignee = e3.selectbox("Assign to", assignee_ids, index=assignee_ids.index(current), format_func=_user_label)
            save, remove = st.columns(2)
            if save.form_submit_button("Save"):
                changes = {"id": task["id"]}
                if new_title != task["title"]:
                    changes["title"] = new_title
                if new_status != task["status"]:
                    changes["status"] = new_status
                if new_priority != task["priority"]:
                    changes["priority"] = new_priority
                if new_assignee != task["assigned_to"]:
                    changes["assigned_to"] = new_assignee
                if len(changes) == 1:
                    st.info("Nothing changed.")
                else:
                    try:
                        service.update(caller, changes)
                    except TaskboardError as exc:
                        show_error(exc)
                    else:
                        st.rerun()
            if remove.form_submit_button("Delete"):
                try:
                    service.delete(caller, {"id": task["id"]})
                except TaskboardError as exc:
                    show_error(exc)
                else:
                    st.rerun()

    with st.expander("History"):
        try:
            history = service.history(caller, {"id": task["id"]})
        except TaskboardError as exc:
            show_error(exc)
            history = []
        for entry in history:
            st.write(f"{entry['created_at']} · {_user_label(entry['user_id'])} · {entry['action']}")
