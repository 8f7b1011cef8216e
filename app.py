import streamlit as st

from taskboard.errors import TaskboardError
from taskboard.theme import kpi_box
from taskboard.ui import bootstrap, show_error

service, caller = bootstrap("Taskboard")

st.title("Taskboard")
st.markdown("Track tasks, assign them to teammates and follow progress on the dashboard.")

try:
    stats = service.stats(caller)
except TaskboardError as exc:
    show_error(exc)
    st.stop()
cols = st.columns(4)
for col, (label, key) in zip(cols, [("Total", "total"), ("To Do", "todo"), ("In Progress", "in_progress"), ("Completed", "completed")]):
    col.markdown(kpi_box(label, stats[key]), unsafe_allow_html=True)

if caller is None:
    st.info("Sign in from the sidebar to create and manage your tasks.")
else:
    st.success("Use the sidebar to open the Tasks board or the Dashboard.")
