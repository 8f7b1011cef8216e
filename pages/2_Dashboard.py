import pandas as pd
import plotly.express as px
import streamlit as st

from taskboard.errors import TaskboardError
from taskboard.theme import kpi_box
from taskboard.ui import bootstrap, show_error

service, caller = bootstrap("Dashboard", "📊")

st.title("Dashboard")
st.caption("Your tasks" if caller else "All tasks")

try:
    stats = service.stats(caller)
except TaskboardError as exc:
    show_error(exc)
    st.stop()

cols = st.columns(4)
for col, (label, key) in zip(cols, [("Total", "total"), ("To Do", "todo"), ("In Progress", "in_progress"), ("Completed", "completed")]):
    col.markdown(kpi_box(label, stats[key]), unsafe_allow_html=True)

if stats["total"]:
    data = pd.DataFrame(
        {
            "Status": ["To Do", "In Progress", "Completed"],
            "Tasks": [stats["todo"], stats["in_progress"], stats["completed"]],
        }
    )
    fig = px.bar(data, x="Status", y="Tasks", color="Status", color_discrete_sequence=["#0984e3", "#fdcb6e", "#00b894"])
    fig.update_layout(showlegend=False, height=360)
    st.plotly_chart(fig, use_container_width=True)

    completion = stats["completed"] / stats["total"] * 100
    st.progress(int(completion), text=f"{completion:.0f}% completed")
else:
    st.info("No tasks yet.")
