import pandas as pd
import streamlit as st

from find_meeting_query import FindMeetingQuery
from models import InvalidArgument, MeetingRequest
from utils import (
    event_from_dict, event_to_dict, get_default_request, load_events,
    save_events, time_ranges_to_frame
)

st.title("Meeting Finder")

st.markdown("""
**Instructions:**
- Edit the day's events below. Times are `HH:MM`; use `24:00` for the end of the day.
- Separate attendees with commas.
- Pick who must attend, who may attend, and how long the meeting is.
- To run this UI: `streamlit run ui.py`
""")

# Events
st.header("Events")
if "events" not in st.session_state:
    st.session_state["events"] = [
        {**e, "attendees": ", ".join(e["attendees"])} for e in map(event_to_dict, load_events())
    ]

events_df = pd.DataFrame(st.session_state["events"], columns=["title", "start", "end", "attendees"])
edited_events = st.data_editor(
    events_df,
    num_rows="dynamic",
    use_container_width=True,
    hide_index=True,
    column_config={
        "title": st.column_config.TextColumn("Title", width="medium"),
        "start": st.column_config.TextColumn("Start", width="small"),
        "end": st.column_config.TextColumn("End", width="small"),
        "attendees": st.column_config.TextColumn("Attendees", width="large"),
    },
    key="edited_events_df"
)

events = []
errors = []
for row in edited_events.to_dict("records"):
    if not isinstance(row.get("title"), str) or not row["title"].strip():
        continue
    record = {**row, "attendees": [a.strip() for a in str(row.get("attendees") or "").split(",") if a.strip()]}
    try:
        events.append(event_from_dict(record))
    except InvalidArgument as e:
        errors.append(f"{row['title']}: {e}")

for error in errors:
    st.error(f"❌ {error}")

if st.button("💾 Save Events", key="save_events", disabled=bool(errors)):
    save_events(events)
    st.session_state["events"] = edited_events.to_dict("records")
    st.success("Events saved!")

# Meeting request
st.header("Meeting Request")
people = sorted({name for e in events for name in e.attendees})
default = get_default_request()
mandatory = st.multiselect(
    "Mandatory attendees", people,
    default=[p for p in people if default and p in default.attendees]
)
optional = st.multiselect(
    "Optional attendees", [p for p in people if p not in mandatory],
    default=[p for p in people if default and p in default.optional_attendees and p not in mandatory]
)
duration = st.number_input(
    "Duration (minutes)", min_value=0, step=15,
    value=default.duration if default else 30
)

# Results
st.header("Available Times")
request = MeetingRequest(attendees=mandatory, optional_attendees=optional, duration=int(duration))
available = FindMeetingQuery().query(events, request)
if available:
    st.dataframe(time_ranges_to_frame(available), hide_index=True, use_container_width=True)
else:
    st.warning("No available times found.")
