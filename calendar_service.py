from google.auth.transport.requests import Request
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
import logging
import math
import pickle
import os
from datetime import date, datetime, time, timedelta
import pytz
from dateutil.parser import parse as parse_dt

from models import DAY_LENGTH, WHOLE_DAY, Event, TimeRange

SCOPES = ['https://www.googleapis.com/auth/calendar.readonly']
TOKEN_PATH = 'token.pickle'
CREDENTIALS_PATH = 'credentials.json'

logger = logging.getLogger(__name__)

def authenticate_google():
    creds = None
    if os.path.exists(TOKEN_PATH):
        with open(TOKEN_PATH, 'rb') as token:
            creds = pickle.load(token)
    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            flow = InstalledAppFlow.from_client_secrets_file(CREDENTIALS_PATH, SCOPES)
            creds = flow.run_local_server(port=0)
        with open(TOKEN_PATH, 'wb') as token:
            pickle.dump(creds, token)
    service = build('calendar', 'v3', credentials=creds)
    return service

def list_calendars(service):
    calendars = service.calendarList().list().execute()
    for cal in calendars.get('items', []):
        print(f"{cal['summary']} (ID: {cal['id']})")

def day_bounds(day, tz_name):
    """Return the local midnight that starts the day and the one that ends it."""
    tz = pytz.timezone(tz_name)
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return start, end

def _to_utc_iso(dt):
    return dt.astimezone(pytz.utc).isoformat().replace('+00:00', 'Z')

def _offset_change(start, end, tz):
    """Find the instant in (start, end] where the UTC offset switches to the one in force at end."""
    target = end.astimezone(tz).utcoffset()
    low, high = start, end
    while high - low > timedelta(seconds=1):
        middle = low + (high - low) / 2
        if middle.astimezone(tz).utcoffset() == target:
            high = middle
        else:
            low = middle
    # Offsets change on whole seconds
    return high.replace(microsecond=0)

def _wall_minutes(dt, offset, midnight, round_up=False):
    wall = dt.astimezone(pytz.utc).replace(tzinfo=None) + offset
    minutes = (wall - midnight).total_seconds() / 60
    minutes = math.ceil(minutes) if round_up else math.floor(minutes)
    return min(max(minutes, 0), DAY_LENGTH)

def _wall_clock_range(start, end, day, tz):
    # Every wall-clock minute the event touches; across a DST fold this is the hull of the repeated hour
    midnight = datetime.combine(day, time.min)
    before = start.astimezone(tz).utcoffset()
    after = end.astimezone(tz).utcoffset()
    segments = [(start, end, before)]
    if before != after:
        change = _offset_change(start, end, tz)
        segments = [s for s in [(start, change, before), (change, end, after)] if s[0] < s[1]]
    first = min(_wall_minutes(s, offset, midnight) for s, _, offset in segments)
    last = max(_wall_minutes(e, offset, midnight, round_up=True) for _, e, offset in segments)
    return first, last

def event_time_range(item, day, tz_name):
    """Map a Google Calendar event onto the minutes of a local day.

    Returns None when the event does not cover any part of the day.
    """
    tz = pytz.timezone(tz_name)
    start_info, end_info = item['start'], item['end']
    if 'date' in start_info and 'dateTime' not in start_info:
        # All-day events block the whole day; their end date is exclusive
        first = date.fromisoformat(start_info['date'])
        last = date.fromisoformat(end_info['date'])
        return WHOLE_DAY if first <= day < last else None

    day_start, day_end = day_bounds(day, tz_name)
    start = parse_dt(start_info['dateTime'])
    end = parse_dt(end_info['dateTime'])
    if start.tzinfo is None:
        start = tz.localize(start)
    if end.tzinfo is None:
        end = tz.localize(end)
    start = max(start, day_start)
    end = min(end, day_end)
    if end <= start:
        return None
    return TimeRange(*_wall_clock_range(start, end, day, tz))

def fetch_member_events(service, member, day, tz_name):
    """Fetch a member's events for a local day as Events attended by that member."""
    day_start, day_end = day_bounds(day, tz_name)
    events_result = service.events().list(
        calendarId=member.calendar_id,
        timeMin=_to_utc_iso(day_start),
        timeMax=_to_utc_iso(day_end),
        singleEvents=True,
        orderBy='startTime'
    ).execute()
    events = []
    for item in events_result.get('items', []):
        # Cancelled and "free" events do not make anyone busy
        if item.get('status') == 'cancelled' or item.get('transparency') == 'transparent':
            continue
        when = event_time_range(item, day, tz_name)
        if when is None:
            logger.debug('Skipping %s, it does not fall on %s', item.get('id'), day)
            continue
        events.append(Event(title=item.get('summary') or '(busy)', when=when, attendees=[member.name]))
    logger.info('Fetched %d events for %s on %s', len(events), member.name, day)
    return events

def fetch_day_events(service, members, day, tz_name):
    """Fetch the events of every member for a local day."""
    events = []
    for member in members:
        events.extend(fetch_member_events(service, member, day, tz_name))
    return events
