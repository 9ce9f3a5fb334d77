import json
import logging
import os
import uuid
from datetime import datetime

import pandas as pd
import pytz
import yaml
from dateutil.parser import parse as parse_dt

from models import DAY_LENGTH, Event, InvalidArgument, MeetingRequest, Member, TimeRange, get_time_in_minutes

logger = logging.getLogger(__name__)

# Constants
DATA_DIR = 'data'
MEMBERS_FILE = os.path.join(DATA_DIR, 'members.json')
EVENTS_FILE = os.path.join(DATA_DIR, 'events.json')
CONFIG_FILE = os.path.join(DATA_DIR, 'config.json')
DEFAULT_TIMEZONE = 'America/New_York'

# ===== File I/O Utilities =====

def load_json(path, default=None):
    """Load JSON data from a file."""
    if not os.path.exists(path):
        return [] if default is None else default
    with open(path, 'r') as f:
        return json.load(f)

def save_json(path, data):
    """Save JSON data to a file, creating its directory if needed."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)

# ===== Time Formatting =====

def parse_time_of_day(value):
    """Parse a time of day such as '9:30', '9:30am' or '17:00' into minutes from midnight."""
    if isinstance(value, bool):
        raise InvalidArgument(f'Invalid time of day: {value!r}')
    if isinstance(value, int):
        return value
    text = str(value).strip().lower()
    # The exclusive end of the day has no wall-clock representation
    if text in ('24:00', 'end'):
        return DAY_LENGTH
    # A bare number is an hour, not a day of the month
    if text.isdigit():
        return get_time_in_minutes(int(text), 0)
    try:
        dt = parse_dt(text, default=datetime(2000, 1, 1))
    except (ValueError, OverflowError) as e:
        raise InvalidArgument(f'Invalid time of day: {value!r}') from e
    if dt.date() != datetime(2000, 1, 1).date() or dt.second or dt.microsecond:
        raise InvalidArgument(f'Expected a time of day with minute precision, got {value!r}')
    return dt.hour * 60 + dt.minute

def format_minutes(minutes):
    """Format minutes from midnight as HH:MM."""
    hours, mins = divmod(minutes, 60)
    return f'{hours:02d}:{mins:02d}'

def format_time_range(time_range):
    return f'{format_minutes(time_range.start)}-{format_minutes(time_range.end)} ({time_range.duration} min)'

# ===== Serialization =====

def time_range_to_dict(time_range):
    return {'start': time_range.start, 'end': time_range.end, 'duration': time_range.duration}

def time_ranges_to_frame(time_ranges):
    """Build a table of time ranges for display."""
    rows = [
        {'Start': format_minutes(t.start), 'End': format_minutes(t.end), 'Duration (min)': t.duration}
        for t in time_ranges
    ]
    return pd.DataFrame(rows, columns=['Start', 'End', 'Duration (min)'])

def event_to_dict(event):
    return {
        'title': event.title,
        'start': format_minutes(event.when.start),
        'end': format_minutes(event.when.end),
        'attendees': sorted(event.attendees),
    }

def event_from_dict(data):
    """Build an Event from a stored record."""
    try:
        start = parse_time_of_day(data['start'])
        end = parse_time_of_day(data['end'])
        title = data['title']
    except (KeyError, TypeError) as e:
        raise InvalidArgument(f'Malformed event record: {data!r}') from e
    return Event(title=title, when=TimeRange(start, end), attendees=data.get('attendees') or [])

def request_from_dict(data):
    """Build a MeetingRequest from a config section."""
    try:
        duration = data['duration']
    except (KeyError, TypeError) as e:
        raise InvalidArgument(f'Malformed meeting request: {data!r}') from e
    # Anything but a whole number is left for MeetingRequest to reject
    if isinstance(duration, str) and duration.strip().isdigit():
        duration = int(duration)
    return MeetingRequest(
        attendees=data.get('attendees') or [],
        optional_attendees=data.get('optional_attendees') or [],
        duration=duration,
    )

# ===== Member Management =====

def load_members():
    return [Member(**m) for m in load_json(MEMBERS_FILE)]

def add_member(name, calendar_id):
    """Add a new member to the system."""
    members = load_json(MEMBERS_FILE)
    if any(m['name'] == name for m in members):
        raise InvalidArgument(f'A member named {name!r} already exists')
    member_id = str(uuid.uuid4())
    member = Member(id=member_id, name=name, calendar_id=calendar_id)
    members.append(member.__dict__)
    save_json(MEMBERS_FILE, members)
    print(f"Added member: {name} (ID: {member_id})")
    return member

def list_members():
    """List all members in the system."""
    members = load_json(MEMBERS_FILE)
    if not members:
        print('No members found.')
    for m in members:
        print(f"{m['id']}: {m['name']} (Calendar ID: {m['calendar_id']})")

def remove_member(member_id):
    """Remove a member from the system."""
    members = load_json(MEMBERS_FILE)
    new_members = [m for m in members if m['id'] != member_id]
    save_json(MEMBERS_FILE, new_members)
    if len(new_members) == len(members):
        print(f"No member with ID: {member_id}")
    else:
        print(f"Removed member with ID: {member_id}")

# ===== Event Management =====

def load_events():
    """Load the day's events from the event store."""
    return [event_from_dict(e) for e in load_json(EVENTS_FILE)]

def save_events(events):
    save_json(EVENTS_FILE, [event_to_dict(e) for e in events])

def add_event(title, start, end, attendees):
    """Add an event to the event store."""
    event = Event(
        title=title,
        when=TimeRange(parse_time_of_day(start), parse_time_of_day(end)),
        attendees=attendees,
    )
    events = load_events()
    events.append(event)
    save_events(events)
    print(f"Added event: {title} {format_time_range(event.when)}")
    return event

def list_events():
    """List all events in the event store, in start order."""
    events = load_events()
    if not events:
        print('No events found.')
    for e in sorted(events, key=lambda e: e.when):
        print(f"{format_time_range(e.when)}: {e.title} (Attendees: {', '.join(sorted(e.attendees))})")

def remove_event(title):
    """Remove every event with the given title."""
    events = load_events()
    kept = [e for e in events if e.title != title]
    save_events(kept)
    print(f"Removed {len(events) - len(kept)} event(s) titled: {title}")

def clear_events():
    save_events([])
    print('Cleared all events.')

# ===== Configuration Management =====

def set_timezone(timezone):
    """Set the default timezone in configuration."""
    try:
        pytz.timezone(timezone)
    except pytz.UnknownTimeZoneError as e:
        raise InvalidArgument(f'Unknown timezone: {timezone}') from e
    config = load_json(CONFIG_FILE, default={})
    config['timezone'] = timezone
    save_json(CONFIG_FILE, config)
    print(f"Set default timezone: {timezone}")

def get_timezone():
    """Get the default timezone from configuration."""
    config = load_json(CONFIG_FILE, default={})
    return config.get('timezone', DEFAULT_TIMEZONE)

def load_config(path):
    """Load members, events, timezone and a default meeting request from a YAML config file."""
    with open(path, 'r') as f:
        config = yaml.safe_load(f) or {}

    # Validate everything before writing to the data directory
    events = [event_from_dict(e) for e in config.get('events') or []]
    request = request_from_dict(config['request']) if 'request' in config else None
    members = []
    for m in config.get('members') or []:
        try:
            member = Member(id=str(uuid.uuid4()), name=m['name'], calendar_id=m['calendar_id'])
        except (KeyError, TypeError) as e:
            raise InvalidArgument(f'Malformed member record: {m!r}') from e
        members.append(member.__dict__)

    if 'timezone' in config:
        set_timezone(config['timezone'])
    save_json(MEMBERS_FILE, members)
    save_events(events)
    if request is not None:
        set_default_request(request)
    logger.info('Loaded %d members and %d events from %s', len(members), len(events), path)
    return request

def set_default_request(request):
    """Remember a meeting request to use when find-times is run without one."""
    config = load_json(CONFIG_FILE, default={})
    config['request'] = {
        'attendees': sorted(request.attendees),
        'optional_attendees': sorted(request.optional_attendees),
        'duration': request.duration,
    }
    save_json(CONFIG_FILE, config)

def get_default_request():
    config = load_json(CONFIG_FILE, default={})
    if 'request' not in config:
        return None
    return request_from_dict(config['request'])
