import logging
from typing import Iterable, List

from models import DAY_LENGTH, ORDER_BY_START, START_OF_DAY, WHOLE_DAY, Event, MeetingRequest, TimeRange

logger = logging.getLogger(__name__)


# ===== Interval Utilities =====

def busy_time_ranges(events: Iterable[Event], attendees) -> List[TimeRange]:
    """Collect the time ranges of events attended by at least one of the given attendees."""
    return [event.when for event in events if not event.attendees.isdisjoint(attendees)]


def merge_time_ranges(times: Iterable[TimeRange]) -> List[TimeRange]:
    """Merge overlapping time ranges into a sorted list of disjoint ranges."""
    items = sorted(times, key=ORDER_BY_START)
    if not items:
        return []
    merged = []
    current = items[0]
    for nxt in items[1:]:
        if current.overlaps(nxt):
            current = TimeRange(current.start, max(current.end, nxt.end))
        else:
            merged.append(current)
            current = nxt
    merged.append(current)
    return merged


def find_free_time_ranges(busy_times: Iterable[TimeRange]) -> List[TimeRange]:
    """Subtract sorted, disjoint busy ranges from the whole day."""
    free = []
    cursor = START_OF_DAY
    for busy in busy_times:
        if cursor != busy.start:
            free.append(TimeRange(cursor, busy.start))
        cursor = busy.end
    if cursor != DAY_LENGTH:
        free.append(TimeRange(cursor, DAY_LENGTH))
    return free


def filter_by_duration(times: Iterable[TimeRange], duration) -> List[TimeRange]:
    """Keep only the ranges long enough to hold a meeting of the given duration."""
    return [t for t in times if t.duration >= duration]


# ===== Meeting Query =====

class FindMeetingQuery:
    """Finds the times of day when everyone needed for a meeting is free."""

    def query(self, events: Iterable[Event], request: MeetingRequest) -> List[TimeRange]:
        """
        Return the available times for a meeting, sorted by start.

        Optional attendees are considered first. If nobody can meet with them
        included, the search is repeated with the mandatory attendees alone.
        """
        # A meeting cannot last longer than a day
        if request.duration > WHOLE_DAY.duration:
            logger.debug('Requested duration %d exceeds the day', request.duration)
            return []

        events = list(events)
        available = self._available_times(events, request.all_attendees(), request.duration)
        if not available and request.attendees:
            logger.debug('No time fits the optional attendees, falling back to %s', sorted(request.attendees))
            return self._available_times(events, request.attendees, request.duration)
        return available

    def _available_times(self, events, attendees, duration) -> List[TimeRange]:
        if not attendees:
            return [WHOLE_DAY]
        busy = busy_time_ranges(events, attendees)
        logger.debug('%d busy ranges for %s', len(busy), sorted(attendees))
        if not busy:
            return [WHOLE_DAY]
        free = find_free_time_ranges(merge_time_ranges(busy))
        return filter_by_duration(free, duration)
