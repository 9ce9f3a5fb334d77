from dataclasses import dataclass, field
from operator import attrgetter
from typing import FrozenSet, Iterable, Optional, Union


class InvalidArgument(ValueError):
    """Raised when a model is built from values that break its invariants."""


START_OF_DAY = 0
END_OF_DAY = 23 * 60 + 59
DAY_LENGTH = 24 * 60


def get_time_in_minutes(hours, minutes):
    """Convert an hour/minute pair to minutes from midnight."""
    if hours < 0 or hours >= 24:
        raise InvalidArgument(f'Hours must be between 0 and 23, got {hours}')
    if minutes < 0 or minutes >= 60:
        raise InvalidArgument(f'Minutes must be between 0 and 59, got {minutes}')
    return hours * 60 + minutes


@dataclass(frozen=True, order=True)
class TimeRange:
    start: int  # minutes from midnight, inclusive
    end: int    # exclusive

    def __post_init__(self):
        if isinstance(self.start, bool) or not isinstance(self.start, int):
            raise InvalidArgument(f'start must be an int, got {self.start!r}')
        if isinstance(self.end, bool) or not isinstance(self.end, int):
            raise InvalidArgument(f'end must be an int, got {self.end!r}')
        if self.start < START_OF_DAY or self.end > DAY_LENGTH:
            raise InvalidArgument(f'{self} is outside of the day [0, {DAY_LENGTH})')
        if self.start >= self.end:
            raise InvalidArgument(f'start must be earlier than end in {self}')

    @classmethod
    def from_start_end(cls, start, end, inclusive=False):
        return cls(start, end + 1 if inclusive else end)

    @classmethod
    def from_start_duration(cls, start, duration):
        return cls(start, start + duration)

    @property
    def duration(self):
        return self.end - self.start

    def overlaps(self, other: 'TimeRange') -> bool:
        # Touching endpoints do not overlap.
        return self.start < other.end and other.start < self.end

    def contains(self, value: Union['TimeRange', int]) -> bool:
        """Check whether a minute, or a whole range, falls inside this range."""
        if isinstance(value, TimeRange):
            return self.start <= value.start and value.end <= self.end
        return self.start <= value < self.end

    def __str__(self):
        return f'[{self.start}, {self.end})'


WHOLE_DAY = TimeRange(START_OF_DAY, DAY_LENGTH)


# Sort keys
ORDER_BY_START = attrgetter('start')
ORDER_BY_END = attrgetter('end')


def _as_attendees(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        raise InvalidArgument(f'Attendees must be a collection of names, got the string {values!r}')
    return frozenset(values)


@dataclass(frozen=True)
class Event:
    title: str
    when: TimeRange
    attendees: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.title:
            raise InvalidArgument('Event title must not be empty')
        if not isinstance(self.when, TimeRange):
            raise InvalidArgument(f'Event when must be a TimeRange, got {self.when!r}')
        object.__setattr__(self, 'attendees', _as_attendees(self.attendees))


@dataclass(frozen=True)
class MeetingRequest:
    attendees: FrozenSet[str]
    duration: int  # in minutes
    optional_attendees: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if isinstance(self.duration, bool) or not isinstance(self.duration, int):
            raise InvalidArgument(f'Duration must be an int number of minutes, got {self.duration!r}')
        if self.duration < 0:
            raise InvalidArgument(f'Duration must not be negative, got {self.duration}')
        object.__setattr__(self, 'attendees', _as_attendees(self.attendees))
        object.__setattr__(self, 'optional_attendees', _as_attendees(self.optional_attendees))

    def all_attendees(self) -> FrozenSet[str]:
        return self.attendees | self.optional_attendees


@dataclass(frozen=True)
class Member:
    id: str
    name: str
    calendar_id: str
