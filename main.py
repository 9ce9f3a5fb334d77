import argparse
import json
import logging
import sys

from dateutil.parser import parse as parse_dt

from calendar_service import authenticate_google, fetch_day_events, list_calendars
from find_meeting_query import FindMeetingQuery
from models import InvalidArgument, MeetingRequest
from utils import (
    add_event, add_member, clear_events, format_time_range, get_default_request,
    get_timezone, list_events, list_members, load_config, load_events, load_members,
    remove_event, remove_member, save_events, set_timezone, time_range_to_dict
)

logger = logging.getLogger(__name__)

def build_parser():
    parser = argparse.ArgumentParser(description='meeting-finder CLI')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command')

    # ===== Google Calendar Commands =====
    subparsers.add_parser('auth', help='Authenticate with Google Calendar')
    subparsers.add_parser('list-calendars', help='List all calendars')
    parser_import = subparsers.add_parser('import-events', help="Replace the stored events with the members' Google Calendar events for a day")
    parser_import.add_argument('day', type=str, help='Day to import (YYYY-MM-DD)')

    # ===== Member Management Commands =====
    parser_add_member = subparsers.add_parser('add-member', help='Add a member')
    parser_add_member.add_argument('name', type=str, help='Member name')
    parser_add_member.add_argument('calendar_id', type=str, help='Google Calendar ID')
    subparsers.add_parser('list-members', help='List all members')
    parser_remove_member = subparsers.add_parser('remove-member', help='Remove a member')
    parser_remove_member.add_argument('member_id', type=str, help='Member ID')

    # ===== Event Management Commands =====
    parser_add_event = subparsers.add_parser('add-event', help='Add an event to the day')
    parser_add_event.add_argument('title', type=str, help='Event title')
    parser_add_event.add_argument('start', type=str, help='Start time (e.g. 9:30 or 9:30am)')
    parser_add_event.add_argument('end', type=str, help='End time, exclusive (24:00 for end of day)')
    parser_add_event.add_argument('attendees', nargs='+', help='Attendee names')
    subparsers.add_parser('list-events', help='List all events of the day')
    parser_remove_event = subparsers.add_parser('remove-event', help='Remove events by title')
    parser_remove_event.add_argument('title', type=str, help='Event title')
    subparsers.add_parser('clear-events', help='Remove all events')

    # ===== Timezone Management =====
    parser_set_tz = subparsers.add_parser('set-timezone', help='Set the default timezone (e.g., America/New_York)')
    parser_set_tz.add_argument('timezone', type=str, help='Timezone name')
    subparsers.add_parser('show-timezone', help='Show the current default timezone')

    # ===== Configuration Commands =====
    parser_load_config = subparsers.add_parser('load-config', help='Load members, events and a default request from a YAML config file')
    parser_load_config.add_argument('config_file', type=str, help='YAML config file path')

    # ===== Query Commands =====
    parser_find = subparsers.add_parser('find-times', help='Find the times when a meeting can take place')
    parser_find.add_argument('--attendees', nargs='*', default=None, help='Mandatory attendee names')
    parser_find.add_argument('--optional', nargs='*', default=None, help='Optional attendee names')
    parser_find.add_argument('--duration', type=int, default=None, help='Duration in minutes')
    parser_find.add_argument('--json', action='store_true', help='Print the result as JSON')
    return parser

def build_request(args):
    """Combine find-times arguments with the stored default request."""
    default = get_default_request()
    if args.duration is None and default is None:
        raise InvalidArgument('--duration is required when no default request is configured')
    return MeetingRequest(
        attendees=args.attendees if args.attendees is not None else (default.attendees if default else []),
        optional_attendees=args.optional if args.optional is not None else (default.optional_attendees if default else []),
        duration=args.duration if args.duration is not None else default.duration,
    )

def find_times(args):
    request = build_request(args)
    events = load_events()
    logger.debug('Querying %d events for %s', len(events), request)
    available = FindMeetingQuery().query(events, request)
    if args.json:
        print(json.dumps([time_range_to_dict(t) for t in available], indent=2))
    elif not available:
        print('No available times found.')
    else:
        for t in available:
            print(format_time_range(t))
    return available

def import_events(day_text):
    try:
        day = parse_dt(day_text).date()
    except (ValueError, OverflowError) as e:
        raise InvalidArgument(f'Invalid day: {day_text!r}') from e
    members = load_members()
    if not members:
        print('No members found. Add members before importing events.')
        return []
    service = authenticate_google()
    events = fetch_day_events(service, members, day, get_timezone())
    save_events(events)
    print(f"Imported {len(events)} events for {day.isoformat()}")
    return events

def run(args, parser):
    # ===== Google Calendar Commands =====
    if args.command in ['auth', 'list-calendars']:
        service = authenticate_google()
        if args.command == 'list-calendars':
            list_calendars(service)
        else:
            print('Authenticated with Google Calendar.')
    elif args.command == 'import-events':
        import_events(args.day)

    # ===== Member Management Commands =====
    elif args.command == 'add-member':
        add_member(args.name, args.calendar_id)
    elif args.command == 'list-members':
        list_members()
    elif args.command == 'remove-member':
        remove_member(args.member_id)

    # ===== Event Management Commands =====
    elif args.command == 'add-event':
        add_event(args.title, args.start, args.end, args.attendees)
    elif args.command == 'list-events':
        list_events()
    elif args.command == 'remove-event':
        remove_event(args.title)
    elif args.command == 'clear-events':
        clear_events()

    # ===== Timezone Management Commands =====
    elif args.command == 'set-timezone':
        set_timezone(args.timezone)
    elif args.command == 'show-timezone':
        print(f"Default timezone: {get_timezone()}")

    # ===== Configuration Commands =====
    elif args.command == 'load-config':
        load_config(args.config_file)
        print('Configuration loaded successfully.')

    # ===== Query Commands =====
    elif args.command == 'find-times':
        find_times(args)
    else:
        parser.print_help()

def main(argv=None):
    """Main entry point for the meeting-finder CLI application."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    try:
        run(args, parser)
    except InvalidArgument as e:
        print(f"Error: {e}")
        return 1
    except Exception as e:
        logger.debug('Command %s failed', args.command, exc_info=True)
        print(f"Error: {e}")
        return 1
    return 0

if __name__ == '__main__':
    sys.exit(main())
