"""Tests for the command line interface in main.py."""

import json
from unittest.mock import patch

import main
import utils
from models import Event, TimeRange


def run(*argv):
    return main.main(list(argv))


class TestFindTimes:
    def test_prints_available_times(self, data_dir, capsys):
        run("add-event", "Busy", "1:00", "2:00", "A")
        capsys.readouterr()

        assert run("find-times", "--attendees", "A", "--duration", "30") == 0
        assert capsys.readouterr().out.splitlines() == [
            "00:00-01:00 (60 min)",
            "02:00-24:00 (1320 min)",
        ]

    def test_json_output(self, data_dir, capsys):
        run("add-event", "Busy", "1:00", "2:00", "A")
        capsys.readouterr()

        run("find-times", "--attendees", "A", "--duration", "30", "--json")
        assert json.loads(capsys.readouterr().out) == [
            {"start": 0, "end": 60, "duration": 60},
            {"start": 120, "end": 1440, "duration": 1320},
        ]

    def test_nothing_available(self, data_dir, capsys):
        run("add-event", "Busy", "0:00", "24:00", "A")
        capsys.readouterr()

        run("find-times", "--attendees", "A", "--duration", "10")
        assert capsys.readouterr().out.strip() == "No available times found."

    def test_optional_attendees_fall_back(self, data_dir, capsys):
        run("add-event", "A busy", "0:00", "8:30", "A")
        run("add-event", "A busy later", "9:00", "24:00", "A")
        run("add-event", "B busy", "8:30", "8:45", "B")
        capsys.readouterr()

        run("find-times", "--attendees", "A", "--optional", "B", "--duration", "30")
        assert capsys.readouterr().out.splitlines() == ["08:30-09:00 (30 min)"]

    def test_uses_default_request(self, data_dir, tmp_path, capsys):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            "events:\n"
            "  - {title: Busy, start: '1:00', end: '2:00', attendees: [A]}\n"
            "request: {attendees: [A], duration: 90}\n"
        )
        assert run("load-config", str(config_path)) == 0
        capsys.readouterr()

        run("find-times")
        assert capsys.readouterr().out.splitlines() == ["02:00-24:00 (1320 min)"]

        run("find-times", "--duration", "30")
        assert capsys.readouterr().out.splitlines() == [
            "00:00-01:00 (60 min)",
            "02:00-24:00 (1320 min)",
        ]

    def test_requires_a_duration(self, data_dir, capsys):
        assert run("find-times", "--attendees", "A") == 1
        assert capsys.readouterr().out.startswith("Error:")

    def test_rejects_negative_duration(self, data_dir, capsys):
        assert run("find-times", "--attendees", "A", "--duration", "-5") == 1
        assert "Duration must not be negative" in capsys.readouterr().out


class TestManagementCommands:
    def test_invalid_event_reports_error(self, data_dir, capsys):
        assert run("add-event", "Broken", "10:00", "9:00", "A") == 1
        assert capsys.readouterr().out.startswith("Error:")
        assert utils.load_events() == []

    def test_timezone_commands(self, data_dir, capsys):
        assert run("set-timezone", "Asia/Tokyo") == 0
        run("show-timezone")
        assert "Default timezone: Asia/Tokyo" in capsys.readouterr().out

    def test_member_commands(self, data_dir, capsys):
        run("add-member", "Alice", "alice@example.com")
        run("list-members")
        assert "Alice (Calendar ID: alice@example.com)" in capsys.readouterr().out

    def test_no_command_prints_help(self, data_dir, capsys):
        assert run() == 0
        assert "usage:" in capsys.readouterr().out


class TestImportEvents:
    def test_imports_events_for_members(self, data_dir, capsys):
        run("add-member", "Alice", "alice@example.com")
        imported = [Event("Standup", TimeRange(540, 555), ["Alice"])]
        with patch.object(main, "authenticate_google") as auth, \
                patch.object(main, "fetch_day_events", return_value=imported) as fetch:
            assert run("import-events", "2025-11-03") == 0

        service, members, day, tz_name = fetch.call_args.args
        assert service is auth.return_value
        assert members == utils.load_members()
        assert day.isoformat() == "2025-11-03"
        assert tz_name == "America/New_York"
        assert utils.load_events() == imported
        assert "Imported 1 events for 2025-11-03" in capsys.readouterr().out

    def test_requires_members(self, data_dir, capsys):
        with patch.object(main, "authenticate_google") as auth:
            run("import-events", "2025-11-03")
        auth.assert_not_called()
        assert "No members found." in capsys.readouterr().out

    def test_rejects_invalid_day(self, data_dir, capsys):
        assert run("import-events", "someday") == 1
        assert "Invalid day" in capsys.readouterr().out

    def test_google_errors_are_reported(self, data_dir, capsys):
        utils.add_member("Alice", "alice@example.com")
        with patch.object(main, "authenticate_google", side_effect=RuntimeError("no credentials")):
            assert run("import-events", "2025-11-03") == 1
        assert "Error: no credentials" in capsys.readouterr().out
