"""Shared fixtures for meeting-finder tests."""

import pytest

import utils


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point the JSON store at a temporary data directory."""
    directory = tmp_path / "data"
    monkeypatch.setattr(utils, "DATA_DIR", str(directory))
    monkeypatch.setattr(utils, "MEMBERS_FILE", str(directory / "members.json"))
    monkeypatch.setattr(utils, "EVENTS_FILE", str(directory / "events.json"))
    monkeypatch.setattr(utils, "CONFIG_FILE", str(directory / "config.json"))
    monkeypatch.chdir(tmp_path)
    return directory
