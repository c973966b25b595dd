"""Tests for the management CLI's argument handling."""

import json

import manage
import pytest


@pytest.fixture()
def sweeps(monkeypatch):
    runs = []

    def fake_sweep(as_of=None, older_than=None):
        runs.append({"as_of": as_of, "older_than": older_than})
        return {"checked": 2, "rejected": 1, "failed": 1}

    monkeypatch.setattr(manage, "sweep_expired", fake_sweep)
    return runs


def test_sweep_prints_counts_as_json(sweeps, capsys):
    manage.main(["sweep-expired"])

    assert json.loads(capsys.readouterr().out) == {"checked": 2, "rejected": 1, "failed": 1}
    assert sweeps == [{"as_of": None, "older_than": None}]


def test_sweep_options(sweeps):
    manage.main(["sweep-expired", "--as-of", "2026-03-02T10:00:00Z", "--older-than", "90"])
    assert sweeps == [{"as_of": "2026-03-02T10:00:00Z", "older_than": 90}]


def test_command_is_required():
    with pytest.raises(SystemExit):
        manage.main([])
