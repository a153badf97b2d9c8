import sys
from datetime import date
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from regjournal.app import create_app
from regjournal.coach import Coach, FeedbackPanel
from regjournal.journal import Journal
from regjournal.models import Operation

# A Wednesday: the week starts on Sunday 2024-05-12.
TODAY = date(2024, 5, 15)


def make_op(op_id=1, op_number=1, side="Buy", day="2024-05-15", lots=1,
            entry=100.0, exit=110.0, point_value=1.0,
            region="Cheap", structure="A-B-C", trigger="2-2-1", asset="WINFUT"):
    return Operation.create(
        id=op_id, op_number=op_number, asset=asset, side=side, date=day, lots=lots,
        entry_price=entry, exit_price=exit, point_value=point_value,
        region=region, structure=structure, trigger=trigger,
    )


def form(**overrides):
    data = {
        "asset": "WINFUT",
        "side": "Buy",
        "date": TODAY.isoformat(),
        "lots": "2",
        "entry_price": "100",
        "exit_price": "110",
        "point_value": "0.2",
        "region": "Barata",
        "structure": "A-B-C",
        "trigger": "2-2-1",
    }
    data.update(overrides)
    return data


class FakeCoachClient:
    """Records calls and answers with a canned comment (or raises)."""

    def __init__(self, reply="Nice trade.", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def comment(self, op, win_rate, lang):
        self.calls.append((op.id, win_rate, lang))
        if self.error is not None:
            raise self.error
        return self.reply


class QueuedDispatch:
    """Collects dispatched jobs so tests decide when they run."""

    def __init__(self):
        self.jobs = []

    def __call__(self, fn):
        self.jobs.append(fn)

    def run_all(self):
        jobs, self.jobs = self.jobs, []
        for fn in jobs:
            fn()


def run_now(fn):
    fn()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def coach_client():
    return FakeCoachClient()


@pytest.fixture
def journal(coach_client):
    coach = Coach(client=coach_client, panel=FeedbackPanel(), dispatch=run_now)
    return Journal(coach=coach, language="pt", today=lambda: TODAY)


@pytest.fixture
def app(coach_client):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test",
        "GEMINI_API_KEY": None,
        "COACH_CLIENT": coach_client,
        "COACH_DISPATCH": run_now,
        "JOURNAL_LANGUAGE": "en",
        "JOURNAL_TODAY": lambda: TODAY,
    })
    return app


@pytest.fixture
def client(app):
    return app.test_client()
