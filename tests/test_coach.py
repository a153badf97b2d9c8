"""
Tests for the coaching client and the feedback slot.
"""

import pytest
import requests

from conftest import FakeCoachClient, QueuedDispatch, make_op
from regjournal.coach import (
    FALLBACK_TEXT,
    Coach,
    CoachClient,
    CoachError,
    FeedbackPanel,
    build_prompt,
    build_system_instruction,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.reason = "Error"

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, params=None, json=None, timeout=None):
        self.calls.append({"url": url, "params": params, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def ok_payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_prompt_mentions_trade_and_win_rate():
    op = make_op(asset="WINFUT", side="Sell", entry=110, exit=100, point_value=0.2,
                 region="Cara", structure="A-B-C", trigger="2-2-1")
    prompt = build_prompt(op, 66.666)
    assert "Asset: WINFUT" in prompt
    assert "Side: Sell" in prompt
    assert "Result: Gain (2.00 BRL)" in prompt
    assert "Region: Cara, Structure: A-B-C, Trigger: 2-2-1" in prompt
    assert "66.7%" in prompt


def test_system_instruction_language():
    assert "Respond in Portuguese." in build_system_instruction("pt")
    assert "Respond in English." in build_system_instruction("en")
    assert "under 70 words" in build_system_instruction("en")


class TestCoachClient:
    def test_generate_posts_to_model_endpoint(self):
        session = FakeSession(FakeResponse(payload=ok_payload(" Keep it up. ")))
        client = CoachClient("k3y", model="gemini-2.5-flash", timeout=5, session=session)
        assert client.generate("prompt", "system") == "Keep it up."
        call = session.calls[0]
        assert call["url"].endswith("/models/gemini-2.5-flash:generateContent")
        assert call["params"] == {"key": "k3y"}
        assert call["timeout"] == 5
        assert call["json"]["systemInstruction"]["parts"][0]["text"] == "system"
        assert call["json"]["contents"][0]["parts"][0]["text"] == "prompt"

    def test_http_error(self):
        session = FakeSession(FakeResponse(status_code=403, text="forbidden"))
        with pytest.raises(CoachError) as exc:
            CoachClient("k", session=session).generate("p", "s")
        assert exc.value.status_code == 403

    def test_network_error(self):
        session = FakeSession(error=requests.ConnectionError("down"))
        with pytest.raises(CoachError):
            CoachClient("k", session=session).generate("p", "s")

    def test_empty_candidates(self):
        session = FakeSession(FakeResponse(payload={"candidates": []}))
        with pytest.raises(CoachError):
            CoachClient("k", session=session).generate("p", "s")


class TestFeedbackPanel:
    def test_stale_result_is_dropped(self):
        panel = FeedbackPanel()
        panel.begin(1)
        panel.begin(2)
        assert panel.resolve(1, "old") is False
        assert panel.to_dict()["loading"] is True
        assert panel.resolve(2, "new") is True
        assert panel.to_dict() == {"op_id": 2, "loading": False, "text": "new", "visible": True}

    def test_fail_shows_fallback(self):
        panel = FeedbackPanel()
        panel.begin(5)
        panel.fail(5)
        assert panel.text == FALLBACK_TEXT

    def test_close_hides(self):
        panel = FeedbackPanel()
        panel.begin(1)
        panel.close()
        assert panel.to_dict()["visible"] is False


class TestCoach:
    def test_request_runs_in_dispatcher(self):
        dispatch = QueuedDispatch()
        client = FakeCoachClient(reply="Good entry.")
        coach = Coach(client=client, dispatch=dispatch)
        coach.request(make_op(op_id=3), 50.0, "en")
        assert coach.panel.loading
        assert client.calls == []
        dispatch.run_all()
        assert client.calls == [(3, 50.0, "en")]
        assert coach.panel.text == "Good entry."

    def test_newer_request_wins_even_if_older_finishes_last(self):
        dispatch = QueuedDispatch()
        coach = Coach(client=FakeCoachClient(reply="x"), dispatch=dispatch)
        coach.request(make_op(op_id=1), 0.0, "pt")
        first = dispatch.jobs.pop()
        coach.request(make_op(op_id=2), 0.0, "pt")
        dispatch.run_all()
        first()
        assert coach.panel.op_id == 2
        assert coach.panel.text == "x"
        assert not coach.panel.loading

    def test_failure_is_caught(self):
        coach = Coach(client=FakeCoachClient(error=CoachError("boom")), dispatch=lambda fn: fn())
        coach.request(make_op(op_id=1), 0.0, "pt")
        assert coach.panel.text == FALLBACK_TEXT

    def test_disabled_without_client(self):
        coach = Coach(client=None, dispatch=lambda fn: fn())
        coach.request(make_op(), 0.0, "pt")
        assert not coach.enabled
        assert coach.panel.to_dict()["visible"] is False
