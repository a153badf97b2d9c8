"""
coach.py
--------

AI coaching comments for newly logged operations.

``CoachClient`` sends one prompt to the Gemini ``generateContent`` REST
endpoint and returns the text of the first candidate. ``Coach`` runs that
call off the request thread and writes the outcome into a
``FeedbackPanel``. Each request is tagged with the operation id it
concerns; a response for anything other than the most recently requested
operation is dropped, so a slow answer can never overwrite a newer one.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from .models import Operation

logger = logging.getLogger(__name__)

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT = 30
FALLBACK_TEXT = "Error getting feedback."

Dispatcher = Callable[[Callable[[], None]], None]


@dataclass
class CoachError(Exception):
    message: str
    status_code: Optional[int] = None

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"CoachError: {self.message} (HTTP {self.status_code})"
        return f"CoachError: {self.message}"


def build_system_instruction(lang: str) -> str:
    language = "Portuguese" if lang == "pt" else "English"
    return (
        "You are an expert trading coach for day traders using the 'REG' "
        "(Region, Structure, Trigger) methodology. Your analysis must be concise, "
        "direct, and actionable, under 70 words. Analyze the provided trade and "
        f"give one piece of constructive feedback. Respond in {language}."
    )


def build_prompt(op: Operation, win_rate: float) -> str:
    return (
        f"Analyze my last trade: Asset: {op.asset}, Side: {op.side}, "
        f"Result: {op.status} ({op.result:.2f} BRL), Region: {op.region}, "
        f"Structure: {op.structure}, Trigger: {op.trigger}. "
        f"My overall win rate is {win_rate:.1f}%."
    )


class CoachClient:
    """Thin client for the text-generation endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = BASE_URL,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def generate(self, prompt: str, system_instruction: str) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        try:
            r = self.session.post(url, params={"key": self.api_key}, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise CoachError(f"request failed: {e}") from e
        if r.status_code != 200:
            raise CoachError(r.text[:200] or r.reason, status_code=r.status_code)
        try:
            payload = r.json()
        except ValueError as e:
            raise CoachError("response is not JSON", status_code=r.status_code) from e
        return self._extract_text(payload)

    @staticmethod
    def _extract_text(payload: Dict[str, Any]) -> str:
        candidates = payload.get("candidates") or []
        if not candidates:
            raise CoachError("no candidates in response")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(str(p.get("text", "")) for p in parts).strip()
        if not text:
            raise CoachError("empty response text")
        return text

    def comment(self, op: Operation, win_rate: float, lang: str) -> str:
        return self.generate(build_prompt(op, win_rate), build_system_instruction(lang))


class FeedbackPanel:
    """The single feedback slot shown next to the form."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.op_id: Optional[int] = None
        self.loading = False
        self.text = ""
        self.visible = False

    def begin(self, op_id: int) -> None:
        with self._lock:
            self.op_id = op_id
            self.loading = True
            self.text = ""
            self.visible = True

    def resolve(self, op_id: int, text: str) -> bool:
        """Show ``text`` if ``op_id`` is still the current request."""
        with self._lock:
            if op_id != self.op_id:
                logger.debug("Dropping stale feedback for operation %s", op_id)
                return False
            self.loading = False
            self.text = text
            return True

    def fail(self, op_id: int) -> bool:
        return self.resolve(op_id, FALLBACK_TEXT)

    def close(self) -> None:
        with self._lock:
            self.visible = False

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "op_id": self.op_id,
                "loading": self.loading,
                "text": self.text,
                "visible": self.visible,
            }


def thread_dispatch(fn: Callable[[], None]) -> None:
    threading.Thread(target=fn, name="coach", daemon=True).start()


class Coach:
    """Fire-and-forget coaching requests feeding a FeedbackPanel."""

    def __init__(
        self,
        client: Optional[CoachClient],
        panel: Optional[FeedbackPanel] = None,
        dispatch: Dispatcher = thread_dispatch,
    ) -> None:
        self.client = client
        self.panel = panel or FeedbackPanel()
        self.dispatch = dispatch

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def request(self, op: Operation, win_rate: float, lang: str) -> None:
        if self.client is None:
            return
        self.panel.begin(op.id)
        self.dispatch(lambda: self._run(op, win_rate, lang))

    def _run(self, op: Operation, win_rate: float, lang: str) -> None:
        try:
            text = self.client.comment(op, win_rate, lang)
        except Exception:
            logger.exception("AI feedback request failed for operation %s", op.id)
            self.panel.fail(op.id)
            return
        self.panel.resolve(op.id, text)
