import asyncio
import random
import time
from decimal import Decimal

import pytest
import requests

from fintrack.advisor import (
    NOT_CONFIGURED_MESSAGE,
    QUICK_TIPS,
    RETRY_MESSAGE,
    AdvisorClient,
    AdvisorSession,
    ChatMessage,
    advice_prompt,
    build_prompt,
)
from fintrack.errors import ExternalServiceError


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


def reply(text):
    return FakeResponse({"candidates": [{"content": {"parts": [{"text": text}]}}]})


class FakeSession:
    def __init__(self, response=None, delay=0.0, error=None):
        self.response = response
        self.delay = delay
        self.error = error
        self.calls = []

    def post(self, url, params=None, json=None, timeout=None):
        self.calls.append({"url": url, "params": params, "json": json})
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.mark.asyncio
async def test_send_message_returns_model_text():
    session = FakeSession(reply("Save 20% of your income."))
    client = AdvisorClient("key-123", session=session)

    answer = await client.send_message("How much should I save?")

    assert answer == "Save 20% of your income."
    call = session.calls[0]
    assert call["params"] == {"key": "key-123"}
    prompt = call["json"]["contents"][0]["parts"][0]["text"]
    assert "User's question: How much should I save?" in prompt


@pytest.mark.asyncio
async def test_missing_key_fails_without_network():
    session = FakeSession(reply("unused"))
    client = AdvisorClient("", session=session)

    with pytest.raises(ExternalServiceError) as exc:
        await client.send_message("hello")

    assert exc.value.user_message == NOT_CONFIGURED_MESSAGE
    assert session.calls == []


@pytest.mark.asyncio
async def test_http_error_becomes_retry_message():
    client = AdvisorClient("key", session=FakeSession(FakeResponse({}, status=500)))

    with pytest.raises(ExternalServiceError) as exc:
        await client.send_message("hello")

    assert exc.value.user_message == RETRY_MESSAGE


@pytest.mark.asyncio
async def test_connection_error_and_bad_payload():
    down = AdvisorClient("key", session=FakeSession(error=requests.ConnectionError("down")))
    garbled = AdvisorClient("key", session=FakeSession(FakeResponse({"candidates": []})))

    for client in (down, garbled):
        with pytest.raises(ExternalServiceError) as exc:
            await client.send_message("hello")
        assert exc.value.user_message == RETRY_MESSAGE


@pytest.mark.asyncio
async def test_timeout_becomes_retry_message():
    client = AdvisorClient("key", timeout=0.05, session=FakeSession(reply("late"), delay=0.3))

    with pytest.raises(ExternalServiceError) as exc:
        await client.send_message("hello")

    assert exc.value.user_message == RETRY_MESSAGE
    assert isinstance(exc.value.cause, asyncio.TimeoutError)


class GatedClient(AdvisorClient):
    """Replies only when the test releases the matching gate."""

    def __init__(self):
        super().__init__("key", session=FakeSession())
        self.gates = {}

    async def send_message(self, message, history=()):
        gate = self.gates.setdefault(message, asyncio.Event())
        await gate.wait()
        return f"re: {message}"


@pytest.mark.asyncio
async def test_session_records_history():
    client = GatedClient()
    session = AdvisorSession(client)
    client.gates["hi"] = asyncio.Event()
    client.gates["hi"].set()

    assert await session.ask("hi") == "re: hi"
    assert [(m.role, m.content) for m in session.history] == [("user", "hi"), ("assistant", "re: hi")]
    assert not session.busy


@pytest.mark.asyncio
async def test_cancel_drops_pending_reply():
    client = GatedClient()
    session = AdvisorSession(client)

    pending = asyncio.ensure_future(session.ask("slow"))
    await asyncio.sleep(0)
    assert session.busy

    session.cancel()
    assert await pending is None
    assert [m.role for m in session.history] == ["user"]


@pytest.mark.asyncio
async def test_newer_question_makes_older_reply_stale():
    client = GatedClient()
    session = AdvisorSession(client)
    client.gates["second"] = asyncio.Event()

    first = asyncio.ensure_future(session.ask("first"))
    await asyncio.sleep(0)
    second = asyncio.ensure_future(session.ask("second"))
    await asyncio.sleep(0)
    client.gates["second"].set()

    assert await first is None
    assert await second == "re: second"
    assert session.history[-1].content == "re: second"


def test_prompts_and_tips():
    history = [ChatMessage("user", "hi"), ChatMessage("assistant", "hello")]
    prompt = build_prompt("Budget tips?", history)
    assert "user: hi\nassistant: hello" in prompt

    advice = advice_prompt({
        "balance": Decimal("1234.5"),
        "monthly_income": Decimal("3000"),
        "monthly_expenses": Decimal("2100"),
        "savings_rate": 30.0,
        "goals": ["Emergency Fund"],
    })
    assert "- Current balance: $1,234.50" in advice
    assert "- Savings rate: 30.0%" in advice
    assert "- Financial goals: Emergency Fund" in advice

    client = AdvisorClient("key", session=FakeSession())
    assert client.get_quick_tip(random.Random(1)) in QUICK_TIPS
