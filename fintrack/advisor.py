"""Client for the generative-AI financial advisor.

The HTTP call is blocking (``requests``), so it runs on a worker thread and is
bounded by ``asyncio.wait_for``. Failures never escape as raw exceptions:
callers get an ``ExternalServiceError`` whose ``user_message`` is safe to show.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

import requests

from fintrack.errors import ExternalServiceError

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"

RETRY_MESSAGE = "Failed to get AI response. Please try again."
NOT_CONFIGURED_MESSAGE = "The AI advisor is not available right now. Please try again later."

SYSTEM_PROMPT = """You are a helpful financial advisor AI assistant for a Gen Z personal finance app called FinTrack.

Your role is to provide:
- Simple, easy-to-understand financial advice
- Budgeting tips and strategies
- Saving and investment guidance
- Debt management advice
- Financial goal planning
- Basic financial education

Guidelines:
- Keep responses concise and engaging
- Provide actionable, practical advice
- Avoid complex financial jargon
- Be encouraging and supportive
- Always remind users that you're an AI and they should consult professionals for complex financial decisions
"""

QUICK_TIPS = (
    "Start with the 50/30/20 rule: 50% needs, 30% wants, 20% savings!",
    "Set up automatic transfers to make saving effortless",
    "Track every purchase for a month - knowledge is power!",
    "Try a no-spend day once a week to boost your savings",
    "Celebrate small wins - every dollar saved is progress!",
    "Review your spending monthly to spot patterns and cut unnecessary expenses",
    "Build an emergency fund - aim for 3-6 months of expenses",
    "Invest in yourself - education and skills are your best assets",
    "Pay yourself first - transfer money to savings before spending",
    "Start investing early, even if it's just $10 a month",
)

GENERATION_CONFIG = {"temperature": 0.7, "topK": 40, "topP": 0.95, "maxOutputTokens": 1024}

SAFETY_SETTINGS = [
    {"category": c, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for c in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


@dataclass(frozen=True)
class ChatMessage:
    role: str  # "user" | "assistant"
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


def build_prompt(message: str, history: Sequence[ChatMessage] = ()) -> str:
    lines = "\n".join(f"{m.role}: {m.content}" for m in history)
    return f"{SYSTEM_PROMPT}\nPrevious conversation context:\n{lines}\n\nUser's question: {message}"


def advice_prompt(summary: dict) -> str:
    goals = ", ".join(summary.get("goals") or []) or "none yet"
    return (
        "Based on my current financial situation:\n"
        f"- Current balance: ${Decimal(summary['balance']):,.2f}\n"
        f"- Monthly income: ${Decimal(summary['monthly_income']):,.2f}\n"
        f"- Monthly expenses: ${Decimal(summary['monthly_expenses']):,.2f}\n"
        f"- Savings rate: {float(summary['savings_rate']):.1f}%\n"
        f"- Financial goals: {goals}\n\n"
        "What specific advice would you give me to improve my financial health and reach my goals?"
    )


class AdvisorClient:

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        url: str = GEMINI_URL,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = (api_key or "").strip()
        self.timeout = timeout
        self.url = url
        self.session = session or requests.Session()
        if not self.api_key:
            logger.warning("GEMINI_API_KEY not set; advisor requests will fail")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _generate(self, text: str) -> str:
        body = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": GENERATION_CONFIG,
            "safetySettings": SAFETY_SETTINGS,
        }
        try:
            response = self.session.post(
                self.url, params={"key": self.api_key}, json=body, timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except requests.RequestException as e:
            logger.warning("advisor request failed: %s", e)
            raise ExternalServiceError(RETRY_MESSAGE, e) from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning("advisor returned an unusable response: %r", e)
            raise ExternalServiceError(RETRY_MESSAGE, e) from e

    async def send_message(self, message: str, history: Sequence[ChatMessage] = ()) -> str:
        if not self.enabled:
            raise ExternalServiceError(NOT_CONFIGURED_MESSAGE)
        prompt = build_prompt(message, history)
        try:
            return await asyncio.wait_for(asyncio.to_thread(self._generate, prompt), self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning("advisor request timed out after %ss", self.timeout)
            raise ExternalServiceError(RETRY_MESSAGE, e) from e

    async def get_personalized_advice(self, summary: dict) -> str:
        return await self.send_message(advice_prompt(summary))

    def get_quick_tip(self, rng: Optional[random.Random] = None) -> str:
        return (rng or random).choice(QUICK_TIPS)


class AdvisorSession:
    """One chat conversation; at most one request in flight.

    ``cancel()`` (or starting a newer request) makes any pending reply stale;
    stale replies are dropped and ``ask`` returns ``None``.
    """

    def __init__(self, client: AdvisorClient):
        self.client = client
        self.history: List[ChatMessage] = []
        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        self._generation += 1
        if self.busy:
            self._task.cancel()

    async def ask(self, message: str) -> Optional[str]:
        self.cancel()
        generation = self._generation
        context = list(self.history)
        self.history.append(ChatMessage("user", message))

        task = asyncio.ensure_future(self.client.send_message(message, context))
        self._task = task
        try:
            reply = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("advisor request cancelled")
                return None
            raise
        except ExternalServiceError:
            if generation != self._generation:
                return None
            raise
        finally:
            if self._task is task:
                self._task = None

        if generation != self._generation:
            logger.debug("discarding stale advisor reply")
            return None
        self.history.append(ChatMessage("assistant", reply))
        return reply
