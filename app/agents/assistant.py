"""
Message processor: snapshot + memory + user text in, SMS-sized reply out.

One invocation makes one model call and at most one calendar write. The model
never gets tools; it requests the write through a ``[CREATE_EVENT]`` block in
its text (see ``app.agents.directives``).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from app.agents.context import build_context, format_memory
from app.agents.directives import EventCreationDirective, extract_directive
from app.core.config import settings
from app.prompts.system import get_prompt
from app.services.mailbox import MailboxGateway
from app.services.memory import UserMemory, load_memory

logger = logging.getLogger(__name__)

MAX_TOKENS = 500
TEMPERATURE = 0.7

EVENT_CREATED_SUFFIX = "\n✓ Event added to your calendar!"
EVENT_FAILED_SUFFIX = "\n⚠ Failed to add event to calendar."

DAILY_SUMMARY_PROMPT = (
    "Give me a brief summary of my day - what emails came in today and what's on my calendar?"
)
IMPORTANT_ITEMS_PROMPT = (
    "What are the most important or urgent items I should pay attention to today? "
    "Consider high-priority emails and upcoming meetings."
)


class AIProcessingError(Exception):
    """The model call failed; carries the upstream reason."""


@dataclass(frozen=True)
class AssistantReply:
    reply: str
    effect: EventCreationDirective | None = None
    event_created: bool | None = None


def get_llm() -> BaseChatModel:
    """Build the chat model: Azure deployment when configured, OpenAI otherwise."""
    if settings.uses_azure:
        from langchain_openai import AzureChatOpenAI

        return AzureChatOpenAI(
            azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
            azure_deployment=settings.AZURE_OPENAI_DEPLOYMENT_NAME,
            api_version=settings.AZURE_OPENAI_API_VERSION,
            api_key=settings.AZURE_OPENAI_API_KEY,
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
        )

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=settings.OPENAI_MODEL,
        api_key=settings.OPENAI_API_KEY,
        max_tokens=MAX_TOKENS,
        temperature=TEMPERATURE,
    )


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    # Some providers return a list of content blocks
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class Assistant:
    def __init__(
        self,
        gateway: Any | None = None,
        llm: BaseChatModel | None = None,
        memory_loader: Callable[[], UserMemory] = load_memory,
        tz_name: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._tz_name = tz_name or settings.TIMEZONE
        self._tz = ZoneInfo(self._tz_name)
        self._gateway = gateway or MailboxGateway(self._tz_name)
        self._llm = llm
        self._memory_loader = memory_loader
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_llm()
        return self._llm

    async def build_system_prompt(self) -> str:
        now = self._clock().astimezone(self._tz)
        context = await build_context(self._gateway, self._tz)
        memory = format_memory(self._memory_loader())
        example_start = (now + timedelta(days=1)).replace(hour=14, minute=0, second=0, microsecond=0)
        return get_prompt(
            now=now.strftime("%A, %B %d, %Y %I:%M %p"),
            memory=memory,
            context=context,
            timezone=self._tz_name,
            example_start=example_start.strftime("%Y-%m-%dT%H:%M:%S"),
            example_end=(example_start + timedelta(hours=1)).strftime("%Y-%m-%dT%H:%M:%S"),
        )

    async def _complete(self, system_prompt: str, user_message: str) -> str:
        try:
            response = await self.llm.ainvoke(
                [
                    SystemMessage(content=system_prompt),
                    HumanMessage(content=user_message),
                ]
            )
        except Exception as e:
            logger.error(f"[assistant] Model call failed: {e}", exc_info=True)
            raise AIProcessingError(f"AI processing failed: {e}") from e
        return _content_text(response.content)

    async def respond(self, user_message: str) -> AssistantReply:
        logger.info(f"[assistant] Request: {user_message}")

        system_prompt = await self.build_system_prompt()
        raw_reply = await self._complete(system_prompt, user_message)
        logger.info(f"[assistant] Response: {raw_reply}")

        extracted = extract_directive(raw_reply)
        if extracted.directive is None:
            return AssistantReply(reply=raw_reply)

        try:
            await self._gateway.create_event(extracted.directive)
        except Exception as e:
            logger.error(f"[assistant] Failed to create calendar event: {e}", exc_info=True)
            return AssistantReply(
                reply=extracted.text + EVENT_FAILED_SUFFIX,
                effect=extracted.directive,
                event_created=False,
            )

        logger.info(f"[assistant] Created calendar event: {extracted.directive.subject}")
        return AssistantReply(
            reply=extracted.text + EVENT_CREATED_SUFFIX,
            effect=extracted.directive,
            event_created=True,
        )

    async def process_message(self, user_message: str) -> str:
        result = await self.respond(user_message)
        return result.reply

    async def daily_summary(self) -> str:
        return await self.process_message(DAILY_SUMMARY_PROMPT)

    async def important_items(self) -> str:
        return await self.process_message(IMPORTANT_ITEMS_PROMPT)


_assistant: Assistant | None = None


def get_assistant() -> Assistant:
    global _assistant
    if _assistant is None:
        _assistant = Assistant()
    return _assistant
