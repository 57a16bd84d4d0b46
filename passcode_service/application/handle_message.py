from __future__ import annotations

import logging
from typing import Iterable, Optional

from passcode_service.application.passcode_service import PasscodeService
from passcode_service.application.rate_limiter import RateGate
from passcode_service.domain.errors import StoreUnavailable
from passcode_service.domain.ports.keyword_lookup import KeywordLookupPort
from passcode_service.domain.messages import InboundMessage

logger = logging.getLogger(__name__)

GET_PASSCODE_EVENT_KEY = "GET_PASSCODE"

RATE_LIMITED_REPLY = "Too many requests, please try again later."
BUSY_REPLY = "The system is busy, please try again later."


class MessageHandler:
    """
    Turns inbound platform messages into reply text.

    Returns None when the platform expects no reply. Store outages become a
    "busy" reply: the platform would otherwise retry the callback.
    """

    def __init__(
        self,
        passcodes: PasscodeService,
        gate: RateGate,
        keywords: KeywordLookupPort,
        *,
        trigger_keywords: Iterable[str],
    ) -> None:
        self._passcodes = passcodes
        self._gate = gate
        self._keywords = keywords
        self.trigger_keywords = list(trigger_keywords)
        if not self.trigger_keywords:
            raise ValueError("at least one trigger keyword is required")

    @property
    def _primary_keyword(self) -> str:
        return self.trigger_keywords[0]

    @property
    def _ttl_minutes(self) -> int:
        return max(1, self._passcodes.ttl_seconds // 60)

    async def handle(self, message: InboundMessage) -> Optional[str]:
        logger.info(
            "handling platform message",
            extra={"from_user": message.from_user, "msg_type": message.msg_type},
        )
        try:
            if message.msg_type == "text":
                return await self.handle_text(message.from_user, message.content)
            if message.msg_type == "event":
                return await self._handle_event(message)
            if message.msg_type in ("image", "voice"):
                return f'Got your {message.msg_type}. Send "{self._primary_keyword}" to get a passcode.'
        except StoreUnavailable:
            logger.exception("store unavailable while handling message")
            return BUSY_REPLY
        logger.debug("unhandled message type", extra={"msg_type": message.msg_type})
        return self._default_reply()

    async def handle_text(self, owner_id: str, content: str) -> str:
        if not await self._gate.check_user(owner_id):
            logger.warning("user rate limit exceeded", extra={"owner_id": owner_id})
            return RATE_LIMITED_REPLY

        text = content.strip()
        if text in self.trigger_keywords:
            return await self._passcode_reply(owner_id, text)
        if self._keywords.matches(text):
            return self._keywords.lookup(text) or ""

        lowered = text.lower()
        if "help" in lowered:
            return self._help_reply()
        if "passcode" in lowered or "code" in lowered:
            return (
                f'To get a passcode send:\n\n"{self._primary_keyword}"\n\n'
                'Send "help" for more.'
            )
        return self._default_reply()

    async def _passcode_reply(self, owner_id: str, trigger: str) -> str:
        existing = await self._passcodes.get_active_owner_code(owner_id)
        if existing is not None:
            return (
                f"You already have a valid passcode:\n\n{existing}\n\n"
                f"Use it within {self._ttl_minutes} minutes. It works only once."
            )

        code = await self._passcodes.issue(owner_id, trigger)
        logger.info("passcode sent", extra={"owner_id": owner_id})
        return (
            f"Your passcode:\n\n{code}\n\n"
            f"Valid for {self._ttl_minutes} minutes, single use.\n"
            "Paste it into the web page to verify."
        )

    async def _handle_event(self, message: InboundMessage) -> Optional[str]:
        event = message.event
        if event == "subscribe":
            logger.info("user subscribed", extra={"owner_id": message.from_user})
            return (
                "Welcome!\n\n"
                f'Send "{self._primary_keyword}" to get a passcode.\n'
                f"Passcodes are valid for {self._ttl_minutes} minutes and work only once."
            )
        if event == "unsubscribe":
            existing = await self._passcodes.get_active_owner_code(message.from_user)
            logger.info(
                "user unsubscribed",
                extra={"owner_id": message.from_user, "had_live_passcode": existing is not None},
            )
            return None
        if event == "CLICK":
            if message.event_key == GET_PASSCODE_EVENT_KEY:
                return await self.handle_text(message.from_user, self._primary_keyword)
            return self._default_reply()
        if event == "VIEW":
            return None
        logger.debug("unhandled event", extra={"event": event})
        return None

    def _help_reply(self) -> str:
        return (
            "How it works\n\n"
            f'1. Send "{self._primary_keyword}" to get a passcode\n'
            "2. Paste the passcode into the web page\n"
            f"3. A passcode is valid for {self._ttl_minutes} minutes\n"
            "4. A passcode works only once\n\n"
            f"At most {self._gate.per_user} requests per {self._gate.window_seconds} seconds."
        )

    def _default_reply(self) -> str:
        return f'Hello! Send "{self._primary_keyword}" to get a passcode, or "help" for instructions.'
