"""
Landing-page -> wizard handoff over a single-read mailbox slot.

``receive`` consumes the slot whether or not the payload is usable; a
malformed payload is logged and treated as absent.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Union

from transfer_booking.domain.entities import BookingDraft
from transfer_booking.domain.errors import HydrationFailure
from transfer_booking.domain.handoff import Hydration, dehydrate, parse_payload, read_payload
from transfer_booking.infrastructure.mailbox import SingleSlotMailbox

logger = logging.getLogger(__name__)


class DraftHandoff:
    def __init__(self, mailbox: SingleSlotMailbox):
        self.mailbox = mailbox

    async def send(
        self, slot: str, draft: BookingDraft, step: Optional[int] = None
    ) -> None:
        await self.mailbox.put(slot, dehydrate(draft, step))
        logger.info("Draft handed off into slot %s", slot)

    async def send_payload(self, slot: str, raw: Union[str, bytes, dict]) -> None:
        """Validate a quick-form payload and store it verbatim.

        Raises ``HydrationFailure`` so the sender learns its payload is
        unusable; nothing is stored in that case.
        """
        parse_payload(raw)
        if isinstance(raw, dict):
            raw = json.dumps(raw)
        elif isinstance(raw, bytes):
            raw = raw.decode()
        await self.mailbox.put(slot, raw)

    async def receive(self, slot: str) -> Optional[Hydration]:
        raw = await self.mailbox.take(slot)
        if raw is None:
            return None
        try:
            return read_payload(raw)
        except HydrationFailure as exc:
            logger.warning("Discarding handoff payload in slot %s: %s", slot, exc)
            return None
