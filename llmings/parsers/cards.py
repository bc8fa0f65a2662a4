"""Action card parsing.

Card ownership is a structural field: it decides who may act. Both parsers
refuse to hand back an empty choice set, and neither ever invents a card.

Batch format, one line per living member:

    <id>|<summary>

Per-member format: a bare 1-5 word summary; the owner comes from the
request, never from the text.
"""

import logging
import math
import re

from llmings.models import ActionCard, PartyMember

from .common import ParseFailure, non_empty_lines, strip_fenced_blocks

logger = logging.getLogger(__name__)

_BULLET_RE = re.compile(r"^[-*•]+\s*")


def _parse_card_line(line: str) -> ActionCard | None:
    """Return a card for a well-formed `<id>|<summary>` line, else None."""
    line = _BULLET_RE.sub("", line.strip())
    if "|" not in line:
        return None
    id_token, summary = line.split("|", 1)
    summary = summary.strip()
    if not summary:
        return None
    try:
        value = float(id_token.strip())
    except ValueError:
        return None
    if not math.isfinite(value) or not value.is_integer():
        return None
    return ActionCard(owner_id=int(value), summary=summary)


def parse_cards(raw: str, party: list[PartyMember]) -> list[ActionCard]:
    """Parse one card per line, keeping only cards owned by living members.

    Malformed lines are dropped silently. Raises ParseFailure when no line
    yields a card, or when none of the cards belong to a living member.
    """
    extracted: list[ActionCard] = []
    for line in raw.splitlines():
        card = _parse_card_line(line)
        if card is None:
            if line.strip():
                logger.debug("Dropping malformed card line %r", line)
            continue
        extracted.append(card)

    if not extracted:
        raise ParseFailure("No card lines could be extracted from model output", raw)

    living_ids = {m.id for m in party if m.alive}
    cards: list[ActionCard] = []
    seen: set[int] = set()
    for card in extracted:
        if card.owner_id not in living_ids:
            logger.warning("Dropping card for non-living member %d", card.owner_id)
            continue
        if card.owner_id in seen:
            logger.warning("Dropping duplicate card for member %d", card.owner_id)
            continue
        seen.add(card.owner_id)
        cards.append(card)

    if not cards:
        raise ParseFailure(
            f"None of the {len(extracted)} extracted cards belong to a living "
            f"member (living ids: {sorted(living_ids)})",
            raw,
        )
    return cards


def parse_member_card(raw: str, member: PartyMember) -> ActionCard:
    """Take the first non-empty line as `member`'s card summary.

    Raises ParseFailure when nothing is left after removing fenced blocks.
    """
    lines = non_empty_lines(strip_fenced_blocks(raw))
    if not lines:
        raise ParseFailure(
            f"Model returned an empty card summary for {member.name} (id {member.id})",
            raw,
        )
    return ActionCard(owner_id=member.id, summary=lines[0])
