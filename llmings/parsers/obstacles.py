"""Obstacle parsing, single and batch.

Every field of an obstacle is presentation, so the single parser never
fails: missing fields get canned defaults and undecodable output is salvaged
line by line. The batch parser has one structural rule: a decodable payload
must carry a non-empty "obstacles" array.
"""

import logging

from llmings.models import ENCOUNTER_COUNT, OBSTACLE_KINDS, Obstacle

from .common import ParseFailure, non_empty_lines, parse_json_object, text_field

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Mischievous dungeon complication"
DEFAULT_DESCRIPTION = "Something in the corridor is absolutely up to no good."


def _coerce_kind(value: object) -> str:
    if isinstance(value, str) and value in OBSTACLE_KINDS:
        return value
    if value is not None:
        logger.warning("Unknown obstacle kind %r, using 'weird'", value)
    return "weird"


def _from_fields(data: dict, index: int, default_title: str) -> Obstacle:
    title = text_field(data, "title")
    description = text_field(data, "description")
    if title is None or description is None:
        logger.warning("Obstacle %d: missing title or description, using defaults", index)
    return Obstacle(
        index=index,
        title=title or default_title,
        description=description or DEFAULT_DESCRIPTION,
        kind=_coerce_kind(data.get("kind")),
    )


def _from_freeform(raw: str, index: int) -> Obstacle:
    """First non-empty line is the title, the rest is the description."""
    lines = non_empty_lines(raw)
    return Obstacle(
        index=index,
        title=lines[0] if lines else DEFAULT_TITLE,
        description=" ".join(lines[1:]) or DEFAULT_DESCRIPTION,
        kind="weird",
    )


def parse_obstacle(raw: str, index: int) -> Obstacle:
    """Parse `{"title", "description", "kind"}` for encounter `index`."""
    data = parse_json_object(raw)
    if data is None:
        logger.warning("Obstacle %d: falling back to freeform parsing", index)
        return _from_freeform(raw, index)
    return _from_fields(data, index, DEFAULT_TITLE)


def parse_obstacles(raw: str, count: int = ENCOUNTER_COUNT) -> list[Obstacle]:
    """Parse `{"obstacles": [...]}` into at most `count` obstacles.

    Each element is defaulted on its own, by position. Raises ParseFailure
    if the payload decodes but the array is missing or empty. Output that
    does not decode at all yields `count` copies of one freeform obstacle.
    """
    data = parse_json_object(raw)
    if data is None:
        logger.warning("Obstacle batch undecodable: synthesizing %d freeform obstacles", count)
        base = _from_freeform(raw, 0)
        return [
            base.model_copy(update={
                "index": i,
                "title": base.title if i == 0 else f"{base.title} ({i + 1})",
            })
            for i in range(count)
        ]

    items = data.get("obstacles")
    if not isinstance(items, list) or not items:
        raise ParseFailure("No obstacles array found in model output", raw)

    if len(items) > count:
        logger.warning("Obstacle batch has %d entries, keeping %d", len(items), count)

    obstacles: list[Obstacle] = []
    for i, item in enumerate(items[:count]):
        if not isinstance(item, dict):
            logger.warning("Obstacle batch entry %d is not an object", i)
            item = {}
        obstacles.append(_from_fields(item, i, f"{DEFAULT_TITLE} {i + 1}"))
    return obstacles
