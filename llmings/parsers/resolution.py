"""Resolution (verdict) parsing.

Expected shape:

    {"success": bool, "vignette": str,
     "deathTag": "two words" | null, "deathSummary": str | null}

Adjudication must never block progress, so this parser never raises. An
unclear verdict falls back to the harsher outcome: failure, with the raw
text as the vignette.
"""

import logging

from pydantic import BaseModel

from .common import parse_json_object, text_field

logger = logging.getLogger(__name__)

SUCCESS_VIGNETTE = "Somehow, the plan works just well enough to get everyone through."
FAILURE_VIGNETTE = (
    "The plan goes spectacularly wrong in a way that still clears the path for the others."
)
MALFORMED_VIGNETTE = (
    "The outcome text was malformed, and the dungeon referee calls the attempt "
    "a failure by default."
)


class Verdict(BaseModel):
    success: bool
    vignette: str
    death_tag: str | None = None
    death_summary: str | None = None


def _death_tag(value: object) -> str | None:
    """Normalise to at most two lowercase words; blank or non-text is None."""
    if not isinstance(value, str):
        return None
    words = value.lower().split()
    return " ".join(words[:2]) or None


def parse_resolution(raw: str) -> Verdict:
    data = parse_json_object(raw)
    success = data.get("success") if data is not None else None

    if not isinstance(success, bool):
        logger.warning("Resolution has no boolean verdict, defaulting to failure")
        return Verdict(success=False, vignette=raw if raw.strip() else MALFORMED_VIGNETTE)

    vignette = text_field(data, "vignette")
    if vignette is None:
        vignette = SUCCESS_VIGNETTE if success else FAILURE_VIGNETTE

    if success:
        return Verdict(success=True, vignette=vignette)

    death_summary = data.get("deathSummary", data.get("death_summary"))
    if not isinstance(death_summary, str) or not death_summary.strip():
        death_summary = None
    return Verdict(
        success=False,
        vignette=vignette,
        death_tag=_death_tag(data.get("deathTag", data.get("death_tag"))),
        death_summary=death_summary.strip() if death_summary else None,
    )
