"""Defensive parsers for LLM output.

Each parser turns raw text into a typed value. Presentation fields (titles,
descriptions, vignettes) degrade silently to canned defaults; structural
fields that gate progress (card ownership, at least one playable card, an
obstacle batch) raise ParseFailure instead of being guessed.
"""

from .cards import parse_cards, parse_member_card  # noqa: F401
from .common import ParseFailure  # noqa: F401
from .obstacles import parse_obstacle, parse_obstacles  # noqa: F401
from .resolution import Verdict, parse_resolution  # noqa: F401
