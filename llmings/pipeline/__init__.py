"""Encounter pipeline: LLM call → parser → sequencer, one step at a time.

Steps: generate_dungeon, prepare_obstacle, draw_cards, resolve_card. See
orchestrator.py for the flow and failure guarantees.
"""

from .orchestrator import (  # noqa: F401
    CardStrategy,
    draw_cards,
    generate_dungeon,
    prepare_obstacle,
    resolve_card,
)
