"""
Card catalog for Takedown.

This module defines what a physical deck contains: the card kinds, the
immutable Card instances dealt into a game, the templates they are built
from, and the parser for external "<count> <identifier>" deck manifests.

Deck Manifest Format:
    One "<count> <identifier>" pair per line, e.g.

        3 neutral_single_leg_takedown
        2 top_inside_wrist_half_to_pin
        2 blood_time

    Blank lines are ignored, as is the total-count footer line that deck
    exports end with ("50 total", "Total: 50" or a bare "50").

Identifier Classification:
    neutral_*  -> NEUTRAL   (ATTEMPT_TAKEDOWN if it contains attempted_takedown,
                             PIN if it contains to_pin)
    top_*      -> TOP       (PIN if it contains to_pin)
    bottom_*   -> BOTTOM    (TRIPOD / SITOUT / PIN by substring, see below)
    counter_*  -> COUNTER
    blood_time, stalling, out_of_bounds, penalty, end_of_period -> eponymous kind
    anything else -> BONUS
"""

import logging
import re
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from constants import KIND_COLORS

logger = logging.getLogger(__name__)


class CardKind(str, Enum):
    """Every card belongs to exactly one kind, which fixes its legality and effect."""

    NEUTRAL = "NEUTRAL"
    TOP = "TOP"
    BOTTOM = "BOTTOM"
    COUNTER = "COUNTER"
    BONUS = "BONUS"
    BLOODTIME = "BLOODTIME"
    STALLING = "STALLING"
    OUT_OF_BOUNDS = "OUT_OF_BOUNDS"
    PENALTY = "PENALTY"
    END_OF_PERIOD = "END_OF_PERIOD"
    ATTEMPT_TAKEDOWN = "ATTEMPT_TAKEDOWN"
    PIN = "PIN"
    TRIPOD = "TRIPOD"
    SITOUT = "SITOUT"


class Position(str, Enum):
    """
    Shared wrestling position the match is currently in.

    Cards are played against this position; most positional cards either
    keep it or move it to another one.
    """

    NEUTRAL = "NEUTRAL"
    TOP = "TOP"
    BOTTOM = "BOTTOM"


class ManifestError(ValueError):
    """Raised when a deck manifest line cannot be parsed."""


@dataclass(frozen=True)
class Card:
    """
    One physical card in a game.

    Two cards built from the same template are distinct instances: only the
    id matters for hand and pile membership.

    Attributes:
        id: Unique per card instance.
        name: Display name (e.g. "Single Leg Takedown").
        kind: The card's CardKind.
        color: Display color, passed through to clients.
        image: Optional image path for clients.
        does_not_change_position: TOP/BOTTOM style cards that keep the position.
        ends_game: Playing this card wins the match.
        is_takedown: A NEUTRAL card that takes the opponent down to BOTTOM.
        pin_position: Position a PIN card is played from (None = any).
    """

    id: str
    name: str
    kind: CardKind
    color: str
    image: Optional[str] = None
    does_not_change_position: bool = False
    ends_game: bool = False
    is_takedown: bool = False
    pin_position: Optional[Position] = None

    def to_dict(self) -> dict:
        """Convert card to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "color": self.color,
            "image": self.image,
            "meta": {
                "does_not_change_position": self.does_not_change_position,
                "ends_game": self.ends_game,
            },
        }


@dataclass(frozen=True)
class CardTemplate:
    """A card design and how many copies of it go into one deck."""

    name: str
    kind: CardKind
    color: str
    count: int = 1
    image: Optional[str] = None
    does_not_change_position: bool = False
    ends_game: bool = False
    is_takedown: bool = False
    pin_position: Optional[Position] = None

    def make_card(self) -> Card:
        """Create a fresh Card instance of this template."""
        return Card(
            id=str(uuid.uuid4()),
            name=self.name,
            kind=self.kind,
            color=self.color,
            image=self.image,
            does_not_change_position=self.does_not_change_position,
            ends_game=self.ends_game,
            is_takedown=self.is_takedown,
            pin_position=self.pin_position,
        )


def _tpl(name: str, kind: CardKind, color: str, image: str, count: int, **meta) -> CardTemplate:
    return CardTemplate(
        name=name,
        kind=kind,
        color=color,
        count=count,
        image=f"/img/cards/{image}.svg",
        **meta,
    )


NEUTRAL_COLOR = "#111111"
TOP_COLOR = "#1e6fd0"
BOTTOM_COLOR = "#28a745"
COUNTER_COLOR = "#f08a24"

# The standard 50-card deck.
DEFAULT_TEMPLATES: list[CardTemplate] = [
    # Anytime cards
    _tpl("End of Period", CardKind.END_OF_PERIOD, "#7a3db5", "end-of-period", 2),
    _tpl("Out of Bounds", CardKind.OUT_OF_BOUNDS, "#808080", "out-of-bounds", 2),
    _tpl("Blood Time", CardKind.BLOODTIME, "#d0021b", "blood-time", 2),
    _tpl("Penalty Card", CardKind.PENALTY, "#74c045", "penalty-card", 2),
    _tpl("Stalling", CardKind.STALLING, "#d19b00", "stalling", 2),
    # Neutral
    _tpl("Attempted Takedown", CardKind.ATTEMPT_TAKEDOWN, NEUTRAL_COLOR, "attempted-takedown", 2,
         does_not_change_position=True),
    _tpl("Ankle Pick to Back", CardKind.NEUTRAL, NEUTRAL_COLOR, "ankle-pick-to-back", 1),
    _tpl("Duck Under", CardKind.NEUTRAL, NEUTRAL_COLOR, "duck-under", 1),
    _tpl("Double Leg Takedown", CardKind.NEUTRAL, NEUTRAL_COLOR, "double-leg-takedown", 3,
         is_takedown=True),
    _tpl("Fireman's Carry to Opponent's Back", CardKind.NEUTRAL, NEUTRAL_COLOR,
         "firemans-carry-to-opponents-back", 1),
    _tpl("Head Lock to Pin!", CardKind.PIN, NEUTRAL_COLOR, "head-lock-to-pin", 1,
         ends_game=True, pin_position=Position.NEUTRAL),
    _tpl("Hip Toss", CardKind.NEUTRAL, NEUTRAL_COLOR, "hip-toss", 1),
    _tpl("Single Leg Takedown", CardKind.NEUTRAL, NEUTRAL_COLOR, "single-leg-takedown", 3,
         is_takedown=True),
    # Top
    _tpl("Top Double Leg Takedown", CardKind.TOP, TOP_COLOR, "top-double-leg-takedown", 2),
    _tpl("Far Side Cradle", CardKind.TOP, TOP_COLOR, "far-side-cradle", 1),
    _tpl("Far Arm Chop", CardKind.TOP, TOP_COLOR, "far-arm-chop", 1),
    _tpl("Near Side Cradle", CardKind.TOP, TOP_COLOR, "near-side-cradle", 1),
    _tpl("Pump Handle Tilt", CardKind.TOP, TOP_COLOR, "pump-handle-tilt", 1),
    _tpl("Inside Wrist Half to Pin!", CardKind.PIN, TOP_COLOR, "inside-wrist-half-to-pin", 2,
         ends_game=True, pin_position=Position.TOP),
    _tpl("Turk Cradle to Pin!", CardKind.PIN, TOP_COLOR, "turk-cradle-to-pin", 1,
         ends_game=True, pin_position=Position.TOP),
    _tpl("Spiral Ride to Opponent's Back", CardKind.TOP, TOP_COLOR,
         "spiral-ride-to-opponents-back", 1),
    # Bottom
    _tpl("Elbow Roll Chest-to-Chest Pin!", CardKind.PIN, BOTTOM_COLOR,
         "elbow-roll-chest-to-chest-pin", 1, ends_game=True, pin_position=Position.BOTTOM),
    _tpl("Granby Roll", CardKind.BOTTOM, BOTTOM_COLOR, "granby-roll", 2),
    _tpl("Inside Switch", CardKind.BOTTOM, BOTTOM_COLOR, "inside-switch", 2),
    _tpl("Outside Switch", CardKind.BOTTOM, BOTTOM_COLOR, "outside-switch", 1),
    _tpl("Sit Out (No Change)", CardKind.SITOUT, BOTTOM_COLOR, "sit-out-no-change", 2,
         does_not_change_position=True),
    _tpl("Sit Out Tri-Pod Duckout", CardKind.TRIPOD, BOTTOM_COLOR, "sit-out-tripod-duckout", 1,
         does_not_change_position=True),
    _tpl("Stand Up", CardKind.BOTTOM, BOTTOM_COLOR, "stand-up", 3),
    _tpl("Sit Out Tri-Pod Peterson", CardKind.TRIPOD, BOTTOM_COLOR, "sit-out-tripod-peterson", 1,
         does_not_change_position=True),
    # Counters
    _tpl("Whizzer", CardKind.COUNTER, COUNTER_COLOR, "counter-whizzer", 2),
    _tpl("Sprawl", CardKind.COUNTER, COUNTER_COLOR, "counter-sprawl", 2),
]


# =============================================================================
# Identifier classification
# =============================================================================

EXACT_KINDS: dict[str, CardKind] = {
    "blood_time": CardKind.BLOODTIME,
    "stalling": CardKind.STALLING,
    "out_of_bounds": CardKind.OUT_OF_BOUNDS,
    "penalty": CardKind.PENALTY,
    "end_of_period": CardKind.END_OF_PERIOD,
}

PREFIX_POSITIONS: dict[str, Position] = {
    "neutral_": Position.NEUTRAL,
    "top_": Position.TOP,
    "bottom_": Position.BOTTOM,
}

_TRAILING_JUNK = re.compile(r"[^a-z0-9_]+$")


def normalize_identifier(identifier: str) -> str:
    """
    Clean a raw manifest identifier before classification.

    Lowercases, trims whitespace and trailing punctuation, and repairs an
    exact-match identifier carrying one stray trailing character
    (``out_of_boundss`` -> ``out_of_bounds``). Every repair is logged.

    Args:
        identifier: Identifier as written in the manifest.

    Returns:
        The normalized identifier.
    """
    cleaned = _TRAILING_JUNK.sub("", identifier.strip().lower())
    if cleaned not in EXACT_KINDS and cleaned[:-1] in EXACT_KINDS:
        logger.warning(f"Repaired malformed card identifier {identifier!r} -> {cleaned[:-1]!r}")
        return cleaned[:-1]
    if cleaned != identifier:
        logger.debug(f"Normalized card identifier {identifier!r} -> {cleaned!r}")
    return cleaned


def display_name(identifier: str) -> str:
    """Derive a display name from an identifier ("top_far_arm_chop" -> "Far Arm Chop")."""
    for prefix in (*PREFIX_POSITIONS, "counter_"):
        if identifier.startswith(prefix):
            identifier = identifier[len(prefix):]
            break
    return identifier.replace("_", " ").title()


def classify_identifier(identifier: str, count: int = 1) -> CardTemplate:
    """
    Build a CardTemplate for a normalized manifest identifier.

    Args:
        identifier: Normalized identifier (see normalize_identifier).
        count: Number of copies in the deck.

    Returns:
        The classified template. Unrecognized identifiers become BONUS cards.
    """
    kind = CardKind.BONUS
    does_not_change_position = False
    pin_position: Optional[Position] = None

    if identifier.startswith("neutral_"):
        if "attempted_takedown" in identifier:
            kind = CardKind.ATTEMPT_TAKEDOWN
        elif "to_pin" in identifier:
            kind = CardKind.PIN
        else:
            kind = CardKind.NEUTRAL
    elif identifier.startswith("top_"):
        kind = CardKind.PIN if "to_pin" in identifier else CardKind.TOP
    elif identifier.startswith("bottom_"):
        if "tripod" in identifier:
            kind = CardKind.TRIPOD
            does_not_change_position = True
        elif "sit_out_no_change_of_position" in identifier:
            kind = CardKind.SITOUT
            does_not_change_position = True
        elif "sit_out" in identifier:
            kind = CardKind.SITOUT
        elif "to_pin" in identifier:
            kind = CardKind.PIN
        else:
            kind = CardKind.BOTTOM
    elif identifier.startswith("counter_"):
        kind = CardKind.COUNTER
    elif identifier in EXACT_KINDS:
        kind = EXACT_KINDS[identifier]
    else:
        logger.debug(f"Unclassified card identifier {identifier!r}, using BONUS")

    if kind == CardKind.PIN:
        for prefix, position in PREFIX_POSITIONS.items():
            if identifier.startswith(prefix):
                pin_position = position

    # Legacy rule: takedown NEUTRAL cards are recognized by name.
    # TODO: carry an explicit takedown column in the manifest format instead.
    is_takedown = kind == CardKind.NEUTRAL and "takedown" in identifier

    return CardTemplate(
        name=display_name(identifier),
        kind=kind,
        color=KIND_COLORS[kind.value],
        count=count,
        image=f"/img/cards/{identifier.replace('_', '-')}.svg",
        does_not_change_position=does_not_change_position,
        ends_game=kind == CardKind.PIN,
        is_takedown=is_takedown,
        pin_position=pin_position,
    )


def _is_footer(tokens: list[str]) -> bool:
    if len(tokens) == 1 and tokens[0].isdigit():
        return True
    return any(t.lower().rstrip(":") == "total" for t in tokens)


def parse_manifest(text: str) -> list[CardTemplate]:
    """
    Parse a deck manifest into card templates.

    Args:
        text: Manifest contents, one "<count> <identifier>" pair per line.

    Returns:
        Templates in manifest order.

    Raises:
        ManifestError: If a line is not a positive count followed by an identifier.
    """
    templates: list[CardTemplate] = []
    for line_no, raw in enumerate(text.splitlines(), start=1):
        tokens = raw.split()
        if not tokens or _is_footer(tokens):
            continue
        if len(tokens) != 2 or not tokens[0].isdigit():
            raise ManifestError(f"line {line_no}: expected '<count> <identifier>', got {raw.strip()!r}")
        count = int(tokens[0])
        if count <= 0:
            raise ManifestError(f"line {line_no}: count must be positive")
        templates.append(classify_identifier(normalize_identifier(tokens[1]), count))
    return templates


def load_manifest(path: Union[str, Path]) -> list[CardTemplate]:
    """Read and parse a deck manifest file."""
    templates = parse_manifest(Path(path).read_text(encoding="utf-8"))
    logger.info(
        f"Loaded deck manifest {path}: {len(templates)} templates, "
        f"{sum(t.count for t in templates)} cards"
    )
    return templates


def build_deck(templates: Optional[list[CardTemplate]] = None) -> list[Card]:
    """
    Expand templates into card instances, one per copy, with fresh ids.

    Args:
        templates: Templates to build from (defaults to DEFAULT_TEMPLATES).

    Returns:
        Unshuffled list of Card instances.
    """
    if templates is None:
        templates = DEFAULT_TEMPLATES
    return [template.make_card() for template in templates for _ in range(template.count)]
