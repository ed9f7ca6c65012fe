"""
Test suite for the Takedown card catalog.

Covers:
- The standard 50-card deck
- Card instances and serialization
- Manifest identifier normalization and classification
- Manifest parsing (footers, blank lines, malformed lines)

Run with: pytest test_cards.py -v
"""

from collections import Counter
from pathlib import Path

import pytest

from cards import (
    DEFAULT_TEMPLATES,
    Card,
    CardKind,
    ManifestError,
    Position,
    build_deck,
    classify_identifier,
    display_name,
    load_manifest,
    normalize_identifier,
    parse_manifest,
)

MANIFEST_PATH = Path(__file__).parent / "data" / "deck_manifest.txt"


# =============================================================================
# Standard deck
# =============================================================================

class TestDefaultDeck:

    def test_fifty_cards(self):
        assert len(build_deck()) == 50

    def test_kind_counts(self):
        counts = Counter(card.kind for card in build_deck())
        assert counts[CardKind.NEUTRAL] == 10
        assert counts[CardKind.ATTEMPT_TAKEDOWN] == 2
        assert counts[CardKind.TOP] == 7
        assert counts[CardKind.BOTTOM] == 8
        assert counts[CardKind.TRIPOD] == 2
        assert counts[CardKind.SITOUT] == 2
        assert counts[CardKind.PIN] == 5
        assert counts[CardKind.COUNTER] == 4
        for kind in (CardKind.BLOODTIME, CardKind.PENALTY, CardKind.STALLING,
                     CardKind.OUT_OF_BOUNDS, CardKind.END_OF_PERIOD):
            assert counts[kind] == 2

    def test_ids_unique(self):
        deck = build_deck()
        assert len({card.id for card in deck}) == len(deck)

    def test_two_builds_share_no_ids(self):
        first = {card.id for card in build_deck()}
        second = {card.id for card in build_deck()}
        assert not first & second

    def test_takedowns_are_neutral(self):
        takedowns = [t for t in DEFAULT_TEMPLATES if t.is_takedown]
        assert {t.name for t in takedowns} == {"Double Leg Takedown", "Single Leg Takedown"}
        assert all(t.kind == CardKind.NEUTRAL for t in takedowns)

    def test_pins_end_game_with_position(self):
        pins = [t for t in DEFAULT_TEMPLATES if t.kind == CardKind.PIN]
        assert pins
        for pin in pins:
            assert pin.ends_game
            assert pin.pin_position is not None

    def test_tripods_keep_position(self):
        tripods = [t for t in DEFAULT_TEMPLATES if t.kind == CardKind.TRIPOD]
        assert tripods and all(t.does_not_change_position for t in tripods)


class TestCard:

    def test_cards_are_immutable(self):
        card = build_deck()[0]
        with pytest.raises(AttributeError):
            card.name = "Other"

    def test_to_dict(self):
        card = Card(id="c1", name="Whizzer", kind=CardKind.COUNTER, color="#f08a24")
        d = card.to_dict()
        assert d["id"] == "c1"
        assert d["kind"] == "COUNTER"
        assert d["image"] is None
        assert d["meta"] == {"does_not_change_position": False, "ends_game": False}


# =============================================================================
# Identifiers
# =============================================================================

class TestNormalizeIdentifier:

    def test_lowercases_and_strips(self):
        assert normalize_identifier("  Blood_Time ") == "blood_time"

    def test_strips_trailing_punctuation(self):
        assert normalize_identifier("counter_sprawl,") == "counter_sprawl"

    def test_repairs_extra_trailing_character(self):
        assert normalize_identifier("out_of_boundss") == "out_of_bounds"

    def test_leaves_valid_identifier_alone(self):
        assert normalize_identifier("top_far_arm_chop") == "top_far_arm_chop"


class TestClassifyIdentifier:

    @pytest.mark.parametrize("identifier,kind", [
        ("neutral_hip_toss", CardKind.NEUTRAL),
        ("neutral_attempted_takedown", CardKind.ATTEMPT_TAKEDOWN),
        ("neutral_head_lock_to_pin", CardKind.PIN),
        ("top_far_arm_chop", CardKind.TOP),
        ("top_turk_cradle_to_pin", CardKind.PIN),
        ("bottom_stand_up", CardKind.BOTTOM),
        ("bottom_sit_out_tripod_peterson", CardKind.TRIPOD),
        ("bottom_sit_out_no_change_of_position", CardKind.SITOUT),
        ("bottom_sit_out_turn_in", CardKind.SITOUT),
        ("bottom_elbow_roll_chest_to_pin", CardKind.PIN),
        ("counter_whizzer", CardKind.COUNTER),
        ("blood_time", CardKind.BLOODTIME),
        ("stalling", CardKind.STALLING),
        ("out_of_bounds", CardKind.OUT_OF_BOUNDS),
        ("penalty", CardKind.PENALTY),
        ("end_of_period", CardKind.END_OF_PERIOD),
        ("referee_bonus", CardKind.BONUS),
    ])
    def test_kind(self, identifier, kind):
        assert classify_identifier(identifier).kind == kind

    def test_tripod_and_no_change_sitout_keep_position(self):
        assert classify_identifier("bottom_sit_out_tripod_duckout").does_not_change_position
        assert classify_identifier("bottom_sit_out_no_change_of_position").does_not_change_position
        assert not classify_identifier("bottom_sit_out_turn_in").does_not_change_position

    def test_pin_position_from_prefix(self):
        assert classify_identifier("top_turk_cradle_to_pin").pin_position == Position.TOP
        assert classify_identifier("neutral_head_lock_to_pin").pin_position == Position.NEUTRAL
        assert classify_identifier("bottom_elbow_roll_chest_to_pin").pin_position == Position.BOTTOM

    def test_pin_ends_game(self):
        assert classify_identifier("top_turk_cradle_to_pin").ends_game
        assert not classify_identifier("top_far_arm_chop").ends_game

    def test_takedown_flag_only_on_neutral(self):
        assert classify_identifier("neutral_single_leg_takedown").is_takedown
        assert not classify_identifier("neutral_attempted_takedown").is_takedown
        assert not classify_identifier("top_double_leg_takedown").is_takedown

    def test_count_carried(self):
        assert classify_identifier("counter_sprawl", 3).count == 3

    def test_display_name(self):
        assert display_name("top_far_arm_chop") == "Far Arm Chop"
        assert display_name("counter_whizzer") == "Whizzer"
        assert display_name("blood_time") == "Blood Time"


# =============================================================================
# Manifest parsing
# =============================================================================

class TestParseManifest:

    def test_basic(self):
        templates = parse_manifest("3 neutral_single_leg_takedown\n2 blood_time\n")
        assert [(t.kind, t.count) for t in templates] == [
            (CardKind.NEUTRAL, 3),
            (CardKind.BLOODTIME, 2),
        ]

    @pytest.mark.parametrize("footer", ["5 total", "Total: 5", "5"])
    def test_footer_skipped(self, footer):
        templates = parse_manifest(f"3 counter_sprawl\n\n2 stalling\n{footer}\n")
        assert sum(t.count for t in templates) == 5

    def test_malformed_identifier_repaired(self):
        templates = parse_manifest("2 out_of_boundss")
        assert templates[0].kind == CardKind.OUT_OF_BOUNDS

    @pytest.mark.parametrize("line", [
        "counter_sprawl",
        "two counter_sprawl",
        "2 counter sprawl",
        "0 counter_sprawl",
    ])
    def test_bad_line_raises(self, line):
        with pytest.raises(ManifestError):
            parse_manifest(line)

    def test_error_names_line(self):
        with pytest.raises(ManifestError, match="line 2"):
            parse_manifest("1 stalling\nbroken\n")


class TestBundledManifest:

    def test_loads_fifty_cards(self):
        templates = load_manifest(MANIFEST_PATH)
        assert len(build_deck(templates)) == 50

    def test_matches_default_deck_kinds(self):
        from_manifest = Counter(c.kind for c in build_deck(load_manifest(MANIFEST_PATH)))
        from_default = Counter(c.kind for c in build_deck())
        assert from_manifest == from_default

    def test_matches_default_takedowns(self):
        manifest_takedowns = sum(c.is_takedown for c in build_deck(load_manifest(MANIFEST_PATH)))
        default_takedowns = sum(c.is_takedown for c in build_deck())
        assert manifest_takedowns == default_takedowns == 6
