"""
Cut engine tests — validation, both cut policies, capacity and reversal.

Tests:
1-5.   Rejection boundary (is_valid_cut)
6-8.   Worked scenarios (pile standard cut, sheet standard cut, equal cut)
9-11.  Conservation and capacity consistency across a grid of cuts
12-16. undo_cut round trips, unit snapping, chained provenance
"""

import math

import pytest

from stockyard.engine.cut import CutEngine, EPSILON
from stockyard.enums import CutType

engine = CutEngine()

VOLUMES = [0.5, 1, 2.5, 3.3, 5, 6, 12, 13]


def _volume(lots):
    return sum(lot.quantity * lot.amount for lot in lots if lot is not None)


def _zeroed(lot):
    """The source lot as the session leaves it when a cut uses all of it."""
    if lot.is_fixed_quantity:
        return lot.clone_with_new_params(lot.quantity, 0, keep_original=True)
    return lot.clone_with_new_params(0, lot.amount, keep_original=True)


# ============================================================
# Rejection boundary
# ============================================================

def test_rejects_zero_volume_and_zero_quantity(pile_lot, sheet_lot):
    """cut_volume=0 and cut_quantity=0 are never valid."""
    assert not engine.is_valid_cut(pile_lot, 0, 1)
    assert not engine.is_valid_cut(pile_lot, 5, 0)
    assert not engine.is_valid_cut(sheet_lot, 0, 1)
    assert not engine.is_valid_cut(sheet_lot, 1, 0)
    assert not engine.is_valid_cut(pile_lot, EPSILON / 10, 1)


def test_rejects_piece_longer_than_unit(pile_lot):
    """A fixed-length unit cannot yield a piece longer than itself."""
    assert not engine.is_valid_cut(pile_lot, 12.5, 1)
    assert not engine.is_valid_cut(pile_lot, 12.5, 1, CutType.EQUAL)
    assert engine.is_valid_cut(pile_lot, 12, 1)


def test_rejects_equal_cut_on_continuous(sheet_lot):
    """Equal cuts only apply to fixed-quantity lots."""
    assert not engine.is_valid_cut(sheet_lot, 1, 1, CutType.EQUAL)
    assert not engine.is_valid_cut(sheet_lot, 1, 1, "equal")
    assert engine.cut(sheet_lot, 1, 1, CutType.EQUAL) is None


def test_rejects_more_pieces_than_available(pile_lot, sheet_lot):
    """Standard: at most parts*amount pieces; continuous: at most the total volume."""
    assert engine.is_valid_cut(pile_lot, 5, 10)       # 2 per unit x 5 units
    assert not engine.is_valid_cut(pile_lot, 5, 11)
    assert engine.is_valid_cut(pile_lot, 6, 5, CutType.EQUAL)
    assert not engine.is_valid_cut(pile_lot, 6, 6, CutType.EQUAL)
    assert engine.is_valid_cut(sheet_lot, 1, 30)      # 3.0 x 10
    assert not engine.is_valid_cut(sheet_lot, 1, 31)


def test_rejects_fractional_piece_count_on_fixed_lot(make_lot, sheet_lot):
    """Fixed-length pieces are whole units; continuous lots may take fractional counts."""
    pile = make_lot(1, 12, 5)
    assert not engine.is_valid_cut(pile, 5, 2.5)
    assert engine.cut(pile, 5, 2.5) is None
    assert engine.cut(make_lot(1, 6, 4), 4, 2.5, CutType.EQUAL) is None
    assert engine.is_valid_cut(pile, 5, 4.0)
    assert engine.is_valid_cut(sheet_lot, 1, 2.5)


# ============================================================
# Worked scenarios
# ============================================================

def test_standard_cut_fixed_pile_scenario(make_lot):
    """12 m x 5 cut into 4 x 5 m: two units used, 2 m left on each."""
    lot = make_lot(1, 12, 5)
    cut = engine.cut(lot, 5, 4)

    assert (cut.result.quantity, cut.result.amount) == (5, 4)
    assert [(r.quantity, r.amount) for r in cut.remainder] == [(2, 2)]
    assert (cut.unused_part.quantity, cut.unused_part.amount) == (12, 3)
    assert cut.unused_part.uuid == lot.uuid  # unused part keeps the identity
    assert math.isclose(_volume([cut.result, *cut.remainder, cut.unused_part]), 60)


def test_standard_cut_continuous_sheet_scenario(sheet_lot):
    """3.0 x 10 cut into 20 x 1.0: leftover 10 spread back over 10 units."""
    cut = engine.cut(sheet_lot, 1.0, 20)

    assert (cut.result.quantity, cut.result.amount) == (1.0, 20)
    assert cut.remainder == []
    assert cut.unused_part.quantity == pytest.approx(1.0)
    assert cut.unused_part.amount == 10


def test_equal_cut_scenario(make_lot):
    """6 m x 4 trimmed to 4 m x 3: one 2 m x 3 remainder, one unit untouched."""
    lot = make_lot(1, 6, 4)
    cut = engine.cut(lot, 4, 3, CutType.EQUAL)

    assert (cut.result.quantity, cut.result.amount) == (4, 3)
    assert [(r.quantity, r.amount) for r in cut.remainder] == [(2, 3)]
    assert (cut.unused_part.quantity, cut.unused_part.amount) == (6, 1)


# ============================================================
# Conservation and capacity
# ============================================================

def test_standard_cut_partial_unit_conserves_length(make_lot):
    """Full-unit and partial-unit remainders together never double count."""
    lot = make_lot(1, 12, 5)
    cut = engine.cut(lot, 5, 3)  # 2 from one unit, 1 from another

    assert sorted((r.quantity, r.amount) for r in cut.remainder) == [(2, 1), (7, 1)]
    assert (cut.unused_part.quantity, cut.unused_part.amount) == (12, 3)
    assert math.isclose(_volume([cut.result, *cut.remainder, cut.unused_part]), 60)


@pytest.mark.parametrize("standard_id, quantity, amount, cut_type", [
    (1, 12, 5, CutType.STANDARD),
    (1, 6, 4, CutType.EQUAL),
    (9, 11.7, 3, CutType.STANDARD),
    (8, 3.0, 10, CutType.STANDARD),
    (8, 2.5, 4, CutType.STANDARD),
])
def test_capacity_consistency_and_conservation(make_lot, standard_id, quantity, amount, cut_type):
    """get_max_possible_amount is the exact edge of is_valid_cut, and that cut conserves volume."""
    lot = make_lot(standard_id, quantity, amount)
    for cut_volume in VOLUMES:
        max_amount = engine.get_max_possible_amount(lot, cut_volume, cut_type)
        if max_amount == 0:
            assert not engine.is_valid_cut(lot, cut_volume, 1, cut_type)
            continue

        assert engine.is_valid_cut(lot, cut_volume, max_amount, cut_type), cut_volume
        assert not engine.is_valid_cut(lot, cut_volume, max_amount + 1, cut_type), cut_volume

        cut = engine.cut(lot, cut_volume, max_amount, cut_type)
        assert math.isclose(
            _volume([cut.result, *cut.remainder, cut.unused_part]),
            quantity * amount,
            abs_tol=1e-6,
        )


def test_max_possible_amount_edge_cases(pile_lot, sheet_lot):
    """No lot, zero volume and over-long pieces all yield 0."""
    assert engine.get_max_possible_amount(None, 5) == 0
    assert engine.get_max_possible_amount(pile_lot, 0) == 0
    assert engine.get_max_possible_amount(pile_lot, 13) == 0
    assert engine.get_max_possible_amount(sheet_lot, 1, CutType.EQUAL) == 0
    assert engine.get_max_possible_amount(pile_lot, 5) == 10
    assert engine.get_max_possible_amount(pile_lot, 5, CutType.EQUAL) == 5


# ============================================================
# Reversal
# ============================================================

def test_undo_round_trip_fixed(make_lot):
    """Folding every piece back recovers the original amount and length."""
    for cut_volume, cut_quantity in [(5, 4), (5, 3), (3.3, 7), (12, 5)]:
        lot = make_lot(1, 12, 5)
        cut = engine.cut(lot, cut_volume, cut_quantity)
        original = cut.unused_part or _zeroed(lot)

        undo = engine.undo_cut(original, cut.pieces())
        assert undo.lot_uuid == lot.uuid
        assert undo.new_quantity == 12
        assert undo.new_amount == pytest.approx(5, abs=1e-6)


def test_undo_snaps_to_whole_units(make_lot):
    """3.3 m pieces leave float noise; the restored unit count is exactly 5."""
    lot = make_lot(1, 12, 5)
    cut = engine.cut(lot, 3.3, 7)
    undo = engine.undo_cut(cut.unused_part, cut.pieces())
    assert undo.new_amount == 5.0


def test_undo_round_trip_continuous(sheet_lot):
    """A partly used sheet gets its measure back over the same unit count."""
    cut = engine.cut(sheet_lot, 1.0, 20)
    undo = engine.undo_cut(cut.unused_part, cut.pieces())
    assert undo.new_quantity == pytest.approx(3.0)
    assert undo.new_amount == 10


def test_undo_fully_consumed_continuous_conserves_mass(sheet_lot):
    """A sheet cut to nothing comes back as one unit holding the whole measure."""
    cut = engine.cut(sheet_lot, 1.0, 30)
    assert (cut.unused_part.quantity, cut.unused_part.amount) == (0, 0)

    undo = engine.undo_cut(cut.unused_part, cut.pieces())
    assert undo.new_amount == 1
    assert undo.new_quantity == pytest.approx(30.0)


def test_chained_cut_stays_in_one_operation(make_lot):
    """Cutting a remainder again keeps the root lot and the first operation uuid."""
    lot = make_lot(1, 12, 5)
    first = engine.cut(lot, 5, 4)
    remainder = first.remainder[0]
    assert remainder.cut_from == lot.uuid

    second = engine.cut(remainder, 1, 2)
    assert second.result.cut_from == lot.uuid
    assert second.result.cut_operation_uuid == first.result.cut_operation_uuid
    assert second.unused_part.uuid == remainder.uuid

    # Folding the whole operation group back gives the pile as loaded
    group = [first.result, *second.pieces(), second.unused_part]
    assert all(piece.cut_operation_uuid == first.result.cut_operation_uuid for piece in group)
    undo = engine.undo_cut(first.unused_part, group)
    assert (undo.new_amount, undo.new_quantity) == (5, 12)


def test_cut_one_part_lifts_a_whole_unit(pile_lot):
    """cut_one_part takes exactly one unit at full length."""
    cut = engine.cut_one_part(pile_lot)
    assert (cut.result.quantity, cut.result.amount) == (12, 1)
    assert cut.remainder == []
    assert (cut.unused_part.quantity, cut.unused_part.amount) == (12, 4)
