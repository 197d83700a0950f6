from palety_app.gui.transfer_state import (
    ALREADY_ON_PALLET,
    INVALID_QUANTITY,
    TARGET_CLOSED,
    DragPhase,
    TransferState,
)
from palety_core.models import Assignment, Destination, Pallet, PalletStatus, PieceType

PIECE = PieceType(id=1, length=600, width=300, unit_weight=2.0, planned=30, assigned=10)
HEAVY = PieceType(id=2, length=600, width=300, unit_weight=100.0, planned=10)


def _pallet(pallet_id, *assignments, status=PalletStatus.OPEN):
    return Pallet(
        id=pallet_id,
        destination=Destination.WAREHOUSE,
        status=status,
        assignments=tuple(Assignment(pallet_id, piece, qty) for piece, qty in assignments),
    )


def _machine():
    sent = []
    messages = []
    state = TransferState(
        transfer=lambda item, target: sent.append((item, target.id)),
        notify=lambda level, text: messages.append((level, text)),
        units_per_level=50,
    )
    return state, sent, messages


def test_pool_drag_moves_whole_available_quantity():
    state, sent, _ = _machine()
    target = _pallet(7)

    result = state.on_drag_start(PIECE)
    assert result["started"] is True
    assert state.item.quantity == 20
    assert state.item.source_pallet_id is None
    assert state.phase is DragPhase.DRAGGING

    state.on_drag_enter(7)
    assert state.phase is DragPhase.HOVER
    dropped = state.on_drop(target)

    assert dropped["accepted"] is True
    assert [(item.quantity, target_id) for item, target_id in sent] == [(20, 7)]
    assert state.phase is DragPhase.IDLE
    assert state.item is None


def test_pallet_drag_uses_assigned_quantity():
    state, _, _ = _machine()
    source = _pallet(3, (PIECE, 6))

    state.on_drag_start(PIECE, source)

    assert state.item.quantity == 6
    assert state.item.source_pallet_id == 3


def test_drop_on_source_pallet_is_rejected_without_transfer():
    state, sent, messages = _machine()
    source = _pallet(3, (PIECE, 6))

    state.on_drag_start(PIECE, source)
    state.on_drag_enter(3)
    assert state.drop_target_id is None
    result = state.on_drop(source)

    assert result == {"accepted": False, "reason": ALREADY_ON_PALLET}
    assert sent == []
    assert messages == [("info", ALREADY_ON_PALLET)]
    assert state.phase is DragPhase.IDLE


def test_second_drag_start_is_ignored():
    state, _, _ = _machine()
    state.on_drag_start(PIECE)

    second = state.on_drag_start(HEAVY)

    assert second == {"started": False}
    assert state.item.piece.id == PIECE.id


def test_zero_quantity_does_not_start_a_gesture():
    state, _, _ = _machine()
    exhausted = PieceType(id=5, length=600, width=300, planned=4, assigned=4)

    assert state.on_drag_start(exhausted) == {"started": False}
    assert not state.is_dragging
    assert state.phase is DragPhase.IDLE


def test_typed_quantity_starts_partial_drag():
    state, sent, _ = _machine()

    result = state.on_drag_start(PIECE, quantity=" 12 ")
    state.on_drop(_pallet(7))

    assert result["started"] is True
    assert [(item.quantity, target_id) for item, target_id in sent] == [(12, 7)]


def test_typed_quantity_must_be_whole_and_available():
    state, _, messages = _machine()
    source = _pallet(3, (PIECE, 6))

    assert state.on_drag_start(PIECE, quantity="2,5") == {
        "started": False,
        "reason": INVALID_QUANTITY,
    }
    assert state.on_drag_start(PIECE, quantity=21)["reason"] == "Only 20 pcs available."
    assert state.on_drag_start(PIECE, source, quantity="7")["reason"] == "Only 6 pcs available."
    assert state.on_drag_start(PIECE, quantity="0")["reason"] == "Quantity must be greater than 0."

    assert not state.is_dragging
    assert [level for level, _ in messages] == ["warning"] * 4


def test_nested_enter_leave_keeps_hover():
    state, _, _ = _machine()
    state.on_drag_start(PIECE, _pallet(3, (PIECE, 6)))

    state.on_drag_enter(7)
    state.on_drag_enter(7)
    state.on_drag_leave(7)
    assert state.hovered_id == 7
    assert state.target_state(7) == "drag-over"
    assert state.target_state(3) == "drag-source"
    assert state.target_state(8) == "drag-available"

    state.on_drag_leave(7)
    assert state.hovered_id is None
    assert state.phase is DragPhase.DRAGGING
    assert state.target_state(7) == "drag-available"


def test_closed_target_is_rejected():
    state, sent, messages = _machine()
    closed = _pallet(9, (HEAVY, 1), status=PalletStatus.CLOSED)

    state.on_drag_start(PIECE)
    assert not state.can_drop_on(closed)
    result = state.on_drop(closed)

    assert result["reason"] == TARGET_CLOSED
    assert sent == []
    assert messages == [("warning", TARGET_CLOSED)]


def test_drop_over_weight_limit_is_rejected():
    state, sent, messages = _machine()
    full = _pallet(9, (HEAVY, 7))

    state.on_drag_start(PIECE)
    result = state.on_drop(full)

    assert result["accepted"] is False
    assert result["reason"].startswith("Weight limit exceeded (740.0 kg > 700 kg")
    assert sent == []
    assert messages[0][0] == "warning"


def test_drag_end_clears_without_side_effects():
    state, sent, messages = _machine()
    state.on_drag_start(PIECE)
    state.on_drag_enter(7)

    assert state.on_drag_end() == {"was_dragging": True}
    assert state.item is None
    assert state.hover_counts == {}
    assert state.target_state(7) == ""
    assert sent == [] and messages == []
    assert state.on_drag_end() == {"was_dragging": False}


def test_events_without_gesture_are_ignored():
    state, sent, _ = _machine()

    assert state.on_drag_enter(1) == {}
    assert state.on_drag_leave(1) == {}
    assert state.on_drop(_pallet(1))["accepted"] is False
    assert sent == []
