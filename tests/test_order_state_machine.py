from datetime import timedelta

import pytest

from foodmarket.core.exceptions import ConflictError, ValidationError
from foodmarket.models.order import Order
from foodmarket.repositories.order_status_history import OrderStatusHistoryRepository
from foodmarket.services.order_state import (
    ORDER_STATUSES,
    TERMINAL_STATUSES,
    OrderStateMachine,
    allowed_transitions,
    can_transition,
)
from foodmarket.services.orders import OrderService
from tests.fixtures_data import (
    CUSTOMER_ID,
    HAPPY_PATH_ORDER_PAYLOAD,
    LUNCH_TIME,
    FrozenClock,
    build_session,
    seed_marketplace,
)


def _pending_order():
    db = build_session()
    seed_marketplace(db)
    clock = FrozenClock(LUNCH_TIME)
    created = OrderService(db, clock=clock).create_order(CUSTOMER_ID, HAPPY_PATH_ORDER_PAYLOAD)
    order = db.get(Order, created["id"])
    return OrderStateMachine(db, clock=clock), order, db, clock


def _history(db, order):
    return [entry.status for entry in OrderStatusHistoryRepository(db).find_by_order(order.id)]


def test_transition_table():
    assert allowed_transitions("pending") == {"accepted", "rejected", "cancelled"}
    assert allowed_transitions("accepted") == {"preparing", "cancelled"}
    assert allowed_transitions("preparing") == {"ready", "cancelled"}
    assert allowed_transitions("ready") == {"delivering", "cancelled"}
    assert allowed_transitions("delivering") == {"delivered", "cancelled"}
    for status in TERMINAL_STATUSES:
        assert allowed_transitions(status) == frozenset()
    assert can_transition("PENDING", "Accepted") is True
    assert can_transition("pending", "preparing") is False


def test_full_happy_path_sets_each_timestamp_and_history_row():
    machine, order, db, clock = _pending_order()

    machine.accept(order)
    for status in ("preparing", "ready", "delivering", "delivered"):
        clock.moment = clock.moment + timedelta(minutes=5)
        machine.update_status(order, status)

    assert order.order_status == "delivered"
    assert order.accepted_at is not None
    assert order.preparing_started_at is not None
    assert order.ready_at is not None
    assert order.delivering_started_at is not None
    assert order.delivered_at is not None
    assert order.rejected_at is None
    assert _history(db, order) == ["pending", "accepted", "preparing", "ready", "delivering", "delivered"]


def test_reject_records_reason_in_notes_and_history():
    machine, order, db, _clock = _pending_order()

    machine.reject(order, reason="Kitchen closed early")

    assert order.order_status == "rejected"
    assert order.rejected_at is not None
    assert order.restaurant_notes == "Kitchen closed early"
    entries = OrderStatusHistoryRepository(db).find_by_order(order.id)
    assert [(entry.status, entry.notes) for entry in entries] == [
        ("pending", None),
        ("rejected", "Kitchen closed early"),
    ]


def test_accept_twice_conflicts_without_side_effects():
    machine, order, db, _clock = _pending_order()
    machine.accept(order)
    accepted_at = order.accepted_at

    with pytest.raises(ConflictError) as exc:
        machine.accept(order)

    assert exc.value.message == "Order is not in pending status"
    db.refresh(order)
    assert order.order_status == "accepted"
    assert order.accepted_at == accepted_at
    assert _history(db, order) == ["pending", "accepted"]


def test_pending_cannot_skip_to_preparing():
    machine, order, db, _clock = _pending_order()

    with pytest.raises(ConflictError) as exc:
        machine.update_status(order, "preparing")

    assert exc.value.message == "Invalid status transition from pending to preparing"
    assert _history(db, order) == ["pending"]


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
def test_terminal_states_reject_every_transition(terminal):
    machine, order, db, _clock = _pending_order()
    if terminal == "delivered":
        machine.accept(order)
        for status in ("preparing", "ready", "delivering", "delivered"):
            machine.update_status(order, status)
    elif terminal == "rejected":
        machine.reject(order)
    else:
        machine.update_status(order, "cancelled")
    history_before = _history(db, order)

    for target in ORDER_STATUSES:
        with pytest.raises(ConflictError) as exc:
            machine.update_status(order, target)
        assert exc.value.message == "Order is already in final status"

    assert _history(db, order) == history_before


def test_cancel_from_any_active_state_appends_history():
    machine, order, db, _clock = _pending_order()
    machine.accept(order)
    machine.update_status(order, "preparing")

    machine.update_status(order, "cancelled", notes="Customer called")

    assert order.order_status == "cancelled"
    assert order.restaurant_notes == "Customer called"
    assert _history(db, order)[-1] == "cancelled"


def test_unknown_status_is_validation_error():
    machine, order, _db, _clock = _pending_order()

    with pytest.raises(ValidationError):
        machine.update_status(order, "teleported")


def test_history_write_failure_rolls_back_status(monkeypatch):
    machine, order, db, _clock = _pending_order()

    def _boom(*_args, **_kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(machine.history, "create", _boom)

    with pytest.raises(RuntimeError):
        machine.accept(order)

    db.expire_all()
    reloaded = db.get(Order, order.id)
    assert reloaded.order_status == "pending"
    assert reloaded.accepted_at is None
