import pytest

from accountapp.actors import Actor
from bookingapp import states
from bookingapp.services import DateRange

from conftest import at, span


class TestStateMachine:

    def test_blocking_statuses(self):
        for status in (states.REQUESTED, states.AWAITING_PAYMENT, states.ON_DELIVERY_PENDING,
                       states.CONFIRMED, states.COMPLETED, states.NO_SHOW):
            assert states.is_blocking(status)
        for status in (states.CANCELLED, states.PAYMENT_FAILED):
            assert not states.is_blocking(status)

    def test_happy_path(self):
        assert states.target_status(states.REQUESTED, states.ACCEPT) == states.AWAITING_PAYMENT
        assert states.target_status(states.AWAITING_PAYMENT, states.PAYMENT_SUCCEEDED) == states.CONFIRMED
        assert states.target_status(states.CONFIRMED, states.DISPATCH) == states.ON_DELIVERY_PENDING
        assert states.target_status(states.ON_DELIVERY_PENDING, states.COMPLETE) == states.COMPLETED

    def test_complete_requires_confirmation(self):
        assert states.target_status(states.REQUESTED, states.COMPLETE) is None
        assert states.target_status(states.AWAITING_PAYMENT, states.COMPLETE) is None

    def test_payment_failure_only_while_awaiting_payment(self):
        assert states.target_status(states.AWAITING_PAYMENT, states.PAYMENT_FAILED_EVENT) == states.PAYMENT_FAILED
        assert states.target_status(states.CONFIRMED, states.PAYMENT_FAILED_EVENT) is None

    def test_no_show_from_confirmed_or_delivery(self):
        assert states.target_status(states.CONFIRMED, states.MARK_NO_SHOW) == states.NO_SHOW
        assert states.target_status(states.ON_DELIVERY_PENDING, states.MARK_NO_SHOW) == states.NO_SHOW
        assert states.target_status(states.REQUESTED, states.MARK_NO_SHOW) is None

    @pytest.mark.parametrize("status", sorted(states.TERMINAL_STATUSES))
    def test_terminal_states_have_no_exits(self, status):
        for event in states.EVENTS:
            assert states.target_status(status, event) is None

    @pytest.mark.parametrize("status", sorted(states.NON_TERMINAL_STATUSES))
    def test_cancel_from_any_non_terminal_state(self, status):
        assert states.target_status(status, states.CANCEL) == states.CANCELLED

    def test_no_state_is_revisited(self):
        order = [states.REQUESTED, states.AWAITING_PAYMENT, states.CONFIRMED,
                 states.ON_DELIVERY_PENDING, states.COMPLETED]
        for event, (sources, target) in states.TRANSITIONS.items():
            for source in sources:
                if source in order and target in order:
                    assert order.index(target) > order.index(source), event


class TestDateRange:

    def test_overlap_is_half_open(self):
        existing = span('2024-01-10', '2024-01-15')
        assert existing.overlaps(span('2024-01-14', '2024-01-20'))
        assert not existing.overlaps(span('2024-01-15', '2024-01-20'))
        assert not existing.overlaps(span('2024-01-01', '2024-01-10'))
        assert existing.overlaps(span('2024-01-11', '2024-01-12'))
        assert existing.overlaps(span('2024-01-01', '2024-01-31'))

    def test_overlap_is_symmetric(self):
        a = DateRange(at('2024-03-01'), at('2024-03-05'))
        b = DateRange(at('2024-03-04'), at('2024-03-08'))
        assert a.overlaps(b) and b.overlaps(a)


class TestActor:

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            Actor(id=1, role='SUPERUSER')

    def test_system_actor(self):
        actor = Actor.system()
        assert actor.is_system
        assert actor.id is None
        assert not actor.is_admin
