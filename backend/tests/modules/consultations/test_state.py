"""Tests for the consultation order state machine."""

import pytest

from modules.consultations.exceptions import InvalidTransitionError
from modules.consultations.models import ConsultationStatus
from modules.consultations.state import can_transition, transition
from tests.conftest import NOW, seed_order

S = ConsultationStatus


class TestCanTransition:
    @pytest.mark.parametrize(
        "current,target",
        [
            (S.INITIATED, S.CONNECTED),
            (S.INITIATED, S.FAILED),
            (S.INITIATED, S.CANCELLED),
            (S.CONNECTED, S.COMPLETED),
            (S.CONNECTED, S.TERMINATED),
            (S.TERMINATED, S.COMPLETED),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (S.INITIATED, S.COMPLETED),
            (S.CONNECTED, S.CANCELLED),
            (S.CONNECTED, S.INITIATED),
            (S.TERMINATED, S.CONNECTED),
            (S.COMPLETED, S.COMPLETED),
            (S.FAILED, S.CONNECTED),
            (S.CANCELLED, S.CONNECTED),
        ],
    )
    def test_forbidden(self, current, target):
        assert not can_transition(current, target)

    @pytest.mark.parametrize("status", [S.COMPLETED, S.FAILED, S.CANCELLED])
    def test_terminal_states_are_final(self, status):
        """Terminal states should admit no transition at all."""
        assert status.is_terminal
        assert not any(can_transition(status, target) for target in S)


class TestTransition:
    def test_returns_updated_copy(self, store):
        order = seed_order(store, status=S.INITIATED)

        connected = transition(order, S.CONNECTED, start_time=NOW)

        assert connected.status == S.CONNECTED
        assert connected.start_time == NOW
        assert order.status == S.INITIATED

    def test_rejects_invalid(self, store):
        order = seed_order(store, status=S.COMPLETED)

        with pytest.raises(InvalidTransitionError) as exc_info:
            transition(order, S.CONNECTED)

        assert exc_info.value.current == S.COMPLETED
        assert exc_info.value.code == "INVALID_TRANSITION"


class TestStatusFlags:
    def test_active(self):
        assert S.INITIATED.is_active
        assert S.CONNECTED.is_active
        assert S.TERMINATED.is_active
        assert not S.COMPLETED.is_active
