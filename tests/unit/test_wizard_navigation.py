"""
Unit тесты переходов между шагами мастера
"""
import pytest

from src.domain.entities.order_wizard import BranchMode, WizardState, WizardStep
from src.domain.exceptions import InvalidTransition
from src.domain.services.order_wizard_navigation import (
    existing_branch_available,
    has_prev_step,
    is_submit_step,
    next_step,
    prev_step,
)
from tests.fixtures.factories import EquipmentRecordFactory


def _state(client_mode, equipment_mode, with_equipment=True) -> WizardState:
    candidates = (EquipmentRecordFactory(),) if with_equipment else ()
    return WizardState(
        client_mode=client_mode,
        equipment_mode=equipment_mode,
        equipment_candidates=candidates
    )


def _walk_forward(state: WizardState):
    path = [WizardStep.CLIENT_TYPE]
    while path[-1] != WizardStep.CONFIRMATION:
        path.append(next_step(path[-1], state))
    return path


class TestForwardPaths:
    """Прямой проход для всех комбинаций веток"""

    def test_existing_client_existing_equipment(self):
        path = _walk_forward(_state(BranchMode.EXISTING, BranchMode.EXISTING))
        assert path == [
            WizardStep.CLIENT_TYPE,
            WizardStep.CLIENT_SELECTION,
            WizardStep.EQUIPMENT_TYPE,
            WizardStep.EQUIPMENT_SELECTION,
            WizardStep.ORDER_DETAILS,
            WizardStep.TECHNICIAN_ASSIGNMENT,
            WizardStep.CONFIRMATION,
        ]

    def test_new_client_new_equipment(self):
        path = _walk_forward(_state(BranchMode.NEW, BranchMode.NEW, with_equipment=False))
        assert path == [
            WizardStep.CLIENT_TYPE,
            WizardStep.NEW_CLIENT,
            WizardStep.EQUIPMENT_TYPE,
            WizardStep.NEW_EQUIPMENT,
            WizardStep.ORDER_DETAILS,
            WizardStep.TECHNICIAN_ASSIGNMENT,
            WizardStep.CONFIRMATION,
        ]

    def test_path_never_mixes_branch_steps(self):
        """Путь содержит ровно один шаг из каждой пары веток"""
        for client_mode in BranchMode:
            for equipment_mode in BranchMode:
                path = _walk_forward(_state(client_mode, equipment_mode))
                assert len({WizardStep.CLIENT_SELECTION, WizardStep.NEW_CLIENT} & set(path)) == 1
                assert len({WizardStep.EQUIPMENT_SELECTION, WizardStep.NEW_EQUIPMENT} & set(path)) == 1


class TestBackwardPaths:

    @pytest.mark.parametrize("client_mode", list(BranchMode))
    @pytest.mark.parametrize("equipment_mode", list(BranchMode))
    def test_back_retraces_forward_path(self, client_mode, equipment_mode):
        """Назад от шага назначения техника - тот же путь в обратном порядке"""
        state = _state(client_mode, equipment_mode)
        forward = _walk_forward(state)[:-1]

        backward = [WizardStep.TECHNICIAN_ASSIGNMENT]
        while has_prev_step(backward[-1]):
            backward.append(prev_step(backward[-1], state))

        assert backward == list(reversed(forward))

    def test_first_step_has_no_previous(self):
        assert has_prev_step(WizardStep.CLIENT_TYPE) is False
        with pytest.raises(InvalidTransition):
            prev_step(WizardStep.CLIENT_TYPE, WizardState())

    def test_confirmation_is_terminal(self):
        assert has_prev_step(WizardStep.CONFIRMATION) is False
        with pytest.raises(InvalidTransition):
            next_step(WizardStep.CONFIRMATION, WizardState())
        with pytest.raises(InvalidTransition):
            prev_step(WizardStep.CONFIRMATION, WizardState())


class TestBranchDecisions:

    def test_missing_client_mode(self):
        with pytest.raises(InvalidTransition):
            next_step(WizardStep.CLIENT_TYPE, WizardState())

    def test_missing_equipment_mode(self):
        with pytest.raises(InvalidTransition):
            next_step(WizardStep.EQUIPMENT_TYPE, WizardState(client_mode=BranchMode.NEW))

    def test_existing_equipment_without_candidates(self):
        state = _state(BranchMode.EXISTING, BranchMode.EXISTING, with_equipment=False)
        assert existing_branch_available(state, "equipment") is False
        with pytest.raises(InvalidTransition):
            next_step(WizardStep.EQUIPMENT_TYPE, state)

    def test_existing_client_branch_always_available(self):
        assert existing_branch_available(WizardState(), "client") is True

    def test_submit_step(self):
        assert is_submit_step(WizardStep.TECHNICIAN_ASSIGNMENT) is True
        assert is_submit_step(WizardStep.ORDER_DETAILS) is False
        assert is_submit_step(WizardStep.CONFIRMATION) is False
