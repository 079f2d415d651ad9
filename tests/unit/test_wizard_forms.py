"""
Unit тесты черновиков форм мастера
"""
import pytest

from src.domain.entities.order_wizard import BranchMode, WizardState
from src.domain.entities.repair_shop import OrderPriority
from src.domain.services.order_wizard_forms import (
    assign_technician,
    update_client_draft,
    update_equipment_draft,
    update_order_draft,
)
from tests.fixtures.factories import NewClientDraftFactory, WizardStateBuilder


class TestClientDraft:

    def test_update_switches_to_new_branch(self):
        state = update_client_draft(WizardState(), full_name="Juan Pérez")
        assert state.client_mode == BranchMode.NEW
        assert state.client_draft.full_name == "Juan Pérez"

    def test_unchanged_value_keeps_created_client(self):
        draft = NewClientDraftFactory()
        state = WizardState(client_mode=BranchMode.NEW, client_draft=draft, resolved_client_id="cli-1")

        assert update_client_draft(state, email=draft.email) is state

    def test_changed_value_forgets_created_client(self):
        """После изменения данных будет создан новый клиент, а с ним и новое оборудование"""
        state = WizardState(
            client_mode=BranchMode.NEW,
            client_draft=NewClientDraftFactory(),
            resolved_client_id="cli-1",
            resolved_equipment_id="eq-1",
        )

        state = update_client_draft(state, email="otro@example.com")

        assert state.resolved_client_id is None
        assert state.resolved_equipment_id is None

    def test_unknown_field(self):
        with pytest.raises(TypeError):
            update_client_draft(WizardState(), nickname="juanito")

    def test_switch_from_existing_client_drops_its_equipment(self):
        """Оборудование прежнего клиента не переходит к новому"""
        state = WizardStateBuilder.with_existing_client_and_equipment()

        state = update_client_draft(state, full_name="Pedro Gómez", email="pedro@example.com")

        assert state.client_mode == BranchMode.NEW
        assert state.selected_client is None
        assert state.client_candidates == ()
        assert state.equipment_mode is None
        assert state.selected_equipment is None
        assert state.equipment_candidates == ()
        assert state.equipment_id is None


class TestEquipmentDraft:

    def test_update_forgets_created_equipment(self):
        state = WizardState(equipment_mode=BranchMode.NEW, resolved_equipment_id="eq-1")
        state = update_equipment_draft(state, brand="Dell")

        assert state.equipment_draft.brand == "Dell"
        assert state.resolved_equipment_id is None
        assert state.equipment_mode == BranchMode.NEW

    def test_switch_from_existing_equipment(self):
        state = WizardStateBuilder.with_existing_client_and_equipment()

        state = update_equipment_draft(state, brand="Dell")

        assert state.equipment_mode == BranchMode.NEW
        assert state.selected_equipment is None
        assert state.selected_client is not None
        assert state.equipment_draft.brand == "Dell"


class TestOrderDraft:

    def test_priority_from_string(self):
        state = update_order_draft(WizardState(), priority="high")
        assert state.order_draft.priority == OrderPriority.HIGH
        assert state.order_draft.priority.label == "Alta"

    def test_default_priority_is_medium(self):
        assert WizardState().order_draft.priority == OrderPriority.MEDIUM

    def test_invalid_priority(self):
        with pytest.raises(ValueError):
            update_order_draft(WizardState(), priority="critical")

    def test_amounts_kept_as_typed(self):
        state = update_order_draft(WizardState(), estimated_cost="150.5", advance_payment="")
        assert state.order_draft.estimated_cost == "150.5"


class TestTechnician:

    @pytest.mark.parametrize("value", [None, "", "none"])
    def test_unassigned(self, value):
        state = WizardState(technician_id="tec-1")
        assert assign_technician(state, value).technician_id is None

    def test_assign(self):
        assert assign_technician(WizardState(), 42).technician_id == "42"
