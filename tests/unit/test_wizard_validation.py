"""
Unit тесты валидации шагов мастера
"""
from decimal import Decimal

import pytest

from src.domain.entities.order_wizard import BranchMode, OrderDraft, WizardState, WizardStep
from src.domain.services.order_wizard_validation import (
    is_valid_email,
    is_valid_phone,
    parse_amount,
    validate,
)
from tests.fixtures.factories import (
    ClientRecordFactory,
    EquipmentRecordFactory,
    NewClientDraftFactory,
    NewEquipmentDraftFactory,
    TechnicianFactory,
)


class TestFieldRules:
    """Правила отдельных полей"""

    @pytest.mark.parametrize("email", ["juan@example.com", "ana.lopez@taller.es", "a@b.co"])
    def test_valid_emails(self, email):
        assert is_valid_email(email) is True

    @pytest.mark.parametrize("email", ["", "juan", "juan@", "juan@example", "juan perez@example.com", "@example.com"])
    def test_invalid_emails(self, email):
        assert is_valid_email(email) is False

    @pytest.mark.parametrize("phone", ["", "+34600111222", "600 111 222", "(600) 111-222", "1234567890"])
    def test_valid_phones(self, phone):
        assert is_valid_phone(phone) is True

    @pytest.mark.parametrize("phone", ["0600111222", "abc", "+34 600 ABC", "12345678901234567"])
    def test_invalid_phones(self, phone):
        assert is_valid_phone(phone) is False

    def test_parse_amount(self):
        assert parse_amount("") is None
        assert parse_amount("  ") is None
        assert parse_amount("150.50") == Decimal("150.50")
        assert parse_amount("0") == Decimal("0")

    @pytest.mark.parametrize("raw", ["abc", "1,5", "NaN", "Infinity"])
    def test_parse_amount_not_a_number(self, raw):
        with pytest.raises(ValueError):
            parse_amount(raw)

    def test_parse_amount_negative(self):
        with pytest.raises(ValueError, match="negative"):
            parse_amount("-1")


class TestBranchSteps:
    """Шаги выбора ветки и кандидатов"""

    def test_client_type_requires_choice(self):
        errors = validate(WizardStep.CLIENT_TYPE, WizardState())
        assert set(errors) == {"client_type"}

        state = WizardState(client_mode=BranchMode.NEW)
        assert validate(WizardStep.CLIENT_TYPE, state) == {}

    def test_client_selection_requires_loaded_candidate(self):
        client = ClientRecordFactory()
        state = WizardState(client_mode=BranchMode.EXISTING, client_candidates=(client,))
        assert "client_selection" in validate(WizardStep.CLIENT_SELECTION, state)

        state = state.evolve(selected_client=client)
        assert validate(WizardStep.CLIENT_SELECTION, state) == {}

    def test_client_selection_rejects_client_missing_from_results(self):
        """Выбранный клиент должен быть среди результатов текущего поиска"""
        client = ClientRecordFactory()
        state = WizardState(
            client_mode=BranchMode.EXISTING,
            client_candidates=(ClientRecordFactory(),),
            selected_client=client
        )
        assert "client_selection" in validate(WizardStep.CLIENT_SELECTION, state)

    def test_equipment_type_existing_without_equipment(self):
        state = WizardState(equipment_mode=BranchMode.EXISTING, equipment_candidates=())
        errors = validate(WizardStep.EQUIPMENT_TYPE, state)
        assert "equipment_type" in errors

    def test_equipment_type_new_without_equipment_is_valid(self):
        state = WizardState(equipment_mode=BranchMode.NEW, equipment_candidates=())
        assert validate(WizardStep.EQUIPMENT_TYPE, state) == {}

    def test_equipment_selection(self):
        equipment = EquipmentRecordFactory()
        state = WizardState(equipment_mode=BranchMode.EXISTING, equipment_candidates=(equipment,))
        assert "equipment_selection" in validate(WizardStep.EQUIPMENT_SELECTION, state)
        assert validate(WizardStep.EQUIPMENT_SELECTION, state.evolve(selected_equipment=equipment)) == {}

    def test_technician_unassigned_is_valid(self):
        state = WizardState(technicians=(TechnicianFactory(),))
        assert validate(WizardStep.TECHNICIAN_ASSIGNMENT, state) == {}

    def test_technician_unknown_id(self):
        technician = TechnicianFactory()
        state = WizardState(technicians=(technician,), technician_id="missing")
        assert "technician_assignment" in validate(WizardStep.TECHNICIAN_ASSIGNMENT, state)
        assert validate(WizardStep.TECHNICIAN_ASSIGNMENT, state.evolve(technician_id=technician.id)) == {}

    def test_confirmation_has_no_rules(self):
        assert validate(WizardStep.CONFIRMATION, WizardState()) == {}


class TestNewClientStep:
    """Форма нового клиента"""

    def test_filled_draft_is_valid(self):
        state = WizardState(client_mode=BranchMode.NEW, client_draft=NewClientDraftFactory())
        assert validate(WizardStep.NEW_CLIENT, state) == {}

    def test_empty_draft_reports_required_fields(self):
        errors = validate(WizardStep.NEW_CLIENT, WizardState(client_mode=BranchMode.NEW))
        assert errors["full_name"] == "El nombre completo es obligatorio"
        assert errors["email"] == "El correo electrónico es obligatorio"
        assert "phone" not in errors

    def test_short_name_after_trim(self):
        draft = NewClientDraftFactory(full_name="  J  ")
        errors = validate(WizardStep.NEW_CLIENT, WizardState(client_draft=draft))
        assert errors["full_name"] == "El nombre debe tener al menos 2 caracteres"

    def test_invalid_email_and_phone(self):
        draft = NewClientDraftFactory(email="juan@", phone="0-abc")
        errors = validate(WizardStep.NEW_CLIENT, WizardState(client_draft=draft))
        assert set(errors) == {"email", "phone"}


class TestNewEquipmentStep:

    def test_filled_draft_is_valid(self):
        state = WizardState(equipment_draft=NewEquipmentDraftFactory())
        assert validate(WizardStep.NEW_EQUIPMENT, state) == {}

    def test_category_outside_closed_set(self):
        draft = NewEquipmentDraftFactory(equipment_type="Tablet")
        errors = validate(WizardStep.NEW_EQUIPMENT, WizardState(equipment_draft=draft))
        assert errors == {"equipment_type": "Debes seleccionar el tipo de equipo"}

    def test_brand_and_model_length(self):
        draft = NewEquipmentDraftFactory(brand="H", model=" ")
        errors = validate(WizardStep.NEW_EQUIPMENT, WizardState(equipment_draft=draft))
        assert errors["brand"] == "La marca debe tener al menos 2 caracteres"
        assert errors["model"] == "El modelo del equipo es obligatorio"


class TestOrderDetailsStep:
    """Детали заказа: описание проблемы и суммы"""

    def _errors(self, **fields):
        draft = OrderDraft(**{"problem_description": "No enciende la pantalla", **fields})
        return validate(WizardStep.ORDER_DETAILS, WizardState(order_draft=draft))

    def test_description_boundary(self):
        """9 символов - ошибка, 10 - достаточно"""
        assert "problem_description" in self._errors(problem_description="123456789")
        assert self._errors(problem_description="1234567890") == {}

    def test_description_is_trimmed(self):
        errors = self._errors(problem_description="   corto   ")
        assert errors["problem_description"] == "La descripción debe ser más detallada (mínimo 10 caracteres)"

    def test_amounts_are_optional(self):
        assert self._errors(estimated_cost="", advance_payment="") == {}

    def test_cost_not_a_number(self):
        errors = self._errors(estimated_cost="cien")
        assert errors == {"estimated_cost": "El costo estimado debe ser un número válido"}

    def test_negative_amounts(self):
        errors = self._errors(estimated_cost="-5", advance_payment="-1")
        assert errors["estimated_cost"] == "El costo estimado no puede ser negativo"
        assert errors["advance_payment"] == "El anticipo no puede ser negativo"

    @pytest.mark.parametrize("estimated, advance", [
        ("100", "150"),
        ("100", "100.01"),
        ("0.99", "1"),
        ("0", "0.01"),
        ("999", "1e3"),
        ("1000000", "1000000.01"),
        ("99999999.98", "99999999.99"),
        (" 250 ", "300.5"),
    ])
    def test_advance_above_estimate(self, estimated, advance):
        errors = self._errors(estimated_cost=estimated, advance_payment=advance)
        assert errors == {"advance_payment": "El anticipo no puede ser mayor al costo estimado"}

    @pytest.mark.parametrize("estimated, advance", [
        ("100", "100.00"),
        ("100.01", "100"),
        ("1e3", "999"),
        ("1000000", "0"),
    ])
    def test_advance_within_estimate(self, estimated, advance):
        assert self._errors(estimated_cost=estimated, advance_payment=advance) == {}

    def test_invalid_estimate_skips_comparison(self):
        """Без корректной стоимости сравнивать не с чем - ошибка только у нее"""
        errors = self._errors(estimated_cost="cien", advance_payment="50")
        assert errors == {"estimated_cost": "El costo estimado debe ser un número válido"}

    def test_negative_estimate_skips_comparison(self):
        errors = self._errors(estimated_cost="-100", advance_payment="50")
        assert errors == {"estimated_cost": "El costo estimado no puede ser negativo"}

    def test_advance_without_estimate(self):
        assert self._errors(estimated_cost="", advance_payment="300") == {}
