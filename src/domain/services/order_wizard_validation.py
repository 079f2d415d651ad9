"""
Валидация шагов мастера создания заказа.
Чистые функции: по шагу и состоянию возвращают словарь ошибок (поле -> сообщение).
Пустой словарь означает, что шаг заполнен.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, TypeAdapter, ValidationError, ValidationInfo, field_validator

from src.domain.entities.order_wizard import BranchMode, WizardState, WizardStep
from src.domain.entities.repair_shop import EquipmentCategory


ErrorMap = Dict[str, str]

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_PATTERN = re.compile(r'^[+]?[1-9]\d{0,15}$')
PHONE_SEPARATORS = re.compile(r'[\s\-()]')

MIN_NAME_LENGTH = 2
MIN_EQUIPMENT_FIELD_LENGTH = 2
MIN_PROBLEM_DESCRIPTION_LENGTH = 10

_email_adapter = TypeAdapter(EmailStr)


def is_valid_email(email: str) -> bool:
    """Синтаксическая проверка email"""
    if not email or not EMAIL_PATTERN.match(email):
        return False
    try:
        _email_adapter.validate_python(email)
    except ValidationError:
        return False
    return True


def is_valid_phone(phone: str) -> bool:
    """Телефон необязателен; если указан - допускаются пробелы, дефисы и скобки"""
    if not phone:
        return True
    return bool(PHONE_PATTERN.match(PHONE_SEPARATORS.sub("", phone)))


def parse_amount(raw: str) -> Optional[Decimal]:
    """
    Разбор денежной суммы из строки.

    Returns:
        None для пустой строки, иначе неотрицательное число

    Raises:
        ValueError: если строка не число или число отрицательное
    """
    value = (raw or "").strip()
    if not value:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ValueError("not a number")
    if not amount.is_finite():
        raise ValueError("not a number")
    if amount < 0:
        raise ValueError("negative")
    return amount


class NewClientForm(BaseModel):
    """Форма нового клиента"""
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = ""
    email: str = ""
    phone: str = ""
    company_name: str = ""
    address: str = ""
    city: str = ""

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        if not v:
            raise ValueError("El nombre completo es obligatorio")
        if len(v) < MIN_NAME_LENGTH:
            raise ValueError("El nombre debe tener al menos 2 caracteres")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not v:
            raise ValueError("El correo electrónico es obligatorio")
        if not is_valid_email(v):
            raise ValueError("Por favor ingresa un correo electrónico válido (ejemplo: usuario@dominio.com)")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not is_valid_phone(v):
            raise ValueError("El teléfono debe tener un formato válido (ejemplo: +1234567890 o 1234567890)")
        return v


class NewEquipmentForm(BaseModel):
    """Форма нового оборудования"""
    model_config = ConfigDict(str_strip_whitespace=True)

    equipment_type: str = ""
    brand: str = ""
    model: str = ""

    @field_validator("equipment_type")
    @classmethod
    def validate_equipment_type(cls, v: str) -> str:
        if v not in EquipmentCategory.values():
            raise ValueError("Debes seleccionar el tipo de equipo")
        return v

    @field_validator("brand")
    @classmethod
    def validate_brand(cls, v: str) -> str:
        if not v:
            raise ValueError("La marca del equipo es obligatoria")
        if len(v) < MIN_EQUIPMENT_FIELD_LENGTH:
            raise ValueError("La marca debe tener al menos 2 caracteres")
        return v

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        if not v:
            raise ValueError("El modelo del equipo es obligatorio")
        if len(v) < MIN_EQUIPMENT_FIELD_LENGTH:
            raise ValueError("El modelo debe tener al menos 2 caracteres")
        return v


class OrderDetailsForm(BaseModel):
    """Форма деталей заказа. Порядок полей важен: аванс сверяется с уже проверенной стоимостью."""
    model_config = ConfigDict(str_strip_whitespace=True)

    problem_description: str = ""
    estimated_cost: str = ""
    advance_payment: str = ""

    @field_validator("problem_description")
    @classmethod
    def validate_problem_description(cls, v: str) -> str:
        if not v:
            raise ValueError("La descripción del problema es obligatoria")
        if len(v) < MIN_PROBLEM_DESCRIPTION_LENGTH:
            raise ValueError("La descripción debe ser más detallada (mínimo 10 caracteres)")
        return v

    @field_validator("estimated_cost")
    @classmethod
    def validate_estimated_cost(cls, v: str) -> str:
        try:
            parse_amount(v)
        except ValueError as e:
            if str(e) == "negative":
                raise ValueError("El costo estimado no puede ser negativo")
            raise ValueError("El costo estimado debe ser un número válido")
        return v

    @field_validator("advance_payment")
    @classmethod
    def validate_advance_payment(cls, v: str, info: ValidationInfo) -> str:
        try:
            advance = parse_amount(v)
        except ValueError as e:
            if str(e) == "negative":
                raise ValueError("El anticipo no puede ser negativo")
            raise ValueError("El anticipo debe ser un número válido")

        # estimated_cost отсутствует в info.data, если сам не прошел проверку
        estimated = parse_amount(info.data["estimated_cost"]) if "estimated_cost" in info.data else None
        if advance is not None and estimated is not None and advance > estimated:
            raise ValueError("El anticipo no puede ser mayor al costo estimado")
        return v


def _collect_errors(error: ValidationError) -> ErrorMap:
    """Преобразование ошибок pydantic в словарь поле -> первое сообщение"""
    errors: ErrorMap = {}
    for item in error.errors():
        field_name = str(item["loc"][0]) if item["loc"] else "__all__"
        cause = item.get("ctx", {}).get("error")
        errors.setdefault(field_name, str(cause) if cause is not None else item["msg"])
    return errors


def _validate_form(form_class, data: dict) -> ErrorMap:
    try:
        form_class(**data)
    except ValidationError as e:
        return _collect_errors(e)
    return {}


def _validate_client_type(state: WizardState) -> ErrorMap:
    if state.client_mode is None:
        return {"client_type": "Debes seleccionar un tipo de cliente para continuar"}
    return {}


def _validate_client_selection(state: WizardState) -> ErrorMap:
    selected = state.selected_client
    if selected is None or selected.id not in {c.id for c in state.client_candidates}:
        return {"client_selection": "Debes seleccionar un cliente para continuar"}
    return {}


def _validate_new_client(state: WizardState) -> ErrorMap:
    draft = state.client_draft
    return _validate_form(NewClientForm, {
        "full_name": draft.full_name,
        "email": draft.email,
        "phone": draft.phone,
    })


def _validate_equipment_type(state: WizardState) -> ErrorMap:
    if state.equipment_mode is None:
        return {"equipment_type": "Debes seleccionar un tipo de equipo para continuar"}
    if state.equipment_mode == BranchMode.EXISTING and not state.equipment_candidates:
        return {"equipment_type": "El cliente no tiene equipos registrados, registra un equipo nuevo"}
    return {}


def _validate_equipment_selection(state: WizardState) -> ErrorMap:
    selected = state.selected_equipment
    if selected is None or selected.id not in {e.id for e in state.equipment_candidates}:
        return {"equipment_selection": "Debes seleccionar un equipo para continuar"}
    return {}


def _validate_new_equipment(state: WizardState) -> ErrorMap:
    draft = state.equipment_draft
    return _validate_form(NewEquipmentForm, {
        "equipment_type": draft.equipment_type,
        "brand": draft.brand,
        "model": draft.model,
    })


def _validate_order_details(state: WizardState) -> ErrorMap:
    draft = state.order_draft
    return _validate_form(OrderDetailsForm, {
        "problem_description": draft.problem_description,
        "estimated_cost": draft.estimated_cost,
        "advance_payment": draft.advance_payment,
    })


def _validate_technician_assignment(state: WizardState) -> ErrorMap:
    # "Sin asignar" - допустимое значение
    if state.technician_id is not None and state.technician_by_id(state.technician_id) is None:
        return {"technician_assignment": "Debes seleccionar un técnico o elegir 'Sin asignar'"}
    return {}


_STEP_VALIDATORS: Dict[WizardStep, Callable[[WizardState], ErrorMap]] = {
    WizardStep.CLIENT_TYPE: _validate_client_type,
    WizardStep.CLIENT_SELECTION: _validate_client_selection,
    WizardStep.NEW_CLIENT: _validate_new_client,
    WizardStep.EQUIPMENT_TYPE: _validate_equipment_type,
    WizardStep.EQUIPMENT_SELECTION: _validate_equipment_selection,
    WizardStep.NEW_EQUIPMENT: _validate_new_equipment,
    WizardStep.ORDER_DETAILS: _validate_order_details,
    WizardStep.TECHNICIAN_ASSIGNMENT: _validate_technician_assignment,
}


def validate(step: WizardStep, state: WizardState) -> ErrorMap:
    """
    Проверка шага мастера.

    Args:
        step: Проверяемый шаг
        state: Текущее состояние мастера

    Returns:
        Словарь ошибок по полям (пустой, если шаг заполнен)
    """
    validator = _STEP_VALIDATORS.get(step)
    if validator is None:
        return {}
    return validator(state)
