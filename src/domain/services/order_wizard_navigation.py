"""
Переходы между шагами мастера создания заказа.
Таблица переходов задана явно; ветвление зависит только от выбранных режимов.
"""
from typing import Callable, Dict, Optional

from src.domain.entities.order_wizard import BranchMode, WizardState, WizardStep
from src.domain.exceptions import InvalidTransition


def _by_mode(mode: Optional[BranchMode], existing: WizardStep, new: WizardStep, decision: str) -> WizardStep:
    if mode == BranchMode.EXISTING:
        return existing
    if mode == BranchMode.NEW:
        return new
    raise InvalidTransition(f"Не выбран режим '{decision}'")


def existing_branch_available(state: WizardState, category: str) -> bool:
    """
    Можно ли выбрать ветку 'существующий'.
    Для оборудования - только если у клиента есть хотя бы одна запись.
    """
    if category == "equipment":
        return bool(state.equipment_candidates)
    return True


def _next_from_equipment_type(state: WizardState) -> WizardStep:
    if state.equipment_mode == BranchMode.EXISTING and not existing_branch_available(state, "equipment"):
        raise InvalidTransition("Нет оборудования для выбора")
    return _by_mode(
        state.equipment_mode,
        WizardStep.EQUIPMENT_SELECTION,
        WizardStep.NEW_EQUIPMENT,
        "equipment_mode",
    )


_NEXT: Dict[WizardStep, Callable[[WizardState], WizardStep]] = {
    WizardStep.CLIENT_TYPE: lambda s: _by_mode(
        s.client_mode, WizardStep.CLIENT_SELECTION, WizardStep.NEW_CLIENT, "client_mode"
    ),
    WizardStep.CLIENT_SELECTION: lambda s: WizardStep.EQUIPMENT_TYPE,
    WizardStep.NEW_CLIENT: lambda s: WizardStep.EQUIPMENT_TYPE,
    WizardStep.EQUIPMENT_TYPE: _next_from_equipment_type,
    WizardStep.EQUIPMENT_SELECTION: lambda s: WizardStep.ORDER_DETAILS,
    WizardStep.NEW_EQUIPMENT: lambda s: WizardStep.ORDER_DETAILS,
    WizardStep.ORDER_DETAILS: lambda s: WizardStep.TECHNICIAN_ASSIGNMENT,
    WizardStep.TECHNICIAN_ASSIGNMENT: lambda s: WizardStep.CONFIRMATION,
}

_PREV: Dict[WizardStep, Callable[[WizardState], WizardStep]] = {
    WizardStep.CLIENT_SELECTION: lambda s: WizardStep.CLIENT_TYPE,
    WizardStep.NEW_CLIENT: lambda s: WizardStep.CLIENT_TYPE,
    WizardStep.EQUIPMENT_TYPE: lambda s: _by_mode(
        s.client_mode, WizardStep.CLIENT_SELECTION, WizardStep.NEW_CLIENT, "client_mode"
    ),
    WizardStep.EQUIPMENT_SELECTION: lambda s: WizardStep.EQUIPMENT_TYPE,
    WizardStep.NEW_EQUIPMENT: lambda s: WizardStep.EQUIPMENT_TYPE,
    WizardStep.ORDER_DETAILS: lambda s: _by_mode(
        s.equipment_mode, WizardStep.EQUIPMENT_SELECTION, WizardStep.NEW_EQUIPMENT, "equipment_mode"
    ),
    WizardStep.TECHNICIAN_ASSIGNMENT: lambda s: WizardStep.ORDER_DETAILS,
}


def next_step(current: WizardStep, state: WizardState) -> WizardStep:
    """
    Следующий шаг мастера.

    Raises:
        InvalidTransition: для шага подтверждения или при невыбранной ветке
    """
    transition = _NEXT.get(current)
    if transition is None:
        raise InvalidTransition(f"У шага '{current.value}' нет следующего шага")
    return transition(state)


def prev_step(current: WizardStep, state: WizardState) -> WizardStep:
    """
    Предыдущий шаг мастера с учетом запомненных веток.

    Raises:
        InvalidTransition: для первого шага и для шага подтверждения
    """
    transition = _PREV.get(current)
    if transition is None:
        raise InvalidTransition(f"У шага '{current.value}' нет предыдущего шага")
    return transition(state)


def has_prev_step(current: WizardStep) -> bool:
    return current in _PREV


def is_submit_step(current: WizardStep) -> bool:
    """Последний реальный шаг: 'Продолжить' на нем оформляет заказ"""
    return current == WizardStep.TECHNICIAN_ASSIGNMENT
