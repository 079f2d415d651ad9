"""
Черновики форм мастера: новый клиент, новое оборудование, детали заказа, назначение техника.
"""
from dataclasses import replace
from typing import Optional, Union

from src.domain.entities.order_wizard import BranchMode, WizardState
from src.domain.entities.repair_shop import OrderPriority
from src.domain.services.entity_selectors import choose_client_mode, choose_equipment_mode


def update_client_draft(state: WizardState, **fields) -> WizardState:
    """
    Изменение полей нового клиента.
    Ввод переводит мастер на ветку нового клиента: выбранный клиент и его
    оборудование сбрасываются. Если клиент уже был создан прошлой попыткой,
    а данные изменились - при следующем оформлении будет создан новый клиент.
    """
    draft = replace(state.client_draft, **fields)
    if draft == state.client_draft:
        return state

    if state.client_mode != BranchMode.NEW:
        state = choose_client_mode(state, BranchMode.NEW)

    changes = {"client_draft": draft}
    if state.resolved_client_id is not None:
        # Созданное оборудование принадлежит прежнему клиенту
        changes.update(resolved_client_id=None, resolved_equipment_id=None)
    return state.evolve(**changes)


def update_equipment_draft(state: WizardState, **fields) -> WizardState:
    """Изменение полей нового оборудования"""
    draft = replace(state.equipment_draft, **fields)
    if draft == state.equipment_draft:
        return state

    if state.equipment_mode != BranchMode.NEW:
        state = choose_equipment_mode(state, BranchMode.NEW)
    return state.evolve(equipment_draft=draft, resolved_equipment_id=None)


def update_order_draft(state: WizardState, **fields) -> WizardState:
    """Изменение деталей заказа; приоритет принимается значением или строкой"""
    priority = fields.get("priority")
    if priority is not None and not isinstance(priority, OrderPriority):
        fields["priority"] = OrderPriority(priority)
    return state.evolve(order_draft=replace(state.order_draft, **fields))


def assign_technician(state: WizardState, technician_id: Optional[Union[str, int]]) -> WizardState:
    """Назначение техника; None - 'Sin asignar'"""
    if technician_id in (None, "", "none"):
        return state.evolve(technician_id=None)
    return state.evolve(technician_id=str(technician_id))
