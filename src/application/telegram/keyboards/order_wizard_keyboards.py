"""
Клавиатуры мастера создания заказа.
Все callback_data начинаются с префикса 'ow:'.
"""
from typing import Dict, List, Optional

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from src.domain.entities.order_wizard import BranchMode, WizardState
from src.domain.entities.repair_shop import (
    EquipmentCategory,
    OrderPriority,
    UNASSIGNED_TECHNICIAN_LABEL,
)


CALLBACK_PREFIX = "ow"

# Поля форм: имя поля -> подпись кнопки (* - обязательное)
CLIENT_FIELDS: Dict[str, str] = {
    "full_name": "Nombre completo *",
    "email": "Correo electrónico *",
    "phone": "Teléfono",
    "company_name": "Empresa",
    "address": "Dirección",
    "city": "Ciudad",
}

EQUIPMENT_FIELDS: Dict[str, str] = {
    "brand": "Marca *",
    "model": "Modelo *",
    "equipment_subtype": "Subtipo",
    "serial_number": "Número de serie",
    "device_condition": "Estado del equipo",
    "accessories": "Accesorios",
}

ORDER_FIELDS: Dict[str, str] = {
    "problem_description": "Descripción del problema *",
    "estimated_cost": "Costo estimado",
    "advance_payment": "Anticipo",
    "client_notes": "Notas del cliente",
}


def callback(*parts: str) -> str:
    return ":".join((CALLBACK_PREFIX,) + tuple(str(p) for p in parts))


def _navigation_row(can_go_back: bool, next_text: str = "Continuar ➡️") -> List[InlineKeyboardButton]:
    row = []
    if can_go_back:
        row.append(InlineKeyboardButton(text="⬅️ Atrás", callback_data=callback("back")))
    row.append(InlineKeyboardButton(text=next_text, callback_data=callback("next")))
    return row


def _cancel_row() -> List[InlineKeyboardButton]:
    return [InlineKeyboardButton(text="❌ Cancelar", callback_data=callback("cancel"))]


def _mark(selected: bool, text: str) -> str:
    return f"✅ {text}" if selected else text


def get_client_type_keyboard(state: WizardState) -> InlineKeyboardMarkup:
    """Выбор: существующий или новый клиент"""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(
            text=_mark(state.client_mode == BranchMode.EXISTING, "👥 Cliente existente"),
            callback_data=callback("client_mode", BranchMode.EXISTING.value)
        )],
        [InlineKeyboardButton(
            text=_mark(state.client_mode == BranchMode.NEW, "➕ Cliente nuevo"),
            callback_data=callback("client_mode", BranchMode.NEW.value)
        )],
        _navigation_row(can_go_back=False),
        _cancel_row(),
    ])


def get_client_selection_keyboard(state: WizardState) -> InlineKeyboardMarkup:
    """Найденные клиенты и повторный поиск"""
    rows = []
    for client in state.client_candidates:
        selected = state.selected_client is not None and state.selected_client.id == client.id
        rows.append([InlineKeyboardButton(
            text=_mark(selected, f"{client.full_name} · {client.email}"),
            callback_data=callback("client", client.id)
        )])
    rows.append([InlineKeyboardButton(text="🔍 Buscar cliente", callback_data=callback("search"))])
    rows.append(_navigation_row(can_go_back=True))
    rows.append(_cancel_row())
    return InlineKeyboardMarkup(inline_keyboard=rows)


def get_equipment_type_keyboard(state: WizardState) -> InlineKeyboardMarkup:
    """Выбор: существующее или новое оборудование. 'Существующее' - только при наличии оборудования."""
    rows = []
    if state.equipment_candidates:
        rows.append([InlineKeyboardButton(
            text=_mark(state.equipment_mode == BranchMode.EXISTING, "💻 Equipo registrado"),
            callback_data=callback("equipment_mode", BranchMode.EXISTING.value)
        )])
    rows.append([InlineKeyboardButton(
        text=_mark(state.equipment_mode == BranchMode.NEW, "➕ Equipo nuevo"),
        callback_data=callback("equipment_mode", BranchMode.NEW.value)
    )])
    rows.append(_navigation_row(can_go_back=True))
    rows.append(_cancel_row())
    return InlineKeyboardMarkup(inline_keyboard=rows)


def get_equipment_selection_keyboard(state: WizardState) -> InlineKeyboardMarkup:
    rows = []
    for equipment in state.equipment_candidates:
        selected = state.selected_equipment is not None and state.selected_equipment.id == equipment.id
        label = equipment.get_display_name()
        if equipment.serial_number:
            label += f" ({equipment.serial_number})"
        rows.append([InlineKeyboardButton(text=_mark(selected, label), callback_data=callback("equipment", equipment.id))])
    rows.append(_navigation_row(can_go_back=True))
    rows.append(_cancel_row())
    return InlineKeyboardMarkup(inline_keyboard=rows)


def _field_rows(fields: Dict[str, str]) -> List[List[InlineKeyboardButton]]:
    return [
        [InlineKeyboardButton(text=f"✏️ {label}", callback_data=callback("field", name))]
        for name, label in fields.items()
    ]


def get_new_client_keyboard(state: WizardState) -> InlineKeyboardMarkup:
    rows = _field_rows(CLIENT_FIELDS)
    rows.append(_navigation_row(can_go_back=True))
    rows.append(_cancel_row())
    return InlineKeyboardMarkup(inline_keyboard=rows)


def get_new_equipment_keyboard(state: WizardState) -> InlineKeyboardMarkup:
    category_row = [
        InlineKeyboardButton(
            text=_mark(state.equipment_draft.equipment_type == category.value, category.value),
            callback_data=callback("category", category.value)
        )
        for category in EquipmentCategory
    ]
    rows = [category_row] + _field_rows(EQUIPMENT_FIELDS)
    rows.append(_navigation_row(can_go_back=True))
    rows.append(_cancel_row())
    return InlineKeyboardMarkup(inline_keyboard=rows)


def get_order_details_keyboard(state: WizardState) -> InlineKeyboardMarkup:
    priority_row = [
        InlineKeyboardButton(
            text=_mark(state.order_draft.priority == priority, priority.label),
            callback_data=callback("priority", priority.value)
        )
        for priority in OrderPriority
    ]
    rows = [priority_row] + _field_rows(ORDER_FIELDS)
    rows.append(_navigation_row(can_go_back=True))
    rows.append(_cancel_row())
    return InlineKeyboardMarkup(inline_keyboard=rows)


def get_technician_keyboard(state: WizardState) -> InlineKeyboardMarkup:
    rows = [[InlineKeyboardButton(
        text=_mark(state.technician_id is None, UNASSIGNED_TECHNICIAN_LABEL),
        callback_data=callback("technician", "none")
    )]]
    for technician in state.technicians:
        rows.append([InlineKeyboardButton(
            text=_mark(state.technician_id == technician.id, technician.full_name),
            callback_data=callback("technician", technician.id)
        )])
    rows.append(_navigation_row(can_go_back=True, next_text="✅ Crear orden"))
    rows.append(_cancel_row())
    return InlineKeyboardMarkup(inline_keyboard=rows)


def get_confirmation_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="➕ Nueva orden", callback_data=callback("restart"))],
        [InlineKeyboardButton(text="✔️ Cerrar", callback_data=callback("cancel"))],
    ])


def get_cancel_input_keyboard() -> InlineKeyboardMarkup:
    """Клавиатура во время ввода текста"""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="↩️ Volver", callback_data=callback("show"))],
    ])


def parse_callback(data: Optional[str]) -> List[str]:
    """'ow:client:42' -> ['client', '42']"""
    if not data or not data.startswith(CALLBACK_PREFIX + ":"):
        return []
    return data.split(":", 2)[1:]
