"""
Состояние мастера создания заказа.
Одно неизменяемое значение, которое заменяется целиком при каждом действии оператора.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Tuple

from .repair_shop import (
    ClientRecord,
    EquipmentRecord,
    OrderPriority,
    OrderSummary,
    Technician,
)


class WizardStep(Enum):
    """Шаги мастера"""
    CLIENT_TYPE = "client_type"
    CLIENT_SELECTION = "client_selection"
    NEW_CLIENT = "new_client"
    EQUIPMENT_TYPE = "equipment_type"
    EQUIPMENT_SELECTION = "equipment_selection"
    NEW_EQUIPMENT = "new_equipment"
    ORDER_DETAILS = "order_details"
    TECHNICIAN_ASSIGNMENT = "technician_assignment"
    CONFIRMATION = "confirmation"

    @property
    def title(self) -> str:
        return STEP_TITLES[self]


STEP_TITLES = {
    WizardStep.CLIENT_TYPE: "Tipo de Cliente",
    WizardStep.CLIENT_SELECTION: "Seleccionar Cliente",
    WizardStep.NEW_CLIENT: "Nuevo Cliente",
    WizardStep.EQUIPMENT_TYPE: "Tipo de Equipo",
    WizardStep.EQUIPMENT_SELECTION: "Seleccionar Equipo",
    WizardStep.NEW_EQUIPMENT: "Nuevo Equipo",
    WizardStep.ORDER_DETAILS: "Detalles de la Orden",
    WizardStep.TECHNICIAN_ASSIGNMENT: "Asignar Técnico",
    WizardStep.CONFIRMATION: "Orden Creada",
}


class BranchMode(Enum):
    """Выбор в точке ветвления: существующая запись или новая"""
    EXISTING = "existing"
    NEW = "new"


@dataclass(frozen=True)
class NewClientDraft:
    """Черновик нового клиента (значения как ввел оператор)"""
    full_name: str = ""
    email: str = ""
    phone: str = ""
    company_name: str = ""
    address: str = ""
    city: str = ""


@dataclass(frozen=True)
class NewEquipmentDraft:
    """Черновик нового оборудования"""
    equipment_type: str = ""
    equipment_subtype: str = ""
    brand: str = ""
    model: str = ""
    serial_number: str = ""
    device_condition: str = ""
    accessories: str = ""


@dataclass(frozen=True)
class OrderDraft:
    """Черновик заказа. Суммы хранятся строками до валидации."""
    problem_description: str = ""
    priority: OrderPriority = OrderPriority.MEDIUM
    estimated_cost: str = ""
    advance_payment: str = ""
    client_notes: str = ""


@dataclass(frozen=True)
class WizardState:
    """Полное состояние мастера"""
    step: WizardStep = WizardStep.CLIENT_TYPE

    # Клиент
    client_mode: Optional[BranchMode] = None
    client_query: str = ""
    client_candidates: Tuple[ClientRecord, ...] = ()
    selected_client: Optional[ClientRecord] = None
    client_draft: NewClientDraft = field(default_factory=NewClientDraft)
    resolved_client_id: Optional[str] = None

    # Оборудование
    equipment_mode: Optional[BranchMode] = None
    equipment_candidates: Tuple[EquipmentRecord, ...] = ()
    equipment_loaded: bool = False
    selected_equipment: Optional[EquipmentRecord] = None
    equipment_draft: NewEquipmentDraft = field(default_factory=NewEquipmentDraft)
    resolved_equipment_id: Optional[str] = None

    # Заказ и назначение
    order_draft: OrderDraft = field(default_factory=OrderDraft)
    technicians: Tuple[Technician, ...] = ()
    technician_id: Optional[str] = None

    # Служебное
    errors: Dict[str, str] = field(default_factory=dict)
    search_error: Optional[str] = None
    submission_error: Optional[str] = None
    summary: Optional[OrderSummary] = None

    def evolve(self, **changes) -> "WizardState":
        """Новое состояние с заменой указанных полей"""
        return replace(self, **changes)

    @property
    def is_complete(self) -> bool:
        return self.step == WizardStep.CONFIRMATION

    @property
    def client_id(self) -> Optional[str]:
        """ID клиента для последующих шагов (выбранного или уже созданного)"""
        if self.client_mode == BranchMode.EXISTING and self.selected_client:
            return self.selected_client.id
        if self.client_mode == BranchMode.NEW:
            return self.resolved_client_id
        return None

    @property
    def equipment_id(self) -> Optional[str]:
        if self.equipment_mode == BranchMode.EXISTING and self.selected_equipment:
            return self.selected_equipment.id
        if self.equipment_mode == BranchMode.NEW:
            return self.resolved_equipment_id
        return None

    @property
    def client_name(self) -> str:
        if self.client_mode == BranchMode.EXISTING and self.selected_client:
            return self.selected_client.get_display_name()
        return self.client_draft.full_name.strip()

    @property
    def equipment_name(self) -> str:
        if self.equipment_mode == BranchMode.EXISTING and self.selected_equipment:
            return self.selected_equipment.get_display_name()
        draft = self.equipment_draft
        kind = draft.equipment_subtype.strip() or draft.equipment_type
        return f"{kind} {draft.brand.strip()} {draft.model.strip()}".strip()

    def technician_by_id(self, technician_id: Optional[str]) -> Optional[Technician]:
        if technician_id is None:
            return None
        for technician in self.technicians:
            if technician.id == technician_id:
                return technician
        return None
