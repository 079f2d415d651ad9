# Domain entities - dataclasses for business objects
from .repair_shop import (
    ClientRecord, EquipmentRecord, Technician, CreatedOrder, OrderSummary,
    EquipmentCategory, OrderPriority
)
from .order_wizard import (
    WizardStep, BranchMode, WizardState,
    NewClientDraft, NewEquipmentDraft, OrderDraft
)

__all__ = [
    "ClientRecord",
    "EquipmentRecord",
    "Technician",
    "CreatedOrder",
    "OrderSummary",
    "EquipmentCategory",
    "OrderPriority",
    "WizardStep",
    "BranchMode",
    "WizardState",
    "NewClientDraft",
    "NewEquipmentDraft",
    "OrderDraft",
]
