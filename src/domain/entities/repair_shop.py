"""
Бизнес-сущности сервисного центра: клиенты, оборудование, техники, заказы.
Чистая бизнес-логика без зависимостей.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class EquipmentCategory(Enum):
    """Категории оборудования (закрытый список)"""
    LAPTOP = "Laptop"
    PC = "PC"
    SERVER = "Server"

    @classmethod
    def values(cls) -> list:
        return [item.value for item in cls]


class OrderPriority(Enum):
    """Приоритет заказа"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def label(self) -> str:
        """Отображаемое название приоритета"""
        return PRIORITY_LABELS[self]


PRIORITY_LABELS = {
    OrderPriority.LOW: "Baja",
    OrderPriority.MEDIUM: "Media",
    OrderPriority.HIGH: "Alta",
    OrderPriority.URGENT: "Urgente",
}

UNASSIGNED_TECHNICIAN_LABEL = "Sin asignar"

ORDER_STATUS_RECEIVED = "received"
EQUIPMENT_STATUS_ACTIVE = "active"


@dataclass(frozen=True)
class ClientRecord:
    """Существующий клиент"""
    id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    company_name: Optional[str] = None

    def get_display_name(self) -> str:
        return self.full_name.strip()


@dataclass(frozen=True)
class EquipmentRecord:
    """Существующее оборудование клиента"""
    id: str
    category: str
    brand: str
    model: str
    serial_number: Optional[str] = None
    status: str = EQUIPMENT_STATUS_ACTIVE
    subtype: Optional[str] = None

    def get_display_name(self) -> str:
        """Название вида 'Laptop HP Pavilion 15'"""
        kind = self.subtype or self.category
        return f"{kind} {self.brand} {self.model}".strip()


@dataclass(frozen=True)
class Technician:
    """Активный техник"""
    id: str
    full_name: str
    email: Optional[str] = None


@dataclass(frozen=True)
class CreatedOrder:
    """Ответ хранилища на создание заказа"""
    id: str
    order_number: str


@dataclass(frozen=True)
class OrderSummary:
    """Сводка по созданному заказу для экрана подтверждения (только чтение)"""
    order_id: str
    order_number: str
    client_name: str
    equipment_name: str
    technician_name: str
    priority: OrderPriority
    estimated_cost: Optional[Decimal] = None

    @property
    def priority_label(self) -> str:
        return self.priority.label

    def to_dict(self) -> dict:
        """Преобразование в словарь для JSON сериализации"""
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "client_name": self.client_name,
            "equipment_name": self.equipment_name,
            "technician_name": self.technician_name,
            "priority": self.priority.value,
            "priority_label": self.priority_label,
            "estimated_cost": str(self.estimated_cost) if self.estimated_cost is not None else None,
        }
