"""
Протоколы и интерфейсы хранилища сервисного центра.
Мастер создания заказа работает только через эти вызовы; каждый вызов
либо успешен, либо бросает GatewayError. Транзакций между вызовами нет.
"""
from decimal import Decimal
from typing import List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from ..entities.repair_shop import (
    ClientRecord,
    CreatedOrder,
    EquipmentCategory,
    EquipmentRecord,
    OrderPriority,
    Technician,
    EQUIPMENT_STATUS_ACTIVE,
    ORDER_STATUS_RECEIVED,
)


class ClientCreateRequest(BaseModel):
    """Данные для создания клиента"""
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    company_name: Optional[str] = Field(None, max_length=300)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=255)


class EquipmentCreateRequest(BaseModel):
    """Данные для создания оборудования"""
    model_config = ConfigDict(str_strip_whitespace=True)

    equipment_type: EquipmentCategory
    brand: str = Field(min_length=1, max_length=255)
    model: str = Field(min_length=1, max_length=255)
    serial_number: Optional[str] = Field(None, max_length=255)
    equipment_subtype: Optional[str] = Field(None, max_length=255)
    status: str = EQUIPMENT_STATUS_ACTIVE


class OrderCreateRequest(BaseModel):
    """Данные для создания заказа"""
    model_config = ConfigDict(str_strip_whitespace=True)

    order_number: str
    client_id: str
    equipment_id: str
    technician_id: Optional[str] = None
    device_condition: str = ""
    accessories: str = ""
    problem_description: str
    priority: OrderPriority = OrderPriority.MEDIUM
    estimated_cost: Optional[Decimal] = None
    advance_payment: Decimal = Decimal("0")
    client_notes: str = ""
    status: str = ORDER_STATUS_RECEIVED


class RepairShopGateway(Protocol):
    """
    Удаленное хранилище клиентов, оборудования, техников и заказов.
    Общее для всего приложения; блокировок записей не предоставляет.
    """

    async def list_active_technicians(self) -> List[Technician]:
        """
        Список активных техников, отсортированный по имени.

        Raises:
            GatewayError: при ошибке хранилища
        """
        ...

    async def search_clients(self, query: str, limit: int = 10) -> List[ClientRecord]:
        """
        Поиск клиентов по имени, email или телефону
        без учета регистра и диакритических знаков.

        Args:
            query: Поисковая строка
            limit: Максимальное количество результатов
        """
        ...

    async def list_equipment_for_client(self, client_id: str) -> List[EquipmentRecord]:
        """Активное оборудование клиента"""
        ...

    async def create_client(self, fields: ClientCreateRequest) -> str:
        """
        Создание клиента.

        Returns:
            ID созданного клиента

        Raises:
            GatewayError: сообщение хранилища показывается оператору как есть
        """
        ...

    async def create_equipment(self, fields: EquipmentCreateRequest, owner_id: str) -> str:
        """Создание оборудования, привязанного к клиенту owner_id. Возвращает ID."""
        ...

    async def create_order(self, fields: OrderCreateRequest) -> CreatedOrder:
        """Создание заказа"""
        ...
