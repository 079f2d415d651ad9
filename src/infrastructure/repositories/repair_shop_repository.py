"""
Хранилище сервисного центра поверх SQLAlchemy.
Каждый вызов - отдельная сессия и отдельный commit: мастер не рассчитывает
на транзакции между вызовами.
"""
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from src.domain.entities.repair_shop import (
    ClientRecord,
    CreatedOrder,
    EquipmentRecord,
    Technician,
    EQUIPMENT_STATUS_ACTIVE,
)
from src.domain.exceptions import GatewayError
from src.domain.interfaces.repair_shop import (
    ClientCreateRequest,
    EquipmentCreateRequest,
    OrderCreateRequest,
)
from src.infrastructure.database.models import (
    Client as ClientModel,
    Equipment as EquipmentModel,
    ServiceOrder as ServiceOrderModel,
    Technician as TechnicianModel,
)
from src.infrastructure.utils.text_utils import build_search_key, normalize_search_text


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlAlchemyRepairShopGateway:
    """Реализация RepairShopGateway на async SQLAlchemy"""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self.session_factory = session_factory
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def list_active_technicians(self) -> List[Technician]:
        """Активные техники по алфавиту"""
        try:
            async with self.session_factory() as session:
                query = select(TechnicianModel).where(
                    TechnicianModel.is_active.is_(True)
                ).order_by(TechnicianModel.full_name)
                result = await session.execute(query)
                return [
                    Technician(id=row.id, full_name=row.full_name, email=row.email)
                    for row in result.scalars().all()
                ]
        except SQLAlchemyError as e:
            self._logger.error(f"Ошибка получения техников: {e}")
            raise GatewayError("Error al cargar la lista de técnicos") from e

    async def search_clients(self, query: str, limit: int = 10) -> List[ClientRecord]:
        """Поиск клиентов по нормализованному ключу (имя, email, телефон)"""
        normalized = normalize_search_text(query)
        if not normalized:
            return []

        try:
            async with self.session_factory() as session:
                statement = select(ClientModel).where(
                    ClientModel.is_active.is_(True),
                    ClientModel.search_key.like(f"%{_escape_like(normalized)}%", escape="\\")
                ).order_by(ClientModel.full_name).limit(limit)
                result = await session.execute(statement)
                return [self._client_to_entity(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            self._logger.error(f"Ошибка поиска клиентов: {e}")
            raise GatewayError("Error al buscar clientes") from e

    async def list_equipment_for_client(self, client_id: str) -> List[EquipmentRecord]:
        """Активное оборудование клиента"""
        try:
            async with self.session_factory() as session:
                statement = select(EquipmentModel).where(
                    EquipmentModel.owner_id == client_id,
                    EquipmentModel.status == EQUIPMENT_STATUS_ACTIVE
                ).order_by(EquipmentModel.created_at)
                result = await session.execute(statement)
                return [self._equipment_to_entity(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            self._logger.error(f"Ошибка загрузки оборудования клиента {client_id}: {e}")
            raise GatewayError("Error al cargar equipos del cliente") from e

    async def create_client(self, fields: ClientCreateRequest) -> str:
        """
        Создание клиента.

        Raises:
            GatewayError: если email уже занят или БД недоступна
        """
        async with self.session_factory() as session:
            try:
                existing = await session.execute(
                    select(ClientModel.id).where(ClientModel.email == fields.email.lower())
                )
                if existing.scalar_one_or_none() is not None:
                    raise GatewayError("Ya existe un cliente con este correo electrónico", code="duplicate_email")

                client = ClientModel(
                    full_name=fields.full_name,
                    email=fields.email.lower(),
                    phone=fields.phone,
                    company_name=fields.company_name,
                    address=fields.address,
                    city=fields.city,
                    search_key=build_search_key([fields.full_name, fields.email, fields.phone])
                )
                session.add(client)
                await session.commit()
                return client.id
            except SQLAlchemyError as e:
                await session.rollback()
                self._logger.error(f"Ошибка создания клиента: {e}")
                raise GatewayError(f"Error al crear el cliente: {e}") from e

    async def create_equipment(self, fields: EquipmentCreateRequest, owner_id: str) -> str:
        """Создание оборудования клиента owner_id"""
        async with self.session_factory() as session:
            try:
                owner = await session.get(ClientModel, owner_id)
                if owner is None:
                    raise GatewayError("Cliente no encontrado", code="owner_not_found")

                equipment = EquipmentModel(
                    owner_id=owner_id,
                    equipment_type=fields.equipment_type.value,
                    equipment_subtype=fields.equipment_subtype,
                    brand=fields.brand,
                    model=fields.model,
                    serial_number=fields.serial_number,
                    status=fields.status
                )
                session.add(equipment)
                await session.commit()
                return equipment.id
            except SQLAlchemyError as e:
                await session.rollback()
                self._logger.error(f"Ошибка создания оборудования: {e}")
                raise GatewayError(f"Error al registrar el equipo: {e}") from e

    async def create_order(self, fields: OrderCreateRequest) -> CreatedOrder:
        """Создание заказа в статусе 'received'"""
        async with self.session_factory() as session:
            try:
                order = ServiceOrderModel(
                    order_number=fields.order_number,
                    client_id=fields.client_id,
                    equipment_id=fields.equipment_id,
                    technician_id=fields.technician_id,
                    device_condition=fields.device_condition,
                    accessories=fields.accessories,
                    problem_description=fields.problem_description,
                    priority=fields.priority.value,
                    estimated_cost=fields.estimated_cost,
                    advance_payment=fields.advance_payment,
                    client_notes=fields.client_notes,
                    status=fields.status
                )
                session.add(order)
                await session.commit()
                return CreatedOrder(id=order.id, order_number=order.order_number)
            except SQLAlchemyError as e:
                await session.rollback()
                self._logger.error(f"Ошибка создания заказа: {e}")
                raise GatewayError(f"Error al crear la orden: {e}") from e

    @staticmethod
    def _client_to_entity(model: ClientModel) -> ClientRecord:
        """Конвертация модели БД в domain сущность"""
        return ClientRecord(
            id=model.id,
            full_name=model.full_name,
            email=model.email,
            phone=model.phone,
            company_name=model.company_name
        )

    @staticmethod
    def _equipment_to_entity(model: EquipmentModel) -> EquipmentRecord:
        return EquipmentRecord(
            id=model.id,
            category=model.equipment_type,
            brand=model.brand,
            model=model.model,
            serial_number=model.serial_number,
            status=model.status,
            subtype=model.equipment_subtype
        )
