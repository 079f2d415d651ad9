"""
Интеграционные тесты хранилища сервисного центра на SQLAlchemy (aiosqlite)
"""
from decimal import Decimal

import pytest
from sqlalchemy import select

from src.domain.entities.order_wizard import BranchMode, WizardStep
from src.domain.entities.repair_shop import EquipmentCategory, OrderPriority
from src.domain.exceptions import GatewayError
from src.domain.interfaces.repair_shop import (
    ClientCreateRequest,
    EquipmentCreateRequest,
    OrderCreateRequest,
)
from src.domain.services.entity_selectors import ClientSelector
from src.domain.services.order_wizard_controller import OrderWizardController
from src.infrastructure.database.models import Client, ServiceOrder, Technician
from src.infrastructure.repositories.repair_shop_repository import SqlAlchemyRepairShopGateway


@pytest.fixture
def repository(session_factory) -> SqlAlchemyRepairShopGateway:
    return SqlAlchemyRepairShopGateway(session_factory)


@pytest.fixture
async def technicians(session_factory):
    async with session_factory() as session:
        session.add_all([
            Technician(full_name="Carlos Ruiz"),
            Technician(full_name="Ana López"),
            Technician(full_name="Baja Temporal", is_active=False),
        ])
        await session.commit()


def _client(name="Juan Pérez", email="juan.perez@example.com", phone="+34 600 111 222") -> ClientCreateRequest:
    return ClientCreateRequest(full_name=name, email=email, phone=phone, city="Madrid")


class TestClients:

    async def test_create_and_search(self, repository):
        client_id = await repository.create_client(_client())

        by_name = await repository.search_clients("perez")
        by_email = await repository.search_clients("JUAN.PEREZ@")
        by_phone = await repository.search_clients("600 111")

        assert [c.id for c in by_name] == [client_id]
        assert [c.id for c in by_email] == [client_id]
        assert [c.id for c in by_phone] == [client_id]

    async def test_search_limit_and_order(self, repository):
        for name in ["Zoe Prueba", "Ana Prueba", "Luis Prueba"]:
            await repository.create_client(_client(name, f"{name.split()[0].lower()}@example.com", None))

        found = await repository.search_clients("prueba", limit=2)
        assert [c.full_name for c in found] == ["Ana Prueba", "Luis Prueba"]

    async def test_search_escapes_wildcards(self, repository):
        await repository.create_client(_client())
        assert await repository.search_clients("%") == []
        assert await repository.search_clients("   ") == []

    async def test_duplicate_email(self, repository):
        await repository.create_client(_client())
        with pytest.raises(GatewayError, match="Ya existe un cliente"):
            await repository.create_client(_client(name="Otro Juan", email="JUAN.PEREZ@example.com"))

    async def test_client_details_stored(self, repository, session_factory):
        client_id = await repository.create_client(_client())
        async with session_factory() as session:
            client = await session.get(Client, client_id)
        assert client.city == "Madrid"
        assert "juan perez" in client.search_key


class TestEquipmentAndOrders:

    async def test_equipment_for_client(self, repository):
        owner_id = await repository.create_client(_client())
        other_id = await repository.create_client(_client("María García", "maria@example.com", None))
        await repository.create_equipment(
            EquipmentCreateRequest(equipment_type=EquipmentCategory.LAPTOP, brand="HP", model="Pavilion 15"),
            owner_id
        )

        equipment = await repository.list_equipment_for_client(owner_id)
        assert [e.get_display_name() for e in equipment] == ["Laptop HP Pavilion 15"]
        assert await repository.list_equipment_for_client(other_id) == []

    async def test_equipment_for_unknown_owner(self, repository):
        with pytest.raises(GatewayError, match="Cliente no encontrado"):
            await repository.create_equipment(
                EquipmentCreateRequest(equipment_type=EquipmentCategory.PC, brand="Dell", model="OptiPlex"),
                "missing"
            )

    async def test_create_order(self, repository, session_factory):
        client_id = await repository.create_client(_client())
        equipment_id = await repository.create_equipment(
            EquipmentCreateRequest(equipment_type=EquipmentCategory.SERVER, brand="Dell", model="PowerEdge"),
            client_id
        )

        created = await repository.create_order(OrderCreateRequest(
            order_number="ORD-123456",
            client_id=client_id,
            equipment_id=equipment_id,
            problem_description="No arranca el RAID",
            priority=OrderPriority.URGENT,
            estimated_cost=Decimal("300.00"),
            advance_payment=Decimal("100.00"),
        ))

        async with session_factory() as session:
            order = await session.get(ServiceOrder, created.id)
        assert created.order_number == "ORD-123456"
        assert order.status == "received"
        assert order.priority == "urgent"
        assert order.technician_id is None

    async def test_active_technicians_sorted(self, repository, technicians):
        found = await repository.list_active_technicians()
        assert [t.full_name for t in found] == ["Ana López", "Carlos Ruiz"]


class TestWizardOnDatabase:
    """Мастер целиком поверх настоящего хранилища"""

    async def test_new_client_order(self, repository, technicians, session_factory):
        controller = OrderWizardController(
            repository,
            client_selector=ClientSelector(repository, debounce_seconds=0)
        )
        await controller.open()

        controller.choose_client_mode(BranchMode.NEW)
        await controller.advance()
        controller.update_client_draft(full_name="Pedro Gómez", email="pedro@example.com", phone="600 222 333")
        await controller.advance()
        controller.choose_equipment_mode(BranchMode.NEW)
        await controller.advance()
        controller.update_equipment_draft(equipment_type="PC", brand="Lenovo", model="ThinkCentre")
        await controller.advance()
        controller.update_order_draft(problem_description="Hace ruido el ventilador", priority="low")
        await controller.advance()
        controller.assign_technician(controller.state.technicians[0].id)
        state = await controller.advance()

        assert state.step == WizardStep.CONFIRMATION
        assert state.summary.technician_name == "Ana López"
        assert state.summary.priority_label == "Baja"

        async with session_factory() as session:
            orders = (await session.execute(select(ServiceOrder))).scalars().all()
        assert len(orders) == 1
        assert orders[0].client_id == state.resolved_client_id
        assert orders[0].equipment_id == state.resolved_equipment_id
