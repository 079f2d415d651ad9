"""
Оформление заказа из мастера.
Последовательно создает клиента, оборудование и заказ; останавливается на первой ошибке.
Хранилище не дает транзакций, поэтому уже созданные записи не откатываются,
а их ID остаются в состоянии и переиспользуются при повторной попытке.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from src.domain.entities.order_wizard import BranchMode, WizardState, WizardStep
from src.domain.entities.repair_shop import (
    CreatedOrder,
    OrderSummary,
    UNASSIGNED_TECHNICIAN_LABEL,
)
from src.domain.exceptions import (
    ClientCreationFailed,
    EquipmentCreationFailed,
    GatewayError,
    InvalidTransition,
    OrderCreationFailed,
    SubmissionError,
)
from src.domain.interfaces.repair_shop import (
    ClientCreateRequest,
    EquipmentCreateRequest,
    OrderCreateRequest,
    RepairShopGateway,
)
from src.domain.services.order_wizard_validation import parse_amount
from src.infrastructure.logging.hybrid_logger import hybrid_logger


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def generate_order_number(now: datetime, prefix: str = "ORD") -> str:
    """
    Номер заказа из текущего времени: префикс и последние 6 цифр миллисекунд эпохи.
    Уникальность не гарантируется.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    millis = (now - _EPOCH) // timedelta(milliseconds=1)
    return f"{prefix}-{str(millis)[-6:]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _optional(value: str) -> Optional[str]:
    value = (value or "").strip()
    return value or None


@dataclass(frozen=True)
class SubmissionResult:
    """Итог попытки оформления: новое состояние и заказ либо ошибка"""
    state: WizardState
    order: Optional[CreatedOrder] = None
    error: Optional[SubmissionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.order is not None


class OrderSubmissionService:
    """Оркестратор создания клиента, оборудования и заказа"""

    def __init__(
        self,
        gateway: RepairShopGateway,
        clock: Callable[[], datetime] = _utcnow,
        order_number_prefix: str = "ORD"
    ) -> None:
        self.gateway = gateway
        self.clock = clock
        self.order_number_prefix = order_number_prefix
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def submit(self, state: WizardState) -> SubmissionResult:
        """
        Оформление заказа.

        Args:
            state: Состояние мастера на шаге назначения техника

        Returns:
            SubmissionResult с состоянием после попытки

        Raises:
            InvalidTransition: если клиент или оборудование не определены (ошибка программиста)
        """
        # 1. Клиент
        if state.client_mode == BranchMode.NEW and state.resolved_client_id is None:
            try:
                client_id = await self.gateway.create_client(self._client_request(state))
            except (GatewayError, ValidationError) as e:
                return await self._fail(state, ClientCreationFailed(self._message(e)), WizardStep.NEW_CLIENT)

            state = state.evolve(resolved_client_id=client_id)
            await hybrid_logger.business(
                "Клиент создан",
                {"client_id": client_id, "has_phone": bool(state.client_draft.phone.strip())}
            )

        client_id = state.client_id
        if client_id is None:
            raise InvalidTransition("Клиент для заказа не определен")

        # 2. Оборудование
        if state.equipment_mode == BranchMode.NEW and state.resolved_equipment_id is None:
            try:
                equipment_id = await self.gateway.create_equipment(self._equipment_request(state), client_id)
            except (GatewayError, ValidationError) as e:
                return await self._fail(state, EquipmentCreationFailed(self._message(e)), WizardStep.NEW_EQUIPMENT)

            state = state.evolve(resolved_equipment_id=equipment_id)
            await hybrid_logger.business(
                "Оборудование создано",
                {"equipment_id": equipment_id, "client_id": client_id}
            )

        equipment_id = state.equipment_id
        if equipment_id is None:
            raise InvalidTransition("Оборудование для заказа не определено")

        # 3. Заказ
        try:
            order = await self.gateway.create_order(self._order_request(state, client_id, equipment_id))
        except (GatewayError, ValidationError) as e:
            return await self._fail(state, OrderCreationFailed(self._message(e)), WizardStep.TECHNICIAN_ASSIGNMENT)

        await hybrid_logger.business(
            "Заказ создан",
            {
                "order_id": order.id,
                "order_number": order.order_number,
                "client_id": client_id,
                "equipment_id": equipment_id,
                "technician_id": state.technician_id,
                "priority": state.order_draft.priority.value
            }
        )

        # 4. Подтверждение
        summary = self._build_summary(state, order)
        final_state = state.evolve(
            step=WizardStep.CONFIRMATION,
            errors={},
            submission_error=None,
            summary=summary
        )
        return SubmissionResult(state=final_state, order=order)

    async def _fail(self, state: WizardState, error: SubmissionError, step: WizardStep) -> SubmissionResult:
        """Ошибка этапа: мастер остается открытым на шаге, где исправляются данные"""
        self._logger.warning(f"Этап '{error.stage}' не выполнен: {error.message}")
        await hybrid_logger.business(
            "Ошибка оформления заказа",
            {
                "stage": error.stage,
                "message": error.message,
                "resolved_client_id": state.resolved_client_id,
                "resolved_equipment_id": state.resolved_equipment_id
            }
        )
        failed_state = state.evolve(step=step, submission_error=error.message)
        return SubmissionResult(state=failed_state, error=error)

    @staticmethod
    def _message(error: Exception) -> str:
        if isinstance(error, GatewayError):
            return error.message
        return str(error)

    def _client_request(self, state: WizardState) -> ClientCreateRequest:
        draft = state.client_draft
        return ClientCreateRequest(
            full_name=draft.full_name,
            email=draft.email,
            phone=_optional(draft.phone),
            company_name=_optional(draft.company_name),
            address=_optional(draft.address),
            city=_optional(draft.city)
        )

    def _equipment_request(self, state: WizardState) -> EquipmentCreateRequest:
        draft = state.equipment_draft
        return EquipmentCreateRequest(
            equipment_type=draft.equipment_type,
            brand=draft.brand,
            model=draft.model,
            serial_number=_optional(draft.serial_number),
            equipment_subtype=_optional(draft.equipment_subtype)
        )

    def _order_request(self, state: WizardState, client_id: str, equipment_id: str) -> OrderCreateRequest:
        draft = state.order_draft
        is_new_equipment = state.equipment_mode == BranchMode.NEW
        advance = parse_amount(draft.advance_payment)
        return OrderCreateRequest(
            order_number=generate_order_number(self.clock(), self.order_number_prefix),
            client_id=client_id,
            equipment_id=equipment_id,
            technician_id=state.technician_id,
            device_condition=state.equipment_draft.device_condition if is_new_equipment else "",
            accessories=state.equipment_draft.accessories if is_new_equipment else "",
            problem_description=draft.problem_description,
            priority=draft.priority,
            estimated_cost=parse_amount(draft.estimated_cost),
            advance_payment=advance if advance is not None else 0,
            client_notes=draft.client_notes
        )

    def _build_summary(self, state: WizardState, order: CreatedOrder) -> OrderSummary:
        technician = state.technician_by_id(state.technician_id)
        return OrderSummary(
            order_id=order.id,
            order_number=order.order_number,
            client_name=state.client_name,
            equipment_name=state.equipment_name,
            technician_name=technician.full_name if technician else UNASSIGNED_TECHNICIAN_LABEL,
            priority=state.order_draft.priority,
            estimated_cost=parse_amount(state.order_draft.estimated_cost)
        )
