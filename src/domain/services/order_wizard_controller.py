"""
Контроллер мастера создания заказа.
Владеет состоянием, связывает валидацию с навигацией и запускает оформление заказа.
Удаленные операции одного мастера не выполняются одновременно; ответы,
пришедшие после закрытия мастера, отбрасываются.
"""
import logging
from typing import Awaitable, Callable, Optional

from src.domain.entities.order_wizard import BranchMode, WizardState, WizardStep
from src.domain.entities.repair_shop import OrderSummary
from src.domain.exceptions import (
    GatewayError,
    InvalidTransition,
    SearchFailure,
    SubmissionError,
    WizardBusy,
)
from src.domain.interfaces.repair_shop import RepairShopGateway
from src.domain.services import entity_selectors, order_wizard_forms
from src.domain.services.entity_selectors import ClientSelector, EquipmentSelector
from src.domain.services.order_submission import OrderSubmissionService
from src.domain.services.order_wizard_navigation import (
    has_prev_step,
    is_submit_step,
    next_step,
    prev_step,
)
from src.domain.services.order_wizard_validation import validate
from src.infrastructure.logging.hybrid_logger import hybrid_logger


OrderCreatedCallback = Callable[[OrderSummary], Awaitable[None]]

STEP_INPUT_ERROR_KEY = "step"
STEP_INPUT_ERROR = "Esta opción ya no está disponible en este paso"


class OrderWizardController:
    """Мастер создания заказа для одного оператора"""

    def __init__(
        self,
        gateway: RepairShopGateway,
        client_selector: Optional[ClientSelector] = None,
        equipment_selector: Optional[EquipmentSelector] = None,
        submission_service: Optional[OrderSubmissionService] = None,
        on_order_created: Optional[OrderCreatedCallback] = None
    ) -> None:
        self.gateway = gateway
        self.client_selector = client_selector or ClientSelector(gateway)
        self.equipment_selector = equipment_selector or EquipmentSelector(gateway)
        self.submission_service = submission_service or OrderSubmissionService(gateway)
        self.on_order_created = on_order_created

        self.state = WizardState()
        self.last_error: Optional[SubmissionError] = None

        self._generation = 0
        self._advancing = False
        self._searches_in_flight = 0
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def busy(self) -> bool:
        return self._advancing or self._searches_in_flight > 0

    # --- Жизненный цикл ---

    async def open(self) -> WizardState:
        """Открытие мастера: загрузка списка активных техников"""
        generation = self._generation
        try:
            technicians = await self.gateway.list_active_technicians()
        except GatewayError as e:
            await hybrid_logger.error(f"Ошибка загрузки техников: {e.message}")
            if generation == self._generation:
                self.state = self.state.evolve(
                    technicians=(),
                    search_error="Error al cargar la lista de técnicos"
                )
            return self.state

        if generation == self._generation:
            self.state = self.state.evolve(technicians=tuple(technicians))
        return self.state

    def close(self) -> WizardState:
        """Закрытие мастера: состояние сбрасывается, запросы в полете игнорируются"""
        self._generation += 1
        self._advancing = False
        self._searches_in_flight = 0
        self.client_selector.invalidate()
        self.equipment_selector.invalidate()
        self.last_error = None
        self.state = WizardState()
        return self.state

    # --- Ввод данных ---

    def _accepts_input_on(self, step: WizardStep) -> bool:
        """
        Ввод принимается только на шаге, которому он принадлежит.
        Нажатие на устаревшей клавиатуре не меняет данные - появляется только ошибка.
        """
        if self.state.step == step:
            return True
        self._logger.info(f"Ввод для шага '{step.value}' отклонен на шаге '{self.state.step.value}'")
        self.state = self.state.evolve(errors={STEP_INPUT_ERROR_KEY: STEP_INPUT_ERROR})
        return False

    def choose_client_mode(self, mode: BranchMode) -> WizardState:
        if self._accepts_input_on(WizardStep.CLIENT_TYPE):
            self.state = entity_selectors.choose_client_mode(self.state, mode)
        return self.state

    def choose_equipment_mode(self, mode: BranchMode) -> WizardState:
        if self._accepts_input_on(WizardStep.EQUIPMENT_TYPE):
            self.state = entity_selectors.choose_equipment_mode(self.state, mode)
        return self.state

    async def search_clients(self, query: str) -> WizardState:
        """
        Поиск клиентов.
        Несколько поисков могут идти одновременно - применяется только последний.

        Raises:
            WizardBusy: во время перехода или оформления заказа
        """
        if self._advancing:
            raise WizardBusy("Дождитесь завершения текущей операции")
        if not self._accepts_input_on(WizardStep.CLIENT_SELECTION):
            return self.state

        generation = self._generation
        self._searches_in_flight += 1
        try:
            outcome = await self.client_selector.search(query)
        except SearchFailure as e:
            if generation == self._generation:
                self.state = entity_selectors.apply_search_failure(self.state, "Error al buscar clientes")
                await hybrid_logger.warning(f"Поиск клиентов не удался: {e.message}")
            return self.state
        finally:
            if generation == self._generation:
                self._searches_in_flight -= 1

        if generation != self._generation or outcome.stale:
            return self.state
        if self.state.step != WizardStep.CLIENT_SELECTION:
            # Оператор ушел с шага поиска, пока шел запрос
            return self.state

        self.state = entity_selectors.apply_client_search(self.state, outcome)
        return self.state

    def select_client(self, client_id: str) -> WizardState:
        if not self._accepts_input_on(WizardStep.CLIENT_SELECTION):
            return self.state
        client = entity_selectors.find_candidate(self.state.client_candidates, str(client_id))
        if client is None:
            self.state = self.state.evolve(errors={"client_selection": "Debes seleccionar un cliente para continuar"})
        else:
            self.state = entity_selectors.select_client(self.state, client)
        return self.state

    def select_equipment(self, equipment_id: str) -> WizardState:
        if not self._accepts_input_on(WizardStep.EQUIPMENT_SELECTION):
            return self.state
        equipment = entity_selectors.find_candidate(self.state.equipment_candidates, str(equipment_id))
        if equipment is None:
            self.state = self.state.evolve(errors={"equipment_selection": "Debes seleccionar un equipo para continuar"})
        else:
            self.state = entity_selectors.select_equipment(self.state, equipment)
        return self.state

    def update_client_draft(self, **fields) -> WizardState:
        if self._accepts_input_on(WizardStep.NEW_CLIENT):
            self.state = order_wizard_forms.update_client_draft(self.state, **fields)
        return self.state

    def update_equipment_draft(self, **fields) -> WizardState:
        if self._accepts_input_on(WizardStep.NEW_EQUIPMENT):
            self.state = order_wizard_forms.update_equipment_draft(self.state, **fields)
        return self.state

    def update_order_draft(self, **fields) -> WizardState:
        if self._accepts_input_on(WizardStep.ORDER_DETAILS):
            self.state = order_wizard_forms.update_order_draft(self.state, **fields)
        return self.state

    def assign_technician(self, technician_id: Optional[str]) -> WizardState:
        if self._accepts_input_on(WizardStep.TECHNICIAN_ASSIGNMENT):
            self.state = order_wizard_forms.assign_technician(self.state, technician_id)
        return self.state

    # --- Навигация ---

    async def advance(self) -> WizardState:
        """
        Переход вперед.
        При ошибках валидации шаг не меняется; на последнем шаге оформляется заказ.

        Raises:
            WizardBusy: если уже выполняется удаленная операция
            InvalidTransition: при невозможной комбинации веток
        """
        if self.busy:
            raise WizardBusy("Дождитесь завершения текущей операции")

        current = self.state.step
        if current == WizardStep.CONFIRMATION:
            raise InvalidTransition("Заказ уже оформлен, мастер нужно закрыть")

        errors = validate(current, self.state)
        if errors:
            self.state = self.state.evolve(errors=errors)
            return self.state

        self._advancing = True
        generation = self._generation
        try:
            if is_submit_step(current):
                await self._submit(generation)
                return self.state

            target = next_step(current, self.state)
            self.state = self.state.evolve(step=target, errors={}, submission_error=None)

            if target == WizardStep.EQUIPMENT_TYPE:
                await self._load_equipment(generation)
            return self.state
        finally:
            if generation == self._generation:
                self._advancing = False

    def retreat(self) -> WizardState:
        """
        Переход назад без валидации; ошибки покидаемого шага очищаются.

        Raises:
            WizardBusy: во время оформления заказа
            InvalidTransition: с экрана подтверждения
        """
        if self._advancing:
            raise WizardBusy("Дождитесь завершения текущей операции")

        current = self.state.step
        if current == WizardStep.CLIENT_TYPE:
            self.state = self.state.evolve(errors={})
            return self.state
        if not has_prev_step(current):
            raise InvalidTransition(f"С шага '{current.value}' нельзя вернуться")

        self.state = self.state.evolve(step=prev_step(current, self.state), errors={})
        return self.state

    async def _load_equipment(self, generation: int) -> None:
        client_id = self.state.client_id
        if client_id is None:
            # Новый клиент еще не создан - оборудования у него нет
            self.state = self.state.evolve(equipment_candidates=(), equipment_loaded=True)
            return

        try:
            outcome = await self.equipment_selector.load(client_id)
        except SearchFailure as e:
            if generation == self._generation:
                self.state = entity_selectors.apply_equipment_failure(self.state, "Error al cargar equipos del cliente")
                await hybrid_logger.warning(f"Загрузка оборудования не удалась: {e.message}")
            return

        if generation != self._generation or outcome.stale:
            return
        self.state = entity_selectors.apply_equipment_listing(self.state, client_id, outcome)

    async def _submit(self, generation: int) -> None:
        result = await self.submission_service.submit(self.state)

        if generation != self._generation:
            self._logger.info("Мастер закрыт до завершения оформления - результат отброшен")
            return

        self.state = result.state
        self.last_error = result.error
        if result.error is not None:
            return

        if self.on_order_created is not None and result.state.summary is not None:
            try:
                await self.on_order_created(result.state.summary)
            except Exception as e:
                # Заказ уже создан - ошибка уведомления на него не влияет
                await hybrid_logger.error(f"Ошибка обработчика создания заказа: {e}")
