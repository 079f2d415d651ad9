"""
Выбор существующих клиентов и оборудования.
Селекторы выполняют удаленное чтение и отбрасывают устаревшие ответы;
функции apply_*/select_* переводят состояние мастера в новое значение.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from src.domain.entities.order_wizard import (
    BranchMode,
    NewClientDraft,
    NewEquipmentDraft,
    WizardState,
)
from src.domain.entities.repair_shop import ClientRecord, EquipmentRecord
from src.domain.exceptions import GatewayError, SearchFailure
from src.domain.interfaces.repair_shop import RepairShopGateway


@dataclass(frozen=True)
class SearchOutcome:
    """Результат запроса кандидатов"""
    sequence: int
    query: str
    candidates: Tuple = ()
    stale: bool = False


class _SequencedLoader:
    """Нумерация запросов: применяется только ответ на последний выданный запрос"""

    def __init__(self) -> None:
        self._sequence = 0

    def _issue(self) -> int:
        self._sequence += 1
        return self._sequence

    def _is_stale(self, sequence: int) -> bool:
        return sequence != self._sequence

    def invalidate(self) -> None:
        """Сделать устаревшими все запросы в полете"""
        self._sequence += 1


class ClientSelector(_SequencedLoader):
    """Поиск клиентов с задержкой ввода и ограничением количества результатов"""

    def __init__(
        self,
        gateway: RepairShopGateway,
        limit: int = 10,
        debounce_seconds: float = 0.3
    ) -> None:
        super().__init__()
        self.gateway = gateway
        self.limit = limit
        self.debounce_seconds = debounce_seconds
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def search(self, query: str) -> SearchOutcome:
        """
        Поиск клиентов по строке.

        Args:
            query: Строка поиска (имя, email или телефон)

        Returns:
            SearchOutcome; stale=True, если за время запроса был выдан более новый

        Raises:
            SearchFailure: если чтение не удалось (и запрос еще актуален)
        """
        sequence = self._issue()
        normalized_query = query.strip()

        if not normalized_query:
            return SearchOutcome(sequence=sequence, query=normalized_query)

        if self.debounce_seconds > 0:
            await asyncio.sleep(self.debounce_seconds)
            if self._is_stale(sequence):
                # Оператор продолжил ввод - удаленный запрос не нужен
                return SearchOutcome(sequence=sequence, query=normalized_query, stale=True)

        try:
            found = await self.gateway.search_clients(normalized_query, self.limit)
        except GatewayError as e:
            if self._is_stale(sequence):
                return SearchOutcome(sequence=sequence, query=normalized_query, stale=True)
            self._logger.warning(f"Ошибка поиска клиентов '{normalized_query}': {e.message}")
            raise SearchFailure(e.message) from e

        if self._is_stale(sequence):
            self._logger.debug(f"Отброшен устаревший ответ поиска #{sequence}")
            return SearchOutcome(sequence=sequence, query=normalized_query, stale=True)

        return SearchOutcome(
            sequence=sequence,
            query=normalized_query,
            candidates=tuple(found[:self.limit])
        )


class EquipmentSelector(_SequencedLoader):
    """Список оборудования выбранного клиента"""

    def __init__(self, gateway: RepairShopGateway) -> None:
        super().__init__()
        self.gateway = gateway
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def load(self, client_id: str) -> SearchOutcome:
        """
        Загрузка оборудования клиента.

        Raises:
            SearchFailure: если чтение не удалось (и запрос еще актуален)
        """
        sequence = self._issue()
        try:
            found = await self.gateway.list_equipment_for_client(client_id)
        except GatewayError as e:
            if self._is_stale(sequence):
                return SearchOutcome(sequence=sequence, query=client_id, stale=True)
            self._logger.warning(f"Ошибка загрузки оборудования клиента {client_id}: {e.message}")
            raise SearchFailure(e.message) from e

        return SearchOutcome(
            sequence=sequence,
            query=client_id,
            candidates=tuple(found),
            stale=self._is_stale(sequence)
        )


def _reset_equipment(state: WizardState) -> WizardState:
    """Оборудование привязано к клиенту: при смене клиента выбор оборудования сбрасывается"""
    return state.evolve(
        equipment_mode=None,
        equipment_candidates=(),
        equipment_loaded=False,
        selected_equipment=None,
        resolved_equipment_id=None,
    )


def choose_client_mode(state: WizardState, mode: BranchMode) -> WizardState:
    """Выбор ветки клиента; смена ветки очищает данные другой ветки"""
    if state.client_mode == mode:
        return state.evolve(errors={})

    if mode == BranchMode.EXISTING:
        state = state.evolve(client_draft=NewClientDraft(), resolved_client_id=None)
    else:
        state = state.evolve(selected_client=None, client_candidates=(), client_query="")

    return _reset_equipment(state).evolve(client_mode=mode, errors={}, search_error=None)


def choose_equipment_mode(state: WizardState, mode: BranchMode) -> WizardState:
    """
    Выбор ветки оборудования.
    Ветка 'существующее' недоступна, если у клиента нет оборудования.
    """
    if mode == BranchMode.EXISTING and not state.equipment_candidates:
        return state.evolve(errors={
            "equipment_type": "El cliente no tiene equipos registrados, registra un equipo nuevo"
        })

    if state.equipment_mode == mode:
        return state.evolve(errors={})

    if mode == BranchMode.EXISTING:
        state = state.evolve(equipment_draft=NewEquipmentDraft(), resolved_equipment_id=None)
    else:
        state = state.evolve(selected_equipment=None)

    return state.evolve(equipment_mode=mode, errors={})


def apply_client_search(state: WizardState, outcome: SearchOutcome) -> WizardState:
    """Применение результата поиска; выбранный клиент сохраняется, только если он есть в списке"""
    candidates: Tuple[ClientRecord, ...] = tuple(outcome.candidates)
    selected = state.selected_client
    if selected is not None and selected.id not in {c.id for c in candidates}:
        state = _reset_equipment(state.evolve(selected_client=None))
    return state.evolve(client_query=outcome.query, client_candidates=candidates, search_error=None)


def apply_search_failure(state: WizardState, message: str) -> WizardState:
    """Ошибка поиска: пустой список и сообщение, остальные шаги не затрагиваются"""
    return state.evolve(client_candidates=(), selected_client=None, search_error=message)


def apply_equipment_listing(state: WizardState, client_id: str, outcome: SearchOutcome) -> WizardState:
    """Применение списка оборудования, если клиент не сменился за время запроса"""
    if state.client_id != client_id:
        return state

    candidates: Tuple[EquipmentRecord, ...] = tuple(outcome.candidates)
    changes = {"equipment_candidates": candidates, "equipment_loaded": True, "search_error": None}

    selected = state.selected_equipment
    if selected is not None and selected.id not in {e.id for e in candidates}:
        changes["selected_equipment"] = None
    if not candidates and state.equipment_mode == BranchMode.EXISTING:
        changes["equipment_mode"] = None
    return state.evolve(**changes)


def apply_equipment_failure(state: WizardState, message: str) -> WizardState:
    return state.evolve(
        equipment_candidates=(),
        equipment_loaded=False,
        selected_equipment=None,
        search_error=message
    )


def select_client(state: WizardState, client: ClientRecord) -> WizardState:
    """Выбор существующего клиента; черновик нового клиента очищается"""
    if state.selected_client is not None and state.selected_client.id == client.id:
        return state.evolve(errors={})

    state = _reset_equipment(state)
    return state.evolve(
        client_mode=BranchMode.EXISTING,
        selected_client=client,
        client_draft=NewClientDraft(),
        resolved_client_id=None,
        errors={}
    )


def select_equipment(state: WizardState, equipment: EquipmentRecord) -> WizardState:
    """Выбор существующего оборудования; черновик нового оборудования очищается"""
    return state.evolve(
        equipment_mode=BranchMode.EXISTING,
        selected_equipment=equipment,
        equipment_draft=NewEquipmentDraft(),
        resolved_equipment_id=None,
        errors={}
    )


def find_candidate(candidates: Tuple, candidate_id: str) -> Optional[object]:
    """Поиск кандидата по ID в загруженном списке"""
    for candidate in candidates:
        if candidate.id == candidate_id:
            return candidate
    return None
