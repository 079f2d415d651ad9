"""
Обработчики мастера создания заказа для приемщиков.
Шаги, ветвление и оформление выполняет OrderWizardController;
здесь - только разбор нажатий, ввод текста и отрисовка шага.
"""
from typing import Dict, List, Tuple

from aiogram import Router, F
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, Message

from src.application.telegram.keyboards.order_wizard_keyboards import (
    CLIENT_FIELDS,
    EQUIPMENT_FIELDS,
    ORDER_FIELDS,
    CALLBACK_PREFIX,
    get_cancel_input_keyboard,
    get_client_selection_keyboard,
    get_client_type_keyboard,
    get_confirmation_keyboard,
    get_equipment_selection_keyboard,
    get_equipment_type_keyboard,
    get_new_client_keyboard,
    get_new_equipment_keyboard,
    get_order_details_keyboard,
    get_technician_keyboard,
    parse_callback,
)
from src.application.telegram.services.order_wizard_sessions import OrderWizardSessions
from src.application.telegram.states.order_wizard_states import OrderWizardStates
from src.domain.entities.order_wizard import BranchMode, WizardState, WizardStep
from src.domain.entities.repair_shop import UNASSIGNED_TECHNICIAN_LABEL
from src.domain.exceptions import InvalidTransition, WizardBusy
from src.domain.services.order_wizard_controller import OrderWizardController
from src.infrastructure.logging.hybrid_logger import hybrid_logger
from src.infrastructure.utils.text_utils import escape_html


GENERIC_ERROR = "Ocurrió un error. Inténtalo de nuevo."
BUSY_MESSAGE = "⏳ Espera a que termine la operación en curso"
CLOSED_MESSAGE = "El asistente ya fue cerrado. Usa /nueva_orden para empezar."

_STEP_FIELDS: Dict[WizardStep, Dict[str, str]] = {
    WizardStep.NEW_CLIENT: CLIENT_FIELDS,
    WizardStep.NEW_EQUIPMENT: EQUIPMENT_FIELDS,
    WizardStep.ORDER_DETAILS: ORDER_FIELDS,
}


def _format_fields(values: Dict[str, str], labels: Dict[str, str]) -> List[str]:
    return [
        f"• {label.rstrip(' *')}: <b>{escape_html(values.get(name)) or '—'}</b>"
        for name, label in labels.items()
    ]


def _step_body(state: WizardState) -> List[str]:
    step = state.step

    if step == WizardStep.CLIENT_TYPE:
        return ["¿El cliente ya está registrado o es un cliente nuevo?"]

    if step == WizardStep.CLIENT_SELECTION:
        lines = ["Busca por nombre, correo electrónico o teléfono."]
        if state.client_query:
            lines.append(f"Búsqueda: <b>{escape_html(state.client_query)}</b>")
            if not state.client_candidates and not state.search_error:
                lines.append("No se encontraron clientes.")
        if state.selected_client:
            lines.append(f"Seleccionado: <b>{escape_html(state.selected_client.full_name)}</b>")
        return lines

    if step == WizardStep.NEW_CLIENT:
        return ["Datos del nuevo cliente:"] + _format_fields(vars(state.client_draft), CLIENT_FIELDS)

    if step == WizardStep.EQUIPMENT_TYPE:
        lines = [f"Cliente: <b>{escape_html(state.client_name)}</b>"]
        if not state.equipment_candidates:
            lines.append("El cliente no tiene equipos registrados; registra un equipo nuevo.")
        else:
            lines.append(f"Equipos registrados: {len(state.equipment_candidates)}")
        return lines

    if step == WizardStep.EQUIPMENT_SELECTION:
        return ["Selecciona el equipo para esta orden:"]

    if step == WizardStep.NEW_EQUIPMENT:
        draft = state.equipment_draft
        lines = [f"Tipo: <b>{escape_html(draft.equipment_type) or '—'}</b>"]
        return ["Datos del nuevo equipo:"] + lines + _format_fields(vars(draft), EQUIPMENT_FIELDS)

    if step == WizardStep.ORDER_DETAILS:
        draft = state.order_draft
        lines = [f"Prioridad: <b>{draft.priority.label}</b>"]
        return ["Detalles de la orden:"] + lines + _format_fields(vars(draft), ORDER_FIELDS)

    if step == WizardStep.TECHNICIAN_ASSIGNMENT:
        technician = state.technician_by_id(state.technician_id)
        name = technician.full_name if technician else UNASSIGNED_TECHNICIAN_LABEL
        return [
            f"Técnico: <b>{escape_html(name)}</b>",
            "Si no asignas un técnico, la orden quedará 'Sin asignar'.",
        ]

    summary = state.summary
    if summary is None:
        return []
    return [
        f"✅ Orden <b>{escape_html(summary.order_number)}</b> creada exitosamente",
        f"👤 Cliente: {escape_html(summary.client_name)}",
        f"💻 Equipo: {escape_html(summary.equipment_name)}",
        f"🔧 Técnico: {escape_html(summary.technician_name)}",
        f"⚡ Prioridad: {summary.priority_label}",
    ]


def render_wizard(state: WizardState) -> Tuple[str, InlineKeyboardMarkup]:
    """Текст и клавиатура текущего шага"""
    lines = [f"<b>{state.step.title}</b>", ""] + _step_body(state)

    if state.search_error:
        lines += ["", f"⚠️ {escape_html(state.search_error)}"]
    if state.submission_error:
        lines += ["", f"⚠️ {escape_html(state.submission_error)}"]
    if state.errors:
        lines.append("")
        lines += [f"❌ {escape_html(message)}" for message in state.errors.values()]

    keyboards = {
        WizardStep.CLIENT_TYPE: get_client_type_keyboard,
        WizardStep.CLIENT_SELECTION: get_client_selection_keyboard,
        WizardStep.NEW_CLIENT: get_new_client_keyboard,
        WizardStep.EQUIPMENT_TYPE: get_equipment_type_keyboard,
        WizardStep.EQUIPMENT_SELECTION: get_equipment_selection_keyboard,
        WizardStep.NEW_EQUIPMENT: get_new_equipment_keyboard,
        WizardStep.ORDER_DETAILS: get_order_details_keyboard,
        WizardStep.TECHNICIAN_ASSIGNMENT: get_technician_keyboard,
    }
    keyboard_builder = keyboards.get(state.step)
    keyboard = keyboard_builder(state) if keyboard_builder else get_confirmation_keyboard()
    return "\n".join(lines), keyboard


class OrderWizardHandlers:
    """Класс обработчиков мастера создания заказа"""

    def __init__(self, sessions: OrderWizardSessions) -> None:
        self.sessions = sessions
        self.router = Router()

        self._register_handlers()

    def _register_handlers(self) -> None:
        """Регистрация всех обработчиков"""
        self.router.message.register(self.cmd_new_order, Command("nueva_orden"))
        self.router.callback_query.register(
            self.handle_wizard_callback,
            F.data.startswith(f"{CALLBACK_PREFIX}:")
        )
        self.router.message.register(
            self.process_client_query,
            OrderWizardStates.waiting_for_client_query
        )
        self.router.message.register(
            self.process_field_input,
            OrderWizardStates.waiting_for_field
        )

    async def cmd_new_order(self, message: Message, state: FSMContext) -> None:
        """Команда /nueva_orden - открыть мастер"""
        try:
            await state.clear()
            controller = await self.sessions.start(message.chat.id)
            text, keyboard = render_wizard(controller.state)
            await message.answer(text, reply_markup=keyboard)
        except Exception as e:
            await hybrid_logger.error(f"Ошибка в cmd_new_order: {e}")
            await message.answer(GENERIC_ERROR)

    async def handle_wizard_callback(self, callback: CallbackQuery, state: FSMContext) -> None:
        """Нажатия кнопок мастера"""
        chat_id = callback.message.chat.id
        parts = parse_callback(callback.data)
        action = parts[0] if parts else ""
        value = parts[1] if len(parts) > 1 else ""

        try:
            if action == "restart":
                await state.clear()
                controller = await self.sessions.start(chat_id)
                await self._show(callback, controller)
                return

            if action == "cancel":
                self.sessions.close(chat_id)
                await state.clear()
                await callback.message.edit_text("Asistente cerrado.", reply_markup=None)
                await callback.answer()
                return

            controller = self.sessions.get(chat_id)
            if controller is None:
                await callback.answer(CLOSED_MESSAGE, show_alert=True)
                return

            if action in ("search", "field"):
                await self._ask_for_text(callback, state, controller, action, value)
                return

            await state.clear()
            await self._apply_action(controller, action, value)

            if controller.state.step == WizardStep.CLIENT_SELECTION and not controller.state.client_query:
                # Сразу ждем строку поиска
                await state.set_state(OrderWizardStates.waiting_for_client_query)

            await self._show(callback, controller)

            if controller.state.is_complete:
                # Заказ оформлен: подтверждение уже показано, мастер больше не нужен
                self.sessions.close(chat_id)

        except WizardBusy:
            await callback.answer(BUSY_MESSAGE)
        except InvalidTransition as e:
            await hybrid_logger.critical(f"Невозможный переход мастера в чате {chat_id}: {e}")
            self.sessions.close(chat_id)
            await state.clear()
            await callback.answer(GENERIC_ERROR, show_alert=True)
        except Exception as e:
            await hybrid_logger.error(f"Ошибка в handle_wizard_callback: {e}")
            await callback.answer(GENERIC_ERROR)

    async def _apply_action(self, controller: OrderWizardController, action: str, value: str) -> None:
        if action == "client_mode":
            controller.choose_client_mode(BranchMode(value))
        elif action == "equipment_mode":
            controller.choose_equipment_mode(BranchMode(value))
        elif action == "client":
            controller.select_client(value)
        elif action == "equipment":
            controller.select_equipment(value)
        elif action == "category":
            controller.update_equipment_draft(equipment_type=value)
        elif action == "priority":
            controller.update_order_draft(priority=value)
        elif action == "technician":
            controller.assign_technician(None if value == "none" else value)
        elif action == "next":
            await controller.advance()
            if controller.state.step == WizardStep.CONFIRMATION:
                await hybrid_logger.info(f"Мастер завершен: заказ {controller.state.summary.order_number}")
        elif action == "back":
            controller.retreat()
        # 'show' - только перерисовать шаг

    async def _ask_for_text(
        self,
        callback: CallbackQuery,
        state: FSMContext,
        controller: OrderWizardController,
        action: str,
        field_name: str
    ) -> None:
        if action == "search":
            await state.set_state(OrderWizardStates.waiting_for_client_query)
            prompt = "🔍 Escribe el nombre, correo o teléfono del cliente:"
        else:
            labels = _STEP_FIELDS.get(controller.state.step, {})
            if field_name not in labels:
                await callback.answer()
                return
            await state.set_state(OrderWizardStates.waiting_for_field)
            await state.update_data(field=field_name)
            prompt = f"✏️ {labels[field_name].rstrip(' *')}:"

        await callback.message.edit_text(prompt, reply_markup=get_cancel_input_keyboard())
        await callback.answer()

    async def process_client_query(self, message: Message, state: FSMContext) -> None:
        """Ввод строки поиска клиента"""
        try:
            controller = self.sessions.get(message.chat.id)
            if controller is None:
                await state.clear()
                await message.answer(CLOSED_MESSAGE)
                return

            await controller.search_clients(message.text or "")
            await state.clear()
            text, keyboard = render_wizard(controller.state)
            await message.answer(text, reply_markup=keyboard)

        except WizardBusy:
            await message.answer(BUSY_MESSAGE)
        except Exception as e:
            await hybrid_logger.error(f"Ошибка в process_client_query: {e}")
            await message.answer(GENERIC_ERROR)

    async def process_field_input(self, message: Message, state: FSMContext) -> None:
        """Ввод значения поля формы"""
        try:
            controller = self.sessions.get(message.chat.id)
            if controller is None:
                await state.clear()
                await message.answer(CLOSED_MESSAGE)
                return

            data = await state.get_data()
            field_name = data.get("field")
            value = (message.text or "").strip()
            step = controller.state.step

            if field_name in CLIENT_FIELDS and step == WizardStep.NEW_CLIENT:
                controller.update_client_draft(**{field_name: value})
            elif field_name in EQUIPMENT_FIELDS and step == WizardStep.NEW_EQUIPMENT:
                controller.update_equipment_draft(**{field_name: value})
            elif field_name in ORDER_FIELDS and step == WizardStep.ORDER_DETAILS:
                controller.update_order_draft(**{field_name: value})

            await state.clear()
            text, keyboard = render_wizard(controller.state)
            await message.answer(text, reply_markup=keyboard)

        except Exception as e:
            await hybrid_logger.error(f"Ошибка в process_field_input: {e}")
            await message.answer(GENERIC_ERROR)

    async def _show(self, callback: CallbackQuery, controller: OrderWizardController) -> None:
        text, keyboard = render_wizard(controller.state)
        await callback.message.edit_text(text, reply_markup=keyboard)
        await callback.answer()
