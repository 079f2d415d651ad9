"""
FSM состояния для ввода текста в мастере создания заказа.
Шаг мастера хранится в контроллере; FSM определяет только, как трактовать текст.
"""
from aiogram.fsm.state import State, StatesGroup


class OrderWizardStates(StatesGroup):
    """Состояния ввода текста в мастере"""

    # Строка поиска клиента
    waiting_for_client_query = State()

    # Значение поля формы (имя поля в данных FSM)
    waiting_for_field = State()
