"""
Открытые мастера создания заказа по чатам приемщиков.
"""
from typing import Callable, Dict, Optional

from src.domain.services.order_wizard_controller import OrderWizardController


ControllerFactory = Callable[[int], OrderWizardController]


class OrderWizardSessions:
    """Один мастер на чат; повторный запуск закрывает предыдущий"""

    def __init__(self, factory: ControllerFactory) -> None:
        self._factory = factory
        self._controllers: Dict[int, OrderWizardController] = {}

    async def start(self, chat_id: int) -> OrderWizardController:
        """Новый мастер для чата с загруженным списком техников"""
        self.close(chat_id)
        controller = self._factory(chat_id)
        self._controllers[chat_id] = controller
        await controller.open()
        return controller

    def get(self, chat_id: int) -> Optional[OrderWizardController]:
        return self._controllers.get(chat_id)

    def close(self, chat_id: int) -> None:
        """Закрытие мастера; поздние ответы удаленных вызовов игнорируются контроллером"""
        controller = self._controllers.pop(chat_id, None)
        if controller is not None:
            controller.close()

    def __len__(self) -> int:
        return len(self._controllers)
