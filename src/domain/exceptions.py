"""
Исключения domain слоя мастера создания заказа.
Ошибки валидации полей не бросаются - они возвращаются как словарь ошибок.
"""
from typing import Optional


class GatewayError(Exception):
    """Ошибка удаленного вызова хранилища (сообщение показывается пользователю как есть)"""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class SearchFailure(Exception):
    """Не удалось получить список кандидатов для выбора"""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SubmissionError(Exception):
    """Базовая ошибка оформления заказа"""

    stage = "submission"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ClientCreationFailed(SubmissionError):
    """Не удалось создать клиента"""

    stage = "client"


class EquipmentCreationFailed(SubmissionError):
    """Не удалось создать оборудование"""

    stage = "equipment"


class OrderCreationFailed(SubmissionError):
    """Не удалось создать заказ"""

    stage = "order"


class InvalidTransition(RuntimeError):
    """Невозможный переход между шагами мастера (ошибка программиста)"""


class WizardBusy(RuntimeError):
    """Повторный вызов во время выполнения удаленной операции"""
