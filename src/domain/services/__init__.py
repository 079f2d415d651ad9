"""
Domain services - логика мастера создания заказа без зависимостей от Telegram.
Валидация шагов, навигация, селекторы, формы и оформление заказа.
"""
from .order_wizard_navigation import next_step, prev_step, has_prev_step, is_submit_step
from .order_wizard_validation import ErrorMap, validate

__all__ = [
    # Навигация
    "next_step",
    "prev_step",
    "has_prev_step",
    "is_submit_step",

    # Валидация
    "ErrorMap",
    "validate",
]
