from .service import price_alert_service, PriceAlertService
from .evaluator import evaluate, EvaluationResult
from .subscriptions import subscription_manager, InvalidConfigInput

__all__ = [
    'price_alert_service',
    'PriceAlertService',
    'evaluate',
    'EvaluationResult',
    'subscription_manager',
    'InvalidConfigInput'
]
