# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysyłania powiadomień.
    Używa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def send_order_placed(user_id: int, order_id: int, total_amount: str):
        send_order_placed_task.delay(user_id, order_id, total_amount)


@celery_app.task(name="storefront.services.notification_service.send_order_placed_task")
def send_order_placed_task(user_id: int, order_id: int, total_amount: str):
    """
    Celery task. Tu bylby email/SMS/push, na razie tylko log.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} placed, total {total_amount}")

    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
