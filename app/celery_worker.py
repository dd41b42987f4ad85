# app/celery_worker.py
from celery import Celery

from app.utils.settings import load_settings

settings = load_settings()

celery_app = Celery(
    "checkout",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# WAŻNE: Explicite importuj taski, żeby Celery je zarejestrował
celery_app.conf.imports = (
    "app.services.notification_service",
)

# publikacja taska nie moze wieszac requestu checkout gdy broker lezy
celery_app.conf.broker_connection_timeout = 2
celery_app.conf.task_publish_retry_policy = {"max_retries": 1, "interval_start": 0}
celery_app.conf.task_ignore_result = True

celery_app.conf.timezone = "UTC"
