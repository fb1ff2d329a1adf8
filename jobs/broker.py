"""
Dramatiq broker configuration.

Redis-based message broker for the projection worker.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, ShutdownNotifications
from loguru import logger

from indexsync.config.settings import settings
from indexsync.utils.logging import setup_logging


setup_logging(settings.log_level, settings.log_file)

redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
)

redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
# RedisBroker ships the default Retries middleware; actors set retry_when.

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(
    f"Dramatiq broker initialized: "
    f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
)
