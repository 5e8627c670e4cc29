import logging

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Writes notifications to the log instead of delivering them."""

    def notify(self, user_id: str, kind: str, message: str) -> None:
        logger.info("Notify %s [%s]: %s", user_id, kind, message)
