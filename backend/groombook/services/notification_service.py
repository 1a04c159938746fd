"""Client notifications. Delivery is a log line until a mail provider is wired in."""

import logging

from groombook.domain.interfaces import INotifier

logger = logging.getLogger(__name__)


class NotificationService(INotifier):
    def notify(self, client_id: int, message: str) -> None:
        logger.info(
            "Client notification sent",
            extra={"context": {"client_id": client_id, "message": message}},
        )


def notify_safely(notifier: INotifier, client_id: int, message: str) -> None:
    """Send a notification after commit; a failure is logged, never raised."""
    try:
        notifier.notify(client_id, message)
    except Exception as e:
        logger.warning(
            f"Client notification failed: {e}",
            extra={"context": {"client_id": client_id}},
            exc_info=True,
        )
