"""Topology event logging for the MongoDB client.

pymongo reports server lifecycle changes to registered listeners from its
monitor threads. We only log them; the connection state the rest of the
service relies on is owned by `DatabaseClient`.
"""

from pymongo import monitoring

from wallpaper.observability.logging import get_logger

logger = get_logger(__name__)


def _address(event: monitoring.ServerOpeningEvent) -> str:
    host, port = event.server_address
    return f"{host}:{port}"


class ServerEventLogger(monitoring.ServerListener):
    """Log server opening, state changes and closing."""

    def opened(self, event: monitoring.ServerOpeningEvent) -> None:
        logger.info("database_server_opened", server=_address(event))

    def description_changed(self, event: monitoring.ServerDescriptionChangedEvent) -> None:
        previous = event.previous_description.server_type_name
        new = event.new_description.server_type_name
        if previous == new:
            return
        if event.new_description.error is not None:
            logger.error(
                "database_server_error",
                server=_address(event),
                error=str(event.new_description.error),
            )
        elif new == "Unknown":
            logger.warning("database_server_disconnected", server=_address(event))
        else:
            logger.info(
                "database_server_state_changed",
                server=_address(event),
                previous=previous,
                current=new,
            )

    def closed(self, event: monitoring.ServerClosedEvent) -> None:
        logger.info("database_server_closed", server=_address(event))
