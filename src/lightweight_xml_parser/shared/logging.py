"""Correlation-aware logging for the parsing pipeline.

Every layer logs through :class:`CorrelationLogger`, which attaches the
``correlation_id`` of the parse call and the emitting component to each
record's ``extra``. Context that stays fixed for a whole document, such as
the file being parsed, can be bound once with :meth:`CorrelationLogger.bind`.

Examples:
    >>> logger = get_logger(__name__, "req-42", "xml_tokenizer")
    >>> file_logger = logger.bind(source="font.xml")
    >>> file_logger.context
    {'source': 'font.xml'}
"""

import logging
from typing import Any, Dict, Mapping, Optional


class CorrelationLogger:
    """Wraps a stdlib logger and adds correlation fields to every record."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Correlation ID shared by one parse call
            component: Pipeline component; defaults to the last name segment
            context: Fields added to every record
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.rsplit(".", 1)[-1]
        self.context: Dict[str, Any] = dict(context or {})

    def bind(self, **context: Any) -> "CorrelationLogger":
        """Return a logger for the same component with extra bound fields."""
        merged = {**self.context, **context}
        return CorrelationLogger(self.logger.name, self.correlation_id, self.component, merged)

    def _record_extra(self, extra: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        fields = dict(self.context)
        if extra:
            fields.update(extra)
        fields["component"] = self.component
        fields["correlation_id"] = self.correlation_id
        return fields

    def _log(self, level: int, message: str,
             extra: Optional[Mapping[str, Any]], exc_info: bool = False) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, message, extra=self._record_extra(extra), exc_info=exc_info)

    def debug(self, message: str, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Mapping[str, Any]] = None) -> None:
        self._log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Mapping[str, Any]] = None,
                exc_info: bool = False) -> None:
        self._log(logging.WARNING, message, extra, exc_info)

    def error(self, message: str, extra: Optional[Mapping[str, Any]] = None,
              exc_info: bool = False) -> None:
        self._log(logging.ERROR, message, extra, exc_info)

    def exception(self, message: str, extra: Optional[Mapping[str, Any]] = None) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._log(logging.ERROR, message, extra, exc_info=True)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name for structured logging

    Returns:
        CorrelationLogger instance
    """
    return CorrelationLogger(name, correlation_id, component)
