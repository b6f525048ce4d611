from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Union

from sql_forwarder.core.models import (
    PLACEHOLDER_LAST_VALUE,
    PLACEHOLDER_MAX_RECORDS,
    PLACEHOLDER_SEQUENCE_FIELD,
    PollConfiguration,
)
from sql_forwarder.errors import ConfigurationError
from sql_forwarder.utils.logging import get_logger
from sql_forwarder.utils.time import DotNetDateFormat


@dataclass(frozen=True)
class RawCursor:
    """Cursor used verbatim, e.g. an integer key."""

    value: str

    def render(self) -> str:
        return self.value


@dataclass(frozen=True)
class TemporalCursor:
    """Cursor that parsed as a timestamp in the configured pattern."""

    moment: datetime
    pattern: str

    def advance(self, milliseconds: int) -> "TemporalCursor":
        return TemporalCursor(self.moment + timedelta(milliseconds=milliseconds), self.pattern)

    def render(self) -> str:
        return DotNetDateFormat(self.pattern).format(self.moment)


Cursor = Union[RawCursor, TemporalCursor]


def parse_cursor(value: str, pattern: str, assume_utc: bool) -> Cursor:
    """Read a stored cursor as a timestamp when it fits ``pattern``, else as a raw value."""
    if value and pattern:
        try:
            moment = DotNetDateFormat(pattern).parse(value, assume_utc=assume_utc)
        except ValueError:
            return RawCursor(value)
        return TemporalCursor(moment, pattern)
    return RawCursor(value)


def render_cursor_value(value: Any, pattern: str) -> str:
    """Turn a sequence-field value from the database into the string that gets persisted."""
    if isinstance(value, datetime):
        return DotNetDateFormat(pattern).format(value) if pattern else value.isoformat()
    if isinstance(value, date):
        return DotNetDateFormat(pattern).format(datetime(value.year, value.month, value.day)) if pattern else value.isoformat()
    return str(value)


class QueryBuilder:
    """Builds the incremental extraction query for a tick."""

    def __init__(self):
        self.log = get_logger("sql_forwarder.query")

    def build(self, config: PollConfiguration, cursor_value: str) -> str:
        """
        Build the next extraction query.

        Args:
            config: The poll configuration holding the templates.
            cursor_value: Last persisted cursor value (may be empty).

        Returns:
            The SQL text to execute.

        Raises:
            ConfigurationError: If the base query is empty.
        """
        if not config.sql_query or not config.sql_query.strip():
            raise ConfigurationError("SQL query in configuration is empty or missing")

        query = config.sql_query.replace(PLACEHOLDER_MAX_RECORDS, str(config.max_records))

        cursor = parse_cursor(cursor_value or "", config.cursor_format, config.cursor_is_utc)
        if isinstance(cursor, TemporalCursor):
            cursor = cursor.advance(config.timestamp_increment_ms)
        last_value = cursor.render()

        if last_value != "":
            query += (
                config.where_clause
                .replace(PLACEHOLDER_SEQUENCE_FIELD, config.sequence_field)
                .replace(PLACEHOLDER_LAST_VALUE, last_value)
            )

        query += config.order_by_clause.replace(PLACEHOLDER_SEQUENCE_FIELD, config.sequence_field)

        self.log.debug("SQL query: %s", query)
        return query
