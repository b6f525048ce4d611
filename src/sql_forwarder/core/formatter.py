from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Protocol

from sql_forwarder.core.models import ExtractionBatch
from sql_forwarder.utils.time import DotNetDateFormat


class RowFormatter(Protocol):
    """Protocol for batch-to-payload formatters."""

    def format(
        self,
        batch: ExtractionBatch,
        additional_fields: Mapping[str, str],
        timestamp_field: Optional[str],
        timestamp_format: str,
    ) -> str: ...


def escape_value(value: str) -> str:
    """Escape a value so it can sit inside double quotes on a single line."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\r", "\\r")
        .replace("\n", "\\n")
    )


class KeyValueFormatter:
    """Renders a batch as flat ``field="value"`` pairs, one block per row."""

    pair_separator = ", "
    row_separator = " "

    def format(
        self,
        batch: ExtractionBatch,
        additional_fields: Mapping[str, str],
        timestamp_field: Optional[str] = None,
        timestamp_format: str = "",
    ) -> str:
        """Format the whole batch into one newline-free payload string."""
        ts_format = DotNetDateFormat(timestamp_format) if timestamp_field and timestamp_format else None
        extras = [self._pair(k, v) for k, v in additional_fields.items()]

        blocks = []
        for row in batch.rows:
            columns = batch.columns or list(row.keys())
            pairs = []
            for column in columns:
                value = row.get(column)
                if ts_format is not None and column == timestamp_field and isinstance(value, datetime):
                    rendered = ts_format.format(value)
                else:
                    rendered = self._render(value)
                pairs.append(self._pair(column, rendered))
            blocks.append(self.pair_separator.join(pairs + extras))

        return self.row_separator.join(blocks)

    def _pair(self, key: str, value: Any) -> str:
        return f'{key}="{escape_value(str(value))}"'

    def _render(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value).hex()
        return str(value)
