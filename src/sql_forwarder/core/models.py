from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

PLACEHOLDER_MAX_RECORDS = "{{MaxRecords}}"
PLACEHOLDER_SEQUENCE_FIELD = "{{SQLSequenceField}}"
PLACEHOLDER_LAST_VALUE = "{{LastSQLSequenceFieldValue}}"

DEFAULT_WHERE_CLAUSE = " WHERE {{SQLSequenceField}} > '{{LastSQLSequenceFieldValue}}'"
DEFAULT_ORDER_BY_CLAUSE = " ORDER BY {{SQLSequenceField}} ASC"


class PollPhase(str, Enum):
    """Where the poll loop currently is within a tick."""

    IDLE = "IDLE"
    EXTRACTING = "EXTRACTING"
    DELIVERING = "DELIVERING"


class TickOutcome(str, Enum):
    """How a single tick ended."""

    SKIPPED_OVERLAP = "SKIPPED_OVERLAP"
    SKIPPED_EMPTY = "SKIPPED_EMPTY"
    DELIVERED = "DELIVERED"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    ABORTED = "ABORTED"


@dataclass(frozen=True)
class PollConfiguration:
    """Settings for one forwarder run."""

    sql_query: str
    sequence_field: str = "Id"
    sequence_field_default: str = ""
    where_clause: str = DEFAULT_WHERE_CLAUSE
    order_by_clause: str = DEFAULT_ORDER_BY_CLAUSE
    max_records: int = 1000
    interval_ms: int = 5000
    max_interval_ms: int = 60000
    cursor_format: str = ""
    cursor_is_utc: bool = True
    timestamp_increment_ms: int = 0
    timestamp_field: Optional[str] = None
    event_timestamp_format: str = ""
    additional_fields: Dict[str, str] = field(default_factory=dict)


@dataclass
class ExtractionBatch:
    """Rows returned by one query, in query order."""

    columns: List[str] = field(default_factory=list)
    rows: List[Mapping[str, Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def is_empty(self) -> bool:
        return not self.rows

    def max_value(self, column: str) -> Any:
        """Largest non-null value of ``column`` in the batch."""
        values = [row.get(column) for row in self.rows if row.get(column) is not None]
        if not values:
            raise KeyError(f"Column '{column}' has no values in the batch")
        return max(values)


@dataclass(frozen=True)
class TransmitResult:
    """Outcome reported by a transmitter."""

    status_code: Optional[int]
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status_code == 200 and self.error is None


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of delivering one non-empty batch."""

    success: bool
    max_sequence_value: Any = None
    status_code: Optional[int] = None
    error: Optional[str] = None
