"""
Pydantic models for YAML configuration validation.
Provides schema validation with clear error messages for forwarder configurations.
"""

from __future__ import annotations

import os
from typing import Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from sql_forwarder.core.models import DEFAULT_ORDER_BY_CLAUSE, DEFAULT_WHERE_CLAUSE, PollConfiguration
from sql_forwarder.errors import ConfigurationError


class SourceConfig(BaseModel):
    """Connection to the relational source."""
    url: str = Field("sqlite:///source.db", description="SQLAlchemy database URL")


class QueryConfig(BaseModel):
    """Extraction query templates."""
    sql: str = Field(
        "SELECT TOP {{MaxRecords}} * FROM dbo.Events",
        description="Base query; {{MaxRecords}} is replaced with max_records",
    )
    where_clause: str = Field(DEFAULT_WHERE_CLAUSE, description="Appended when a cursor value exists")
    order_by_clause: str = Field(DEFAULT_ORDER_BY_CLAUSE, description="Always appended; must sort ascending")
    sequence_field: str = Field("Id", description="Monotonic column bounding each extraction")
    sequence_field_default: str = Field("", description="Cursor value used when nothing is persisted")
    max_records: int = Field(1000, ge=1, description="Rows per query")
    timestamp_field: Optional[str] = Field(None, description="Column rendered as the event timestamp")

    @field_validator("sequence_field")
    @classmethod
    def validate_sequence_field(cls, v):
        if not v.strip():
            raise ValueError("sequence_field cannot be empty")
        return v.strip()


class CursorConfig(BaseModel):
    """Cursor persistence and interpretation."""
    backend: Literal["file", "sqlite"] = Field("file", description="Cursor storage backend")
    directory: str = Field("state", description="Directory holding cursor files / database")
    path: Optional[str] = Field(None, description="Explicit cursor file (or database) name")
    value_format: str = Field("yyyy-MM-ddTHH:mm:ss.fff", description="Pattern for timestamp cursors")
    is_utc: bool = Field(
        True,
        description="Read timestamp cursors as UTC instead of local time; only changes rendered text for zzz patterns",
    )
    timestamp_increment_ms: int = Field(1, ge=0, description="Added to a timestamp cursor before querying")


class ScheduleConfig(BaseModel):
    """Polling cadence."""
    interval_ms: int = Field(5000, ge=1, description="Base poll interval in milliseconds")
    max_interval_ms: int = Field(60000, ge=1, description="Backoff ceiling in milliseconds")

    @model_validator(mode="after")
    def validate_bounds(self):
        if self.max_interval_ms < self.interval_ms:
            raise ValueError("max_interval_ms must be >= interval_ms")
        return self


class SplunkConfig(BaseModel):
    """HTTP Event Collector endpoint."""
    url: str = Field("https://localhost:8088/services/collector/raw", description="HEC raw endpoint")
    token: str = Field("", description="HEC authorization token")
    client_id: str = Field("", description="Request channel identifier")
    source_host: str = Field("", description="Added to every event as SourceHost")
    source_data: str = Field("", description="Added to every event as SourceData")
    event_timestamp_format: str = Field("yyyy-MM-ddTHH:mm:ss.fffzzz", description="Pattern for timestamp_field")
    ignore_ssl_errors: bool = Field(False, description="Skip TLS certificate verification")
    timeout_s: float = Field(30.0, gt=0, description="HTTP timeout in seconds")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must be a valid HTTP/HTTPS URL")
        return v


class LoggingConfig(BaseModel):
    config_path: str = Field("configs/logging.yaml", description="YAML dictConfig file")
    level: str = Field("INFO", description="Level used when config_path does not exist")


class ForwarderConfig(BaseModel):
    """Root configuration model."""
    source: SourceConfig = Field(default_factory=SourceConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    cursor: CursorConfig = Field(default_factory=CursorConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    splunk: SplunkConfig = Field(default_factory=SplunkConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def additional_fields(self) -> Dict[str, str]:
        return {"SourceHost": self.splunk.source_host, "SourceData": self.splunk.source_data}

    def to_poll_configuration(self) -> PollConfiguration:
        return PollConfiguration(
            sql_query=self.query.sql,
            sequence_field=self.query.sequence_field,
            sequence_field_default=self.query.sequence_field_default,
            where_clause=self.query.where_clause,
            order_by_clause=self.query.order_by_clause,
            max_records=self.query.max_records,
            interval_ms=self.schedule.interval_ms,
            max_interval_ms=self.schedule.max_interval_ms,
            cursor_format=self.cursor.value_format,
            cursor_is_utc=self.cursor.is_utc,
            timestamp_increment_ms=self.cursor.timestamp_increment_ms,
            timestamp_field=self.query.timestamp_field,
            event_timestamp_format=self.splunk.event_timestamp_format,
            additional_fields=self.additional_fields(),
        )


def load_and_validate_config(config_path: str) -> ForwarderConfig:
    """
    Load and validate a forwarder configuration from YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Validated ForwarderConfig object

    Raises:
        ConfigurationError: If the file is missing, malformed or invalid
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")

    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"Configuration root in {config_path} must be a mapping")

    try:
        return ForwarderConfig(**raw_config)
    except ValidationError as e:
        # Format validation errors nicely
        error_messages = []
        for error in e.errors():
            field_path = ".".join(str(loc) for loc in error["loc"])
            error_messages.append(f"  {field_path}: {error['msg']}")

        raise ConfigurationError(
            f"Configuration validation failed for {config_path}:\n" +
            "\n".join(error_messages)
        ) from e


def write_default_config(config_path: str, overwrite: bool = False) -> bool:
    """
    Write a configuration file holding every default value.

    Returns:
        False when the file exists and ``overwrite`` is not set, else True.
    """
    if os.path.exists(config_path) and not overwrite:
        return False

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(ForwarderConfig().model_dump(), f, sort_keys=False, allow_unicode=True)
    return True
