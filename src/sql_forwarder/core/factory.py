from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from sql_forwarder.config_models import ForwarderConfig
from sql_forwarder.core.backoff import BackoffController
from sql_forwarder.core.models import PollConfiguration
from sql_forwarder.core.poller import PollLoop
from sql_forwarder.core.scheduler import TickScheduler
from sql_forwarder.http.client import SplunkHecTransmitter, Transmitter
from sql_forwarder.sources.sql import DataSource, SqlDataSource
from sql_forwarder.state.base import CursorStore
from sql_forwarder.state.file_store import FileCursorStore, cursor_file_path
from sql_forwarder.state.sqlite_store import SQLiteCursorStore


@dataclass(frozen=True)
class BuiltComponents:
    poll_config: PollConfiguration
    source: DataSource
    cursor_store: CursorStore
    transmitter: Transmitter
    backoff: BackoffController
    loop: PollLoop
    scheduler: TickScheduler


class ComponentFactory:
    """
    Factory responsible for wiring dependencies.
    Keeps main.py clean and lets tests swap single collaborators.
    """

    def build(self, config: ForwarderConfig) -> BuiltComponents:
        """
        Build all components needed for forwarding.

        Args:
            config: The validated forwarder configuration.

        Returns:
            A container with all built components.
        """
        poll_config = config.to_poll_configuration()
        source = self._source(config)
        cursor_store = self.cursor_store(config)
        transmitter = self._transmitter(config)
        backoff = BackoffController(poll_config.interval_ms, poll_config.max_interval_ms)

        loop = PollLoop(
            config=poll_config,
            source=source,
            cursor_store=cursor_store,
            transmitter=transmitter,
            backoff=backoff,
        )
        scheduler = TickScheduler(loop, backoff)

        return BuiltComponents(
            poll_config=poll_config,
            source=source,
            cursor_store=cursor_store,
            transmitter=transmitter,
            backoff=backoff,
            loop=loop,
            scheduler=scheduler,
        )

    def cursor_store(self, config: ForwarderConfig) -> CursorStore:
        cursor_cfg = config.cursor
        default = config.query.sequence_field_default
        key = f"{config.splunk.source_data}-{config.query.sequence_field}"

        if cursor_cfg.backend == "sqlite":
            path = cursor_cfg.path or "cursors.db"
            if not Path(path).is_absolute():
                path = str(Path(cursor_cfg.directory) / path)
            return SQLiteCursorStore(path, key=key, default_value=default)

        path = cursor_file_path(
            cursor_cfg.directory,
            config.splunk.source_data,
            config.query.sequence_field,
            override=cursor_cfg.path,
        )
        return FileCursorStore(path, default_value=default)

    def _source(self, config: ForwarderConfig) -> DataSource:
        return SqlDataSource(config.source.url)

    def _transmitter(self, config: ForwarderConfig) -> Transmitter:
        splunk = config.splunk
        return SplunkHecTransmitter(
            url=splunk.url,
            token=splunk.token,
            client_id=splunk.client_id,
            timeout_s=splunk.timeout_s,
            verify_ssl=not splunk.ignore_ssl_errors,
        )
