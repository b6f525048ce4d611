from __future__ import annotations


class ForwarderError(Exception):
    """Base class for forwarder failures."""


class ConfigurationError(ForwarderError):
    """Query template or configuration file is unusable."""


class DataSourceError(ForwarderError):
    """Connection or query execution failed."""


class PersistenceError(ForwarderError):
    """Cursor value could not be read or written."""
