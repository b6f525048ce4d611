from sql_forwarder.state.base import CursorStore
from sql_forwarder.state.file_store import FileCursorStore, cursor_file_path
from sql_forwarder.state.sqlite_store import SQLiteCursorStore

__all__ = [
    "CursorStore",
    "FileCursorStore",
    "SQLiteCursorStore",
    "cursor_file_path",
]
