"""
Unit tests for key-value event formatting.
"""

import unittest
from datetime import datetime

from sql_forwarder.core.formatter import KeyValueFormatter, escape_value
from sql_forwarder.core.models import ExtractionBatch

EXTRAS = {"SourceHost": "db01", "SourceData": "AuditLog"}


class TestKeyValueFormatter(unittest.TestCase):

    def setUp(self):
        self.formatter = KeyValueFormatter()

    def test_rows_become_one_line_of_pairs(self):
        batch = ExtractionBatch(
            columns=["Id", "Name"],
            rows=[{"Id": 1, "Name": 'a "b"'}, {"Id": 2, "Name": "x\ny"}],
        )
        payload = self.formatter.format(batch, EXTRAS)

        self.assertEqual(
            payload,
            r'Id="1", Name="a \"b\"", SourceHost="db01", SourceData="AuditLog" '
            r'Id="2", Name="x\ny", SourceHost="db01", SourceData="AuditLog"',
        )
        self.assertNotIn("\n", payload)

    def test_column_order_follows_batch(self):
        batch = ExtractionBatch(columns=["b", "a"], rows=[{"a": 1, "b": 2}])
        self.assertEqual(self.formatter.format(batch, {}), 'b="2", a="1"')

    def test_timestamp_field_uses_event_format(self):
        batch = ExtractionBatch(
            columns=["Id", "EventTime", "Other"],
            rows=[{"Id": 1, "EventTime": datetime(2024, 1, 1, 12, 0, 0), "Other": datetime(2024, 1, 2)}],
        )
        payload = self.formatter.format(batch, {}, "EventTime", "yyyy-MM-dd HH:mm:ss")
        self.assertEqual(payload, 'Id="1", EventTime="2024-01-01 12:00:00", Other="2024-01-02T00:00:00"')

    def test_timestamp_field_without_format_is_iso(self):
        batch = ExtractionBatch(columns=["EventTime"], rows=[{"EventTime": datetime(2024, 1, 1, 12)}])
        payload = self.formatter.format(batch, {}, "EventTime", "")
        self.assertEqual(payload, 'EventTime="2024-01-01T12:00:00"')

    def test_none_and_bytes(self):
        batch = ExtractionBatch(columns=["a", "b"], rows=[{"a": None, "b": b"\x01\xff"}])
        self.assertEqual(self.formatter.format(batch, {}), 'a="", b="01ff"')

    def test_escape_value(self):
        self.assertEqual(escape_value('C:\\temp "x"\r\n'), 'C:\\\\temp \\"x\\"\\r\\n')


if __name__ == "__main__":
    unittest.main()
