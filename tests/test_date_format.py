import unittest
from datetime import datetime, timedelta, timezone

from sql_forwarder.utils.time import DotNetDateFormat


class TestDotNetDateFormat(unittest.TestCase):

    def test_parse_iso_like_pattern(self):
        fmt = DotNetDateFormat("yyyy-MM-ddTHH:mm:ss.fff")
        value = fmt.parse("2024-02-29T13:45:10.123")
        self.assertEqual(value, datetime(2024, 2, 29, 13, 45, 10, 123000))

    def test_format_iso_like_pattern(self):
        fmt = DotNetDateFormat("yyyy-MM-ddTHH:mm:ss.fff")
        self.assertEqual(fmt.format(datetime(2024, 1, 2, 3, 4, 5, 6000)), "2024-01-02T03:04:05.006")

    def test_microsecond_fraction(self):
        fmt = DotNetDateFormat("yyyy-MM-dd HH:mm:ss.ffffff")
        value = fmt.parse("2024-01-01 00:00:00.123456")
        self.assertEqual(value.microsecond, 123456)
        self.assertEqual(fmt.format(value), "2024-01-01 00:00:00.123456")

    def test_short_fraction_is_truncated_on_format(self):
        fmt = DotNetDateFormat("HH:mm:ss.ff")
        self.assertEqual(fmt.format(datetime(2024, 1, 1, 1, 2, 3, 987654)), "01:02:03.98")

    def test_twelve_hour_clock(self):
        fmt = DotNetDateFormat("MM/dd/yyyy hh:mm:ss tt")
        value = fmt.parse("03/07/2024 01:05:09 PM")
        self.assertEqual(value, datetime(2024, 3, 7, 13, 5, 9))
        self.assertEqual(fmt.format(datetime(2024, 3, 7, 0, 5, 9)), "03/07/2024 12:05:09 AM")

    def test_single_letter_tokens(self):
        fmt = DotNetDateFormat("yyyy-M-d H:m:s")
        self.assertEqual(fmt.parse("2024-3-7 9:5:1"), datetime(2024, 3, 7, 9, 5, 1))
        self.assertEqual(fmt.format(datetime(2024, 3, 7, 9, 5, 1)), "2024-3-7 9:5:1")

    def test_assume_utc(self):
        fmt = DotNetDateFormat("yyyy-MM-dd")
        self.assertEqual(fmt.parse("2024-01-01", assume_utc=True).tzinfo, timezone.utc)
        self.assertIsNone(fmt.parse("2024-01-01").tzinfo)

    def test_offset_token(self):
        fmt = DotNetDateFormat("yyyy-MM-ddTHH:mm:sszzz")
        value = fmt.parse("2024-01-01T10:00:00+02:00")
        self.assertEqual(value.utcoffset(), timedelta(hours=2))
        utc_value = datetime(2024, 1, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)
        self.assertEqual(
            DotNetDateFormat("yyyy-MM-ddTHH:mm:ss.fffzzz").format(utc_value),
            "2024-01-01T12:00:00.500+00:00",
        )

    def test_quoted_literals(self):
        fmt = DotNetDateFormat("yyyyMMdd'_'HH")
        self.assertEqual(fmt.parse("20240102_03"), datetime(2024, 1, 2, 3))
        self.assertEqual(DotNetDateFormat("yyyy\\yMM").format(datetime(2024, 5, 1)), "2024y05")

    def test_mismatch_raises(self):
        fmt = DotNetDateFormat("yyyy-MM-ddTHH:mm:ss")
        with self.assertRaises(ValueError):
            fmt.parse("100")
        with self.assertRaises(ValueError):
            fmt.parse("2024-01-01 00:00:00")

    def test_invalid_calendar_value_raises(self):
        with self.assertRaises(ValueError):
            DotNetDateFormat("yyyy-MM-dd").parse("2023-02-29")

    def test_unsupported_patterns(self):
        with self.assertRaises(ValueError):
            DotNetDateFormat("")
        with self.assertRaises(ValueError):
            DotNetDateFormat("dddd, MMMM yyyy")
        with self.assertRaises(ValueError):
            DotNetDateFormat("HH:mm:ss.fffffff")

    def test_percent_literal(self):
        fmt = DotNetDateFormat("yyyy'%'MM")
        self.assertEqual(fmt.parse("2024%05"), datetime(2024, 5, 1))
        self.assertEqual(fmt.format(datetime(2024, 5, 1)), "2024%05")

    def test_two_digit_year(self):
        fmt = DotNetDateFormat("yy-MM-dd")
        self.assertEqual(fmt.parse("24-02-03"), datetime(2024, 2, 3))
        self.assertEqual(fmt.format(datetime(2024, 2, 3)), "24-02-03")


if __name__ == "__main__":
    unittest.main()
