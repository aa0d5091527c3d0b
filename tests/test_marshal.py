import unittest

from fritzexporter.errors import UnexpectedResponse, UnknownDatatype
from fritzexporter.marshal import marshal_value


class TestMarshalValue(unittest.TestCase):
    def test_passthrough(self):
        """
        Strings, dates and uuids should be kept as text.
        """
        for datatype in ("string", "dateTime", "uuid"):
            self.assertEqual(marshal_value(datatype, "2021-10-22T06:00:00"), "2021-10-22T06:00:00")
        self.assertEqual(marshal_value("string", ""), "")

    def test_boolean(self):
        """
        Only "1" is true.
        """
        self.assertIs(marshal_value("boolean", "1"), True)
        self.assertIs(marshal_value("boolean", "0"), False)
        self.assertIs(marshal_value("boolean", "true"), False)

    def test_unsigned(self):
        for datatype in ("ui1", "ui2", "ui4"):
            self.assertEqual(marshal_value(datatype, "42"), 42)

    def test_ui4_64_bits(self):
        """
        'ui4' should accept values up to 2^64 - 1.
        """
        self.assertEqual(marshal_value("ui4", "6442450944"), 6442450944)
        self.assertEqual(marshal_value("ui4", "18446744073709551615"), 2 ** 64 - 1)
        self.assertRaises(UnexpectedResponse, marshal_value, "ui4", "18446744073709551616")

    def test_unsigned_invalid(self):
        for value in ("-1", "", "1.5", "abc"):
            self.assertRaises(UnexpectedResponse, marshal_value, "ui2", value)

    def test_signed(self):
        self.assertEqual(marshal_value("i4", "-1"), -1)
        self.assertEqual(marshal_value("i4", "+17"), 17)
        self.assertRaises(UnexpectedResponse, marshal_value, "i4", "")
        self.assertRaises(UnexpectedResponse, marshal_value, "i4", str(2 ** 63))

    def test_unknown_datatype(self):
        """
        Types we don't convert should raise UnknownDatatype.
        """
        with self.assertRaises(UnknownDatatype) as ctx:
            marshal_value("r8", "1.5")
        self.assertEqual(ctx.exception.datatype, "r8")
        self.assertEqual(ctx.exception.value, "1.5")
        self.assertIsInstance(ctx.exception, UnexpectedResponse)
