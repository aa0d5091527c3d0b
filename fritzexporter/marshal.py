import re

from .errors import UnexpectedResponse, UnknownDatatype


UINT64_MAX = 2 ** 64 - 1
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_UNSIGNED = re.compile(r"^[0-9]+$")
_SIGNED = re.compile(r"^[+-]?[0-9]+$")


def _parse_uint(value):
    # Vendors report 'ui4' counters well beyond 2^32, so accept the full 64 bits.
    if not _UNSIGNED.match(value) or int(value) > UINT64_MAX:
        raise UnexpectedResponse("invalid unsigned integer: %r" % value)
    return int(value)


def _parse_int(value):
    if not _SIGNED.match(value) or not INT64_MIN <= int(value) <= INT64_MAX:
        raise UnexpectedResponse("invalid signed integer: %r" % value)
    return int(value)


MARSHAL_FUNCTIONS = (
    (("string", "dateTime", "uuid"), str),
    (("boolean",), lambda x: x == "1"),
    (("ui1", "ui2", "ui4"), _parse_uint),
    (("i4",), _parse_int),
)


def marshal_value(datatype, value):
    """
    Convert the text of a response element to the Python type of its state
    variable. Raises UnknownDatatype for types we don't convert.
    """
    for types, func in MARSHAL_FUNCTIONS:
        if datatype in types:
            return func(value)
    raise UnknownDatatype(datatype, value)
