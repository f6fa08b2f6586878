import calendar
import datetime
import io
import re
import socket
import warnings
from collections.abc import Mapping
from enum import Enum
from xmlrpc.client import Binary, DateTime, Fault

__all__ = (
    'WireType', 'TypedValue', 'RejectedTag',
    'classify', 'get_type', 'is_fault', 'is_sequential', 'tag', 'set_type',
)

class WireType(str, Enum):
    """
    The value kinds of the XML-RPC wire format. ``NONE`` is not a wire type;
    it is what ``classify`` answers for values that have no representation.
    """
    INT = 'int'
    DOUBLE = 'double'
    BOOLEAN = 'boolean'
    STRING = 'string'
    BASE64 = 'base64'
    DATETIME = 'datetime'
    ARRAY = 'array'
    STRUCT = 'struct'
    NONE = 'none'

    def __str__(self):
        return self.value

TAGGABLE = (WireType.BASE64, WireType.DATETIME)

datetime_regex = re.compile(
    r'^([0-9]{4})([0-1][0-9])([0-3][0-9])T([0-5][0-9]):([0-5][0-9]):([0-5][0-9])$')

class RejectedTag(ValueError):
    """
    A string could not be tagged with the requested wire type.
    """

class TypedValue(object):
    """
    A string explicitly marked as ``base64`` or ``datetime``, for the cases
    where the native type alone would be ambiguous (both would otherwise be
    sent as plain strings).

    Instances are immutable. ``datetime`` values additionally carry the
    ``timestamp`` (seconds since the epoch, UTC) they represent, computed
    once here. Base64 values accept ``bytes`` as well, as that is what binary
    payloads look like in Python; nothing is encoded until serialization.
    """
    __slots__ = ('_scalar', '_kind', '_timestamp')

    def __init__(self, scalar, kind):
        if kind not in TAGGABLE:
            raise RejectedTag('cannot tag a value as %r' % (kind,))
        kind = WireType(kind)
        timestamp = None
        if kind is WireType.DATETIME:
            if not isinstance(scalar, str):
                raise RejectedTag('datetime values must be strings')
            timestamp = _parse_timestamp(scalar)
        else:
            if isinstance(scalar, bytearray):
                scalar = bytes(scalar)
            if not isinstance(scalar, (str, bytes)):
                raise RejectedTag('base64 values must be strings')
        object.__setattr__(self, '_scalar', scalar)
        object.__setattr__(self, '_kind', kind)
        object.__setattr__(self, '_timestamp', timestamp)

    def __setattr__(self, name, value):
        raise AttributeError('TypedValue instances are immutable')

    scalar = property(lambda self: self._scalar)
    xmlrpc_type = property(lambda self: self._kind)
    timestamp = property(lambda self: self._timestamp)

    def __eq__(self, other):
        if not isinstance(other, TypedValue):
            return NotImplemented
        return (self._kind, self._scalar) == (other._kind, other._scalar)

    def __hash__(self):
        return hash((self._kind, self._scalar))

    def __repr__(self):
        return '<TypedValue %s %r>' % (self._kind.value, self._scalar)

def _parse_timestamp(text):
    match = datetime_regex.match(text)
    if not match:
        raise RejectedTag('%r is not a YYYYMMDDTHH:MM:SS datetime' % text)
    year, month, day, hour, minute, second = map(int, match.groups())
    # the pattern lets through impossible months and days, e.g. 20241399
    try:
        datetime.date(year, month, day)
    except ValueError:
        raise RejectedTag('%r is not a valid date' % text)
    return calendar.timegm((year, month, day, hour, minute, second, 0, 0, 0))

def is_sequential(mapping):
    """
    True if the keys of ``mapping`` are exactly the integers 0..n-1, in that
    order. Vacuously true for an empty mapping.
    """
    for index, key in enumerate(mapping):
        if type(key) is not int or key != index:
            return False
    return True

def classify(value):
    """
    Map a native value to its ``WireType``. Never raises: values that cannot
    be represented on the wire give ``WireType.NONE``, and it is up to the
    caller to leave them out.

    Note that ``None`` classifies as base64. The wire format has no null, and
    this is how the value model we stay compatible with has always treated
    it.
    """
    if isinstance(value, str):
        return WireType.STRING
    # bool is a subclass of int, so it needs to go first
    if isinstance(value, bool):
        return WireType.BOOLEAN
    if isinstance(value, (int, io.IOBase, socket.socket)):
        return WireType.INT
    if isinstance(value, float):
        return WireType.DOUBLE
    if isinstance(value, (list, tuple)):
        return WireType.ARRAY
    if isinstance(value, Mapping):
        if value and is_sequential(value):
            return WireType.ARRAY
        return WireType.STRUCT
    if isinstance(value, TypedValue):
        return value.xmlrpc_type
    if isinstance(value, (DateTime, datetime.date)):
        return WireType.DATETIME
    if isinstance(value, (Binary, bytes, bytearray)):
        return WireType.BASE64
    if value is None:
        return WireType.BASE64
    if isinstance(value, Fault) or hasattr(value, '__dict__'):
        return WireType.STRUCT
    return WireType.NONE

def get_type(value):
    """String form of ``classify``, e.g. "int", "struct" or "none"."""
    return classify(value).value

def is_fault(value):
    """
    A mapping with both a ``faultCode`` and a ``faultString`` key.
    """
    return isinstance(value, Mapping) and \
           'faultCode' in value and 'faultString' in value

def tag(value, kind):
    """
    Return a ``TypedValue`` wrapping ``value`` as ``kind`` ("base64" or
    "datetime"). Raises ``RejectedTag`` for anything but strings, for
    malformed datetimes, and for unknown kinds; the latter is a usage error
    and also triggers a warning.
    """
    if not isinstance(value, (str, bytes)):
        raise RejectedTag('only strings can be tagged, not %s'
                          % type(value).__name__)
    if kind not in TAGGABLE:
        warnings.warn("invalid type %r passed to tag()" % (kind,),
                      stacklevel=2)
        raise RejectedTag('unknown type %r' % (kind,))
    return TypedValue(value, kind)

def set_type(values, key, kind):
    """
    In-place variant of ``tag``: replaces ``values[key]`` with its tagged
    version and returns True, or returns False and leaves it alone.

        params = ['20240101T10:00:00']
        set_type(params, 0, 'datetime')
    """
    try:
        values[key] = tag(values[key], kind)
    except RejectedTag:
        return False
    return True
