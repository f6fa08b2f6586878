"""
Turn native Python values into XML-RPC requests, responses and faults.
"""
import logging
from collections.abc import Mapping
from xmlrpc.client import Binary, DateTime

from .config import defaults, get_setting
from .envelope import Request, Response, Fault, WireMarshaller, \
    xml_declaration, to_charset
from .wiretypes import WireType, TypedValue, classify, is_fault, is_sequential

__all__ = (
    'encode_leaf', 'split_params', 'build_request', 'build_response',
    'encode', 'encode_request',
)

logger = logging.getLogger(__name__)

# output options we know about; everything else is ignored
OUTPUT_OPTIONS = ('encoding', 'escaping')

def encode_leaf(value, options):
    """
    Convert a native value into the wire value the marshaller writes, based
    on its classification. Members of arrays and structs that have no wire
    representation are left out; a top-level one becomes an empty string.
    """
    wire = _encode(value, options)
    if wire is None:
        return ''
    return wire

def _encode(value, options):
    kind = classify(value)
    if kind is WireType.STRING:
        return str(value)
    elif kind is WireType.BOOLEAN:
        return bool(value)
    elif kind is WireType.INT:
        if isinstance(value, int):
            return int(value)
        # file objects and sockets are sent as their descriptor
        try:
            return value.fileno()
        except (OSError, ValueError):
            return 0
    elif kind is WireType.DOUBLE:
        return float(value)
    elif kind is WireType.ARRAY:
        items = value.values() if isinstance(value, Mapping) else value
        return [wire for wire in (_encode(item, options) for item in items)
                if wire is not None]
    elif kind is WireType.STRUCT:
        if not isinstance(value, Mapping):
            value = vars(value)
        struct = {}
        for key, item in value.items():
            wire = _encode(item, options)
            if wire is not None:
                struct[str(key)] = wire
        return struct
    elif kind is WireType.BASE64:
        return _encode_binary(value, options)
    elif kind is WireType.DATETIME:
        if isinstance(value, DateTime):
            return value
        if isinstance(value, TypedValue):
            return DateTime(value.scalar)
        # plain dates are sent as midnight
        return DateTime('%04d%02d%02dT%02d:%02d:%02d' % (
            value.year, value.month, value.day, getattr(value, 'hour', 0),
            getattr(value, 'minute', 0), getattr(value, 'second', 0)))
    return None

def _encode_binary(value, options):
    if value is None:
        return Binary(b'')
    if isinstance(value, Binary):
        return value
    if isinstance(value, TypedValue):
        value = value.scalar
    if isinstance(value, str):
        try:
            value = value.encode(options.internal_encoding)
        except (LookupError, UnicodeEncodeError):
            value = value.encode('utf-8')
    return Binary(bytes(value))

def split_params(params):
    """
    Normalize what was passed as the parameters of a call into a list:

        None           => []
        [1, 2]         => [1, 2]
        {0: 1, 1: 2}   => [1, 2]
        {'a': 1}       => [{'a': 1}]
        5              => [5]

    A mapping which is not a plain positional sequence always stays one
    parameter (a struct). Fault-shaped mappings get no special treatment,
    there is no such thing as a fault request.
    """
    if params is None:
        return []
    if isinstance(params, (list, tuple)):
        return list(params)
    if isinstance(params, Mapping):
        if is_sequential(params):
            return list(params.values())
        return [params]
    return [params]

def build_request(method, params, options):
    return Request(method, [encode_leaf(p, options)
                            for p in split_params(params)])

def build_response(value, options):
    if is_fault(value):
        return Fault(_to_int(value['faultCode']), str(value['faultString']))
    return Response(encode_leaf(value, options))

def _to_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0

def encode(value):
    """
    Encode a single value as a ``<params>`` block, or as a ``<fault>`` if it
    looks like one.
    """
    precision = get_setting('XMLRPC_DOUBLE_PRECISION', 13)
    with defaults.override(double_precision=precision,
                           internal_encoding='ISO-8859-1') as options:
        marshaller = WireMarshaller('utf-8', options.double_precision)
        xml = marshaller.dump_value(encode_leaf(value, options))
        if is_fault(value):
            body = "<fault>\n%s</fault>" % xml
        else:
            body = "<params>\n<param>\n%s</param>\n</params>" % xml
        return to_charset(xml_declaration('utf-8') + body, 'US-ASCII')

def encode_request(method, params, output_options=None):
    """
    Given a method name and native parameters, create an XML-RPC request. If
    ``method`` is ``None``, ``params`` is the return value of a call, and a
    response (or fault) is created instead.

    ``output_options`` supports ``encoding`` (the charset declared in the
    output, default iso-8859-1) and ``escaping``. Of the escaping strategies
    only two outcomes are distinguished: by default everything outside of
    US-ASCII is written as character references; if only markup escaping is
    asked for ("markup", "cdata", or a list without "non-print" and
    "non-ascii"), the declared encoding is used as is.
    """
    output_options = output_options or {}
    unknown = [k for k in output_options if k not in OUTPUT_OPTIONS]
    if unknown:
        logger.debug('Ignoring unsupported output options: %s',
                     ', '.join(sorted(map(str, unknown))))

    target_encoding = output_options.get('encoding', 'iso-8859-1')
    charset = 'US-ASCII'
    escaping = output_options.get('escaping')
    if escaping is not None:
        if _escapes_markup_only(escaping):
            charset = target_encoding
        _check_escaping(escaping)

    precision = get_setting('XMLRPC_DOUBLE_PRECISION', 13)
    with defaults.override(double_precision=precision,
                           internal_encoding=target_encoding) as options:
        if method is not None:
            envelope = build_request(method, params, options)
        else:
            envelope = build_response(params, options)
        return envelope.serialize(charset, target_encoding,
                                  options.double_precision)

def _escapes_markup_only(escaping):
    if isinstance(escaping, str):
        return escaping in ('markup', 'cdata')
    return 'non-print' not in escaping and 'non-ascii' not in escaping

def _check_escaping(escaping):
    if isinstance(escaping, str):
        escaping = [escaping]
    if 'cdata' in escaping:
        logger.warning('cdata escaping is not supported, text is escaped '
                       'as markup instead')
    if ('non-print' in escaping) != ('non-ascii' in escaping):
        logger.warning('non-print and non-ascii escaping cannot be told '
                       'apart, both are applied')
