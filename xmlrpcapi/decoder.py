"""
Turn XML-RPC messages back into native Python values.
"""
import logging
import re
import xmlrpc.client
from xml.parsers.expat import ExpatError
from xmlrpc.client import Binary, DateTime, ResponseError

from .envelope import Request, Response, Fault
from .wiretypes import WireType, TypedValue, RejectedTag

__all__ = (
    'repair_fragment', 'decode_wire', 'decode', 'decode_request',
    'from_utf8',
)

logger = logging.getLogger(__name__)

XML_DECL = r'<\?xml\s+version\s*=\s*["\']1\.[0-9]+["\']' \
           r'(?:\s+encoding=["\'][A-Za-z](?:[A-Za-z0-9._]|-)*["\'])?\s*\?>'
SCALAR_TAGS = r'(?:int|i4|boolean|string|double|dateTime\.iso8601|struct|array)'

params_regex = re.compile(r'^(%s)?\s*<params>' % XML_DECL)
param_regex = re.compile(r'^(%s)?\s*<param>' % XML_DECL)
scalar_regex = re.compile(r'^(%s)?\s*(<%s>.+</%s>)$' % (
    XML_DECL, SCALAR_TAGS, SCALAR_TAGS), re.S)
value_regex = re.compile(r'^(%s)?\s*(<value>.*)$' % XML_DECL, re.S)

def repair_fragment(xml):
    """
    Best effort attempt at turning a fragment of a message into something
    we can parse. Handles a single ``<params><param>``, a single ``<param>``
    or a bare ``int``, ``string``, ``struct``, ... element; all of these
    become a ``<value>`` document. Everything else is passed through.

    This is text substitution, not parsing: fragments with two or more
    parameters, or with comments in the wrong places, come out wrong.
    """
    if isinstance(xml, bytes):
        # latin-1 maps every byte to a code point and back, unchanged
        return repair_fragment(xml.decode('latin-1')).encode('latin-1')
    if params_regex.match(xml):
        xml = re.sub(r'\s*<params>\s*<param>\s*', '', xml)
        xml = re.sub(r'\s*</param>\s*</params>\s*$', '', xml)
    elif param_regex.match(xml):
        xml = re.sub(r'\s*<param>\s*', '', xml)
        xml = re.sub(r'\s*</param>\s*$', '', xml)
    else:
        match = scalar_regex.match(xml)
        if match:
            xml = (match.group(1) or '') + '<value>' + match.group(2) + \
                  '</value>'
    return xml

class WireUnmarshaller(xmlrpc.client.Unmarshaller):
    """
    Differences from the ``xmlrpc.client`` version:
        - remembers the root element, so requests, responses and bare
          values can be told apart
        - refuses ``<nil/>``; there is no null in the wire model, and a
          decoded ``None`` has to keep meaning "nothing was decoded"
    """

    dispatch = xmlrpc.client.Unmarshaller.dispatch.copy()

    def __init__(self):
        xmlrpc.client.Unmarshaller.__init__(self)
        self.root = None

    def start(self, tag, attrs):
        if self.root is None:
            self.root = tag
        xmlrpc.client.Unmarshaller.start(self, tag, attrs)

    def end_nil(self, data):
        raise ResponseError('nil values are not supported')
    dispatch["nil"] = end_nil

def decode_wire(xml):
    """
    Parse ``xml`` into a ``Request``, ``Response`` or ``Fault`` envelope, or
    into a bare wire value for ``<value>`` documents. Returns ``None`` if
    nothing could be decoded.
    """
    if isinstance(xml, bytes):
        match = value_regex.match(xml.decode('latin-1'))
        if match:
            xml = ((match.group(1) or '') + '<params><param>' +
                   match.group(2) + '</param></params>').encode('latin-1')
    elif isinstance(xml, str):
        match = value_regex.match(xml)
        if match:
            xml = (match.group(1) or '') + '<params><param>' + \
                  match.group(2) + '</param></params>'
    else:
        return None

    target = WireUnmarshaller()
    parser = xmlrpc.client.ExpatParser(target)
    try:
        parser.feed(xml)
        parser.close()
        params = target.close()
    except xmlrpc.client.Fault as fault:
        return Fault(fault.faultCode, fault.faultString)
    except (ExpatError, ResponseError, TypeError, ValueError,
            IndexError) as e:
        logger.debug('Could not decode XML-RPC data: %s', e)
        return None

    if not _valid_names(params):
        logger.debug('Could not decode XML-RPC data: unnamed struct member')
        return None
    if target.root == 'methodCall':
        if target.getmethodname() is None:
            logger.debug('Could not decode XML-RPC data: no method name')
            return None
        return Request(target.getmethodname(), params)
    if not params:
        return None
    if target.root == 'methodResponse':
        return Response(params[0])
    return params[0]

def _valid_names(value):
    # a <member> without <name> makes the unmarshaller pair up values
    if isinstance(value, dict):
        return all(isinstance(key, str) and _valid_names(item)
                   for key, item in value.items())
    if isinstance(value, (list, tuple)):
        return all(_valid_names(item) for item in value)
    return True

def from_utf8(encoding, text):
    """
    Convert decoded text to the charset the caller asked for.

    Python strings do not carry a charset, so this comes down to making sure
    ``text`` can be represented in ``encoding``. If it cannot, or if the
    charset is unknown, the text is returned as decoded; the conversion
    failing is never a reason to fail the whole decode.
    """
    if encoding.upper().replace('_', '-') in ('UTF-8', 'UTF8'):
        return text
    try:
        return text.encode(encoding).decode(encoding)
    except (LookupError, UnicodeError) as e:
        logger.debug('Keeping UTF-8 text, cannot convert to %s: %s',
                     encoding, e)
        return text

def to_native(value, encoding):
    if isinstance(value, str):
        return from_utf8(encoding, value)
    if isinstance(value, list):
        return [to_native(item, encoding) for item in value]
    if isinstance(value, dict):
        return dict((from_utf8(encoding, key), to_native(item, encoding))
                    for key, item in value.items())
    if isinstance(value, Binary):
        return TypedValue(value.data, WireType.BASE64)
    if isinstance(value, DateTime):
        try:
            return TypedValue(value.value, WireType.DATETIME)
        except RejectedTag:
            return value.value
    return value

def _fault_record(fault, encoding):
    return {'faultCode': fault.code,
            'faultString': from_utf8(encoding, fault.message)}

def decode(xml, encoding='iso-8859-1'):
    """
    Decode an XML-RPC message, or a fragment of one containing a single
    value, into native types. Faults are returned as a dict with the keys
    ``faultCode`` and ``faultString``, requests as the list of their
    parameters. Returns ``None`` if nothing could be decoded.

    Text that cannot be represented in ``encoding`` is returned as is.
    """
    wire = decode_wire(repair_fragment(xml)) \
        if isinstance(xml, (str, bytes)) else None
    if wire is None:
        return None
    if isinstance(wire, Fault):
        return _fault_record(wire, encoding)
    if isinstance(wire, Response):
        return to_native(wire.value, encoding)
    if isinstance(wire, Request):
        return [to_native(p, encoding) for p in wire.params]
    return to_native(wire, encoding)

def decode_request(xml, encoding='iso-8859-1'):
    """
    Decode a complete XML-RPC request or response.

    Requests give a ``(method, params)`` tuple, responses ``(None, value)``
    and faults a fault dict (see ``decode``). Anything else, including a
    bare value, gives ``None``.
    """
    wire = decode_wire(xml)
    if isinstance(wire, Request):
        return (from_utf8(encoding, wire.method),
                [to_native(p, encoding) for p in wire.params])
    if isinstance(wire, Response):
        return (None, to_native(wire.value, encoding))
    if isinstance(wire, Fault):
        return _fault_record(wire, encoding)
    return None
