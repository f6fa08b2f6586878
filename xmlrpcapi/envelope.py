"""
The three kinds of XML-RPC messages, and their serialization.

Envelopes hold *wire values*: the canonical structures the encoder produces
from native data (see ``encoder.encode_leaf``), which the standard library
marshaller knows how to write. Turning text into XML is left entirely to
``xmlrpc.client``; we only extend its marshaller where our output has to
differ.
"""
import logging
import xmlrpc.client
from xmlrpc.client import escape

__all__ = (
    'Envelope', 'Request', 'Response', 'Fault', 'WireMarshaller',
    'xml_declaration', 'to_charset',
)

logger = logging.getLogger(__name__)

class WireMarshaller(xmlrpc.client.Marshaller):
    """
    Differences from the ``xmlrpc.client`` version:
        - doubles are written with a fixed number of decimal digits (if
          ``precision`` is given), with trailing zeros removed
        - integers that do not fit 32 bits are written as ``<i8>``
        - ``None`` is never accepted
    """

    dispatch = xmlrpc.client.Marshaller.dispatch.copy()

    MAXI8 = 2 ** 63 - 1
    MINI8 = -2 ** 63

    def __init__(self, encoding=None, precision=None):
        xmlrpc.client.Marshaller.__init__(self, encoding, allow_none=False)
        self.precision = precision

    def _dump(self, value, write):
        # Parent class is unfriendly to subclasses :-/
        f = self.dispatch[type(value)]
        f(self, value, write)

    def dump_value(self, value):
        """Return the ``<value>`` element for a single wire value."""
        out = []
        self._dump(value, out.append)
        return ''.join(out)

    def dump_int(self, value, write):
        if value > self.MAXI8 or value < self.MINI8:
            raise OverflowError("int exceeds XML-RPC limits")
        elif value > xmlrpc.client.MAXINT or value < xmlrpc.client.MININT:
            write("<value><i8>")
            write(str(int(value)))
            write("</i8></value>\n")
        else:
            return xmlrpc.client.Marshaller.dump_long(self, value, write)
    dispatch[int] = dump_int

    def dump_double(self, value, write):
        if self.precision is None:
            text = repr(value)
        else:
            text = '%.*f' % (self.precision, value)
            if '.' in text:
                text = text.rstrip('0').rstrip('.')
        write("<value><double>")
        write(text)
        write("</double></value>\n")
    dispatch[float] = dump_double

def xml_declaration(encoding):
    return '<?xml version="1.0" encoding="%s"?>\n' % encoding

def to_charset(text, charset):
    """
    Make ``text`` representable in ``charset`` by replacing what is not with
    XML character references. The markup itself is plain ASCII, so this is
    safe to apply to a whole document. An unknown charset leaves the text as
    it is.
    """
    try:
        return text.encode(charset, 'xmlcharrefreplace').decode(charset)
    except LookupError:
        logger.warning('Unknown charset %r, output is left unescaped', charset)
        return text

class Envelope(object):
    """
    Base class for all messages. Child classes implement ``body``.
    """
    def body(self, marshaller):
        raise NotImplementedError()

    def serialize(self, charset='US-ASCII', encoding=None, precision=None):
        """
        The complete XML document for this message. ``charset`` is what
        non-representable characters are escaped against, ``encoding`` the
        label put in the XML declaration (defaults to ``charset``).
        """
        marshaller = WireMarshaller(encoding or charset, precision)
        text = xml_declaration(encoding or charset) + self.body(marshaller)
        return to_charset(text, charset)

class Request(Envelope):
    """A method call: ``method`` and a list of wire values."""
    def __init__(self, method, params=()):
        self.method = method
        self.params = list(params)

    def body(self, marshaller):
        return ''.join((
            "<methodCall>\n",
            "<methodName>", escape(self.method), "</methodName>\n",
            marshaller.dumps(self.params),
            "</methodCall>\n",
        ))

    def __eq__(self, other):
        return isinstance(other, Request) and \
            (self.method, self.params) == (other.method, other.params)

    def __repr__(self):
        return '<Request %s(%d params)>' % (self.method, len(self.params))

class Response(Envelope):
    """A successful method response carrying one wire value."""
    def __init__(self, value):
        self.value = value

    def body(self, marshaller):
        return ''.join((
            "<methodResponse>\n",
            marshaller.dumps((self.value,)),
            "</methodResponse>\n",
        ))

    def __eq__(self, other):
        return isinstance(other, Response) and self.value == other.value

    def __repr__(self):
        return '<Response %r>' % (self.value,)

class Fault(Envelope):
    """An error response; ``code`` is always an int, ``message`` a string."""
    def __init__(self, code, message):
        self.code = code
        self.message = message

    def body(self, marshaller):
        return ''.join((
            "<methodResponse>\n",
            marshaller.dumps(xmlrpc.client.Fault(self.code, self.message)),
            "</methodResponse>\n",
        ))

    def as_dict(self):
        return {'faultCode': self.code, 'faultString': self.message}

    def __eq__(self, other):
        return isinstance(other, Fault) and \
            (self.code, self.message) == (other.code, other.message)

    def __repr__(self):
        return '<Fault %s: %r>' % (self.code, self.message)
