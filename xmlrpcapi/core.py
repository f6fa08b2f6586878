from .config import get_setting
from .wiretypes import get_type

__all__ = (
    'Dispatcher', 'APIResponse',
    'APIError', 'BadRequestError', 'ParseError', 'MethodNotFoundError',
    'InvalidParamsError', 'InternalError',
    'PARSE_ERROR', 'INVALID_REQUEST', 'METHOD_NOT_FOUND', 'INVALID_PARAMS',
    'INTERNAL_ERROR', 'APPLICATION_ERROR',
)

# Fault codes, from the xmlrpc-epi "specification for fault code
# interoperability".
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
APPLICATION_ERROR = -32500

# signature types that accept any value
WILDCARD_TYPES = ('mixed', 'any', 'undef', 'undefined')
# spellings of the same wire type used in method signatures
TYPE_ALIASES = {'i4': 'int', 'dateTime.iso8601': 'datetime'}

class APIError(Exception):
    """
    Base class for all API-related exceptions. Raising ``APIError``s in your
    method handlers is the recommended way to handle errors - dispatchers
    convert them into an XML-RPC fault.

    ``__init__`` takes the the optional arguments ``message`` and ``code``,
    which become the ``faultString`` and ``faultCode`` of the fault. If
    ``code`` is not given, the default of the class is used.

    See also ``APIResponse``, which has a similar interface.
    """
    name = 'API Error'
    code = APPLICATION_ERROR

    def __init__(self, message="", code=None):
        Exception.__init__(self, message)
        self.message = message
        if code is not None:
            self.code = code

    def _get_data(self):
        """
        Provides the default formatting for exceptions: a fault struct.
        Unless overriden by the user, this determines how an exception is
        serialized.
        """
        value = self.__dict__.get('data', None)
        if value is None:
            value = {'faultCode': self.code,
                     'faultString': self.name +
                                    (self.message and ': '+self.message or "")}
        return value
    def _set_data(self, value):
        self.__dict__['data'] = value
    data = property(_get_data, _set_data)

class BadRequestError(APIError):
    name = 'Bad Request'
    code = INVALID_REQUEST
class ParseError(BadRequestError):
    name = 'Parse Error'
    code = PARSE_ERROR
class MethodNotFoundError(APIError):
    name = 'Method Not Found'
    code = METHOD_NOT_FOUND
    def __init__(self, *args, **kwargs):
        self.method = kwargs.pop('method', None)
        APIError.__init__(self, *args, **kwargs)
        if self.method and not self.message:
            self.message = self.method
class InvalidParamsError(APIError):
    name = 'Invalid Parameters'
    code = INVALID_PARAMS
class InternalError(APIError):
    name = 'Internal Error'
    code = INTERNAL_ERROR

class APIResponse(object):
    """
    An "API response" is used by the dispatcher to format the output. Child
    classes implement a format like XML-RPC by implementing the ``format``
    method.

    Method handlers may raise an ``APIError``; the dispatcher then passes
    the exception itself as ``data``, and ``format`` has to be able to deal
    with that.
    """
    def __init__(self, data):
        # If another response object is passed, clone it; this allows the
        # dispatcher code to handle ``APIResponse`` objects from a handler
        # like any other data type.
        if isinstance(data, APIResponse):
            self.data = data.data
        else:
            self.data = data

    def get_response(self):
        """
        Returns the final output for this instance. Child classes have to
        implement ``format`` to create it.
        """
        return self.format(self.data)

    def format(self, data):
        """
        Child classes need to provide this method to serialize ``data``,
        usually the native python value returned by a method handler.

        ``data`` can also be an exception (of type ``APIError``), in which
        case it should be formatted as an error response.
        """
        raise NotImplementedError()

class Dispatcher(object):
    """
    Dispatcher base class. Dispatchers are responsible for resolving an
    incoming request into a method call against a server's dispatch map:

        dispatcher = XmlRpcDispatcher(server)
        xml = dispatcher(request_xml, user_data)

    Each dispatcher returns the response in an appriopriate default format,
    but if you want to, you can pass a different ``response_class``.
    """

    # Child classes can specify this
    default_response_class = None

    def __init__(self, api, response_class=None):
        self.api = api
        if response_class is None: response_class = self.default_response_class
        self.response_class = response_class

    def __call__(self, *args, **kwargs):
        return self.dispatch(*args, **kwargs)

    def parse_request(self, request):
        """
        Override this when implementing a dispatcher. Must return a 2-tuple
        of (method_name, params), with params being a list of native values.

        Should a problem occur that prevents from returning a meaningful result,
        raise a ``BadRequestError``.
        """
        raise NotImplementedError()
    del parse_request

    def make_response(self, request, response_class, data, *args, **kwargs):
        """
        Create an instance of ``response_class`` with ``data`` and all other
        passed arguments.

        This is a separate method to allow child classes to hook into the
        process more easily.
        """
        return response_class(data, *args, **kwargs)

    def preprocess_call(self, request, method, params):
        """
        Do some preprocessing before a method is actually called: if
        signatures are known for the method, the parameters need to match at
        least one of them, in number and in type.

        This is in a separate method to give child classes more hooks.
        """
        if not method.signatures:
            return method

        error = None
        for signature in method.signatures:
            wanted_types = signature[1:]
            if len(wanted_types) != len(params):
                continue
            for index, (wanted, value) in enumerate(zip(wanted_types, params)):
                wanted = TYPE_ALIASES.get(wanted, wanted)
                got = get_type(value)
                if wanted not in WILDCARD_TYPES and wanted != got:
                    error = 'Wanted %s, got %s at param %d' % (
                        wanted, got, index + 1)
                    break
            else:
                return method
        raise InvalidParamsError(
            error or 'No method signature matches number of parameters')

    def dispatch(self, request, user_data=None):
        """
        Resolves an incoming request to a method call, calls the method, and
        returns it's result, converted via the ``response_class`` attribute.

        The handler is called as ``handler(method_name, params, user_data)``.
        """
        if not hasattr(self, 'parse_request'):
            raise NotImplementedError()

        try:
            name, params = self.parse_request(request)
            method = self.api.resolve(name)
            if method is None:
                raise MethodNotFoundError(method=name)

            # check the signatures
            method = self.preprocess_call(request, method, params)

            try:
                result = method.function(name, params, user_data)
            except TypeError as e:
                if get_setting('DEBUG', False): raise BadRequestError(str(e))
                else: raise BadRequestError()

        # Catch our own errors only. Everything else will bubble up to the
        # caller. If you don't want that, you can always write a custom
        # dispatcher and let it handle or preprocess the rest (e.g. convert
        # all exceptions to ``APIError``s before passing them along).
        except APIError as e:
            # use the exception as the data object; response classes need to
            # be able to handle that.
            result = e

        response_class = self.response_class
        # if no response class is available (which usually means that the user
        # as explicitly passed ``None``, as dispatcher should provide a
        # default response class, then we return everything raw
        if not response_class:
            from .response import PythonResponse
            response_class = PythonResponse

        return self.make_response(request, response_class, result).get_response()
