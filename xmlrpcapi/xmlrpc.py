from .core import Dispatcher, APIResponse, APIError, BadRequestError, \
    ParseError
from .decoder import decode_request
from .encoder import encode_request

__all__ = (
    'XmlRpcDispatcher',
    'XmlRpcResponse',
)

class XmlRpcResponse(APIResponse):
    """
    Serializes the response to an XML-RPC ``methodResponse``. Errors become
    faults, as does a return value that looks like a fault.
    """
    def __init__(self, *args, **kwargs):
        """
        Supports an additional argument ``output_options``, which is passed
        on to ``encode_request``.
        """
        self.output_options = kwargs.pop('output_options', None)
        super(XmlRpcResponse, self).__init__(*args, **kwargs)

    def format(self, data):
        if isinstance(data, APIError):
            data = data.data
        return encode_request(None, data, self.output_options)

class XmlRpcDispatcher(Dispatcher):
    """
    Accepts a regular XML-RPC method call, as text or bytes:

    <?xml version="1.0"?>
    <methodCall>
      <methodName>comments.add</methodName>
      <params>
        <param><value><string>great post!</string></value></param>
      </params>
    </methodCall>
    ==> handler('comments.add', ['great post!'], user_data)

    Method names are used as they are, dots and all. There are no keyword
    arguments in XML-RPC.
    """
    default_response_class = XmlRpcResponse

    def __init__(self, *args, **kwargs):
        self.output_options = kwargs.pop('output_options', None)
        super(XmlRpcDispatcher, self).__init__(*args, **kwargs)

    def make_response(self, request, response_class, *args, **kwargs):
        # if used with an XmlRpcResponse, pass along the output options
        if issubclass(response_class, XmlRpcResponse):
            kwargs = kwargs.copy()
            kwargs['output_options'] = self.output_options
        return super(XmlRpcDispatcher, self).make_response(
            request, response_class, *args, **kwargs)

    def parse_request(self, request):
        # method names and strings are passed to the handlers as decoded
        decoded = decode_request(request, 'UTF-8')
        if decoded is None:
            raise ParseError('not a valid XML-RPC message')
        if not isinstance(decoded, tuple) or decoded[0] is None:
            raise BadRequestError('not a method call')
        return decoded
