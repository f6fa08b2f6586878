"""
Test error handling.
"""

from shared import *

def test_apierror_class():
    """
    Basic functionality tests for ``APIError``.
    """

    # make sure APIError provides default formatting
    assert APIError('error', code=2).data == {
        'faultCode': 2, 'faultString': 'API Error: error'}
    assert APIError().data == {
        'faultCode': APPLICATION_ERROR, 'faultString': 'API Error'}

    # the formatting can be replaced
    e = APIError('error')
    e.data = {'faultCode': 1, 'faultString': 'custom'}
    assert e.data == {'faultCode': 1, 'faultString': 'custom'}

def test_builtin_errors():
    """
    Test the built-in error types, and their fault codes.
    """
    assert BadRequestError().code == INVALID_REQUEST
    assert ParseError().code == PARSE_ERROR
    assert isinstance(ParseError(), BadRequestError)
    assert InvalidParamsError().code == INVALID_PARAMS
    assert InternalError().code == INTERNAL_ERROR
    assert MethodNotFoundError().code == METHOD_NOT_FOUND

    # the method name is the default message
    e = MethodNotFoundError(method='in.valid')
    assert e.method == 'in.valid'
    assert e.data['faultString'] == 'Method Not Found: in.valid'

    try: make_server().execute('in.valid')
    except MethodNotFoundError as e:
        assert e.method == 'in.valid'
    else:
        assert False, 'MethodNotFoundError not raised'

def test_fault_codes():
    """
    Errors come out of the server as the matching faults.
    """
    server = make_server()
    for xml, code in [('<methodCall>', PARSE_ERROR),
                      (encode_request(None, 1), INVALID_REQUEST),
                      (encode_request('nope', []), METHOD_NOT_FOUND)]:
        assert decode(server.call_method(xml))['faultCode'] == code
