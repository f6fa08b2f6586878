"""
Test dispatching calls to method handlers.
"""
from django.conf import settings
from shared import *

def whoami(method_name, params, user_data): return [method_name, user_data]
def fail(method_name, params, user_data):
    raise APIError('you requested an error.', code=99)
def fault(method_name, params, user_data):
    return {'faultCode': 5, 'faultString': 'by hand'}
def crash(method_name, params, user_data): raise ValueError('boom')
def badcall(method_name, params, user_data): return len(5)

def test_common():
    # a dispatcher needs to implement parse_request
    raises(NotImplementedError, Dispatcher(make_server()), 'add')

def test_xmlrpc():
    server = make_server(whoami=whoami)
    assert call(server, 'add', [1, 2]) == 3
    assert call(server, 'echo', ['hello']) == 'hello'
    assert call(server, 'echo', [[1, 2]]) == [1, 2]
    assert call(server, 'echo', [{'a': 1}]) == {'a': 1}

    # the handler is told under which name it was called, and gets the
    # user data passed along
    assert call(server, 'whoami', [], user_data='ctx') == ['whoami', 'ctx']
    # no user data is None, which is sent as empty binary data
    assert call(server, 'whoami', []) == ['whoami', TypedValue(b'', 'base64')]

    # bytes work just as well
    xml = encode_request('add', [1, 2]).encode('iso-8859-1')
    assert decode(server.call_method(xml)) == 3

def test_xmlrpc_output_options():
    server = make_server()
    xml = encode_request('echo', ['caf\xe9'])
    assert 'caf&#233;' in server.call_method(xml)
    assert 'caf\xe9' in server.call_method(
        xml, output_options={'escaping': 'markup'})

def test_xmlrpc_errors():
    server = make_server(fail=fail, fault=fault)
    assert call(server, 'nope', []) == {
        'faultCode': METHOD_NOT_FOUND, 'faultString': 'Method Not Found: nope'}
    assert call(server, 'fail', []) == {
        'faultCode': 99, 'faultString': 'API Error: you requested an error.'}
    # handlers may return fault values themselves
    assert call(server, 'fault', []) == {'faultCode': 5,
                                         'faultString': 'by hand'}

    assert decode(server.call_method('not xml'))['faultCode'] == PARSE_ERROR
    assert decode(server.call_method(None))['faultCode'] == PARSE_ERROR
    assert decode(server.call_method(
        '<methodCall><params></params></methodCall>'))['faultCode'] \
        == PARSE_ERROR
    # a response is not a request
    response = server.call_method(encode_request(None, 5))
    assert decode(response)['faultCode'] == INVALID_REQUEST

def test_type_errors():
    """
    A handler raising ``TypeError`` is assumed to have been called wrong.
    """
    server = make_server(badcall=badcall)
    assert call(server, 'badcall', []) == {
        'faultCode': INVALID_REQUEST, 'faultString': 'Bad Request'}

    settings.DEBUG = True
    try:
        result = call(server, 'badcall', [])
        assert result['faultString'].startswith('Bad Request: ')
        assert 'int' in result['faultString']
    finally:
        settings.DEBUG = False

def test_other_exceptions():
    """
    Only ``APIError``s become faults, everything else is raised.
    """
    server = make_server(crash=crash)
    raises(ValueError, server.call_method, encode_request('crash', []))

def test_signatures():
    """
    Parameters are checked against the known signatures.
    """
    server = make_server()
    server.add_introspection_data({'methodList': [{
        'name': 'add',
        'signatures': [{'returns': [{'type': 'int'}],
                        'params': [{'type': 'int'}, {'type': 'i4'}]}]}]})
    assert call(server, 'add', [1, 2]) == 3
    assert call(server, 'add', ['a', 'b']) == {
        'faultCode': INVALID_PARAMS,
        'faultString': 'Invalid Parameters: Wanted int, got string at param 1'}
    assert call(server, 'add', [1, 'b']) == {
        'faultCode': INVALID_PARAMS,
        'faultString': 'Invalid Parameters: Wanted int, got string at param 2'}
    assert call(server, 'add', [1]) == {
        'faultCode': INVALID_PARAMS,
        'faultString': 'Invalid Parameters: No method signature matches '
                       'number of parameters'}

def test_signature_wildcards():
    server = make_server()
    server.add_introspection_data({'methodList': [{
        'name': 'echo',
        'signatures': [{'returns': [{'type': 'mixed'}],
                        'params': [{'type': 'mixed'}]}]}]})
    assert call(server, 'echo', [[1]]) == [1]
    assert call(server, 'echo', ['x']) == 'x'

def test_execute():
    server = make_server(fail=fail)
    assert server.execute('add', [1, 2]) == 3
    assert server.execute('add', (1, 2)) == 3
    assert SimpleDispatcher(server).dispatch('add', [2, 3]) == 5
    raises(MethodNotFoundError, server.execute, 'nope')
    raises(APIError, server.execute, 'fail')

    # with no response class, results are returned as they are
    dispatcher = XmlRpcDispatcher(server, response_class=PythonResponse)
    assert dispatcher(encode_request('add', [1, 2])) == 3

def test_multicall():
    server = make_server(fail=fail, fault=fault, crash=crash)
    calls = [
        {'methodName': 'add', 'params': [1, 2]},
        {'methodName': 'nope', 'params': []},
        {'methodName': 'fail', 'params': []},
        {'methodName': 'system.multicall', 'params': [[]]},
        {'methodName': 'fault', 'params': []},
        {'methodName': 'crash', 'params': []},
        {'methodName': 'add'},
        'add',
    ]
    assert call(server, 'system.multicall', [calls]) == [
        [3],
        {'faultCode': METHOD_NOT_FOUND,
         'faultString': 'Method Not Found: nope'},
        {'faultCode': 99, 'faultString': 'API Error: you requested an error.'},
        {'faultCode': INVALID_REQUEST,
         'faultString': 'Bad Request: Recursive system.multicall forbidden'},
        {'faultCode': 5, 'faultString': 'by hand'},
        {'faultCode': INTERNAL_ERROR,
         'faultString': 'Internal Error: ValueError: boom'},
        {'faultCode': INVALID_REQUEST,
         'faultString': 'Bad Request: missing methodName or params'},
        {'faultCode': INVALID_REQUEST,
         'faultString': 'Bad Request: missing methodName or params'},
    ]

def test_function_interface():
    server = server_create()
    assert server_register_method(server, 'add', add) == True
    assert server_register_method('not a server', 'add', add) == False

    xml = server_call_method(server, encode_request('add', [1, 2]), None)
    assert decode(xml) == 3

    desc = {'methodList': [{'name': 'add', 'purpose': 'Adds'}]}
    assert server_add_introspection_data(server, desc) == 1
    assert server_add_introspection_data(None, desc) == 0
    assert server_register_introspection_callback(server, None) == True
    assert server_register_introspection_callback(None, None) == False

    assert server_destroy(server) == 1
    assert server_destroy(None) == 0
