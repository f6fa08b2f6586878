"""
The function-style interface, modelled after the classic XML-RPC
extension API, for code that wants to keep using it:

    xml = encode_request('add', [1, 2])
    method, params = decode_request(xml)

    server = server_create()
    server_register_method(server, 'add', add)
    response = server_call_method(server, xml, None)
"""
from .decoder import decode, decode_request
from .encoder import encode, encode_request
from .server import Server, parse_method_descriptions
from .wiretypes import get_type, is_fault, set_type

__all__ = (
    'decode', 'decode_request', 'encode', 'encode_request',
    'get_type', 'is_fault', 'set_type', 'parse_method_descriptions',
    'server_create', 'server_destroy', 'server_register_method',
    'server_call_method', 'server_add_introspection_data',
    'server_register_introspection_callback',
)

def server_create():
    return Server()

def server_destroy(server):
    """
    Does nothing, there is nothing to free; a server goes away with its last
    reference. Kept for compatibility.
    """
    if isinstance(server, Server):
        return 1
    return 0

def server_register_method(server, method_name, function):
    """
    Add ``function`` as the handler for ``method_name``. It will be called
    as ``function(method_name, params, user_data)``.
    """
    if isinstance(server, Server):
        return server.register_method(method_name, function)
    return False

def server_call_method(server, xml, user_data, output_options=None):
    """Parse an XML-RPC request, call the method, return the XML response."""
    return server.call_method(xml, user_data, output_options)

def server_add_introspection_data(server, desc):
    if isinstance(server, Server):
        return server.add_introspection_data(desc)
    return 0

def server_register_introspection_callback(server, callback):
    if isinstance(server, Server):
        return server.register_introspection_callback(callback)
    return False
