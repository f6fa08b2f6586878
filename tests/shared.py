# setup dummy django environment
from django.conf import settings
settings.configure()

from pytest import raises
from xmlrpcapi import *

# method handlers used by several tests
def add(method_name, params, user_data): return params[0] + params[1]
def echo(method_name, params, user_data): return params[0]

def make_server(**methods):
    server = Server()
    server.register_method('add', add)
    server.register_method('echo', echo)
    for name, function in methods.items():
        server.register_method(name, function)
    return server

def call(server, method, params, **kwargs):
    """Call ``method`` on ``server`` through XML, return the decoded result."""
    return decode(server.call_method(encode_request(method, params), **kwargs))
