from .core import Dispatcher

__all__ = (
    'SimpleDispatcher',
)

class SimpleDispatcher(Dispatcher):
    """
    Dispatcher that calls a method by name with native parameters, without
    any XML involved. Used for ``system.multicall``, and useful for
    debugging. Note the different method signature of ``dispatch``.

    Uses the free ``request`` argument of ``parse_request`` to pass along the
    method name and parameters, as the ``Dispatcher`` base class is not
    really designed for this kind of use. Signatures are checked just like
    for an XML-RPC call.
    """
    def parse_request(self, request):
        return (request['name'], request['params'])

    def dispatch(self, name, params=(), user_data=None):
        request = {'name': name, 'params': list(params)}
        return super(SimpleDispatcher, self).dispatch(request, user_data)
