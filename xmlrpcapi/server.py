"""
An XML-RPC server: a dispatch map of method handlers, plus the
introspection data (help texts and signatures) that goes with them.
"""
import logging
import threading
from collections.abc import Mapping
from xml.etree import ElementTree

from .core import APIError, BadRequestError, MethodNotFoundError, \
    InternalError
from .dispatch import SimpleDispatcher
from .wiretypes import is_fault
from .xmlrpc import XmlRpcDispatcher

__all__ = (
    'Server', 'MethodEntry', 'fold_signature', 'parse_method_descriptions',
)

logger = logging.getLogger(__name__)

class MethodEntry(object):
    """
    A method in the dispatch map. ``signatures`` is a list of type lists,
    return type first; ``signature_docs`` holds the matching descriptions.
    ``documented`` is set for good once introspection data mentioned the
    method.
    """
    def __init__(self, name, function, signatures=None, docstring=None,
                 signature_docs=None):
        self.name = name
        self.function = function
        self.signatures = signatures or []
        self.signature_docs = signature_docs or []
        self.docstring = docstring
        self.documented = False

    def __repr__(self):
        return '<MethodEntry %s>' % self.name

def fold_signature(signature):
    """
    Expand one declared signature into the concrete signatures it allows.
    Every optional parameter means the call may stop right before it:

        returns int, params (string a, optional int b)
        => [int, string], [int, string, int]

    Returns a list of (types, descriptions) tuples, or ``None`` if the
    declaration is not usable (no return type, or no parameter list).
    """
    if not isinstance(signature, Mapping):
        return None
    returns, params = signature.get('returns'), signature.get('params')
    if not isinstance(returns, list) or not returns or \
       not isinstance(params, list):
        return None
    try:
        types = [returns[0]['type']]
        docs = [returns[0].get('description', '')]
        folded = []
        for param in params:
            # the call may stop here even if required params follow
            if param.get('optional'):
                folded.append((list(types), list(docs)))
            types.append(param['type'])
            docs.append(param.get('description', ''))
    except (KeyError, TypeError, AttributeError):
        return None
    folded.append((types, docs))
    return folded

def parse_method_descriptions(xml):
    """
    Parse method descriptions in the xmlrpc-epi introspection format into
    the structure ``Server.add_introspection_data`` expects:

    <introspection version="1.0">
     <methodList>
      <methodDescription name="add">
       <purpose>Adds two numbers</purpose>
       <signatures>
        <signature>
         <params>
          <value type="int" name="a">first number</value>
          <value type="int" name="b" optional="yes">second number</value>
         </params>
         <returns><value type="int">the sum</value></returns>
        </signature>
       </signatures>
      </methodDescription>
     </methodList>
    </introspection>

    Returns an empty dict if the XML cannot be parsed.
    """
    try:
        root = ElementTree.fromstring(xml)
    except ElementTree.ParseError as e:
        logger.debug('Could not parse method descriptions: %s', e)
        return {}

    def describe(value):
        return {'type': value.get('type', ''),
                'name': value.get('name', ''),
                'optional': value.get('optional', '').lower() in
                            ('yes', 'true', '1'),
                'description': (value.text or '').strip()}

    methods = []
    for node in root.iter('methodDescription'):
        method = {'name': node.get('name')}
        purpose = node.find('purpose')
        if purpose is not None:
            method['purpose'] = (purpose.text or '').strip()
        signatures = node.find('signatures')
        if signatures is not None:
            method['signatures'] = [
                {'params': [describe(v) for v in sig.findall('params/value')],
                 'returns': [describe(v) for v in sig.findall('returns/value')]}
                for sig in signatures.findall('signature')]
        methods.append(method)
    return {'methodList': methods}

class Server(object):
    """
    Holds the dispatch map. Handlers are called as
    ``function(method_name, params, user_data)``:

        def add(method_name, params, user_data):
            return params[0] + params[1]

        server = Server()
        server.register_method('add', add)
        xml = server.call_method(request_xml)

    The ``system.*`` introspection methods are always available. Their data
    comes from ``add_introspection_data``, or from a callback registered with
    ``register_introspection_callback``, which is only run when somebody
    actually asks for help texts or signatures.
    """

    def __init__(self):
        self.dmap = {}
        self._introspection_callback = None
        self._callback_lock = threading.Lock()
        self._install_system_methods()

    def _install_system_methods(self):
        self.dmap['system.listMethods'] = MethodEntry(
            'system.listMethods', self.system_listMethods,
            [['array']], 'This method lists all the methods that the '
            'XML-RPC server knows how to dispatch')
        self.dmap['system.methodHelp'] = MethodEntry(
            'system.methodHelp', self.system_methodHelp,
            [['string', 'string']], 'Returns help text if defined for the '
            'method passed, otherwise returns an empty string')
        self.dmap['system.methodSignature'] = MethodEntry(
            'system.methodSignature', self.system_methodSignature,
            [['array', 'string']], 'Returns an array of known signatures '
            '(an array of arrays) for the method name passed. If no '
            'signatures are known, returns a none-array (test for type != '
            'array to detect missing signature)')
        self.dmap['system.multicall'] = MethodEntry(
            'system.multicall', self.system_multicall,
            [['array', 'array']], 'Boxcar multiple RPC calls in one request. '
            'See http://www.xmlrpc.com/discuss/msgReader$1208 for details')
        self.dmap['system.getCapabilities'] = MethodEntry(
            'system.getCapabilities', self.system_getCapabilities,
            [['struct']], 'This method lists all the capabilites that the '
            'XML-RPC server has: the (more or less standard) extensions to '
            'the xmlrpc spec that it adheres to')

    def register_method(self, name, function):
        """Add a handler to the dispatch map, replacing any previous one."""
        self.dmap[name] = MethodEntry(name, function)
        return True

    def resolve(self, name):
        return self.dmap.get(name)

    def call_method(self, xml, user_data=None, output_options=None):
        """
        Handle an XML-RPC request, and return the XML response.
        """
        dispatcher = XmlRpcDispatcher(self, output_options=output_options)
        return dispatcher(xml, user_data)

    def execute(self, name, params=(), user_data=None):
        """
        Mini-dispatcher that calls a method with native parameters, and
        returns the native result. ``APIError``s are raised.
        """
        return SimpleDispatcher(self).dispatch(name, params, user_data)

    # introspection ###########################################################

    def add_introspection_data(self, desc):
        """
        Record help texts and signatures for methods that are in the
        dispatch map; others are ignored. See ``parse_method_descriptions``
        for the format of ``desc``.

        A method's signatures are replaced (not merged) by the ones given,
        each of them expanded for its optional parameters. Returns 1 if
        anything was recorded, 0 otherwise.
        """
        out = 0
        if not isinstance(desc, Mapping) or \
           not isinstance(desc.get('methodList'), list):
            return out

        for method_desc in desc['methodList']:
            if not isinstance(method_desc, Mapping):
                continue
            method = self.dmap.get(method_desc.get('name'))
            if method is None:
                continue
            method.documented = True
            if method_desc.get('purpose') is not None:
                method.docstring = method_desc['purpose']
                out = 1

            declared = method_desc.get('signatures')
            if not isinstance(declared, list) or not declared:
                continue
            signatures = {}
            for signature in declared:
                folded = fold_signature(signature)
                if folded is None:
                    logger.debug('Skipping invalid signature for %s: %r',
                                 method.name, signature)
                    continue
                # the key makes sure each signature is only recorded once
                for types, docs in folded:
                    signatures['/'.join(types)] = (types, docs)
                out = 1
            method.signatures = [types for types, _ in signatures.values()]
            method.signature_docs = [docs for _, docs in signatures.values()]
        return out

    def register_introspection_callback(self, callback):
        """
        ``callback`` is called without arguments the first time help texts or
        signatures are requested, and has to return what
        ``add_introspection_data`` accepts, or XML for
        ``parse_method_descriptions``. Pass ``None`` to remove it.
        """
        with self._callback_lock:
            self._introspection_callback = callback
        return True

    def _run_introspection_callback(self):
        # the callback is cleared before it runs, so that it fires only once
        # per server, even if it fails
        with self._callback_lock:
            callback, self._introspection_callback = \
                self._introspection_callback, None
        if callback is None:
            return
        logger.debug('Running introspection callback %r', callback)
        desc = callback()
        if isinstance(desc, (str, bytes)):
            desc = parse_method_descriptions(desc)
        self.add_introspection_data(desc)

    def _find_method(self, name):
        method = self.dmap.get(name)
        if method is None:
            raise MethodNotFoundError(
                "Can't introspect: method unknown", method=name)
        return method

    # system methods ##########################################################

    def system_listMethods(self, method_name, params, user_data):
        return list(self.dmap)

    def system_methodHelp(self, method_name, params, user_data):
        self._run_introspection_callback()
        return self._find_method(params[0]).docstring or ''

    def system_methodSignature(self, method_name, params, user_data):
        self._run_introspection_callback()
        method = self._find_method(params[0])
        if not method.signatures:
            return 'undef'
        return [list(signature) for signature in method.signatures]

    def system_multicall(self, method_name, params, user_data):
        results = []
        for call in params[0]:
            try:
                if not isinstance(call, Mapping) or \
                   'methodName' not in call or \
                   not isinstance(call.get('params'), list):
                    raise BadRequestError('missing methodName or params')
                if call['methodName'] == 'system.multicall':
                    raise BadRequestError(
                        'Recursive system.multicall forbidden')
                result = self.execute(call['methodName'], call['params'],
                                      user_data)
                if not is_fault(result):
                    result = [result]
            except APIError as e:
                result = e.data
            except Exception as e:
                logger.exception('Error in system.multicall entry')
                result = InternalError('%s: %s' % (type(e).__name__, e)).data
            results.append(result)
        return results

    def system_getCapabilities(self, method_name, params, user_data):
        return {
            'xmlrpc': {
                'specUrl': 'http://www.xmlrpc.com/spec',
                'specVersion': 1},
            'faults_interop': {
                'specUrl': 'http://xmlrpc-epi.sourceforge.net/specs/'
                           'rfc.fault_codes.php',
                'specVersion': 20010516},
            'introspection': {
                'specUrl': 'http://xmlrpc-epi.sourceforge.net/specs/'
                           'rfc.introspection.php',
                'specVersion': 2},
            'system.multicall': {
                'specUrl': 'http://www.xmlrpc.com/discuss/msgReader$1208',
                'specVersion': 1},
        }
