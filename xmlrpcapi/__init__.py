from .core import *
from .wiretypes import *
from .config import *
from .envelope import Request, Response, Fault
from .encoder import *
from .decoder import *
from .dispatch import *
from .response import *
from .xmlrpc import *
from .server import *
from .api import *
