from contextlib import contextmanager
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

__all__ = (
    'EncoderOptions', 'defaults', 'get_setting',
)

def get_setting(name, default=None):
    """
    Read ``name`` from the Django settings, falling back to ``default``
    if it is not set, or if no settings have been configured at all (the
    package is perfectly usable outside of a Django project).
    """
    try:
        return getattr(settings, name, default)
    except ImproperlyConfigured:
        return default

class EncoderOptions(object):
    """
    Options that influence how native values are turned into wire values.

    ``double_precision`` is the number of decimal digits doubles are written
    with (``None`` means Python's shortest ``repr``), ``internal_encoding``
    the charset text is assumed to be in when it has to become bytes, i.e.
    for base64 payloads given as ``str``.
    """
    def __init__(self, double_precision=None, internal_encoding='UTF-8'):
        self.double_precision = double_precision
        self.internal_encoding = internal_encoding

    def copy(self, **changes):
        options = EncoderOptions(self.double_precision, self.internal_encoding)
        for name, value in changes.items():
            if not hasattr(options, name):
                raise TypeError('unknown encoder option %r' % name)
            setattr(options, name, value)
        return options

    def __eq__(self, other):
        return isinstance(other, EncoderOptions) and \
            vars(self) == vars(other)

    def __repr__(self):
        return 'EncoderOptions(double_precision=%r, internal_encoding=%r)' % (
            self.double_precision, self.internal_encoding)

class DefaultOptions(object):
    """
    The process-wide default ``EncoderOptions``.

    Code that needs different settings for the duration of a call uses
    ``override``, which is guaranteed to put the previous defaults back, no
    matter how the block is left. This is a single slot shared by the whole
    process: if you encode from several threads, serialize those calls.
    """
    def __init__(self):
        self._options = None

    def get(self):
        if self._options is None:
            self._options = EncoderOptions(
                internal_encoding=get_setting('XMLRPC_INTERNAL_ENCODING',
                                              'UTF-8'))
        return self._options

    def reset(self):
        """Forget the current defaults; they are re-read from the settings."""
        self._options = None

    @contextmanager
    def override(self, **changes):
        previous = self.get()
        self._options = previous.copy(**changes)
        try:
            yield self._options
        finally:
            self._options = previous

defaults = DefaultOptions()
