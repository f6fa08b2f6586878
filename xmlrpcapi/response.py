from .core import APIResponse

__all__ = (
    'PythonResponse',
)

class PythonResponse(APIResponse):
    """
    Special response class that returns the native python objects, as
    retrieved from the method handlers. Exceptions are re-raised.
    """
    def get_response(self):
        if isinstance(self.data, Exception):
            raise self.data
        return self.data
