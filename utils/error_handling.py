import functools
import logging
from typing import Type

from utils.exceptions import ExpressionMLException


def handle_engine_errors(operation_name: str, wrap_as: Type[ExpressionMLException] = ExpressionMLException):
    """
    Decorator for engine entry points.

    Project exceptions (InvalidConfiguration, FitFailure, EmptyGrid, ...) pass
    through unchanged; anything else is logged with its traceback on the
    engine's logger and re-raised as ``wrap_as``, chained to the original.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except ExpressionMLException:
                raise
            except Exception as e:
                logger = getattr(self, 'logger', None) or logging.getLogger(type(self).__module__)
                logger.error(f"{operation_name} failed in {type(self).__name__}: {type(e).__name__}: {e}",
                             exc_info=True)
                raise wrap_as(f"{operation_name} failed: {e}") from e
        return wrapper
    return decorator
