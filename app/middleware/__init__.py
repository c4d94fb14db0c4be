# Middleware package
from .error_handling import ErrorHandlingMiddleware

__all__ = ["ErrorHandlingMiddleware"]
