"""
Shared helpers: exception hierarchy, error-handling decorator, delimited table I/O,
RMSE and result-directory constants.
"""
