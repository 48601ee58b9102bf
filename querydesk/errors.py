"""Exception types used inside querydesk.

Public operations report failures through TabularResult values or boolean
returns; these exceptions only travel between internal layers.
"""


class QueryDeskError(Exception):
    """Base class for querydesk errors."""


class NotSupportedError(QueryDeskError):
    """Raised when an adapter cannot perform an operation for its database."""


class UnknownAdapterError(QueryDeskError):
    """Raised when no adapter matches a database type or connection."""


class ExportError(QueryDeskError):
    """Raised when a result cannot be written to an export file."""
