"""Exceptions raised by the branch-and-bound engine.

Each error also derives from the builtin exception that describes the same
situation, so callers may catch either.
"""


class BnBError(Exception):
    """Base class for all bnbkit errors."""


class MissingHookError(BnBError, TypeError):
    """A required extension hook was not supplied or is not callable."""


class NodeSchemaError(BnBError, ValueError):
    """A node configuration record does not match the declared node schema."""


class NoSolutionError(BnBError, LookupError):
    """No feasible solution has been recorded."""


class InvariantError(BnBError, AssertionError):
    """An internal engine invariant was violated."""
