"""
Exceptions raised by the engine.

Expected invalid input (bad cut parameters, ineligible joins, missing lots) is
never raised — it comes back as a None/False sentinel or a failed Outcome.
Exceptions here mean a programming or data error.
"""


class StockyardError(Exception):
    """Base class for all engine errors."""


class InvariantViolation(StockyardError):
    """Data the engine relies on is inconsistent (e.g. a lot references a standard missing from the catalog)."""


class SessionNotFound(StockyardError):
    """No transformation session with the given id."""
