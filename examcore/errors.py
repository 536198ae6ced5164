"""
Exception types raised by the exam core.

Domain operations raise these to their caller; batch operations catch
ExamCoreError per item, log it and continue.
"""


class ExamCoreError(Exception):
    """Base class for all exam core failures."""


class ValidationError(ExamCoreError, ValueError):
    """An argument, record or configuration value is invalid."""


class NotFoundError(ExamCoreError, LookupError):
    """An unknown student, exam, question, session or report card was requested."""


class PersistenceError(ExamCoreError):
    """The underlying storage could not be read or written."""
