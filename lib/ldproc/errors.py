"""
Errors raised by the LDProc algorithms.

Every failure carries a JSON-LD error ``code`` (such as
``'invalid IRI mapping'``), a broad ``type`` category, optional ``details``
describing the offending key or value and an optional ``cause`` when the
error wraps another one.

.. module:: ldproc.errors
  :synopsis: JSON-LD error types
"""

import sys
import traceback

__all__ = ['JsonLdError', 'NQuadsSyntaxError']


class JsonLdError(Exception):
    """
    Base class for JSON-LD errors.
    """

    def __init__(self, message, type_, details=None, code=None, cause=None):
        Exception.__init__(self, message)
        self.type = type_
        self.details = details
        self.code = code
        self.cause = cause
        self.causeTrace = traceback.extract_tb(sys.exc_info()[2])

    @property
    def root_cause(self):
        """
        The innermost error in the cause chain, this error if it wraps
        nothing.
        """
        error = self
        while isinstance(error, JsonLdError) and error.cause is not None:
            error = error.cause
        return error

    def __str__(self):
        rval = str(self.args[0]) if self.args else ''
        rval += '\nType: ' + self.type
        if self.code:
            rval += '\nCode: ' + self.code
        if self.details:
            rval += '\nDetails: ' + repr(self.details)
        if self.cause:
            rval += '\nCause: ' + str(self.cause)
            rval += ''.join(traceback.format_list(self.causeTrace))
        return rval


class NQuadsSyntaxError(JsonLdError, ValueError):
    """
    Raised when N-Quads input cannot be parsed.
    """

    def __init__(self, message, line_number=None, reason=None):
        JsonLdError.__init__(
            self, message, 'jsonld.ParseError',
            {'line': line_number, 'reason': reason},
            code='invalid N-Quads')
        self.line_number = line_number
        self.reason = reason
