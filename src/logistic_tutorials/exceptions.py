"""Exception hierarchy for the analysis pipelines.

Every error is terminal to the analysis step that raised it: there is
no retry or recovery policy.  Each class also inherits from the
builtin exception that describes the same failure, so that callers
catching ``ValueError`` or ``OSError`` keep working.

==================  ================  ==================================
Exception           Builtin base      Raised when
==================  ================  ==================================
``LoadError``       ``OSError``       external data file is missing or
                                      malformed
``FitError``        ``ValueError``    degenerate response or
                                      rank-deficient design
``ComparisonError`` ``ValueError``    models are not nested or were
                                      fit on different data
``DimensionError``  ``ValueError``    coefficient and standard-error
                                      tables do not line up
==================  ================  ==================================
"""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for all errors raised by ``logistic_tutorials``."""


class LoadError(AnalysisError, OSError):
    """The external dataset could not be read."""


class FitError(AnalysisError, ValueError):
    """A model could not be fit to the requested data."""


class ComparisonError(AnalysisError, ValueError):
    """Two models cannot be compared as a nested pair."""


class DimensionError(AnalysisError, ValueError):
    """Two tables that must be aligned have different shapes or labels."""
