# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

"""
This module contains all errors and warnings raised by the retrieval
engine and its storage adaptors.
"""

__name__ = "gffdb"
__author__ = "The gffdb contributors"
__all__ = [
    "AmbiguousLandmarkError",
    "UnknownLandmarkError",
    "InvalidRangeError",
    "MatcherCompileError",
    "BackendError",
    "StreamSynchronizationError",
    "RequestError",
    "AggregatorConflictWarning",
]


class AmbiguousLandmarkError(Exception):
    """
    Indicates that a landmark name occurs on more than one reference
    sequence, so that no single coordinate span can be given.
    """

    pass


class UnknownLandmarkError(Exception):
    """
    Indicates that a landmark or reference sequence of the given class
    does not exist in the database.
    """

    pass


class InvalidRangeError(ValueError):
    """
    Indicates that a requested range or range type cannot be used for a
    query.
    """

    pass


class MatcherCompileError(ValueError):
    """
    Indicates that a user supplied feature type pattern is not a valid
    regular expression.
    """

    pass


class BackendError(Exception):
    """
    Indicates that the storage adaptor failed to answer a request.
    """

    pass


class StreamSynchronizationError(BackendError):
    """
    Indicates that a query was issued while a feature stream still
    holds the adaptor's only cursor.
    """

    pass


class RequestError(Exception):
    """
    Indicates that a remote server returned an error instead of GFF
    data.
    """

    pass


class AggregatorConflictWarning(UserWarning):
    """
    Indicates that more than one aggregator claimed the same group of
    features.
    Only the result of the first aggregator is kept.
    """

    pass
