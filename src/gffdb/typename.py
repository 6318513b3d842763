# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

"""
Feature types and the matching of features against type patterns.
"""

__name__ = "gffdb"
__author__ = "The gffdb contributors"
__all__ = ["Typename", "TypeMatcher", "parse_types", "compile_types"]

import functools
import re
from .error import MatcherCompileError


_WILDCARD = ".*"


class Typename:
    """
    The type of a feature, consisting of a *method* and a *source*.

    The method describes what the feature is (e.g. ``exon``), the
    source describes how it was derived (e.g. ``curated``).
    Either field may be ``None``, which acts as wildcard when the
    type is used as pattern.
    Comparison of :class:`Typename` objects is case-insensitive.

    Objects of this class are immutable.

    Parameters
    ----------
    method : str or None
        The feature method.
    source : str or None, optional
        The feature source.

    Attributes
    ----------
    method, source
        Same as the parameters.

    Examples
    --------

    >>> exon = Typename("exon", "curated")
    >>> print(exon)
    exon:curated
    >>> exon == Typename.parse("EXON:Curated")
    True
    >>> print(Typename.parse("intron"))
    intron
    """

    def __init__(self, method, source=None):
        self._method = method if method else None
        self._source = source if source else None

    @staticmethod
    def parse(type_string):
        """
        Create a :class:`Typename` from a ``"method:source"`` string.

        The string is split at the first colon.
        A string without colon gives a type without source.

        Parameters
        ----------
        type_string : str
            The type string.

        Returns
        -------
        typename : Typename
            The parsed type.
        """
        method, _, source = type_string.partition(":")
        return Typename(method, source)

    @property
    def method(self):
        return self._method

    @property
    def source(self):
        return self._source

    def __str__(self):
        if self._source is None:
            return self._method if self._method is not None else ""
        return f"{self._method or ''}:{self._source}"

    def __repr__(self):
        return f"Typename({self._method!r}, {self._source!r})"

    def _key(self):
        return (
            self._method.lower() if self._method is not None else None,
            self._source.lower() if self._source is not None else None,
        )

    def __eq__(self, item):
        if not isinstance(item, Typename):
            return False
        return self._key() == item._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, item):
        return str(self).lower() < str(item).lower()


class TypeMatcher:
    """
    A compiled predicate that tells whether a feature has one of a set
    of requested types.

    Each requested type is represented by a pair of case-insensitive
    regular expressions, one for the method and one for the source.
    A feature matches, if both expressions of at least one pair match
    its method and source completely.
    A matcher without any pair matches every feature.

    Instances are created by :func:`compile_types()` and should not be
    created directly.

    Parameters
    ----------
    pattern_pairs : tuple of tuple(str, str)
        The normalized ``(method, source)`` patterns.
    """

    def __init__(self, pattern_pairs):
        self._pairs = pattern_pairs
        self._compiled = []
        for method, source in pattern_pairs:
            try:
                self._compiled.append((
                    re.compile(method, re.IGNORECASE),
                    re.compile(source, re.IGNORECASE),
                ))
            except re.error as e:
                raise MatcherCompileError(
                    f"Feature type pattern '{method}:{source}' is invalid: {e}"
                )

    @property
    def pattern(self):
        """
        The normalized pattern string, as alternation of
        ``method:source`` pairs.
        """
        return "|".join(f"{method}:{source}" for method, source in self._pairs)

    @property
    def matches_all(self):
        return len(self._pairs) == 0

    def match_type(self, method, source):
        """
        Check whether the given method and source match any of the type
        patterns.

        Parameters
        ----------
        method, source : str or None
            The method and source to be checked.

        Returns
        -------
        match : bool
            True, if the type matches.
        """
        if not self._compiled:
            return True
        method = method if method is not None else ""
        source = source if source is not None else ""
        for method_re, source_re in self._compiled:
            if method_re.fullmatch(method) and source_re.fullmatch(source):
                return True
        return False

    def __call__(self, feature):
        if feature is None:
            return False
        return self.match_type(feature.method, feature.source)

    def __repr__(self):
        return f"TypeMatcher({self.pattern!r})"


def parse_types(types):
    """
    Parse requested feature types into a list of :class:`Typename`
    objects.

    Parameters
    ----------
    types : str or Typename or iterable object of (str or Typename) or None
        The requested types in ``"method:source"`` notation.
        Regular expressions are allowed in both fields.

    Returns
    -------
    typenames : list of Typename
        The parsed types.
        An empty list is returned for ``None`` or an empty iterable,
        which means that all types are requested.

    Examples
    --------

    >>> parse_types(["exon:curated", "similarity"])
    [Typename('exon', 'curated'), Typename('similarity', None)]
    >>> parse_types(None)
    []
    """
    if types is None:
        return []
    if isinstance(types, (str, Typename)):
        types = [types]
    typenames = []
    for type in types:
        if isinstance(type, Typename):
            typenames.append(type)
        elif isinstance(type, str):
            typenames.append(Typename.parse(type))
        else:
            raise TypeError(
                f"Feature types must be given as 'str' or 'Typename', "
                f"not {type.__class__.__name__}"
            )
    return typenames


def compile_types(types):
    """
    Create a :class:`TypeMatcher` for the given feature types.

    Matchers are cached, hence compiling the same set of types again
    returns the same :class:`TypeMatcher` instance.

    Parameters
    ----------
    types : str or Typename or iterable object of (str or Typename) or None
        The requested types, see :func:`parse_types()`.

    Returns
    -------
    matcher : TypeMatcher
        The matcher, callable with a feature.

    Raises
    ------
    MatcherCompileError
        If a type contains an invalid regular expression.

    Examples
    --------

    >>> match = compile_types("similarity:BLAST.*")
    >>> match.match_type("similarity", "BLASTX")
    True
    >>> match.match_type("similarity", "Genefinder")
    False
    """
    pairs = tuple(
        (typename.method or _WILDCARD, typename.source or _WILDCARD)
        for typename in parse_types(types)
    )
    return _compile(pairs)


@functools.cache
def _compile(pattern_pairs):
    return TypeMatcher(pattern_pairs)
