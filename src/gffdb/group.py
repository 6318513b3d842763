# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

"""
Group objects, that link related features into composite objects.
"""

__name__ = "gffdb"
__author__ = "The gffdb contributors"
__all__ = ["Featname", "Homol", "GroupCache", "materialize_group"]

from .segment import Strand


# Stands in for a missing target coordinate in cache keys,
# as 0 is a valid coordinate
_EMPTY = ""


class Featname:
    """
    The name of a composite object, given by a class and a name,
    e.g. ``Transcript`` and ``T1``.

    Objects of this class are immutable.

    Parameters
    ----------
    group_class : str
        The class of the object.
    name : str
        The name of the object.

    Examples
    --------

    >>> group = Featname("Transcript", "T1")
    >>> print(group)
    Transcript:T1
    >>> group == Featname("Transcript", "T1")
    True
    """

    def __init__(self, group_class, name):
        self._group_class = group_class
        self._name = name

    @property
    def group_class(self):
        return self._group_class

    @property
    def name(self):
        return self._name

    @property
    def run_key(self):
        """
        The key deciding whether two features belong to the same
        composite object.
        """
        return (self._group_class, self._name)

    def _key(self):
        return (self._group_class, self._name)

    def __eq__(self, item):
        if type(item) is not type(self):
            return False
        return self._key() == item._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self):
        return f"{self._group_class}:{self._name}"

    def __repr__(self):
        return f"Featname({self._group_class!r}, {self._name!r})"


class Homol(Featname):
    """
    A :class:`Featname` derived from a ``Target`` tag, representing a
    hit on a target sequence, e.g. an alignment or an assembly.

    The target coordinates are kept in the given order:
    If `target_start` is greater than `target_stop`, the hit runs on
    the reverse strand of the target.

    Parameters
    ----------
    group_class : str
        The class of the target sequence.
    name : str
        The name of the target sequence.
    target_start, target_stop : int or None
        The aligned region on the target sequence.
    """

    def __init__(self, group_class, name, target_start, target_stop):
        super().__init__(group_class, name)
        self._target_start = target_start
        self._target_stop = target_stop

    @property
    def target_start(self):
        return self._target_start

    @property
    def target_stop(self):
        return self._target_stop

    @property
    def strand(self):
        """
        The strand of the hit on the target sequence.
        """
        if self._target_start is None or self._target_stop is None:
            return None
        if self._target_start > self._target_stop:
            return Strand.REVERSE
        return Strand.FORWARD

    def _key(self):
        return (
            self._group_class, self._name,
            _cache_value(self._target_start), _cache_value(self._target_stop),
        )

    def __str__(self):
        return (
            f"{self._group_class}:{self._name} "
            f"({self._target_start}..{self._target_stop})"
        )

    def __repr__(self):
        return (
            f"Homol({self._group_class!r}, {self._name!r}, "
            f"{self._target_start!r}, {self._target_stop!r})"
        )


class GroupCache:
    """
    A cache of group objects for the duration of one retrieval.

    Group objects are keyed by class, name and target coordinates, so
    that features of the same composite object share one group
    instance.
    """

    def __init__(self):
        self._groups = {}

    def get(self, key):
        return self._groups.get(key)

    def put(self, key, group):
        self._groups[key] = group

    def clear(self):
        self._groups.clear()

    def __len__(self):
        return len(self._groups)

    def __contains__(self, key):
        return key in self._groups


def materialize_group(group_class, group_name, target_start=None,
                      target_stop=None, cache=None):
    """
    Create the group object for a feature.

    Parameters
    ----------
    group_class, group_name : str or None
        The class and name of the composite object.
    target_start, target_stop : int, optional
        The aligned region on the target, if the group is derived from
        a ``Target`` tag.
    cache : GroupCache, optional
        If given, identical groups are taken from this cache, so that
        they are represented by the same instance.
        Otherwise a new object is created on each call.

    Returns
    -------
    group : Featname or Homol or None
        The group.
        ``None`` if class or name is missing, i.e. the feature is not
        part of a composite object.

    Examples
    --------

    >>> cache = GroupCache()
    >>> first = materialize_group("Transcript", "T1", cache=cache)
    >>> second = materialize_group("Transcript", "T1", cache=cache)
    >>> first is second
    True
    >>> print(materialize_group(None, "T1"))
    None
    """
    if not group_class or not group_name:
        return None
    key = (
        group_class, group_name,
        _cache_value(target_start), _cache_value(target_stop),
    )
    if cache is not None:
        group = cache.get(key)
        if group is not None:
            return group
    if target_start is None and target_stop is None:
        group = Featname(group_class, group_name)
    else:
        group = Homol(group_class, group_name, target_start, target_stop)
    if cache is not None:
        cache.put(key, group)
    return group


def _cache_value(coordinate):
    return _EMPTY if coordinate is None else coordinate
