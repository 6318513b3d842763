# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

"""
Aggregators reassemble flat features into composite features, e.g.
exons and introns into a transcript.

Before a query, each aggregator *disaggregates* its composite type into
the component types, that are actually stored.
After the query, the aggregators are given the runs of features sharing
a group in reverse registration order, so that higher level objects
can be built from the composites of lower level aggregators.
"""

__name__ = "gffdb"
__author__ = "The gffdb contributors"
__all__ = [
    "Aggregator",
    "TranscriptAggregator",
    "ProcessedTranscriptAggregator",
    "CodingAggregator",
    "CloneAggregator",
    "AlignmentAggregator",
    "MatchAggregator",
    "AggregatorPipeline",
    "register_aggregator",
    "get_aggregator",
    "registered_aggregators",
    "get_default_aggregators",
    "set_default_aggregators",
]

import logging
import warnings
from .error import AggregatorConflictWarning
from .feature import Feature
from .typename import Typename, compile_types, parse_types

_log = logging.getLogger(__name__)


class Aggregator:
    """
    An :class:`Aggregator` builds composite features of one type from
    a run of features sharing a group.

    The composite type is given by `method`.
    Its components are the `sub_parts` and the optional `main_method`:
    A feature of the main method provides the body of the composite
    feature and is absorbed into it, the sub parts become its
    subfeatures.

    Subclasses provide defaults for the parameters via the class
    attributes ``METHOD``, ``SUB_PARTS``, ``MAIN_METHOD`` and
    ``WHOLE_OBJECT``.

    Parameters
    ----------
    method : str, optional
        The method of the composite features.
    sub_parts : iterable object of str, optional
        The types of the parts, in ``"method:source"`` notation.
    main_method : str, optional
        The type of the feature providing the body of the composite.
    whole_object : bool, optional
        If true, a composite is only built, if both the main feature
        and at least one part are present.

    Examples
    --------

    >>> gene = Aggregator("gene", sub_parts=["transcript"])
    >>> gene.disaggregate(["gene:curated", "repeat"])
    [Typename('transcript', 'curated'), Typename('repeat', None)]
    >>> print(gene.disaggregate(["repeat"]))
    None
    """

    METHOD = None
    SUB_PARTS = ()
    MAIN_METHOD = None
    WHOLE_OBJECT = False

    def __init__(self, method=None, sub_parts=None, main_method=None,
                 whole_object=None):
        self._method = method if method is not None else self.METHOD
        if self._method is None:
            raise ValueError("An aggregator requires a method")
        if sub_parts is None:
            sub_parts = self.SUB_PARTS
        self._sub_parts = tuple(parse_types(list(sub_parts)))
        if main_method is None:
            main_method = self.MAIN_METHOD
        self._main_method = (
            Typename.parse(main_method) if isinstance(main_method, str)
            else main_method
        )
        self._whole_object = (
            whole_object if whole_object is not None else self.WHOLE_OBJECT
        )
        self._match_main = compile_types(
            [self._main_method] if self._main_method is not None else []
        )
        self._match_sub = compile_types(list(self._sub_parts))

    @property
    def method(self):
        return self._method

    @property
    def sub_parts(self):
        return self._sub_parts

    @property
    def main_method(self):
        return self._main_method

    @property
    def whole_object(self):
        return self._whole_object

    def components(self):
        """
        Get the component types of the composite type.

        Returns
        -------
        components : list of Typename
            The main method (if any), followed by the sub parts.
        """
        components = []
        if self._main_method is not None:
            components.append(self._main_method)
        components.extend(self._sub_parts)
        return components

    def disaggregate(self, types):
        """
        Replace the composite type of this aggregator in a list of
        requested types by its components.

        A component without source inherits the source of the
        requested type.

        Parameters
        ----------
        types : iterable object of (str or Typename)
            The requested types.

        Returns
        -------
        types : list of Typename or None
            The requested types, with the composite type replaced.
            ``None``, if no requested type concerns this aggregator.
        """
        result = []
        concerned = False
        for typename in parse_types(types):
            if not self._handles(typename):
                result.append(typename)
                continue
            concerned = True
            for component in self.components():
                result.append(Typename(
                    component.method,
                    component.source if component.source is not None
                    else typename.source
                ))
        return result if concerned else None

    def aggregate(self, run):
        """
        Build a composite feature from a run of features sharing one
        group.

        Parameters
        ----------
        run : list of Feature
            The features of one group.

        Returns
        -------
        composites : list of Feature
            The composite features.
            Empty, if the run does not contain components of this
            aggregator or already contains a composite of its type.
        """
        if any(feature.is_compound and self._is_own(feature) for feature in run):
            return []
        base = None
        parts = []
        for feature in run:
            if base is None and self.absorbs(feature):
                base = feature
            elif self._match_sub(feature):
                parts.append(feature)
        if self._whole_object and (base is None or len(parts) == 0):
            return []
        if base is None and len(parts) == 0:
            return []
        source = base.source if base is not None else parts[0].source
        return [Feature.compound(self._method, source, parts, base)]

    def absorbs(self, feature):
        """
        Check whether a feature provides the body of a composite
        feature built by this aggregator.
        """
        return (
            self._main_method is not None
            and not feature.is_compound
            and self._match_main(feature)
        )

    def _handles(self, typename):
        return (
            typename.method is not None
            and typename.method.lower() == self._method.lower()
        )

    def _is_own(self, feature):
        return (
            feature.method is not None
            and feature.method.lower() == self._method.lower()
        )

    def __repr__(self):
        sub_parts = [str(part) for part in self._sub_parts]
        return f"{self.__class__.__name__}(method={self._method!r}, sub_parts={sub_parts!r})"


class TranscriptAggregator(Aggregator):
    """
    Assembles transcripts from introns, exons, UTRs and coding
    sequences.
    """

    METHOD = "transcript"
    MAIN_METHOD = "transcript"
    SUB_PARTS = (
        "intron", "exon", "CDS", "5'UTR", "3'UTR", "TSS", "PolyA",
    )


class ProcessedTranscriptAggregator(Aggregator):
    """
    Assembles processed transcripts from mRNA features and their parts,
    using Sequence Ontology names.
    """

    METHOD = "processed_transcript"
    MAIN_METHOD = "mRNA"
    SUB_PARTS = (
        "CDS", "5'UTR", "3'UTR", "UTR", "exon",
        "five_prime_UTR", "three_prime_UTR",
        "transcription_start_site", "polyA_site",
    )


class CodingAggregator(Aggregator):
    """
    Assembles the coding part of a transcript from its CDS features.
    """

    METHOD = "coding"
    SUB_PARTS = ("CDS",)


class CloneAggregator(Aggregator):
    """
    Assembles clones from their end features.
    """

    METHOD = "clone"
    SUB_PARTS = ("Clone_left_end", "Clone_right_end", "region:Genbank")


class AlignmentAggregator(Aggregator):
    """
    Assembles gapped alignments from similarity features.
    """

    METHOD = "alignment"
    SUB_PARTS = ("similarity",)


class MatchAggregator(Aggregator):
    """
    Assembles matches from a ``match`` feature and its high scoring
    pairs.
    """

    METHOD = "match"
    MAIN_METHOD = "match"
    SUB_PARTS = ("similarity", "HSP")


_registry = {
    "transcript": TranscriptAggregator,
    "processed_transcript": ProcessedTranscriptAggregator,
    "coding": CodingAggregator,
    "clone": CloneAggregator,
    "alignment": AlignmentAggregator,
    "match": MatchAggregator,
}

_default_aggregators = ["transcript", "clone", "alignment"]


def register_aggregator(name, aggregator_class):
    """
    Make an aggregator class available under the given name.

    Parameters
    ----------
    name : str
        The name, that is used to refer to the aggregator, e.g. in
        :func:`get_aggregator()`.
    aggregator_class : type
        A subclass of :class:`Aggregator`.
    """
    if not (isinstance(aggregator_class, type)
            and issubclass(aggregator_class, Aggregator)):
        raise TypeError(
            f"'{aggregator_class!r}' is not a subclass of 'Aggregator'"
        )
    _registry[name.lower()] = aggregator_class


def get_aggregator(name, **kwargs):
    """
    Create an aggregator from its registered name.

    Parameters
    ----------
    name : str
        The registered name of the aggregator.
    **kwargs
        Passed to the constructor of the aggregator.

    Returns
    -------
    aggregator : Aggregator
        The new aggregator.
    """
    try:
        aggregator_class = _registry[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown aggregator '{name}', "
            f"available are: {', '.join(registered_aggregators())}"
        )
    return aggregator_class(**kwargs)


def registered_aggregators():
    return sorted(_registry.keys())


def get_default_aggregators():
    """
    Get the names of the aggregators, that are used by a
    :class:`GFFDatabase` if no aggregators are given.

    Returns
    -------
    names : list of str
        The aggregator names.
    """
    return list(_default_aggregators)


def set_default_aggregators(names):
    """
    Set the names of the aggregators, that are used by a
    :class:`GFFDatabase` if no aggregators are given.

    Parameters
    ----------
    names : iterable object of str
        The aggregator names.
        Each name must be registered.
    """
    names = list(names)
    for name in names:
        if name.lower() not in _registry:
            raise ValueError(f"Unknown aggregator '{name}'")
    _default_aggregators[:] = names


class AggregatorPipeline:
    """
    An ordered list of aggregators.

    Disaggregation is performed in the order of registration,
    aggregation in reverse order.

    Parameters
    ----------
    aggregators : iterable object of (Aggregator or str), optional
        The initial aggregators.
        Names are resolved via :func:`get_aggregator()`.
    """

    def __init__(self, aggregators=()):
        self._aggregators = []
        for aggregator in aggregators:
            self.add(aggregator)

    def add(self, aggregator):
        """
        Append an aggregator to the pipeline.

        Parameters
        ----------
        aggregator : Aggregator or str
            The aggregator or its registered name.
        """
        if isinstance(aggregator, str):
            aggregator = get_aggregator(aggregator)
        elif not isinstance(aggregator, Aggregator):
            raise TypeError(
                f"Expected 'Aggregator' or 'str', "
                f"not '{type(aggregator).__name__}'"
            )
        self._aggregators.append(aggregator)

    @property
    def aggregators(self):
        return tuple(self._aggregators)

    def __len__(self):
        return len(self._aggregators)

    def disaggregate(self, types):
        """
        Expand the requested types into the types, that need to be
        retrieved from storage.

        Parameters
        ----------
        types : iterable object of (str or Typename)
            The requested types.

        Returns
        -------
        primitive_types : list of Typename
            The expanded types without duplicates.
        active : tuple of Aggregator
            The aggregators whose composite type was requested, in
            registration order.
        """
        primitive_types = parse_types(types)
        active = []
        for aggregator in self._aggregators:
            expanded = aggregator.disaggregate(primitive_types)
            if expanded is not None:
                primitive_types = expanded
                active.append(aggregator)
        unique_types = []
        for typename in primitive_types:
            if typename not in unique_types:
                unique_types.append(typename)
        return unique_types, tuple(active)

    def aggregate(self, features, aggregators=None):
        """
        Aggregate a complete set of features.

        Features are grouped by their group and reference sequence,
        regardless of their order in the input.

        Parameters
        ----------
        features : iterable object of Feature
            The features.
        aggregators : iterable object of Aggregator, optional
            The aggregators to use, by default all aggregators of the
            pipeline.

        Returns
        -------
        features : list of Feature
            The composite features and the features, that were not
            absorbed into a composite feature.
        """
        aggregators = self._select(aggregators)
        # Each run is represented by the index of its first feature
        runs = {}
        slots = []
        for feature in features:
            if feature.group is None:
                slots.append([feature])
                continue
            key = (feature.group.run_key, feature.ref)
            run = runs.get(key)
            if run is None:
                run = []
                runs[key] = run
                slots.append(run)
            run.append(feature)
        result = []
        for slot in slots:
            if len(slot) == 1 and slot[0].group is None:
                result.append(slot[0])
            else:
                result.extend(self._aggregate_run(slot, aggregators))
        return result

    def aggregate_stream(self, features, aggregators=None):
        """
        Aggregate a stream of features, that arrive in group-contiguous
        order.

        Only consecutive features of the same group are aggregated,
        hence a group, whose features are not adjacent in the stream,
        may yield more than one composite.

        Parameters
        ----------
        features : iterable object of Feature
            The features.
        aggregators : iterable object of Aggregator, optional
            The aggregators to use, by default all aggregators of the
            pipeline.

        Yields
        ------
        feature : Feature
            A composite feature or a feature, that was not absorbed
            into a composite feature.
        """
        aggregators = self._select(aggregators)
        run = []
        run_key = None
        for feature in features:
            key = (
                (feature.group.run_key, feature.ref)
                if feature.group is not None else None
            )
            if run and key != run_key:
                yield from self._aggregate_run(run, aggregators)
                run = []
            if key is None:
                yield feature
            else:
                run.append(feature)
                run_key = key
        if run:
            yield from self._aggregate_run(run, aggregators)

    def _select(self, aggregators):
        if aggregators is None:
            return tuple(self._aggregators)
        return tuple(aggregators)

    def _aggregate_run(self, run, aggregators):
        """
        Give a run of features sharing a group to each aggregator in
        reverse order.
        """
        working = list(run)
        claimed = set()
        for aggregator in reversed(aggregators):
            composites = aggregator.aggregate(working)
            if len(composites) == 0:
                continue
            if len(composites) > 1:
                warnings.warn(
                    f"Aggregator '{aggregator.method}' turned group "
                    f"'{run[0].group}' into {len(composites)} features, "
                    f"only the first one is kept",
                    AggregatorConflictWarning
                )
            composite = composites[0]
            consumed = set(
                id(sub) for sub in composite.subfeatures if not sub.is_compound
            )
            consumed |= set(
                id(feature) for feature in working if aggregator.absorbs(feature)
            )
            if consumed & claimed:
                warnings.warn(
                    f"Aggregator '{aggregator.method}' claims features of "
                    f"group '{run[0].group}', that were already aggregated, "
                    f"its result is dropped",
                    AggregatorConflictWarning
                )
                continue
            claimed |= consumed
            _log.debug(
                "Aggregated %d features of group '%s' into '%s'",
                len(composite.subfeatures), run[0].group, composite.type
            )
            # Absorbed bodies and nested composites live on only inside
            # the new composite
            nested = set(
                id(sub) for sub in composite.subfeatures if sub.is_compound
            )
            working = [
                feature for feature in working
                if id(feature) not in nested and not aggregator.absorbs(feature)
            ]
            working.append(composite)
        return working
