# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

__name__ = "gffdb.io.gff"
__author__ = "The gffdb contributors"
__all__ = ["GFFFile", "GroupField", "parse_group"]

import re
from collections import namedtuple
from ...file import InvalidFileError, TextFile
from ...segment import Strand

GroupField = namedtuple(
    "GroupField", ["group_class", "name", "target_start", "target_stop", "notes"]
)
GroupField.__doc__ = """
The parsed *group* column of a GFF2 entry.

The class and name are ``None`` for ungrouped features.
The target coordinates are only given for ``Target`` groups, in the
order they appear in the file.
"""

_EMPTY_GROUP = GroupField(None, None, None, None, ())

_TAG_VALUE = re.compile(r"^(\S+)(?:\s+(.+))?$", re.DOTALL)
_TARGET = re.compile(
    r'^"?([^:"\s]+):([^"\s]+)"?(?:\s+(-?\d+)\s+(-?\d+))?'
)


class GFFFile(TextFile):
    """
    This class represents a file in *General Feature Format* version 2
    (GFF2).

    This class serves as low-level API for accessing GFF2 files.
    It is used as a sequence of entries, where each entry is defined as
    a non-comment and non-directive line.
    Each entry consists of values corresponding to the 9 columns of
    GFF2:

    ==========  ======================  ========================================================
    **seqid**   ``str``                 The ID of the reference sequence
    **source**  ``str``                 Source of the data (e.g. ``curated``)
    **method**  ``str``                 Method of the feature (e.g. ``exon``)
    **start**   ``int``                 Start coordinate of feature on the reference sequence
    **end**     ``int``                 End coordinate of feature on the reference sequence
    **score**   ``float`` or ``None``   Optional score (e.g. an E-value)
    **strand**  ``Strand`` or ``None``  Strand of the feature, ``None`` if feature is not stranded
    **phase**   ``int`` or ``None``     Reading frame shift, ``None`` for non-CDS features
    **group**   ``GroupField``          The composite object the feature belongs to
    ==========  ======================  ========================================================

    The *group* column may be omitted in the file.
    FASTA data following a ``##FASTA`` directive can be obtained via
    :meth:`sequences()`.

    Examples
    --------

    >>> gff_file = GFFFile()
    >>> gff_file.append(
    ...     "Chr1", "curated", "exon", 1, 100, strand=Strand.FORWARD,
    ...     group=GroupField("Transcript", "T1", None, None, ())
    ... )
    >>> print(gff_file)   #doctest: +NORMALIZE_WHITESPACE
    ##gff-version 2
    Chr1    curated exon    1       100     .       +       .       Transcript T1
    >>> seqid, source, method, start, end, score, strand, phase, group = gff_file[0]
    >>> print(group.group_class, group.name)
    Transcript T1
    """

    def __init__(self):
        super().__init__()
        # Maps entry indices to line indices
        self._entries = None
        # Stores the directives as (directive text, line index)-tuple
        self._directives = None
        # Line index of the '##FASTA' directive
        self._fasta_index = None
        self._index_entries()
        self.append_directive("gff-version", "2")

    @classmethod
    def read(cls, file):
        """
        Read a GFF2 file.

        Parameters
        ----------
        file : file-like object or str
            The file to be read.
            Alternatively a file path can be supplied.
            Paths ending with ``.gz`` or ``.bz2`` are decompressed.

        Returns
        -------
        file_object : GFFFile
            The parsed file.
        """
        file = super().read(file)
        file._index_entries()
        return file

    def append(self, seqid, source, method, start, end,
               score=None, strand=None, phase=None, group=None):
        """
        Append an entry to the end of the file.

        Parameters
        ----------
        seqid : str
            The ID of the reference sequence.
        source : str
            Source of the data (e.g. ``curated``).
        method : str
            Method of the feature (e.g. ``exon``).
        start : int
            Start coordinate of feature on the reference sequence.
        end : int
            End coordinate of feature on the reference sequence.
        score : float or None
            Optional score (e.g. an E-value).
        strand : Strand or None
            Strand of the feature, ``None`` if feature is not stranded.
        phase : int or None
            Reading frame shift, ``None`` for non-CDS features.
        group : GroupField or None
            The composite object the feature belongs to.
        """
        if self._fasta_index is not None:
            raise NotImplementedError(
                "Cannot append feature entries, "
                "as this file contains additional FASTA data"
            )
        line = GFFFile._create_line(
            seqid, source, method, start, end, score, strand, phase, group
        )
        self.lines.append(line)
        self._entries.append(len(self.lines) - 1)

    def append_directive(self, directive, *args):
        """
        Append a directive line to the end of the file.

        Parameters
        ----------
        directive : str
            Name of the directive.
        *args : str
            Optional parameters for the directive.
        """
        if directive.startswith("FASTA"):
            raise NotImplementedError(
                "Adding FASTA information is not supported"
            )
        directive_line = " ".join(["##" + directive] + list(args))
        self._directives.append((directive_line[2:], len(self.lines)))
        self.lines.append(directive_line)

    def directives(self):
        """
        Get the directives in the file.

        Returns
        -------
        directives : list of tuple(str, int)
            A list of directives, sorted by their line order.
            The first element of each tuple is the directive (without
            ``##``), the second element is the index of the
            corresponding line.
        """
        return sorted(self._directives, key=lambda directive: directive[1])

    def sequences(self):
        """
        Get the sequences from the FASTA data following the ``##FASTA``
        directive.

        Returns
        -------
        sequences : dict
            Maps the sequence IDs to the sequences.
            Empty if the file contains no FASTA data.
        """
        sequences = {}
        if self._fasta_index is None:
            return sequences
        seq_id = None
        chunks = []
        for line in self.lines[self._fasta_index + 1 :]:
            line = line.strip()
            if len(line) == 0:
                continue
            if line.startswith(">"):
                if seq_id is not None:
                    sequences[seq_id] = "".join(chunks)
                header = line[1:].split()
                if len(header) == 0:
                    raise InvalidFileError("FASTA header without sequence ID")
                seq_id = header[0]
                chunks = []
            else:
                if seq_id is None:
                    raise InvalidFileError(
                        "FASTA data does not start with a header line"
                    )
                chunks.append(line)
        if seq_id is not None:
            sequences[seq_id] = "".join(chunks)
        return sequences

    def __getitem__(self, index):
        if (index >= 0 and index >= len(self)) or \
           (index < 0 and -index > len(self)):
            raise IndexError(
                f"Index {index} is out of range for GFFFile with "
                f"{len(self)} entries"
            )

        line_index = self._entries[index]
        # Columns are tab separated
        s = self.lines[line_index].split("\t")
        if len(s) == 8:
            s.append("")
        if len(s) != 9:
            raise InvalidFileError(
                f"Expected 8 or 9 columns in line {line_index + 1}, "
                f"but got {len(s)}"
            )
        seqid, source, method, start, end, score, strand, phase, group = s

        try:
            start = int(start)
            end = int(end)
            score = None if score == "." else float(score)
            strand = Strand.from_symbol(strand)
            phase = None if phase == "." else int(phase)
        except ValueError as e:
            raise InvalidFileError(f"Line {line_index + 1} is malformed: {e}")
        group = parse_group(group)

        return seqid, source, method, start, end, score, strand, phase, group

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def __len__(self):
        return len(self._entries)

    def _index_entries(self):
        """
        Parse the file for comment and directive lines.
        Count these lines cumulatively, so that entry indices can be
        mapped onto line indices.
        Additionally track the line index of directive lines.
        """
        self._directives = []
        self._entries = []
        self._fasta_index = None
        for line_i, line in enumerate(self.lines):
            if len(line.strip()) == 0:
                pass
            elif line.startswith("#"):
                if line.startswith("##"):
                    self._directives.append((line[2:], line_i))
                    if line[2:].strip() == "FASTA":
                        # The remaining lines are FASTA data
                        self._fasta_index = line_i
                        break
            else:
                self._entries.append(line_i)

    @staticmethod
    def _create_line(seqid, source, method, start, end,
                     score, strand, phase, group):
        """
        Create a line for a newly created entry.
        """
        if len(seqid.strip()) == 0:
            raise ValueError("'seqid' must not be empty")
        if len(method.strip()) == 0:
            raise ValueError("'method' must not be empty")
        source = source if source else "."
        score = str(score) if score is not None else "."
        strand = Strand.from_symbol(strand)
        strand = strand.symbol if strand is not None else "."
        phase = str(phase) if phase is not None else "."
        return "\t".join(
            [seqid, source, method, str(start), str(end),
             score, strand, phase, _format_group(group)]
        )


def parse_group(text):
    """
    Parse the *group* column of a GFF2 entry.

    The column consists of ``tag value`` pairs separated by
    semicolons.
    The first pair gives the class and name of the group, except for
    ``Note`` pairs, whose values are collected as notes, as well as
    tags without value.
    Further pairs become notes, too.
    A ``Target "Class:Name" start stop`` pair gives a group with target
    coordinates.

    Parameters
    ----------
    text : str
        The content of the column.

    Returns
    -------
    group : GroupField
        The parsed group.

    Examples
    --------

    >>> parse_group('Target "Sequence:EST1" 120 20 ; Note "reverse read"')
    GroupField(group_class='Sequence', name='EST1', target_start=120, target_stop=20, notes=('reverse read',))
    >>> parse_group("Transcript T1 ; Confirmed_by_EST")
    GroupField(group_class='Transcript', name='T1', target_start=None, target_stop=None, notes=('Confirmed_by_EST',))
    """
    text = text.strip()
    if len(text) == 0 or text == ".":
        return _EMPTY_GROUP

    group_class = None
    name = None
    target_start = None
    target_stop = None
    notes = []
    for field in _split_fields(text):
        match = _TAG_VALUE.match(field)
        tag, raw_value = match.group(1), match.group(2) or ""
        value = _unquote(raw_value)
        target = _TARGET.match(raw_value) if tag == "Target" else None
        if tag == "Note":
            notes.append(value)
        elif len(value) == 0:
            notes.append(tag)
        elif group_class and name:
            notes.append(value)
        elif target is not None:
            group_class, name = target.group(1), target.group(2)
            if target.group(3) is not None:
                target_start = int(target.group(3))
                target_stop = int(target.group(4))
        else:
            group_class, name = tag, value
    return GroupField(group_class, name, target_start, target_stop, tuple(notes))


def _split_fields(text):
    """
    Split the group column at semicolons, that are not enclosed in
    double quotes.
    """
    fields = []
    current = []
    in_quotes = False
    for char in text:
        if char == '"':
            in_quotes = not in_quotes
        if char == ";" and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return [field.strip() for field in fields if len(field.strip()) > 0]


def _unquote(value):
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        value = value[1:-1]
    return value.replace("\\t", "\t").replace("\\r", "\r")


def _format_group(group):
    if group is None:
        return "."
    if isinstance(group, str):
        return group
    fields = []
    if group.group_class and group.name:
        if group.target_start is not None or group.target_stop is not None:
            fields.append(
                f'Target "{group.group_class}:{group.name}" '
                f"{group.target_start} {group.target_stop}"
            )
        else:
            fields.append(f"{group.group_class} {_quote(group.name)}")
    for note in group.notes:
        fields.append(f"Note {_quote(note)}")
    if len(fields) == 0:
        return "."
    return " ; ".join(fields)


def _quote(value):
    if re.search(r'[\s;"]', value):
        return '"' + value.replace('"', "'") + '"'
    return value
