# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

__name__ = "gffdb.io.gff"
__author__ = "The gffdb contributors"
__all__ = ["get_records"]

from ...adaptor.base import RawRecord


def get_records(gff_file):
    """
    Convert the entries of a GFF2 file into records, that can be
    loaded into an :class:`Adaptor`.

    Parameters
    ----------
    gff_file : GFFFile
        The file to extract the records from.

    Yields
    ------
    record : RawRecord
        The record for each entry.
        The start and stop are taken over in the order given in the
        file.
        The notes of the group column are kept in the `notes` field.
    """
    for seqid, source, method, start, end, score, strand, phase, group \
            in gff_file:
        yield RawRecord(
            ref=seqid,
            start=start,
            stop=end,
            source=source if source != "." else None,
            method=method,
            score=score,
            strand=strand,
            phase=phase,
            group_class=group.group_class,
            group_name=group.name,
            target_start=group.target_start,
            target_stop=group.target_stop,
            notes=group.notes,
        )
