# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

"""
This subpackage is used for reading and writing annotations in the
*General Feature Format* version 2 (GFF2).

It provides the :class:`GFFFile` class, a low-level line-based
interface to this format, :func:`get_records()` for converting its
entries into records for an :class:`Adaptor` and :func:`fetch()` for
downloading GFF files.

In GFF2 the last column, the *group*, assigns each feature to a
composite object, e.g. ``Transcript T1``.
Alignment features use ``Target "Class:Name" start stop`` instead,
which additionally gives the aligned region on the target.
"""

__name__ = "gffdb.io.gff"
__author__ = "The gffdb contributors"

from .file import *
from .convert import *
from .fetch import *
