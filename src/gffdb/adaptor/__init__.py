# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

"""
This subpackage contains the interface to storage backends.

An :class:`Adaptor` answers range queries, group queries and type
enumerations with :class:`RawRecord` objects, that are turned into
features by the :class:`GFFDatabase`.
:class:`MemoryAdaptor` is an adaptor, that keeps all records in
memory.
"""

__name__ = "gffdb.adaptor"
__author__ = "The gffdb contributors"

from .base import *
from .memory import *
