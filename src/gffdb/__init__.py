# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

"""
This is the top-level package of *gffdb*.

It provides the :class:`GFFDatabase`, that retrieves annotations in the
*General Feature Format* (GFF) from a storage :class:`Adaptor`.
Feature coordinates can be expressed relative to any landmark, e.g. a
clone or a transcript, and flat features are reassembled into
composite features, like transcripts, by aggregators.
"""

__version__ = "0.1.0"
__name__ = "gffdb"
__author__ = "The gffdb contributors"

from .error import *
from .file import *
from .typename import *
from .segment import *
from .group import *
from .feature import *
from .aggregator import *
from .database import *
