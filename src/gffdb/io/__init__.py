# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

"""
A subpackage for reading annotation data into a database.
"""

__name__ = "gffdb.io"
__author__ = "The gffdb contributors"
