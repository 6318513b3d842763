# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

__name__ = "gffdb.io.gff"
__author__ = "The gffdb contributors"
__all__ = ["fetch"]

import bz2
import gzip
import io
import requests
from ...error import RequestError

_GZIP_MAGIC = b"\x1f\x8b"
_BZIP2_MAGIC = b"BZh"


def fetch(url):
    """
    Download a GFF file.

    Compressed files (*gzip* or *bzip2*) are decompressed.
    This function requires an internet connection.

    Parameters
    ----------
    url : str
        The URL of the file.

    Returns
    -------
    file : StringIO
        The file content, that can be read with :meth:`GFFFile.read()`.

    Raises
    ------
    RequestError
        If the server responds with an error.
    """
    r = requests.get(url)
    if not r.ok:
        raise RequestError(
            f"Request for '{url}' failed with status {r.status_code}"
        )
    content = r.content
    if content.startswith(_GZIP_MAGIC):
        content = gzip.decompress(content)
    elif content.startswith(_BZIP2_MAGIC):
        content = bz2.decompress(content)
    text = content.decode("utf-8")
    if text.lstrip().lower().startswith(("<!doctype html", "<html")):
        raise RequestError(f"'{url}' returned a web page instead of GFF data")
    return io.StringIO(text)
