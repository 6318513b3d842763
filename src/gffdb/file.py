# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

__name__ = "gffdb"
__author__ = "The gffdb contributors"
__all__ = ["TextFile", "InvalidFileError"]

import bz2
import gzip
import io
from os import PathLike, fspath


class TextFile:
    """
    Base class for all line based text files.
    When reading a file, the text content is saved as list of strings,
    one for each line.
    When writing a file, this list is written into the file.

    Paths ending with ``.gz`` or ``.bz2`` are decompressed
    transparently when reading.

    Attributes
    ----------
    lines : list
        List of string representing the lines in the text file.
        PROTECTED: Do not modify from outside.
    """

    def __init__(self):
        self.lines = []

    @classmethod
    def read(cls, file, *args, **kwargs):
        """
        Parse a file (or file-like object).

        Parameters
        ----------
        file : file-like object or str
            The file to be read.
            Alternatively a file path can be supplied.

        Returns
        -------
        file : TextFile
            An instance from the respective :class:`TextFile` subclass
            representing the parsed file.
        """
        # File name
        if is_open_compatible(file):
            with _open_text(file) as f:
                lines = f.read().splitlines()
        # File object
        else:
            if not is_text(file):
                raise TypeError("A file opened in 'text' mode is required")
            lines = file.read().splitlines()
        file_object = cls(*args, **kwargs)
        file_object.lines = lines
        return file_object

    @classmethod
    def from_text(cls, text, *args, **kwargs):
        """
        Create a file object from a string holding the file content.

        Parameters
        ----------
        text : str
            The content of the file.

        Returns
        -------
        file : TextFile
            The parsed file.
        """
        return cls.read(io.StringIO(text), *args, **kwargs)

    @staticmethod
    def read_iter(file):
        """
        Create an iterator over each line of the given text file.

        Parameters
        ----------
        file : file-like object or str
            The file to be read.
            Alternatively a file path can be supplied.

        Yields
        ------
        line : str
            The current line in the file, without line break.
        """
        if is_open_compatible(file):
            with _open_text(file) as f:
                for line in f:
                    yield line.rstrip("\r\n")
        else:
            if not is_text(file):
                raise TypeError("A file opened in 'text' mode is required")
            for line in file:
                yield line.rstrip("\r\n")

    def write(self, file):
        """
        Write the contents of this object into a file
        (or file-like object).

        Parameters
        ----------
        file : file-like object or str
            The file to be written to.
            Alternatively a file path can be supplied.
        """
        if is_open_compatible(file):
            with open(file, "w") as f:
                f.write("\n".join(self.lines) + "\n")
        else:
            if not is_text(file):
                raise TypeError("A file opened in 'text' mode is required")
            file.write("\n".join(self.lines) + "\n")

    def __str__(self):
        return "\n".join(self.lines)


class InvalidFileError(Exception):
    """
    Indicates that the file is not suitable for the requested action,
    either because the file does not contain the required data or
    because the file is malformed.
    """

    pass


def _open_text(path):
    path = fspath(path)
    if isinstance(path, bytes):
        path = path.decode()
    if path.endswith(".gz"):
        return gzip.open(path, "rt")
    elif path.endswith(".bz2"):
        return bz2.open(path, "rt")
    else:
        return open(path, "r")


def is_text(file):
    if isinstance(file, io.TextIOBase):
        return True
    # for file wrappers, e.g. 'TemporaryFile'
    return hasattr(file, "file") and isinstance(file.file, io.TextIOBase)


def is_open_compatible(file):
    return isinstance(file, (str, bytes, PathLike))
