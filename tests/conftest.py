# This source code is part of the gffdb package and is distributed
# under the 3-Clause BSD License. Please see 'LICENSE.rst' for further
# information.

from os.path import join
import pytest
import gffdb
from gffdb.adaptor import MemoryAdaptor, RawRecord
from .util import data_dir


@pytest.fixture
def gff_path():
    return join(data_dir("io"), "example.gff")


@pytest.fixture
def database(gff_path):
    """
    A database with the default aggregators, filled with the example
    annotations.
    """
    database = gffdb.GFFDatabase(MemoryAdaptor())
    database.load(gff_path)
    return database


@pytest.fixture
def transcript_records():
    """
    Two exons and an intron of a single transcript.
    """
    return [
        RawRecord("Chr1", 1, 100, "curated", "exon",
                  group_class="Transcript", group_name="T1"),
        RawRecord("Chr1", 150, 300, "curated", "exon",
                  group_class="Transcript", group_name="T1"),
        RawRecord("Chr1", 100, 150, "curated", "intron",
                  group_class="Transcript", group_name="T1"),
    ]
