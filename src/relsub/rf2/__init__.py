"""
RF2 Module - reading and writing release format 2 files.
"""

from relsub.rf2.reader import RF2RelationshipReader, open_input
from relsub.rf2.writer import HEADER_NAMES, RF2RelationshipWriter
from relsub.rf2.descriptions import DescriptionIndex

__all__ = [
    "RF2RelationshipReader",
    "open_input",
    "HEADER_NAMES",
    "RF2RelationshipWriter",
    "DescriptionIndex",
]
