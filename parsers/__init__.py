"""
Upload file parsers.
"""

from parsers.file_ingestor import (
    parse_import_file,
    ParsedFile,
)

__all__ = [
    "parse_import_file",
    "ParsedFile",
]
