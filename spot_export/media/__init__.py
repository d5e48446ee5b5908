"""
Media Processing Layer.

This package is responsible for all media file operations: downloading
artwork, writing audio to disk, running the tagging helper and validating
written files.
"""

from .downloader import Downloader
from .helper import HelperResult, run_helper
from .integrity import FileIntegrityChecker
from .writer import write_atomic

__all__ = [
    "Downloader",
    "FileIntegrityChecker",
    "HelperResult",
    "run_helper",
    "write_atomic",
]
