"""
Port interfaces for the gocovgen system.

This module contains all the interface definitions using Python Protocols
to define contracts between the application layer and adapters.
"""

from .filesystem_port import FileSystemPort
from .process_port import ProcessRunnerPort
from .source_model_port import SourceModelPort

__all__ = [
    "FileSystemPort",
    "ProcessRunnerPort",
    "SourceModelPort",
]
