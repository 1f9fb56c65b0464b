"""
Adapters for the gocovgen system.

This module contains the concrete implementations of the port interfaces
defined in the ports module: the Go parser, the coverage profile parser and
the filesystem, process and console adapters.
"""

from . import coverage, io, parsing

__all__ = [
    "coverage",
    "io",
    "parsing",
]
