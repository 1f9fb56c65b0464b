"""gocovgen - coverage analysis and test generation for Go projects."""

__version__ = "0.1.0"
