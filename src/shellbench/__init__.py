"""shellbench: a command-line benchmarking tool."""

__version__ = "0.1.0"
