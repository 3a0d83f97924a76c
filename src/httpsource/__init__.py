"""Generic HTTP-polling data source — partitions, offsets, and the poll cycle."""

__version__ = "0.1.0"
