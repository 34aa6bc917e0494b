"""Clinical and pharma news aggregation, classification and relevance ranking."""

__version__ = "0.1.0"
