"""assetvault - access-controlled object storage for uploaded assets."""

__version__ = "0.1.0"
