"""Plugin Profiler: static architecture graphs for WordPress plugins."""

__version__ = "0.1.0"
