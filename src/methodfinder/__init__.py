"""Method Finder: recommends research-measurement methods for a filter selection."""

__version__ = "1.0.0"
