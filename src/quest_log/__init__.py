"""quest-log - a single-user quest tracker."""

__version__ = "0.1.0"
