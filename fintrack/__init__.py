"""Bill settlement and expense allocation core for a personal-finance tracker."""

__version__ = "0.1.0"
