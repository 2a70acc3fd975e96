"""REST service for tracking subscriptions and reporting their monthly cost."""

__version__ = "0.1.0"

__all__ = ["__version__"]