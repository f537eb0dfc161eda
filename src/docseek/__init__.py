"""docseek - semantic documentation search with AI answers."""

__version__ = "0.1.0"
