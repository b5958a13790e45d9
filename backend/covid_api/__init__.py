"""Kosovo COVID-19 tracking API."""

__version__ = "1.0.0"
