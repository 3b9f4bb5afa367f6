"""CSV Query Service - load a CSV into an embedded SQL engine and query it over HTTP."""

__version__ = "1.0.0"
