"""
CSV Query Service - Dependency Injection.

FastAPI dependencies for the per-app context.
"""

from fastapi import Request

from csvquery.context import AppContext


def get_context(request: Request) -> AppContext:
    """Application context created by create_app()."""
    return request.app.state.context
