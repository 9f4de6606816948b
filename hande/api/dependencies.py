"""FastAPI dependency injection helpers."""

from fastapi import Request

from hande.api.context import SessionContext


def get_context(request: Request) -> SessionContext:
    """Return the process-wide session context created at startup."""
    return request.app.state.context
