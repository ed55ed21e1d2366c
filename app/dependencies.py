from typing import Any

from fastapi import Request

from app.query.compiler import QueryCompiler
from app.query.compiler import get_compiler as _settings_compiler


def raw_query_params(request: Request) -> dict[str, Any]:
    """
    Collect the request's query string without any validation.

    List endpoints must accept malformed input and fall back to defaults,
    so parameters are handed to the ``QueryCompiler`` untouched instead
    of being declared as typed ``Query`` arguments (which would 422).
    Repeated keys (``?genre=rpg&genre=action``) become lists.
    """
    params: dict[str, Any] = {}
    for key in request.query_params.keys():
        values = request.query_params.getlist(key)
        params[key] = values if len(values) > 1 else values[0]
    return params


def get_compiler() -> QueryCompiler:
    """FastAPI dependency returning the settings-configured compiler."""
    return _settings_compiler()
