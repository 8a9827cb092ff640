"""OpenAPI document tweaks for the ProblemDetail error contract."""

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

PROBLEM_REF = {"$ref": "#/components/schemas/ProblemDetail"}

PROBLEM_422 = {
    "description": "Validation Error",
    "content": {"application/problem+json": {"schema": PROBLEM_REF}},
}


def _uses_default_422(operation: dict) -> bool:
    ref = (
        operation.get("responses", {})
        .get("422", {})
        .get("content", {})
        .get("application/json", {})
        .get("schema", {})
        .get("$ref", "")
    )
    return ref.endswith("/HTTPValidationError")


def custom_openapi(app: FastAPI) -> dict:
    """Build the schema once, documenting 422s as ProblemDetail."""
    if app.openapi_schema:
        return app.openapi_schema

    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    operations = [op for path in schema.get("paths", {}).values() for op in path.values()]
    for operation in operations:
        if _uses_default_422(operation):
            operation["responses"]["422"] = PROBLEM_422

    components = schema.setdefault("components", {}).setdefault("schemas", {})
    for unused in ("HTTPValidationError", "ValidationError"):
        components.pop(unused, None)

    app.openapi_schema = schema
    return schema
