"""
JSON error rendering.

Every error leaves the API as `{"error": "<message>"}` with a French message.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from pydantic_core._pydantic_core import list_all_errors
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

log = structlog.get_logger()

MSG_SERVER_ERROR = "Erreur serveur"
MSG_INTERNAL_ERROR = "Erreur interne du serveur"
MSG_NOT_FOUND = "Page non trouvée"
MSG_INVALID_PAYLOAD = "Données invalides"


# pydantic's own error types; anything else was raised by our validators
# with a French message already.
BUILTIN_ERROR_TYPES = frozenset(info["type"] for info in list_all_errors())

FRENCH_MESSAGES = {
    "missing": "Champ requis : {field}",
    "string_too_short": "{field} : au moins {min_length} caractère(s) requis",
    "string_too_long": "{field} : {max_length} caractères maximum",
    "too_short": "{field} : au moins {min_length} élément(s) requis",
    "too_long": "{field} : {max_length} éléments maximum",
    "greater_than_equal": "{field} doit être supérieur ou égal à {ge}",
    "less_than_equal": "{field} doit être inférieur ou égal à {le}",
    "uuid_parsing": "{field} : identifiant invalide",
    "uuid_type": "{field} : identifiant invalide",
    "datetime_parsing": "{field} : date invalide",
    "datetime_from_date_parsing": "{field} : date invalide",
    "datetime_type": "{field} : date invalide",
    "enum": "{field} : valeur non autorisée",
    "literal_error": "{field} : valeur non autorisée",
    "bool_parsing": "{field} : valeur booléenne attendue",
    "bool_type": "{field} : valeur booléenne attendue",
    "int_parsing": "{field} : nombre entier attendu",
    "int_type": "{field} : nombre entier attendu",
    "int_from_float": "{field} : nombre entier attendu",
    "string_type": "{field} : texte attendu",
    "list_type": "{field} : liste attendue",
}


def _field_name(loc) -> str:
    names = [part for part in loc if isinstance(part, str) and part not in ("body", "query", "path")]
    return names[-1] if names else "requête"


def validation_message(exc: RequestValidationError) -> str:
    """First validation error as a French message. pydantic's English text never leaks."""
    errors = exc.errors()
    if not errors:
        return MSG_INVALID_PAYLOAD
    first = errors[0]
    error_type = first.get("type", "")
    if error_type not in BUILTIN_ERROR_TYPES:
        return first.get("msg", MSG_INVALID_PAYLOAD)
    template = FRENCH_MESSAGES.get(error_type)
    if template is None:
        return MSG_INVALID_PAYLOAD
    try:
        return template.format(field=_field_name(first.get("loc", ())), **first.get("ctx", {}))
    except (KeyError, IndexError):
        return MSG_INVALID_PAYLOAD


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        detail = MSG_NOT_FOUND
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": validation_message(exc)})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request.unhandled_error", path=request.url.path, method=request.method)
    return JSONResponse(status_code=500, content={"error": MSG_INTERNAL_ERROR})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
