"""
Request dispatch for API actions and form-based server actions.

Every endpoint follows the same pipeline: the request is distilled into a payload,
validated against a pydantic model, handed to the action together with the request
context, and the action's result is validated before being returned.
"""

import inspect
import logging
import typing
from typing import Any, Callable, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from .auth import AuthenticationContext
from .errors import NoAccessError, NotFoundError

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


class ActionProps:
    """Context made available to each action in addition to the validated request"""

    def __init__(
        self,
        request: Request,
        context: AuthenticationContext,
        db: Optional[Session] = None,
    ):
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            self.ip = forwarded_for.split(",")[0].strip()
        else:
            self.ip = request.client.host if request.client else None

        self.origin = f"{request.url.scheme}://{request.url.netloc}"
        self.request_headers = request.headers
        self.response_headers: dict[str, str] = {}

        self.authentication_context = context
        self.access = context.access
        self.user = context.user
        self.db = db


def format_validation_error(error: ValidationError) -> str:
    """Summarize pydantic errors as "Field a.1: message" entries"""
    issues = []
    for issue in error.errors():
        location = ".".join(str(component) for component in issue["loc"])
        issues.append(f"Field {location}: {issue['msg']}" if location else issue["msg"])
    return "; ".join(issues)


def distill_query_params(request: Request) -> dict:
    """Build a nested payload from query parameters, "a.b=1" becomes {"a": {"b": "1"}}"""
    payload: dict[str, Any] = {}
    for key, value in request.query_params.multi_items():
        path = key.split(".")
        prop = path.pop()

        base = payload
        conflict = False
        for component in path:
            if component not in base:
                base[component] = {}
            if not isinstance(base[component], dict):
                conflict = True
                break
            base = base[component]

        if conflict:
            logger.warning(f"⚠️ Ignoring property {key}: would override other parameters")
            continue

        if prop in base:
            logger.warning(f"⚠️ Ignoring property {key}: the parameter already exists")
            continue

        base[prop] = value

    return payload


async def _invoke(action: Callable, data, props: ActionProps):
    result = action(data, props)
    if inspect.isawaitable(result):
        result = await result
    return result


def _error_response(error: Exception, path: str) -> JSONResponse:
    if isinstance(error, NoAccessError):
        return JSONResponse(status_code=403, content={"success": False})
    if isinstance(error, NotFoundError):
        return JSONResponse(status_code=404, content={"success": False})
    if isinstance(error, HTTPException):
        return JSONResponse(
            status_code=error.status_code, content={"success": False, "error": str(error.detail)}
        )

    logger.error(f"❌ Action({path}) threw an exception: {error}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": f"The server was not able to handle the request: {error}",
        },
    )


async def execute_action(
    request: Request,
    request_model: type[BaseModel],
    response_model: type[BaseModel],
    action: Callable,
    context: AuthenticationContext,
    db: Optional[Session] = None,
    route_params: Optional[dict] = None,
) -> JSONResponse:
    """
    Execute `action` for the given API request.

    GET requests read their payload from the query string, POST, PUT and DELETE requests
    from the JSON body. DELETE requests without a body fall back to the query string.
    Route parameters are added to the payload unless it already contains a value with
    the same key.
    """
    path = request.url.path
    try:
        if request.method == "GET":
            payload = distill_query_params(request)
        elif request.method == "DELETE" and not await request.body():
            payload = distill_query_params(request)
        elif request.method in ("DELETE", "POST", "PUT"):
            payload = await request.json()
        else:
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": (
                        "The server was not able to validate the request. "
                        f"(Unsupported request method: {request.method})"
                    ),
                },
            )

        if not isinstance(payload, dict):
            payload = {}

        for key, value in (route_params or {}).items():
            payload.setdefault(key, value)

        try:
            data = request_model.model_validate(payload)
        except ValidationError as e:
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": f"The server was not able to validate the request. ({format_validation_error(e)})",
                },
            )

        props = ActionProps(request, context, db)
        result = await _invoke(action, data, props)

        try:
            if isinstance(result, BaseModel):
                result = result.model_dump(exclude_unset=True)
            validated = response_model.model_validate(result)
        except ValidationError as e:
            raise ValueError(f"Action response validation failed ({format_validation_error(e)})") from e

        response = JSONResponse(status_code=200, content=validated.model_dump(mode="json", exclude_unset=True))
        for name, value in props.response_headers.items():
            response.headers.append(name, value)
        return response

    except Exception as e:
        return _error_response(e, path)


def _unwrap_annotation(annotation):
    """Returns (inner annotation, is_list) with Optional wrappers removed"""
    origin = typing.get_origin(annotation)
    if origin is typing.Union or (origin is not None and type(None) in typing.get_args(annotation)):
        arguments = [argument for argument in typing.get_args(annotation) if argument is not type(None)]
        if len(arguments) == 1:
            return _unwrap_annotation(arguments[0])
    if origin in (list, typing.List):
        return annotation, True
    return annotation, False


def _coerce_form_value(value, annotation, nullable: bool = False):
    if isinstance(value, UploadFile):
        return value
    if value == "null" or (value == "" and nullable):
        return None
    if annotation is bool:
        if value in ("on", "true"):
            return True
        if value in ("off", "false"):
            return False
    return value


def distill_form_data(form, model: type[BaseModel]) -> dict:
    """Coerce multi-valued form data to the shape expected by `model`"""
    values: dict[str, list] = {}
    for key, value in form.multi_items():
        if value == "undefined":
            continue
        values.setdefault(key, []).append(value)

    payload = {}
    for key, entries in values.items():
        field = model.model_fields.get(key)
        annotation, is_list = _unwrap_annotation(field.annotation) if field else (None, False)
        nullable = field is not None and type(None) in typing.get_args(field.annotation)

        if is_list:
            item_arguments = typing.get_args(annotation)
            item_annotation = _unwrap_annotation(item_arguments[0])[0] if item_arguments else None
            if entries in (["null"], [""]) and nullable:
                payload[key] = None
            else:
                payload[key] = [_coerce_form_value(entry, item_annotation) for entry in entries]
        else:
            payload[key] = _coerce_form_value(entries[-1], annotation, nullable)

    return payload


async def execute_server_action(
    request: Request,
    model: type[BaseModel],
    action: Callable,
    context: AuthenticationContext,
    db: Optional[Session] = None,
) -> JSONResponse:
    """
    Execute `action` for a form submission. Always responds with a JSON object carrying
    `success`, and `error` when the action could not be completed.
    """
    content_type = request.headers.get("content-type", "")
    if content_type and not content_type.startswith(FORM_CONTENT_TYPES):
        return JSONResponse(content={"success": False, "error": "Invalid form data received"})

    try:
        form = await request.form()
        try:
            data = model.model_validate(distill_form_data(form, model))
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(component) for component in first["loc"])
            return JSONResponse(content={"success": False, "error": f"Field {location}: {first['msg']}"})

        props = ActionProps(request, context, db)
        result = await _invoke(action, data, props)

        content = {"success": True}
        if isinstance(result, dict):
            content.update(result)

        response = JSONResponse(content=content)
        for name, value in props.response_headers.items():
            response.headers.append(name, value)
        return response

    except (NoAccessError, NotFoundError, HTTPException) as e:
        return _error_response(e, request.url.path)
    except Exception as e:
        logger.error(f"❌ ServerAction({request.url.path}) threw an exception: {e}", exc_info=True)
        return JSONResponse(content={"success": False, "error": str(e)})
