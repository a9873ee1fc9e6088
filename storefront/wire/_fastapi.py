"""
FastAPI compiler: every ``(HTTPRouteTrigger, RequestResponseCodec)`` exposure
becomes one route.

The request model is split into a typed handler signature so FastAPI does the
binding: ``{placeholders}`` in the path become ``Path`` parameters, the other
fields become one JSON ``Body`` model (POST/PUT/PATCH) or ``Query``
parameters (GET/DELETE). The handler reassembles the request model, runs the
op and renders the response model with ``codec.status(result)``.
"""

from __future__ import annotations

import inspect
import logging
import string
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from typing import Annotated, Any

import fastapi
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError, create_model
from pydantic.fields import FieldInfo

from storefront.ops import Runner
from storefront.wire._codec import RequestResponseCodec
from storefront.wire._endpoint import Application, Endpoint
from storefront.wire._http import HTTPRouteTrigger

logger = logging.getLogger(__name__)

type Route = Callable[..., Awaitable[JSONResponse]]
type Lifespan = Callable[[fastapi.FastAPI], AbstractAsyncContextManager[None]]

_BODY = "payload"


def _invalid(detail: Any) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "ok": False,
            "data": None,
            "error": {
                "kind": "VALIDATION",
                "reason": "invalid_request",
                "message": "Request validation failed",
                "retriable": False,
                "detail": jsonable_encoder(detail),
            },
        },
    )


async def _validation_failed(request: fastapi.Request, exc: RequestValidationError) -> JSONResponse:
    return _invalid(exc.errors())


def path_names(path: str) -> list[str]:
    return [name for _, name, _, _ in string.Formatter().parse(path) if name]


def _param(name: str, info: FieldInfo, source: Any) -> inspect.Parameter:
    default = (
        inspect.Parameter.empty if info.is_required() else info.get_default(call_default_factory=True)
    )
    return inspect.Parameter(
        name,
        inspect.Parameter.KEYWORD_ONLY,
        annotation=Annotated[info.annotation, source],
        default=default,
    )


def signature_for(trigger: HTTPRouteTrigger, request_model: type[BaseModel]) -> inspect.Signature:
    """Handler signature FastAPI binds the request from."""
    fields = request_model.model_fields
    in_path = path_names(trigger.path)
    unknown = [name for name in in_path if name not in fields]
    if unknown:
        raise ValueError(f"{trigger.path}: {request_model.__name__} has no field {unknown[0]}")

    params = [_param(name, fields[name], fastapi.Path()) for name in in_path]
    rest = {name: info for name, info in fields.items() if name not in in_path}
    if not rest:
        return inspect.Signature(params)

    if trigger.has_body:
        body_model = create_model(  # type: ignore[call-overload]
            f"{request_model.__name__}Body",
            **{name: (info.annotation, info) for name, info in rest.items()},
        )
        params.append(
            inspect.Parameter(
                _BODY,
                inspect.Parameter.KEYWORD_ONLY,
                annotation=Annotated[body_model, fastapi.Body()],
            )
        )
    else:
        params.extend(_param(name, info, fastapi.Query()) for name, info in rest.items())
    return inspect.Signature(params)


def make_route(trigger: HTTPRouteTrigger, codec: RequestResponseCodec, runner: Runner) -> Route:
    request_model: type[BaseModel] = codec.request  # type: ignore[assignment]
    response_model = codec.response

    async def route(**params: Any) -> JSONResponse:
        body = params.pop(_BODY, None)
        if body is not None:
            params.update({name: getattr(body, name) for name in type(body).model_fields})
        try:
            model = request_model.model_validate(params)
        except ValidationError as e:
            return _invalid(e.errors())

        result = await runner.run(model.to_domain())  # type: ignore[attr-defined]
        rendered: BaseModel = response_model.from_domain(result)  # type: ignore[assignment]
        return JSONResponse(
            status_code=codec.status(result),
            content=rendered.model_dump(mode="json"),
        )

    route.__signature__ = signature_for(trigger, request_model)  # type: ignore[attr-defined]
    route.__name__ = f"{trigger.method.lower()}_{request_model.__name__}"
    return route


def add_endpoint(app: fastapi.FastAPI, endp: Endpoint) -> None:
    for trigger, codec in endp.exposures:
        if not (isinstance(trigger, HTTPRouteTrigger) and isinstance(codec, RequestResponseCodec)):
            continue
        app.add_api_route(trigger.path, make_route(trigger, codec, endp.runner), methods=[trigger.method])
        logger.debug("Mounted %s %s", trigger.method, trigger.path)


def from_application(
    app: Application,
    *,
    title: str = "storefront",
    lifespan: Lifespan | None = None,
) -> fastapi.FastAPI:
    f_app = fastapi.FastAPI(title=title, lifespan=lifespan)
    f_app.add_exception_handler(RequestValidationError, _validation_failed)
    for endp in app.endpoints:
        add_endpoint(f_app, endp)
    return f_app


__all__ = ("path_names", "signature_for", "make_route", "add_endpoint", "from_application")
