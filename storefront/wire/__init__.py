"""
Wire — expose ops over HTTP.

    from storefront.wire import HTTPRouteTrigger, RequestResponseCodec, application, endpoint
    from storefront.wire import from_application

    endp = endpoint(runner).expose(
        HTTPRouteTrigger("GET", "/carts/{owner_id}"),
        RequestResponseCodec(OwnerIn, CartResponse, status=http_status),
    )
    app = from_application(application().mount(endp), lifespan=lifespan)

Request models implement ``to_domain() -> Op``; response models implement
``from_domain(result)``.
"""

from storefront.wire._endpoint import Exposure, Endpoint, endpoint, Application, application
from storefront.wire._codec import ToDomain, FromDomain, StatusOf, always_ok, RequestResponseCodec
from storefront.wire._http import Method, HTTPRouteTrigger
from storefront.wire._fastapi import path_names, signature_for, make_route, add_endpoint, from_application

__all__ = (
    "Exposure",
    "Endpoint",
    "endpoint",
    "Application",
    "application",
    "ToDomain",
    "FromDomain",
    "StatusOf",
    "always_ok",
    "RequestResponseCodec",
    "Method",
    "HTTPRouteTrigger",
    "path_names",
    "signature_for",
    "make_route",
    "add_endpoint",
    "from_application",
)
