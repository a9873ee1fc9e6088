"""Tests for compiling exposures into FastAPI routes."""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Self, get_args

import httpx
import pytest
from kungfu import Error, Ok, Result
from pydantic import BaseModel, Field

from storefront import ops as O
from storefront.api._models import AddItemIn, ListOrdersIn
from storefront.wire import (
    HTTPRouteTrigger,
    RequestResponseCodec,
    application,
    endpoint,
    from_application,
    path_names,
    signature_for,
)


@dataclass(frozen=True, slots=True)
class Resize(O.Returning[int, str]):
    item_id: str
    width: int


async def resize(req: Resize) -> Result[int, str]:
    if req.item_id == "locked":
        return Error("locked")
    return Ok(req.width)


class ResizeIn(BaseModel):
    item_id: str
    width: int = Field(gt=0)

    def to_domain(self) -> Resize:
        return Resize(self.item_id, self.width)


class FindIn(BaseModel):
    item_id: str
    limit: int = 10

    def to_domain(self) -> Resize:
        return Resize(self.item_id, self.limit)


class SizeOut(BaseModel):
    ok: bool
    width: int | None = None

    @classmethod
    def from_domain(cls, result: Result[int, str]) -> Self:
        match result:
            case Ok(width):
                return cls(ok=True, width=width)
            case Error(_):
                return cls(ok=False)


def _status(result: Result[int, str]) -> int:
    return 200 if isinstance(result, Ok) else 409


@pytest.fixture
async def client() -> AsyncIterator[httpx.AsyncClient]:
    runner = O.ops().on(Resize, resize).compile()
    endp = (
        endpoint(runner)
        .expose(HTTPRouteTrigger("PUT", "/items/{item_id}"), RequestResponseCodec(ResizeIn, SizeOut, _status))
        .expose(HTTPRouteTrigger("GET", "/items/{item_id}"), RequestResponseCodec(FindIn, SizeOut, _status))
    )
    app = from_application(application().mount(endp))
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http:
        yield http


class TestSignature:
    def test_path_names(self):
        assert path_names("/carts/{owner_id}/items/{product_id}") == ["owner_id", "product_id"]
        assert path_names("/checkout") == []

    def test_body_method_splits_path_and_body(self):
        sig = signature_for(HTTPRouteTrigger("POST", "/carts/{owner_id}/items"), AddItemIn)

        assert list(sig.parameters) == ["owner_id", "payload"]
        body_model = get_args(sig.parameters["payload"].annotation)[0]
        assert set(body_model.model_fields) == {"product_id", "quantity"}
        assert body_model.model_fields["quantity"].default == 1

    def test_query_method_keeps_defaults(self):
        sig = signature_for(HTTPRouteTrigger("GET", "/orders"), ListOrdersIn)

        assert list(sig.parameters) == ["owner_id"]
        assert sig.parameters["owner_id"].default is None

    def test_unknown_placeholder(self):
        with pytest.raises(ValueError, match="no field order_id"):
            signature_for(HTTPRouteTrigger("GET", "/orders/{order_id}"), ListOrdersIn)


class TestRoutes:
    async def test_path_and_body_reach_the_op(self, client):
        response = await client.put("/items/i_1", json={"width": 40})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "width": 40}

    async def test_status_follows_the_result(self, client):
        response = await client.put("/items/locked", json={"width": 40})

        assert response.status_code == 409
        assert response.json() == {"ok": False, "width": None}

    async def test_query_parameters_are_typed(self, client):
        assert (await client.get("/items/i_1", params={"limit": 3})).json()["width"] == 3
        assert (await client.get("/items/i_1")).json()["width"] == 10

        response = await client.get("/items/i_1", params={"limit": "lots"})
        assert response.status_code == 422
        assert response.json()["error"]["reason"] == "invalid_request"

    async def test_missing_body_field_is_invalid_request(self, client):
        response = await client.put("/items/i_1", json={})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["kind"] == "VALIDATION"
        assert error["detail"][0]["loc"][-1] == "width"

    async def test_model_constraints_still_apply(self, client):
        response = await client.put("/items/i_1", json={"width": 0})

        assert response.status_code == 422
        assert response.json()["error"]["reason"] == "invalid_request"

    async def test_openapi_lists_path_and_body(self, client):
        schema = (await client.get("/openapi.json")).json()
        put = schema["paths"]["/items/{item_id}"]["put"]

        assert [p["name"] for p in put["parameters"]] == ["item_id"]
        assert "requestBody" in put
