"""Tests for validation stages running inside a Starlette application."""

import pytest
from starlette.responses import PlainTextResponse
from starlette.testclient import TestClient

from schemaroute import (
    CONTINUE,
    SchemaRouter,
    Terminate,
    Type,
    create_app,
    describe_route,
    resolver,
    validator,
)
from schemaroute.core.config import SettingsModel
from schemaroute.errors import ResponseValidationError, SchemaError
from schemaroute.middleware import RequestContext, ValidationStage, multi_to_dict
from schemaroute.validator import ValidationTarget

ShortName = Type.object(
    {"name": Type.refine(Type.string(), lambda s: len(s) <= 3, "Name must be at most 3 characters")}
)


def echo(target):
    def handler(ctx):
        return ctx.valid(target)

    return handler


def client_for(router, **settings):
    return TestClient(create_app(router, SettingsModel(**settings)))


class TestScenarios:
    """End-to-end request scenarios."""

    def test_param_cleaned_and_converted(self):
        router = SchemaRouter()
        router.add(
            "GET",
            "/users/{id}/{extra}",
            validator("param", Type.object({"id": Type.number()})),
            handler=echo("param"),
        )
        response = client_for(router).get("/users/42/x")
        assert response.status_code == 200
        assert response.json() == {"id": 42}

    def test_refinement_failure_response(self):
        router = SchemaRouter()
        router.add("POST", "/users", validator("json", ShortName), handler=echo("json"))
        response = client_for(router).post("/users", json={"name": "abcd"})
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "errors": [{"path": "name", "message": "Name must be at most 3 characters"}],
        }

    def test_configured_failure_status(self):
        router = SchemaRouter()
        router.add("POST", "/users", validator("json", ShortName), handler=echo("json"))
        response = client_for(router, failure_status_code=422).post("/users", json={"name": "abcd"})
        assert response.status_code == 422

    def test_stage_failure_status_wins(self):
        router = SchemaRouter()
        router.add(
            "POST", "/users", validator("json", ShortName, failure_status=409), handler=echo("json")
        )
        response = client_for(router, failure_status_code=422).post("/users", json={"name": "abcd"})
        assert response.status_code == 409

    def test_hook_terminates_on_failure(self):
        seen = []

        def hook(result, ctx):
            seen.append(result)
            if not result.success:
                return Terminate(ctx.json({"message": "Invalid!"}, 418))
            return CONTINUE

        router = SchemaRouter()
        router.add("POST", "/users", validator("json", ShortName, hook), handler=echo("json"))
        response = client_for(router).post("/users", json={"name": "abcd"})
        assert response.status_code == 418
        assert response.json() == {"message": "Invalid!"}
        assert len(seen) == 1
        assert seen[0].success is False


class TestHooks:
    """Test hook outcomes."""

    def test_continue_keeps_default_failure(self):
        router = SchemaRouter()
        router.add(
            "POST", "/users", validator("json", ShortName, lambda r, c: CONTINUE), handler=echo("json")
        )
        response = client_for(router).post("/users", json={"name": "abcd"})
        assert response.status_code == 400

    def test_terminate_on_success_skips_handler(self):
        handled = []

        def handler(ctx):
            handled.append(ctx)
            return {}

        router = SchemaRouter()
        router.add(
            "POST",
            "/users",
            validator("json", ShortName, lambda r, c: Terminate(PlainTextResponse("stop", 202))),
            validator("query", Type.object({}), lambda r, c: pytest.fail("later stage ran")),
            handler=handler,
        )
        response = client_for(router).post("/users", json={"name": "ab"})
        assert response.status_code == 202
        assert response.text == "stop"
        assert handled == []

    def test_async_hook(self):
        async def hook(result, ctx):
            return Terminate(ctx.json({"ok": result.success}))

        router = SchemaRouter()
        router.add("POST", "/users", validator("json", ShortName, hook), handler=echo("json"))
        response = client_for(router).post("/users", json={"name": "ab"})
        assert response.json() == {"ok": True}

    def test_hook_returning_none_keeps_default_failure(self):
        router = SchemaRouter()
        router.add(
            "POST", "/users", validator("json", ShortName, lambda r, c: None), handler=echo("json")
        )
        response = client_for(router).post("/users", json={"name": "abcd"})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_async_hook_returning_none_keeps_default_success(self):
        async def hook(result, ctx):
            return None

        router = SchemaRouter()
        router.add("POST", "/users", validator("json", ShortName, hook), handler=echo("json"))
        response = client_for(router).post("/users", json={"name": "ab"})
        assert response.status_code == 200
        assert response.json() == {"name": "ab"}

    def test_invalid_hook_result(self):
        router = SchemaRouter()
        router.add(
            "POST", "/users", validator("json", ShortName, lambda r, c: "ok"), handler=echo("json")
        )
        with pytest.raises(TypeError, match="Continue, Terminate or None, got str"):
            client_for(router).post("/users", json={"name": "ab"})


class TestTargets:
    """Test each request part."""

    def test_json_extra_keys_never_reach_handler(self):
        router = SchemaRouter()
        router.add("POST", "/users", validator("json", ShortName), handler=echo("json"))
        response = client_for(router).post("/users", json={"name": "ab", "admin": True})
        assert response.json() == {"name": "ab"}

    def test_malformed_json(self):
        router = SchemaRouter()
        router.add("POST", "/users", validator("json", ShortName), handler=echo("json"))
        response = client_for(router).post(
            "/users", content=b"{not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "errors": [{"path": "", "message": "Malformed JSON body"}],
        }

    def test_integer_beyond_float_range(self):
        schema = Type.object({"n": Type.number(maximum=10)})
        router = SchemaRouter()
        router.add("POST", "/items", validator("json", schema), handler=echo("json"))
        router.add("GET", "/items", validator("query", schema), handler=echo("query"))
        client = client_for(router)
        huge = "1" + "0" * 400
        expected = {"success": False, "errors": [{"path": "n", "message": "Value must be <= 10"}]}

        response = client.post(
            "/items", content=f'{{"n": {huge}}}', headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json() == expected

        response = client.get(f"/items?n={huge}")
        assert response.status_code == 400
        assert response.json() == expected

    def test_empty_json_body(self):
        router = SchemaRouter()
        router.add("POST", "/users", validator("json", ShortName), handler=echo("json"))
        response = client_for(router).post("/users")
        assert response.status_code == 400
        assert response.json()["errors"] == [{"path": "", "message": "Expected object, got null"}]

    def test_query_values(self):
        schema = Type.object(
            {
                "tag": Type.array(Type.string()),
                "page": Type.integer(default=1),
                "active": Type.boolean(),
            }
        )
        router = SchemaRouter()
        router.add("GET", "/items", validator("query", schema), handler=echo("query"))
        client = client_for(router)
        assert client.get("/items?tag=a&tag=b&active=true").json() == {
            "tag": ["a", "b"],
            "page": 1,
            "active": True,
        }
        assert client.get("/items?tag=a&active=0&page=3").json() == {
            "tag": ["a"],
            "page": 3,
            "active": False,
        }
        response = client.get("/items?tag=a&active=maybe")
        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"path": "active", "message": "Expected boolean, got string"}
        ]

    def test_headers(self):
        router = SchemaRouter()
        router.add(
            "GET",
            "/me",
            validator("header", Type.object({"X-Token": Type.string(min_length=3)})),
            handler=echo("header"),
        )
        client = client_for(router)
        assert client.get("/me", headers={"x-token": "secret"}).json() == {"X-Token": "secret"}
        response = client.get("/me")
        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"path": "X-Token", "message": "Missing required property"}
        ]

    def test_cookies(self):
        router = SchemaRouter()
        router.add(
            "GET",
            "/session",
            validator("cookie", Type.object({"session": Type.string()})),
            handler=echo("cookie"),
        )
        client = client_for(router)
        client.cookies.set("session", "abc")
        assert client.get("/session").json() == {"session": "abc"}

    def test_form(self):
        schema = Type.object({"title": Type.string(), "count": Type.integer()})
        router = SchemaRouter()
        router.add("POST", "/notes", validator("form", schema), handler=echo("form"))
        client = client_for(router)
        response = client.post("/notes", data={"title": "Hello", "count": "2"})
        assert response.json() == {"title": "Hello", "count": 2}

    def test_targets_are_independent(self):
        def handler(ctx):
            return {"param": ctx.valid("param"), "query": ctx.valid(ValidationTarget.QUERY)}

        router = SchemaRouter()
        router.add(
            "GET",
            "/users/{id}",
            validator("param", Type.object({"id": Type.integer()})),
            validator("query", Type.object({"id": Type.string()})),
            handler=handler,
        )
        response = client_for(router).get("/users/7?id=7")
        assert response.json() == {"param": {"id": 7}, "query": {"id": "7"}}

    def test_unvalidated_target_lookup(self):
        def handler(ctx):
            with pytest.raises(LookupError):
                ctx.valid("json")
            return {"ok": True}

        router = SchemaRouter()
        router.add("GET", "/", handler=handler)
        assert client_for(router).get("/").json() == {"ok": True}


class TestValidatorFactory:
    """Test stage construction."""

    def test_returns_stage_with_metadata(self):
        stage = validator("json", ShortName)
        assert isinstance(stage, ValidationStage)
        assert stage.metadata.target is ValidationTarget.JSON
        assert stage.metadata.schema is ShortName

    async def test_doc_provider(self):
        stage = validator("json", ShortName)
        doc = await stage.metadata.doc_provider(None)
        assert doc["type"] == "object"

    def test_unknown_target(self):
        with pytest.raises(ValueError, match="Unknown validation target 'body'"):
            validator("body", ShortName)

    def test_non_client_error_status(self):
        with pytest.raises(ValueError, match="4xx"):
            validator("json", ShortName, failure_status=500)

    def test_non_object_for_query(self):
        with pytest.raises(SchemaError, match="requires an object schema"):
            validator("query", Type.string())

    def test_malformed_schema_fails_at_registration(self):
        with pytest.raises(SchemaError):
            validator("json", Type.string(min_length=5, max_length=1))

    def test_malformed_response_schema_fails_at_registration(self):
        with pytest.raises(SchemaError, match="Unknown string format 'nope'"):
            describe_route(
                responses={
                    200: {
                        "description": "OK",
                        "content": {"application/json": {"schema": Type.string(format="nope")}},
                    }
                }
            )


class TestResolver:
    """Test response schema resolvers."""

    def test_validate(self):
        check = resolver(Type.object({"id": Type.integer()}))
        assert check.validate({"id": "3", "secret": "x"}) == {"id": 3}

    def test_validate_failure(self):
        check = resolver(Type.object({"id": Type.integer()}))
        with pytest.raises(ResponseValidationError) as exc_info:
            check.validate({"id": "abc"})
        assert [e.path for e in exc_info.value.errors] == ["id"]

    async def test_build(self):
        assert await resolver(Type.string()).build() == {"type": "string"}


def test_multi_to_dict():
    assert multi_to_dict([("a", "1"), ("b", "2"), ("a", "3"), ("a", "4")]) == {
        "a": ["1", "3", "4"],
        "b": "2",
    }


def test_context_json():
    ctx = RequestContext(request=None, settings=SettingsModel())
    response = ctx.json({"a": 1}, 201)
    assert response.status_code == 201
    assert response.body == b'{"a":1}'
