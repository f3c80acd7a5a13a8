"""Tests for the management API server."""

import asyncio
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from devtoolbox.config import ServerConfig
from devtoolbox.plugins.manager import PluginManager
from devtoolbox.server import create_app
from tests.conftest import EchoTool, FakePlugin, write_plugin_dir

API_KEY = "s3cret-key"


def make_client(manager, tool_registry, **overrides):
    config = ServerConfig(**{"enable_rate_limit": False, **overrides})
    return TestClient(create_app(manager, tool_registry, config))


@pytest.fixture
def client(manager, tool_registry):
    with make_client(manager, tool_registry) as c:
        yield c


class TestEnvelope:
    def test_success_envelope(self, client):
        body = client.get("/api/health").json()
        assert body["success"] is True
        assert body["data"]["status"] == "ok"
        assert "timestamp" in body
        assert "error" not in body

    def test_unknown_endpoint(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_REQUEST"
        assert body["error"]["message"] == "Endpoint not found"

    def test_unexpected_error_is_server_error(self, client, manager):
        with patch.object(PluginManager, "list_plugins", side_effect=RuntimeError("db down")):
            response = client.get("/api/plugins")
        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "SERVER_ERROR"
        assert error["details"]["detail"] == "db down"


class TestPluginRoutes:
    def test_list_plugins(self, client, manager):
        asyncio.run(manager.load(FakePlugin("a")))
        data = client.get("/api/plugins").json()["data"]
        assert [p["id"] for p in data] == ["a"]
        assert data[0]["loaded"] is True
        assert data[0]["commands"] == ["a-cmd"]

    def test_get_plugin(self, client, manager):
        asyncio.run(manager.load(FakePlugin("a")))
        assert client.get("/api/plugins/a").json()["data"]["name"] == "Plugin a"

        response = client.get("/api/plugins/ghost")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PLUGIN_NOT_FOUND"

    def test_load_from_path(self, client, plugins_root):
        plugin_dir = write_plugin_dir(plugins_root, "web")
        response = client.post("/api/plugins/load", json={"path": str(plugin_dir)})

        assert response.status_code == 201
        assert response.json()["data"]["id"] == "web"

        again = client.post("/api/plugins/load", json={"path": str(plugin_dir)})
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "PLUGIN_ALREADY_LOADED"

        forced = client.post("/api/plugins/load", json={"path": str(plugin_dir), "force": True})
        assert forced.status_code == 201

    def test_load_missing_path(self, client, tmp_path):
        response = client.post("/api/plugins/load", json={"path": str(tmp_path / "missing")})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_load_malformed_body(self, client):
        response = client.post("/api/plugins/load", json={"force": True})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_load_broken_plugin(self, client, plugins_root):
        plugin_dir = write_plugin_dir(plugins_root, "broken", body="raise RuntimeError('bad code')\n")
        response = client.post("/api/plugins/load", json={"path": str(plugin_dir)})
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "PLUGIN_LOAD_FAILED"
        assert error["details"]["cause"] == "bad code"

        failures = client.get("/api/plugins/failures").json()["data"]
        assert [f["id"] for f in failures] == ["broken"]

    def test_unload(self, client, manager):
        async def setup():
            await manager.load(FakePlugin("a"))
            await manager.load(FakePlugin("b", dependencies=["a"]))
        asyncio.run(setup())

        blocked = client.post("/api/plugins/unload", json={"pluginId": "a"})
        assert blocked.status_code == 409
        assert blocked.json()["error"]["code"] == "PLUGIN_UNLOAD_FAILED"
        assert blocked.json()["error"]["details"]["dependents"] == ["b"]

        ok = client.post("/api/plugins/unload", json={"pluginId": "a", "cascade": True})
        assert ok.status_code == 200
        assert ok.json()["data"]["unloaded"] == ["b", "a"]

    def test_unload_absent(self, client):
        response = client.post("/api/plugins/unload", json={"pluginId": "ghost"})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PLUGIN_NOT_FOUND"

        response = client.delete("/api/plugins/ghost")
        assert response.json()["error"]["code"] == "PLUGIN_NOT_FOUND"

    def test_unload_missing_id(self, client):
        response = client.post("/api/plugins/unload", json={})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_delete_with_cascade(self, client, manager):
        async def setup():
            await manager.load(FakePlugin("a"))
            await manager.load(FakePlugin("b", dependencies=["a"]))
        asyncio.run(setup())

        response = client.delete("/api/plugins/a", params={"cascade": "true"})
        assert response.json()["data"]["unloaded"] == ["b", "a"]

    def test_reload_all_and_single(self, client, manager):
        async def setup():
            await manager.load(FakePlugin("a"))
            await manager.load(FakePlugin("b", dependencies=["a"]))
        asyncio.run(setup())

        all_ids = [p["id"] for p in client.post("/api/plugins/reload").json()["data"]]
        assert all_ids == ["a", "b"]

        single = client.post("/api/plugins/reload", json={"pluginId": "b"}).json()["data"]
        assert [p["id"] for p in single] == ["b"]

        missing = client.post("/api/plugins/reload", json={"pluginId": "ghost"})
        assert missing.status_code == 404


class TestSystemRoutes:
    def test_commands(self, client, manager):
        asyncio.run(manager.load(FakePlugin("a", commands=["greet"])))
        data = client.get("/api/commands").json()["data"]
        assert data == [{"name": "greet", "description": "greet command", "usage": "", "pluginId": "a"}]

    def test_stats(self, client, manager, tool_registry):
        async def setup():
            await manager.load(FakePlugin("a"))
            await tool_registry.register(EchoTool("echo"))
        asyncio.run(setup())

        data = client.get("/api/stats").json()["data"]
        assert data["plugins"]["activePlugins"] == 1
        assert data["tools"]["total_tools"] == 1
        assert data["rateLimitEnabled"] is False


class TestToolRoutes:
    def test_search_and_get(self, client, tool_registry):
        async def setup():
            await tool_registry.register(EchoTool("echo", tags=["x"]))
            await tool_registry.register(EchoTool("other", tags=["y"]))
        asyncio.run(setup())

        ids = [t["id"] for t in client.get("/api/tools", params={"tags": "x"}).json()["data"]]
        assert ids == ["echo"]
        assert client.get("/api/tools/echo").json()["data"]["name"] == "Tool echo"
        assert client.get("/api/tools/ghost").status_code == 404
        assert client.get("/api/tools/stats").json()["data"]["total_tools"] == 2

    def test_invalid_category(self, client):
        response = client.get("/api/tools", params={"category": "nope"})
        assert response.status_code == 400


class TestAuth:
    @pytest.fixture
    def secured(self, manager, tool_registry):
        with make_client(manager, tool_registry, api_key=API_KEY) as c:
            yield c

    def test_missing_key(self, secured):
        response = secured.get("/api/plugins")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_wrong_key(self, secured):
        response = secured.get("/api/plugins", headers={"X-API-Key": "wrong"})
        assert response.status_code == 401

    def test_header_and_bearer(self, secured):
        assert secured.get("/api/plugins", headers={"X-API-Key": API_KEY}).status_code == 200
        bearer = {"Authorization": f"Bearer {API_KEY}"}
        assert secured.get("/api/plugins", headers=bearer).status_code == 200

    def test_unauthorized_load_has_no_effect(self, secured, manager, plugins_root):
        plugin_dir = write_plugin_dir(plugins_root, "sneaky")
        response = secured.post("/api/plugins/load", json={"path": str(plugin_dir)})
        assert response.status_code == 401
        assert manager.list_plugins() == []


class TestRateLimit:
    def test_sixth_request_rejected_without_side_effects(self, manager, tool_registry, plugins_root):
        """With rateLimitMax=5 the sixth request never reaches the manager."""
        dirs = [write_plugin_dir(plugins_root, f"p{i}") for i in range(6)]

        with make_client(manager, tool_registry, enable_rate_limit=True, rate_limit_max=5) as client:
            for plugin_dir in dirs[:5]:
                response = client.post("/api/plugins/load", json={"path": str(plugin_dir)})
                assert response.status_code == 201

            with patch.object(PluginManager, "load") as load:
                response = client.post("/api/plugins/load", json={"path": str(dirs[5])})
                load.assert_not_called()

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "RATE_LIMITED"
        assert int(response.headers["Retry-After"]) >= 1
        assert sorted(p.id for p in manager.list_plugins()) == ["p0", "p1", "p2", "p3", "p4"]

    def test_auth_checked_before_rate_limit(self, manager, tool_registry):
        with make_client(
            manager, tool_registry, api_key=API_KEY, enable_rate_limit=True, rate_limit_max=1
        ) as client:
            for _ in range(3):
                assert client.get("/api/plugins").status_code == 401
            assert client.get("/api/plugins", headers={"X-API-Key": API_KEY}).status_code == 200


class TestCreateApp:
    def test_invalid_config_rejected(self, manager, tool_registry):
        with pytest.raises(ValueError):
            create_app(manager, tool_registry, ServerConfig(port=0))

    def test_cors_headers(self, manager, tool_registry):
        with make_client(manager, tool_registry) as client:
            response = client.get("/api/health", headers={"Origin": "http://example.com"})
        assert response.headers["access-control-allow-origin"] == "*"

    def test_cors_disabled(self, manager, tool_registry):
        with make_client(manager, tool_registry, enable_cors=False) as client:
            response = client.get("/api/health", headers={"Origin": "http://example.com"})
        assert "access-control-allow-origin" not in response.headers
