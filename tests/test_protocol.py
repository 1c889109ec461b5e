"""Tests for redis_mcp.protocol module."""

import pytest
import json

from redis_mcp.protocol import (
    MCPMessage,
    MCPRequest,
    MCPResponse,
    MCPError,
    MCPErrorCode,
    Tool,
    ToolParameter,
    error_code_for,
    tool_content,
)


class TestMCPError:
    def test_create(self):
        error = MCPError(code=-32600, message="Invalid Request")
        assert error.code == -32600
        assert error.message == "Invalid Request"

    def test_from_code(self):
        error = MCPError.from_code(MCPErrorCode.INTERNAL_ERROR, "boom")
        assert error.code == -32603
        assert error.message == "boom"

    def test_to_dict(self):
        error = MCPError(code=-32600, message="Test", data={"detail": "info"})
        d = error.to_dict()
        assert d["code"] == -32600
        assert d["message"] == "Test"
        assert d["data"]["detail"] == "info"

    def test_to_dict_no_data(self):
        error = MCPError(code=-32600, message="Test")
        d = error.to_dict()
        assert "data" not in d


class TestErrorCodeMapping:
    @pytest.mark.parametrize("message,code", [
        ("Server not initialized", -32002),
        ("Unknown method: foo/bar", -32601),
        ("Unsupported JSON-RPC version", -32600),
        ("Missing tool name", -32602),
        ("Failed to get data: Missing or invalid key parameter", -32603),
        ("Unknown tool: nope", -32603),
    ])
    def test_substring_rules(self, message, code):
        assert error_code_for(message).value == code

    def test_first_rule_wins(self):
        assert error_code_for("Unknown method while Server not initialized") == (
            MCPErrorCode.SERVER_NOT_INITIALIZED
        )

    def test_from_message(self):
        error = MCPError.from_message("Unknown method: nope")
        assert error.code == -32601
        assert error.message == "Unknown method: nope"


class TestMCPMessage:
    def test_create(self):
        msg = MCPMessage(id="test-123")
        assert msg.jsonrpc == "2.0"
        assert msg.id == "test-123"


class TestMCPRequest:
    def test_create(self):
        req = MCPRequest(id="1", method="tools/list", params={"foo": "bar"})
        assert req.method == "tools/list"
        assert req.params["foo"] == "bar"

    def test_from_dict(self):
        req = MCPRequest.from_dict({
            "jsonrpc": "2.0",
            "id": 7,
            "method": "tools/call",
            "params": {"name": "get_data"},
        })
        assert req.id == 7
        assert req.method == "tools/call"
        assert req.params["name"] == "get_data"

    def test_from_dict_keeps_version(self):
        req = MCPRequest.from_dict({"jsonrpc": "1.0", "id": 1, "method": "ping"})
        assert req.jsonrpc == "1.0"

    def test_from_dict_missing_fields(self):
        req = MCPRequest.from_dict({"params": ["not", "an", "object"]})
        assert req.method == ""
        assert req.id is None
        assert req.params is None

    def test_non_string_method_is_not_a_notification(self):
        req = MCPRequest.from_dict({"jsonrpc": "2.0", "id": 1, "method": 5})
        assert req.method == 5
        assert req.is_notification is False

    def test_is_notification(self):
        assert MCPRequest(method="notifications/initialized").is_notification
        assert MCPRequest(method="notifications/anything").is_notification
        assert not MCPRequest(id=1, method="ping").is_notification


class TestMCPResponse:
    def test_success(self):
        resp = MCPResponse.success("1", {"result": "ok"})
        assert resp.id == "1"
        assert resp.result["result"] == "ok"
        assert resp.error is None

    def test_to_dict_success(self):
        d = MCPResponse.success("1", "result").to_dict()
        assert d == {"jsonrpc": "2.0", "id": "1", "result": "result"}

    def test_to_dict_null_result(self):
        d = MCPResponse.success(3, None).to_dict()
        assert "result" in d
        assert d["result"] is None

    def test_to_dict_failure(self):
        resp = MCPResponse.failure("1", MCPError(code=-32600, message="Error"))
        d = resp.to_dict()
        assert d["error"]["code"] == -32600
        assert "result" not in d

    def test_failure_without_id(self):
        d = MCPResponse.failure(None, MCPError(code=-32603, message="Internal error: x")).to_dict()
        assert "id" in d
        assert d["id"] is None


class TestToolParameter:
    def test_to_json_schema(self):
        param = ToolParameter(name="ttl", type="number", description="TTL", default=10)
        schema = param.to_json_schema()
        assert schema["type"] == "number"
        assert schema["default"] == 10

    def test_untyped_parameter(self):
        schema = ToolParameter("value", None, "Any JSON value").to_json_schema()
        assert "type" not in schema

    def test_enum(self):
        param = ToolParameter("type", "string", "Data type", enum=["string", "list"])
        assert param.to_json_schema()["enum"] == ["string", "list"]


class TestTool:
    def test_to_dict(self):
        tool = Tool(
            name="get_data",
            description="Get data",
            parameters=[ToolParameter("key", "string", "Key", required=True)],
        )
        d = tool.to_dict()
        assert d["name"] == "get_data"
        assert d["inputSchema"]["type"] == "object"
        assert "key" in d["inputSchema"]["properties"]
        assert d["inputSchema"]["required"] == ["key"]

    def test_no_required_list_when_empty(self):
        d = Tool(name="test_connection", description="Ping").to_dict()
        assert d["inputSchema"] == {"type": "object", "properties": {}}


class TestToolContent:
    def test_wraps_pretty_json(self):
        content = tool_content({"key": "a", "value": 1})
        assert len(content["content"]) == 1
        block = content["content"][0]
        assert block["type"] == "text"
        assert json.loads(block["text"]) == {"key": "a", "value": 1}
        assert "\n" in block["text"]
