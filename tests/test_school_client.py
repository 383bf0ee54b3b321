"""
School API Client Tests
=======================

Requests are answered by httpx.MockTransport; nothing leaves the process.
"""

import asyncio
import json

import httpx

from marksheet_labs.models.document_models import TemplatePayload
from marksheet_labs.services.school_client import SchoolApiClient


def _client(handler):
    return SchoolApiClient(base_url="http://school.test", transport=httpx.MockTransport(handler))


def _run(client, call):
    async def go():
        try:
            return await call(client)
        finally:
            await client.close()
    return asyncio.run(go())


def test_fetch_students_sends_filters():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"students": [{"id": "s1", "name": "Asha"}]})

    result = _run(_client(handler), lambda c: c.fetch_students("c5"))
    assert result.success
    assert result.data == [{"id": "s1", "name": "Asha"}]
    assert seen[0].url.path == "/api/students"
    assert seen[0].url.params["classId"] == "c5"
    assert "batch" not in seen[0].url.params


def test_missing_list_field_defaults_to_empty():
    result = _run(_client(lambda request: httpx.Response(200, json={})), lambda c: c.fetch_marks())
    assert result.success
    assert result.data == []


def test_subjects_are_deduplicated_by_name():
    def handler(request):
        return httpx.Response(200, json={"subjects": [
            {"subjectId": "1", "name": "Math"},
            {"subjectId": "2", "name": "Math"},
            {"subjectId": "3", "subjectName": "English"},
            {"subjectId": "4"},
        ]})

    result = _run(_client(handler), lambda c: c.fetch_subjects())
    assert [subject["subjectId"] for subject in result.data] == ["1", "3"]


def test_key_sets_request_custom_keys():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"savedKeys": [{"_id": "k1", "name": "Term 1"}]})

    result = _run(_client(handler), lambda c: c.fetch_key_sets())
    assert result.data[0]["_id"] == "k1"
    assert seen[0].url.path == "/api/data-field-keys"
    assert seen[0].url.params["custom"] == "true"


def test_api_error_message_is_reported():
    def handler(request):
        return httpx.Response(400, json={"error": "Class not found"})

    result = _run(_client(handler), lambda c: c.fetch_students("nope"))
    assert not result.success
    assert result.error == "Class not found"
    assert result.status_code == 400


def test_non_json_error_body():
    result = _run(_client(lambda request: httpx.Response(502, text="Bad gateway")), lambda c: c.fetch_classes())
    assert not result.success
    assert result.error == "HTTP 502: Bad gateway"


def test_network_failure_never_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = _run(_client(handler), lambda c: c.fetch_tests())
    assert not result.success
    assert result.error.startswith("Network error")


def test_timeout_is_reported():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    result = _run(_client(handler), lambda c: c.fetch_classes())
    assert not result.success
    assert result.error == "Request timed out"


def test_invalid_json_is_reported():
    result = _run(_client(lambda request: httpx.Response(200, text="<html>")), lambda c: c.fetch_students())
    assert not result.success
    assert result.error == "Invalid JSON response"


def test_save_new_template_posts_and_update_puts():
    seen = []

    def handler(request):
        body = json.loads(request.content)
        seen.append((request.method, body))
        return httpx.Response(200, json={"template": dict(body, templateId=body.get("templateId") or "t-1")})

    new = _run(_client(handler), lambda c: c.save_template(TemplatePayload(template_name="Term 1")))
    assert new.data["templateId"] == "t-1"

    _run(_client(handler), lambda c: c.save_template(TemplatePayload(template_id="t-1")))

    assert seen[0][0] == "POST"
    assert "templateId" not in seen[0][1]
    assert seen[0][1]["templateName"] == "Term 1"
    assert seen[1][0] == "PUT"
    assert seen[1][1]["templateId"] == "t-1"


def test_load_template():
    def handler(request):
        if request.url.params["templateId"] == "t-1":
            return httpx.Response(200, json={"template": {"templateName": "Term 1"}})
        return httpx.Response(200, json={"template": None})

    found = _run(_client(handler), lambda c: c.load_template("t-1"))
    assert found.data == {"templateName": "Term 1"}

    missing = _run(_client(handler), lambda c: c.load_template("t-2"))
    assert not missing.success
    assert missing.error == "Template not found"


def test_generate_template():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"templateName": "AI", "elements": [{"type": "text"}]})

    result = _run(_client(handler), lambda c: c.generate_template("report card"))
    assert result.success
    assert result.data["elements"] == [{"type": "text"}]
    assert seen == [{"prompt": "report card"}]
