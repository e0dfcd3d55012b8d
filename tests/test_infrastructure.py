"""Tests for the HTTP clients: record store, Vapi and Vertex."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from intervue.infrastructure.data import LOOKUP_COLUMNS, SupabaseRecordStore
from intervue.infrastructure.llm import LLMError, VertexRestClient
from intervue.infrastructure.voice import VapiError, VapiRestClient
from intervue.interview.testing import mock_http_response

BASE = "https://db.example.supabase.co/"
REST = "https://db.example.supabase.co/rest/v1/interviews"


class TestSupabaseRecordStore:
    @patch("intervue.infrastructure.data.records.requests.get")
    def test_find_by_id(self, mock_get) -> None:
        mock_get.return_value = mock_http_response(json_body=[{"id": "abc", "skills": "python"}])
        row = SupabaseRecordStore(BASE, "svc-key").find_by_id("abc")

        assert row == {"id": "abc", "skills": "python"}
        args, kwargs = mock_get.call_args
        assert args[0] == REST
        assert kwargs["params"] == {"id": "eq.abc", "select": LOOKUP_COLUMNS}
        assert kwargs["headers"]["apikey"] == "svc-key"
        assert kwargs["headers"]["Authorization"] == "Bearer svc-key"

    @patch("intervue.infrastructure.data.records.requests.get")
    def test_find_latest_by_email_excludes_id(self, mock_get) -> None:
        mock_get.return_value = mock_http_response(json_body=[])
        store = SupabaseRecordStore(BASE, "svc-key")

        assert store.find_latest_by_email("ada@example.com", exclude_id="abc") is None
        params = mock_get.call_args.kwargs["params"]
        assert params["Email"] == "eq.ada@example.com"
        assert params["order"] == "created_at.desc"
        assert params["limit"] == "1"
        assert params["id"] == "neq.abc"

    @patch("intervue.infrastructure.data.records.requests.get")
    def test_lookup_failures_mean_not_found(self, mock_get) -> None:
        store = SupabaseRecordStore(BASE, "svc-key")
        mock_get.side_effect = requests.ConnectionError()
        assert store.find_by_id("abc") is None

        mock_get.side_effect = None
        mock_get.return_value = mock_http_response(status_code=401, text="bad key")
        assert store.find_by_id("abc") is None

    @patch("intervue.infrastructure.data.records.requests.patch")
    def test_update(self, mock_patch) -> None:
        mock_patch.return_value = mock_http_response(status_code=204)
        resp = SupabaseRecordStore(BASE, "svc-key").update("abc", {"tone": "calm"})

        assert resp.ok and resp.status == 204
        kwargs = mock_patch.call_args.kwargs
        assert kwargs["params"] == {"id": "eq.abc"}
        assert kwargs["json"] == {"tone": "calm"}
        assert kwargs["headers"]["Prefer"] == "return=minimal"

    def test_update_rejects_id_in_payload(self) -> None:
        with pytest.raises(ValueError):
            SupabaseRecordStore(BASE, "svc-key").update("abc", {"id": "abc"})

    @patch("intervue.infrastructure.data.records.requests.post")
    def test_insert_failure(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(status_code=409, text="duplicate key")
        resp = SupabaseRecordStore(BASE, "svc-key").insert({"id": "abc"})
        assert not resp.ok
        assert resp.status == 409
        assert resp.body == "duplicate key"


class TestVapiRestClient:
    def test_token_required(self) -> None:
        with pytest.raises(ValueError):
            VapiRestClient("")

    @patch("intervue.infrastructure.voice.client.requests.post")
    def test_create_web_call(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(json_body={"id": "call-1"})
        call = VapiRestClient("pub").create_web_call(
            {"name": "Interviewer", "firstMessage": "Hi"}, {"questions": "- q"}, "wf-1")

        assert call == {"id": "call-1"}
        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.vapi.ai/call/web"
        assert kwargs["json"] == {
            "name": "Interviewer", "firstMessage": "Hi",
            "variableValues": {"questions": "- q"}, "workflowId": "wf-1",
        }

    @patch("intervue.infrastructure.voice.client.requests.post")
    def test_create_web_call_error(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(status_code=400, text="bad assistant")
        with pytest.raises(VapiError) as exc:
            VapiRestClient("pub").create_web_call({})
        assert exc.value.status == 400

    @patch("intervue.infrastructure.voice.client.requests.post")
    def test_send_control_failure_is_false(self, mock_post) -> None:
        mock_post.side_effect = requests.ConnectionError()
        assert VapiRestClient("pub").send_control("https://ctl", {"type": "end-call"}) is False


class TestVertexRestClient:
    def _client(self) -> VertexRestClient:
        client = VertexRestClient(project="proj")
        creds = MagicMock(valid=True, token="oauth-token")
        client._credentials = creds
        return client

    @patch("intervue.infrastructure.llm.client.requests.post")
    def test_generate_content(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(json_body={
            "candidates": [{"content": {"parts": [{"text": "python, "}, {"text": "sql"}]}}]
        })
        text = self._client().generate_content("prompt")

        assert text == "python, sql"
        args, kwargs = mock_post.call_args
        assert args[0].endswith("/publishers/google/models/gemini-2.0-flash-001:generateContent")
        assert kwargs["headers"]["Authorization"] == "Bearer oauth-token"

    @patch("intervue.infrastructure.llm.client.requests.post")
    def test_error_status_raises(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(status_code=429, text="quota")
        with pytest.raises(LLMError):
            self._client().generate_content("prompt")

    @patch("intervue.infrastructure.llm.client.requests.post")
    def test_non_object_body_raises_llm_error(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(json_body=["python"])
        with pytest.raises(LLMError):
            self._client().generate_content("prompt")
