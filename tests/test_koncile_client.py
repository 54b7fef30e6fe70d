"""
Tests for providers/koncile_client.py

HTTP 호출은 가짜 aiohttp 세션으로 대체
"""

import asyncio
import json

import aiohttp
import pytest

from app.config import Settings, reset_settings
from providers import (
    KoncileAiClient,
    ProviderConfigurationError,
    ProviderRegistry,
    ProviderStatus,
)


class FakeResponse:
    def __init__(self, status, body=""):
        self.status = status
        self.body = body if isinstance(body, str) else json.dumps(body)

    async def text(self):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """aiohttp.ClientSession 대역 (post 호출 기록)"""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def post(self, url, params=None, headers=None, data=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "data": data})
        if self.error:
            raise self.error
        return self.response


def make_client(response=None, error=None):
    session = FakeSession(response, error)
    client = KoncileAiClient(
        api_url="https://api.koncile.test/",
        api_key="secret-key",
        session_factory=lambda: session,
    )
    return client, session


def upload(client, metadata, content=b"file-bytes", filename="car.pdf"):
    return asyncio.run(client.upload(content, "car_license", metadata, filename=filename))


class TestConfiguration:
    def test_missing_key_fails_fast(self):
        reset_settings(Settings(koncile_api_key=None))
        with pytest.raises(ProviderConfigurationError) as exc:
            KoncileAiClient(api_url="https://api.koncile.test")
        assert "key" in str(exc.value)

    def test_missing_url_and_key(self):
        reset_settings(Settings(koncile_api_url=None, koncile_api_key=None))
        with pytest.raises(ProviderConfigurationError) as exc:
            KoncileAiClient()
        assert "url, key" in str(exc.value)

    def test_from_settings_does_not_fall_back_to_global(self, settings):
        assert settings.koncile_api_key == "test-key"
        explicit = Settings(koncile_api_url="https://api.koncile.test", koncile_api_key=None)

        with pytest.raises(ProviderConfigurationError) as exc:
            KoncileAiClient.from_settings(explicit)
        assert "key" in str(exc.value)

        with pytest.raises(ProviderConfigurationError):
            ProviderRegistry.create("koncile_ai", explicit)

    def test_from_settings_uses_given_values(self, settings):
        explicit = Settings(koncile_api_url="https://other.koncile.test/", koncile_api_key="other-key")

        client = KoncileAiClient.from_settings(explicit)

        assert client.base_url == "https://other.koncile.test"
        assert client.headers["Authorization"] == "Bearer other-key"

    def test_registry_builds_client(self, settings):
        client = ProviderRegistry.create("koncile_ai", settings)
        assert isinstance(client, KoncileAiClient)
        assert client.base_url == "https://api.koncile.test"
        assert client.name() == "koncile_ai"

    def test_registry_unknown_provider(self, settings):
        with pytest.raises(ProviderConfigurationError):
            ProviderRegistry.create("nope", settings)


class TestUploadValidation:
    def test_missing_template_id_makes_no_call(self):
        client, session = make_client(FakeResponse(200, {"task_ids": ["t-1"]}))

        result = upload(client, {"folder_id": "f-1"})

        assert result.status == ProviderStatus.FAILED
        assert result.message == "No template_id provided in metadata for document type: car_license"
        assert session.calls == []

    def test_empty_template_id(self):
        client, session = make_client(FakeResponse(200, {"task_ids": ["t-1"]}))

        result = upload(client, {"template_id": ""})

        assert result.status == ProviderStatus.FAILED
        assert session.calls == []

    def test_missing_path(self, tmp_path):
        client, session = make_client(FakeResponse(200, {"task_ids": ["t-1"]}))
        missing = tmp_path / "missing.pdf"

        result = upload(client, {"template_id": "tpl"}, content=str(missing))

        assert result.status == ProviderStatus.FAILED
        assert result.message.startswith("File not accessible:")
        assert session.calls == []


class TestUploadSuccess:
    def test_returns_first_task_id(self):
        client, session = make_client(FakeResponse(200, {"task_ids": ["t-1", "t-2"]}))

        result = upload(client, {"template_id": "tpl-1"})

        assert result.status == ProviderStatus.PENDING
        assert result.external_task_id == "t-1"
        assert result.accepted
        assert result.message == "File uploaded successfully."

        call = session.calls[0]
        assert call["url"] == "https://api.koncile.test/v1/upload_file/"
        assert call["params"] == {"template_id": "tpl-1"}
        assert call["headers"]["Authorization"] == "Bearer secret-key"
        assert isinstance(call["data"], aiohttp.FormData)

    def test_folder_id_query_param(self):
        client, session = make_client(FakeResponse(201, {"task_ids": ["t-1"]}))

        upload(client, {"template_id": "tpl-1", "folder_id": "fld-2"})

        assert session.calls[0]["params"] == {"template_id": "tpl-1", "folder_id": "fld-2"}

    def test_path_input(self, tmp_path):
        client, session = make_client(FakeResponse(200, {"task_ids": ["t-7"]}))
        path = tmp_path / "license.pdf"
        path.write_bytes(b"%PDF")

        result = upload(client, {"template_id": "tpl"}, content=path, filename=None)

        assert result.external_task_id == "t-7"
        assert len(session.calls) == 1

    def test_no_task_ids_is_failed(self):
        client, _ = make_client(FakeResponse(200, {"task_ids": []}))

        result = upload(client, {"template_id": "tpl"})

        assert result.status == ProviderStatus.FAILED
        assert result.external_task_id is None
        assert "no task id" in result.message

    def test_unparseable_body_is_failed(self):
        client, _ = make_client(FakeResponse(200, "<html>ok</html>"))

        result = upload(client, {"template_id": "tpl"})

        assert result.status == ProviderStatus.FAILED


class TestUploadErrors:
    @pytest.mark.parametrize("status", [401, 403])
    def test_authentication(self, status):
        client, _ = make_client(FakeResponse(status, "denied"))
        result = upload(client, {"template_id": "tpl"})
        assert result.status == ProviderStatus.FAILED
        assert result.message == "Authentication failed with Koncile AI."

    @pytest.mark.parametrize("status", [400, 422])
    def test_validation(self, status):
        client, _ = make_client(FakeResponse(status, '{"detail": "bad template"}'))
        result = upload(client, {"template_id": "tpl"})
        assert result.message == 'Validation error from Koncile AI: {"detail": "bad template"}'

    def test_server_error(self):
        client, _ = make_client(FakeResponse(500, "oops"))
        result = upload(client, {"template_id": "tpl"})
        assert result.status == ProviderStatus.FAILED
        assert result.message == "Koncile AI server error. Please try again later."
        assert result.data["status_code"] == 500

    def test_unexpected_status(self):
        client, _ = make_client(FakeResponse(418, "teapot"))
        result = upload(client, {"template_id": "tpl"})
        assert result.message == "Unexpected response from Koncile AI (HTTP 418): teapot"

    def test_network_error(self):
        client, _ = make_client(error=aiohttp.ClientConnectionError("connection refused"))
        result = upload(client, {"template_id": "tpl"})
        assert result.status == ProviderStatus.FAILED
        assert result.message == "Network error: connection refused"

    def test_timeout(self):
        client, _ = make_client(error=asyncio.TimeoutError())
        result = upload(client, {"template_id": "tpl"})
        assert result.message.startswith("Network error:")
