"""Tests for the client-credentials provider."""

from urllib.parse import parse_qs

import httpx
import pytest

from adapters.external.credential_provider import ClientCredentialProviderAdapter
from config import adapters as config_adapters

CREDENTIAL_ENV_VARS = (
    "AZURE_CLIENT_ID",
    "AZURE_APP_CLIENT_ID",
    "AUTH_CLIENT_ID",
    "AZURE_CLIENT_SECRET",
    "AZURE_APP_CLIENT_SECRET",
    "AUTH_CLIENT_SECRET",
    "AZURE_TENANT_ID",
    "AUTH_TENANT_ID",
)


@pytest.fixture(autouse=True)
def _clear_credential_env(monkeypatch):
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def configured():
    return config_adapters.TestingConfig(
        AZURE_CLIENT_ID="client-id", AZURE_CLIENT_SECRET="secret", AZURE_TENANT_ID="tenant-id"
    )


@pytest.mark.asyncio
async def test_unconfigured_returns_none_without_request(logger):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"access_token": "never"})

    provider = ClientCredentialProviderAdapter(
        config_adapters.TestingConfig(), logger, transport=httpx.MockTransport(handler)
    )

    assert await provider.get_service_credential() is None
    assert provider.get_missing_settings() == ["AZURE_CLIENT_ID", "AZURE_CLIENT_SECRET", "AZURE_TENANT_ID"]
    assert requests == []


@pytest.mark.asyncio
async def test_client_credentials_grant(logger):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"access_token": "app-token", "expires_in": 3599})

    provider = ClientCredentialProviderAdapter(configured(), logger, transport=httpx.MockTransport(handler))

    assert await provider.get_service_credential() == "app-token"
    assert provider.get_missing_settings() == []

    request = requests[0]
    assert str(request.url) == "https://login.test/tenant-id/oauth2/v2.0/token"
    form = parse_qs(request.content.decode())
    assert form["grant_type"] == ["client_credentials"]
    assert form["client_id"] == ["client-id"]
    assert form["scope"] == ["https://graph.microsoft.com/.default"]


@pytest.mark.asyncio
async def test_rejected_grant_returns_none(logger):
    provider = ClientCredentialProviderAdapter(
        configured(),
        logger,
        transport=httpx.MockTransport(lambda request: httpx.Response(401, json={"error": "invalid_client"})),
    )

    assert await provider.get_service_credential() is None
    assert logger.messages("error")


@pytest.mark.asyncio
async def test_transport_failure_returns_none(logger):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    provider = ClientCredentialProviderAdapter(configured(), logger, transport=httpx.MockTransport(handler))

    assert await provider.get_service_credential() is None


@pytest.mark.asyncio
async def test_non_json_token_response_returns_none(logger):
    provider = ClientCredentialProviderAdapter(
        configured(),
        logger,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>proxy login</html>")),
    )

    assert await provider.get_service_credential() is None
    assert logger.messages("error")
