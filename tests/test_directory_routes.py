"""Tests for the admin directory router."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import FakeCredentialProvider, page, user
from adapters.web.directory_routes import get_directory_sync_usecase, router
from core.domain.entities import GroupInfo
from core.domain.exceptions import DirectoryForbiddenError
from core.usecases.cache_reconciler import CacheReconcileUseCase
from core.usecases.directory_sync import DirectorySyncUseCase
from core.usecases.member_fetcher import MemberFetchUseCase

GROUP_ID = "group-1"


@pytest.fixture
def credential_provider():
    return FakeCredentialProvider(token=None, missing=["AZURE_CLIENT_ID"])


@pytest.fixture
def client(credential_provider, directory_client, cache_repository, logger, sleeper):
    directory_client.groups[GROUP_ID] = GroupInfo(id=GROUP_ID, display_name="All Staff")
    usecase = DirectorySyncUseCase(
        credential_provider=credential_provider,
        directory_client=directory_client,
        member_fetcher=MemberFetchUseCase(directory_client, logger, sleep=sleeper),
        cache_reconciler=CacheReconcileUseCase(cache_repository, logger),
        cache_repository=cache_repository,
        logger=logger,
    )

    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_directory_sync_usecase] = lambda: usecase
    return TestClient(app)


def test_config_is_empty_initially(client):
    response = client.get("/directory/config")

    assert response.status_code == 200
    assert response.json()["configured"] is False


def test_sync_without_credentials_is_a_bad_request(client):
    response = client.post("/directory/sync", params={"group_id": GROUP_ID})

    assert response.status_code == 400
    assert "AZURE_CLIENT_ID" in response.json()["detail"]


def test_configure_then_sync_with_header_token(client, directory_client):
    headers = {"X-Graph-Token": "user-token"}
    response = client.post("/directory/config", json={"group_id": GROUP_ID}, headers=headers)
    assert response.status_code == 200
    assert response.json()["group_name"] == "All Staff"

    directory_client.script(
        f"/groups/{GROUP_ID}/members",
        page(user("u1", "one@example.com"), user("u2", "two@example.com")),
    )
    response = client.post("/directory/sync", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["synced"] == 2
    assert body["deleted"] == 0

    members = client.get("/directory/members").json()
    assert members["count"] == 2


def test_unknown_group_is_not_found(client):
    response = client.post(
        "/directory/config", json={"group_id": "missing"}, headers={"X-Graph-Token": "user-token"}
    )

    assert response.status_code == 404


def test_forbidden_group_maps_to_403(client, directory_client):
    directory_client.groups[GROUP_ID] = DirectoryForbiddenError("denied")

    response = client.post(
        "/directory/sync", params={"group_id": GROUP_ID}, headers={"X-Graph-Token": "user-token"}
    )

    assert response.status_code == 403
    assert "Group.Read.All" in response.json()["detail"]
