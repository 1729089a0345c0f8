"""End-to-end HTTP tests over the ASGI app with an in-memory database."""

import pytest
from fastapi import HTTPException

from app.core.config import Settings, get_settings
from routers.dependencies import get_object_storage

API = "/api/v1"


async def create_listing(client, **overrides):
    payload = {
        "type": "rent",
        "propertyType": "apartment",
        "title": "Bilocale a Milano",
        "price": 1200,
        "userFields": {"city": "Milano", "squareMeters": 60},
    }
    payload.update(overrides)
    response = await client.post(f"{API}/listings", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestSystem:
    async def test_health_is_outside_prefix(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert "uptimeSec" in body
        assert "timestamp" in body

    async def test_public_config(self, client):
        response = await client.get(f"{API}/config")
        assert response.status_code == 200
        body = response.json()
        assert body["env"] == "test"
        assert body["limits"] == {"maxUploadMb": 25}
        assert body["features"] == {"listings": True, "aiRefine": False}

    async def test_security_headers(self, client):
        response = await client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


class TestListingsApi:
    async def test_create_uses_camel_case(self, client):
        body = await create_listing(client)
        assert body["status"] == "draft"
        assert body["propertyType"] == "apartment"
        assert body["userFields"] == {"city": "Milano", "squareMeters": 60}
        assert "createdAt" in body

    async def test_validation_error_envelope(self, client):
        response = await client.post(f"{API}/listings", json={"type": "lease", "price": -5})
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]

    async def test_title_too_long(self, client):
        response = await client.post(f"{API}/listings", json={"type": "sale", "title": "t" * 201})
        assert response.status_code == 422

    async def test_list_filters_and_pagination(self, client):
        await create_listing(client, title="Villa", type="sale", price=900000)
        await create_listing(client, title="Monolocale", price=700)
        await create_listing(client, title="Bilocale", price=1100)

        response = await client.get(f"{API}/listings", params={"type": "rent", "sort": "price", "limit": 1})
        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 2
        assert body["limit"] == 1
        assert [item["title"] for item in body["items"]] == ["Monolocale"]

    async def test_limit_out_of_range(self, client):
        response = await client.get(f"{API}/listings", params={"limit": 101})
        assert response.status_code == 422

    async def test_get_missing_is_not_found(self, client):
        response = await client.get(f"{API}/listings/missing")
        assert response.status_code == 404
        assert response.json() == {"error": {"code": "NOT_FOUND", "message": "Listing not found"}}

    async def test_patch_merges_user_fields(self, client):
        listing = await create_listing(client)
        response = await client.patch(
            f"{API}/listings/{listing['id']}",
            json={"userFields": {"floor": 3}, "status": "ready"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["userFields"] == {"city": "Milano", "squareMeters": 60, "floor": 3}
        assert body["status"] == "ready"
        assert body["title"] == "Bilocale a Milano"

    async def test_delete_is_soft(self, client):
        listing = await create_listing(client)
        response = await client.delete(f"{API}/listings/{listing['id']}")
        assert response.status_code == 204
        assert (await client.get(f"{API}/listings/{listing['id']}")).status_code == 404
        assert (await client.get(f"{API}/listings")).json()["total"] == 0


class TestAuthApi:
    async def test_register_sets_session_cookie(self, client):
        response = await client.post(
            f"{API}/auth/register",
            json={"email": "agent@example.com", "password": "casa12345"},
        )
        assert response.status_code == 201
        assert "sid=" in response.headers["set-cookie"]
        assert "httponly" in response.headers["set-cookie"].lower()
        assert response.json()["user"]["email"] == "agent@example.com"

    async def test_me_requires_session(self, client):
        response = await client.get(f"{API}/auth/me")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_me_with_session(self, auth_client):
        response = await auth_client.get(f"{API}/auth/me")
        assert response.status_code == 200
        assert response.json()["email"] == "agent@example.com"

    async def test_invalid_cookie_is_cleared(self, client):
        client.cookies.set("sid", "forged")
        response = await client.get(f"{API}/auth/me")
        assert response.status_code == 401
        assert 'sid=""' in response.headers["set-cookie"]

    async def test_duplicate_register_conflict(self, auth_client):
        response = await auth_client.post(
            f"{API}/auth/register",
            json={"email": "agent@example.com", "password": "casa12345"},
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "EMAIL_TAKEN"

    async def test_weak_password_rejected(self, client):
        response = await client.post(
            f"{API}/auth/register",
            json={"email": "agent@example.com", "password": "password"},
        )
        assert response.status_code == 422

    @pytest.mark.parametrize("email", ["agent", "agent@", "agent example@example.com"])
    async def test_invalid_email_rejected(self, client, email):
        response = await client.post(
            f"{API}/auth/register",
            json={"email": email, "password": "casa12345"},
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_login_errors(self, auth_client):
        response = await auth_client.post(
            f"{API}/auth/login",
            json={"email": "agent@example.com", "password": "wrong1234"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    async def test_logout_clears_session(self, auth_client):
        response = await auth_client.post(f"{API}/auth/logout")
        assert response.status_code == 204
        assert (await auth_client.get(f"{API}/auth/me")).status_code == 401


class TestGenerateDraftApi:
    async def test_requires_session(self, client):
        listing = await create_listing(client)
        response = await client.post(f"{API}/listings/{listing['id']}/generate-draft", json={})
        assert response.status_code == 401

    async def test_sandbox_generation(self, auth_client):
        listing = await create_listing(auth_client)
        response = await auth_client.post(
            f"{API}/listings/{listing['id']}/generate-draft",
            json={"locale": "it-IT", "tone": "premium", "length": "short"},
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["fallback"] is False
        assert body["language"] == "it"
        assert body["seo"]["metaDescription"]
        assert len(body["description"].split("\n\n")) == 5

    async def test_legacy_tone_spelling(self, auth_client):
        listing = await create_listing(auth_client)
        response = await auth_client.post(
            f"{API}/listings/{listing['id']}/generate-draft",
            json={"tone": "professionale"},
        )
        assert response.status_code == 200

    async def test_invalid_tone_rejected(self, auth_client):
        listing = await create_listing(auth_client)
        response = await auth_client.post(
            f"{API}/listings/{listing['id']}/generate-draft",
            json={"tone": "shouty"},
        )
        assert response.status_code == 422

    async def test_missing_listing(self, auth_client):
        response = await auth_client.post(f"{API}/listings/missing/generate-draft", json={})
        assert response.status_code == 404

    async def test_missing_api_key_is_configuration_error(self, auth_client, monkeypatch):
        listing = await create_listing(auth_client)
        monkeypatch.setattr(get_settings(), "openai_api_key", None)
        response = await auth_client.post(
            f"{API}/listings/{listing['id']}/generate-draft", json={}
        )
        assert response.status_code == 500
        assert response.json()["error"]["code"] == "AI_NOT_CONFIGURED"



class TestPhotosApi:
    async def test_requires_session(self, client):
        listing = await create_listing(client)
        response = await client.get(f"{API}/listings/{listing['id']}/photos")
        assert response.status_code == 401

    async def test_upload_process_and_manage(self, auth_client, s3_client):
        listing = await create_listing(auth_client)
        base = f"{API}/listings/{listing['id']}/photos"

        response = await auth_client.post(f"{base}/uploads", json={"count": 2})
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["expiresInSeconds"] == 300
        first, second = body["items"]
        assert first["uploadUrl"].startswith("https://casalabia-test.s3.local/")

        response = await auth_client.post(
            f"{base}/complete",
            json={
                "assetId": first["assetId"],
                "key": first["key"],
                "size": 2048,
                "width": 1200,
                "height": 800,
                "mime": "image/jpeg",
                "originalName": "salotto.jpg",
            },
        )
        assert response.status_code == 202, response.text
        assert response.json() == {"status": "PROCESSING", "photoId": first["assetId"]}

        photos = (await auth_client.get(base)).json()
        assert [photo["id"] for photo in photos] == [first["assetId"], second["assetId"]]
        assert photos[0]["status"] == "READY"
        assert set(photos[0]["variants"]["webp"]) == {"w1024", "w512"}
        assert photos[0]["cdnBaseUrl"] == "https://media.casalabia.dev"
        assert photos[1]["status"] == "UPLOADING"

        response = await auth_client.patch(f"{base}/{first['assetId']}", json={"isCover": True})
        assert response.json() == {"ok": True}
        response = await auth_client.patch(f"{base}/{second['assetId']}", json={"isCover": True})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"

        response = await auth_client.patch(
            f"{base}/order", json={"ids": [second["assetId"], first["assetId"]]}
        )
        assert response.json() == {"ok": True}
        photos = (await auth_client.get(base)).json()
        assert [photo["id"] for photo in photos] == [second["assetId"], first["assetId"]]
        assert photos[1]["isCover"] is True

        response = await auth_client.delete(f"{base}/{first['assetId']}")
        assert response.json() == {"deleted": True}
        assert s3_client.delete_objects.called
        response = await auth_client.delete(base)
        assert response.json() == {"deleted": 1}

    async def test_unsupported_mime_rejected(self, auth_client):
        listing = await create_listing(auth_client)
        response = await auth_client.post(
            f"{API}/listings/{listing['id']}/photos/uploads",
            json={"count": 1, "mimeTypes": ["image/gif"]},
        )
        assert response.status_code == 422

    async def test_slot_count_bounds(self, auth_client):
        listing = await create_listing(auth_client)
        response = await auth_client.post(
            f"{API}/listings/{listing['id']}/photos/uploads", json={"count": 11}
        )
        assert response.status_code == 422

    async def test_unknown_listing(self, auth_client):
        response = await auth_client.post(f"{API}/listings/missing/photos/uploads", json={"count": 1})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_unknown_photo(self, auth_client):
        listing = await create_listing(auth_client)
        response = await auth_client.delete(f"{API}/listings/{listing['id']}/photos/missing")
        assert response.status_code == 404

    def test_storage_must_be_configured(self):
        with pytest.raises(HTTPException) as excinfo:
            get_object_storage(Settings(s3_bucket_name=None))
        assert excinfo.value.status_code == 500
        assert excinfo.value.detail["code"] == "STORAGE_NOT_CONFIGURED"


@pytest.mark.parametrize("path", ["/docs", "/openapi.json"])
async def test_docs_enabled_outside_production(client, path):
    assert (await client.get(path)).status_code == 200
