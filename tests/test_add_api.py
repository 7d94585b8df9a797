"""Redirect creation endpoint tests."""

import pytest
from httpx import AsyncClient

from qrlocal.codec import ALPHABET
from qrlocal.enums import ErrorKind
from qrlocal.store import RedirectStore


@pytest.mark.asyncio
async def test_add_generates_id(client: AsyncClient) -> None:
    response = await client.post("/api/add", json={"url": "https://example.com"})
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["original_url"] == "https://example.com"
    assert len(data["base32_id"]) == 7
    assert set(data["base32_id"]) <= set(ALPHABET.lower())
    assert data["qr_url"] == f"qr.local/{data['base32_id']}"


@pytest.mark.asyncio
async def test_add_with_custom_key_is_normalized(client: AsyncClient) -> None:
    response = await client.post(
        "/api/add", json={"url": "https://example.com", "key": "MYKEY23"}
    )
    assert response.status_code == 201
    assert response.json()["base32_id"] == "mykey23"
    assert response.json()["qr_url"] == "qr.local/mykey23"


@pytest.mark.asyncio
async def test_add_duplicate_key_in_other_case(client: AsyncClient) -> None:
    await client.post("/api/add", json={"url": "https://example.com", "key": "mykey23"})

    response = await client.post(
        "/api/add", json={"url": "https://other.example.com", "key": "MyKey23"}
    )
    assert response.status_code == 409
    data = response.json()
    assert data["success"] is False
    assert data["kind"] == ErrorKind.DUPLICATE_KEY.value

    redirect = await client.get("/mykey23", follow_redirects=False)
    assert redirect.headers["location"] == "https://example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, kind",
    [
        ({"url": "not-a-url"}, ErrorKind.INVALID_URL),
        ({}, ErrorKind.INVALID_URL),
        ({"url": ""}, ErrorKind.INVALID_URL),
        ({"url": "https://example.com", "key": "MYKE!"}, ErrorKind.INVALID_KEY_FORMAT),
        ({"url": "https://example.com", "key": "abc1"}, ErrorKind.INVALID_KEY_FORMAT),
        ({"url": "https://example.com", "key": "abcdefgh"}, ErrorKind.INVALID_KEY_FORMAT),
        ({"url": "https://example.com", "key": 123}, ErrorKind.INVALID_KEY_FORMAT),
    ],
)
async def test_add_rejects_invalid_input(
    client: AsyncClient, store: RedirectStore, payload: dict, kind: ErrorKind
) -> None:
    response = await client.post("/api/add", json=payload)
    assert response.status_code == 400
    assert response.json()["kind"] == kind.value
    assert await store.list_all() == []


@pytest.mark.asyncio
async def test_add_invalid_url_wins_over_invalid_key(client: AsyncClient) -> None:
    response = await client.post("/api/add", json={"url": "not-a-url", "key": "MYKE!"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid URL format"


@pytest.mark.asyncio
async def test_add_non_object_body(client: AsyncClient) -> None:
    response = await client.post("/api/add", json=["https://example.com"])
    assert response.status_code == 400
    assert response.json()["error"] == "URL is required"


@pytest.mark.asyncio
async def test_add_empty_key_generates_id(client: AsyncClient) -> None:
    response = await client.post("/api/add", json={"url": "https://example.com", "key": ""})
    assert response.status_code == 201
    assert len(response.json()["base32_id"]) == 7


@pytest.mark.asyncio
async def test_add_same_url_twice_creates_two_records(client: AsyncClient) -> None:
    first = await client.post("/api/add", json={"url": "https://example.com"})
    second = await client.post("/api/add", json={"url": "https://example.com"})
    assert first.json()["base32_id"] != second.json()["base32_id"]


@pytest.mark.asyncio
async def test_add_form_post_returns_html(client: AsyncClient) -> None:
    response = await client.post(
        "/api/add", data={"url": "https://example.com", "key": "FORMKEY"}
    )
    assert response.status_code == 201
    assert response.headers["content-type"].startswith("text/html")
    assert "Redirect Created Successfully!" in response.text
    assert "qr.local/formkey" in response.text
    assert "/qr/formkey/png" in response.text


@pytest.mark.asyncio
async def test_add_form_post_with_json_accept(client: AsyncClient) -> None:
    response = await client.post(
        "/api/add",
        data={"url": "https://example.com", "key": ""},
        headers={"Accept": "application/json"},
    )
    assert response.status_code == 201
    assert len(response.json()["base32_id"]) == 7


@pytest.mark.asyncio
async def test_add_form_post_error_is_json(client: AsyncClient) -> None:
    response = await client.post("/api/add", data={"url": "not-a-url"})
    assert response.status_code == 400
    assert response.json()["kind"] == ErrorKind.INVALID_URL.value


@pytest.mark.asyncio
@pytest.mark.parametrize("settings", [{"MAX_ID_LENGTH": 1}], indirect=True)
async def test_add_exhausted_id_space(client: AsyncClient, store: RedirectStore) -> None:
    for symbol in ALPHABET.lower():
        await store.insert_if_absent(symbol, "https://taken.example.com")

    response = await client.post("/api/add", json={"url": "https://example.com"})
    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Unable to generate unique ID",
        "kind": ErrorKind.ALLOCATION_EXHAUSTED.value,
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("settings", [{"MAX_ID_LENGTH": 14}], indirect=True)
async def test_add_respects_configured_length(client: AsyncClient) -> None:
    generated = await client.post("/api/add", json={"url": "https://example.com"})
    assert len(generated.json()["base32_id"]) == 14

    custom = await client.post(
        "/api/add", json={"url": "https://example.com", "key": "ABCDEFGHIJKLMN"}
    )
    assert custom.status_code == 201


@pytest.mark.asyncio
async def test_add_local_hostname_with_underscore(client: AsyncClient) -> None:
    response = await client.post("/api/add", json={"url": "http://my_host.local/", "key": "lanhost"})
    assert response.status_code == 201

    redirect = await client.get("/lanhost", follow_redirects=False)
    assert redirect.headers["location"] == "http://my_host.local/"
