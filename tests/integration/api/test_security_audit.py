import csv
import io

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_audit_requires_admin(client: AsyncClient, login):
    operator = (await login()).json()

    response = await client.get(
        "/security/session-audit",
        headers={"Authorization": f"Bearer {operator['accessToken']}"},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_query_filters_and_summary(client: AsyncClient, login, admin_headers):
    await login(password="WrongPass123!")
    await login(password="WrongPass123!")
    await login()
    headers = await admin_headers()

    response = await client.get(
        "/security/session-audit",
        params={"userEmail": "GUARD@", "eventType": "login"},
        headers=headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 3
    assert data["summary"] == {"total": 3, "success": 1, "failure": 2, "loginFailure": 2}
    assert data["sortBy"] == "createdAt"
    assert data["sortOrder"] == "desc"
    assert data["page"] == 1
    assert data["limit"] == 20
    assert data["data"][0]["success"] is True
    assert all(row["userEmail"] == "guard@condo.io" for row in data["data"])


@pytest.mark.asyncio
async def test_query_pagination_and_sort(client: AsyncClient, login, admin_headers):
    for _ in range(3):
        await login(password="WrongPass123!")
    headers = await admin_headers()

    page = await client.get(
        "/security/session-audit",
        params={"success": "false", "limit": 2, "page": 2, "sortOrder": "asc"},
        headers=headers,
    )

    data = page.json()
    assert data["count"] == 3
    assert len(data["data"]) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {"sortBy": "notAColumn"},
        {"success": "maybe"},
        {"startTime": "yesterday"},
        {"sortOrder": "up"},
    ],
)
async def test_query_rejects_invalid_parameters(client: AsyncClient, admin_headers, params):
    headers = await admin_headers()

    response = await client.get("/security/session-audit", params=params, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params, expected_page, expected_limit",
    [
        ({"page": "abc"}, 1, 20),
        ({"limit": 500}, 1, 200),
        ({"page": 0, "limit": "xyz"}, 1, 20),
    ],
)
async def test_query_paging_falls_back_or_is_capped(
    client: AsyncClient, admin_headers, params, expected_page, expected_limit
):
    headers = await admin_headers()

    response = await client.get("/security/session-audit", params=params, headers=headers)

    assert response.status_code == 200
    assert response.json()["page"] == expected_page
    assert response.json()["limit"] == expected_limit


@pytest.mark.asyncio
async def test_sort_by_rejection_names_allowed_columns(client: AsyncClient, admin_headers):
    headers = await admin_headers()

    response = await client.get(
        "/security/session-audit", params={"sortBy": "notAColumn"}, headers=headers
    )

    message = response.json()["error"]["message"]
    assert "createdAt" in message and "ipAddress" in message


@pytest.mark.asyncio
async def test_export_meta_caps_requested_limit(client: AsyncClient, admin_headers):
    headers = await admin_headers()

    response = await client.get(
        "/security/session-audit/export/meta", params={"limit": 50000}, headers=headers
    )

    assert response.status_code == 200
    meta = response.json()
    assert meta["maxLimit"] == 20000
    assert meta["effectiveLimit"] == 20000
    assert meta["requestedLimit"] == 50000
    assert meta["truncated"] is True
    assert meta["count"] >= 1


@pytest.mark.asyncio
async def test_export_csv(client: AsyncClient, login, admin_headers):
    await login(password="WrongPass123!", headers={"X-Forwarded-For": "10.0.0.1"})
    headers = await admin_headers()

    response = await client.get(
        "/security/session-audit/export",
        params={"eventType": "login", "limit": 10, "sortOrder": "asc"},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["x-session-audit-count"] == "2"
    assert response.headers["x-session-audit-truncated"] == "false"
    assert "attachment" in response.headers["content-disposition"]

    text = response.content.decode("utf-8")
    assert text.startswith("\ufeff")
    assert text.split("\r\n")[0] == "\ufeffcreatedAt,eventType,success,userEmail,sessionId,ipAddress,details"
    rows = list(csv.reader(io.StringIO(text.lstrip("\ufeff"))))
    assert rows[0] == [
        "createdAt",
        "eventType",
        "success",
        "userEmail",
        "sessionId",
        "ipAddress",
        "details",
    ]
    assert rows[1][1:4] == ["login", "false", "guard@condo.io"]
    assert rows[1][5:] == ["10.0.0.1", "invalid_password"]
    assert len(rows) == 3


@pytest.mark.asyncio
async def test_export_meta_bad_limit_falls_back_to_default(client: AsyncClient, admin_headers):
    headers = await admin_headers()

    response = await client.get(
        "/security/session-audit/export/meta", params={"limit": "lots"}, headers=headers
    )

    assert response.status_code == 200
    assert response.json()["requestedLimit"] == 1000


@pytest.mark.asyncio
async def test_malformed_path_parameter_uses_error_envelope(client: AsyncClient, login):
    operator = (await login()).json()

    response = await client.delete(
        "/auth/sessions/not-a-uuid",
        headers={"Authorization": f"Bearer {operator['accessToken']}"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
