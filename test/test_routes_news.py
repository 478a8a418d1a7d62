"""Tests for the news routes"""


def news_payload(title, slug, date=None, summary=None, status=True):
    body = {"translations": {"en": {"title": title, "slug": slug, "summary": summary, "status": status}}}
    if date:
        body["date"] = date
    return body


class TestNewsRoutes:
    async def test_create_news_with_date(self, client, admin_auth_headers):
        response = await client.post(
            "/news",
            json=news_payload("Launch", "launch", date="2025-03-01T10:00:00", summary="We launched"),
            headers=admin_auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["date"].startswith("2025-03-01")
        assert data["translations"][0]["summary"] == "We launched"

    async def test_create_news_without_date(self, client, admin_auth_headers):
        response = await client.post("/news", json=news_payload("Today", "today"), headers=admin_auth_headers)

        assert response.status_code == 201
        assert response.json()["date"]

    async def test_index_newest_first(self, client, admin_auth_headers):
        await client.post("/news", json=news_payload("Old", "old", date="2024-01-01T00:00:00"), headers=admin_auth_headers)
        await client.post("/news", json=news_payload("New", "new", date="2025-01-01T00:00:00"), headers=admin_auth_headers)

        data = (await client.get("/news")).json()

        assert [item["slug"] for item in data["items"]] == ["new", "old"]
        assert data["page"] == 1

    async def test_show_news(self, client, admin_auth_headers):
        await client.post("/news", json=news_payload("Launch", "launch", summary="Short"), headers=admin_auth_headers)

        response = await client.get("/news/launch")

        assert response.status_code == 200
        assert response.json()["summary"] == "Short"

    async def test_news_and_galleries_share_slugs(self, client, admin_auth_headers):
        await client.post(
            "/galleries",
            json={"translations": {"en": {"title": "Launch", "slug": "launch", "status": True}}},
            headers=admin_auth_headers,
        )
        response = await client.post("/news", json=news_payload("Launch", "launch"), headers=admin_auth_headers)

        assert response.json()["translations"][0]["slug"] == "launch"

    async def test_update_and_delete(self, client, admin_auth_headers):
        created = (await client.post("/news", json=news_payload("Draft", "draft"), headers=admin_auth_headers)).json()

        updated = await client.put(
            f"/news/{created['id']}",
            json={"date": "2023-05-05T00:00:00", "translations": {"en": {"summary": "Now with summary"}}},
            headers=admin_auth_headers,
        )
        deleted = await client.delete(f"/news/{created['id']}", headers=admin_auth_headers)

        assert updated.status_code == 200
        assert updated.json()["date"].startswith("2023-05-05")
        assert updated.json()["translations"][0]["summary"] == "Now with summary"
        assert deleted.status_code == 204
        assert (await client.get("/news/draft")).status_code == 404

    async def test_regular_user_cannot_delete(self, client, admin_auth_headers, auth_headers):
        created = (await client.post("/news", json=news_payload("Keep", "keep"), headers=admin_auth_headers)).json()

        response = await client.delete(f"/news/{created['id']}", headers=auth_headers)

        assert response.status_code == 403
