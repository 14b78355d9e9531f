import pytest


@pytest.fixture
def catalog(client, admin):
    """Three published courses (one per tier) and one draft, plus sections on the tier2 course."""
    _, headers = admin
    ids = {}
    for tier in ("free", "tier1", "tier2"):
        resp = client.post(
            "/api/admin/content",
            json={
                "kind": "course",
                "title": f"{tier} course",
                "tier_required": tier,
                "published": True,
            },
            headers=headers,
        )
        assert resp.status_code == 201
        ids[tier] = resp.json()["id"]

    draft = client.post(
        "/api/admin/content", json={"kind": "course", "title": "Draft"}, headers=headers
    )
    ids["draft"] = draft.json()["id"]

    for title in ("Intro", "Entries"):
        client.post(
            f"/api/admin/content/course/{ids['tier2']}/sections",
            json={"title": title, "content": f"{title} body", "video_url": "https://v.example/1"},
            headers=headers,
        )
    return ids


def test_member_listing_hides_drafts(client, member, catalog):
    _, headers = member
    body = client.get("/api/content/course", headers=headers).json()
    assert body["total"] == 3
    assert "Draft" not in [i["title"] for i in body["items"]]


def test_admin_listing_includes_drafts(client, admin, catalog):
    _, headers = admin
    assert client.get("/api/admin/content/course", headers=headers).json()["total"] == 4


def test_tier_filter_and_search(client, member, catalog):
    _, headers = member
    tier1 = client.get("/api/content/course?tier=tier1", headers=headers).json()
    assert [i["title"] for i in tier1["items"]] == ["tier1 course"]

    found = client.get("/api/content/course?q=TIER2", headers=headers).json()
    assert found["total"] == 1


def test_locked_item_is_redacted(client, member, catalog):
    _, headers = member
    resp = client.get(f"/api/content/course/{catalog['tier2']}", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["locked"] is True
    assert body["accessible"] is False
    assert [s["title"] for s in body["item"]["sections"]] == ["Intro", "Entries"]
    assert all(s["content"] == "" and s["video_url"] is None for s in body["item"]["sections"])


def test_unlocked_after_upgrade(client, make_user, catalog):
    _, headers = make_user(email="elite@example.com", tier="tier2")
    body = client.get(f"/api/content/course/{catalog['tier2']}", headers=headers).json()
    assert body["locked"] is False
    assert body["item"]["section_count"] == 2
    assert body["item"]["sections"][0]["content"] == "Intro body"


def test_anonymous_reads_as_free(client, catalog):
    free = client.get(f"/api/content/course/{catalog['free']}").json()
    assert free["accessible"] is True
    locked = client.get(f"/api/content/course/{catalog['tier1']}").json()
    assert locked["locked"] is True


def test_draft_is_not_found_for_members(client, member, admin, catalog):
    _, headers = member
    assert client.get(f"/api/content/course/{catalog['draft']}", headers=headers).status_code == 404
    _, admin_headers = admin
    admin_view = client.get(f"/api/admin/content/course/{catalog['draft']}", headers=admin_headers)
    assert admin_view.status_code == 200


def test_access_summary(client, make_user, catalog):
    _, headers = make_user(email="pro@example.com", tier="tier1")
    body = client.get("/api/content/access-summary", headers=headers).json()
    assert body["tier"] == "tier1"
    course = next(k for k in body["kinds"] if k["kind"] == "course")
    assert course["total"] == 3
    assert course["unlock_percentage"] == 67
    assert body["overall_percentage"] == 67

    anonymous = client.get("/api/content/access-summary").json()
    assert anonymous["overall_percentage"] == 33


def test_section_edits_keep_count(client, admin, catalog):
    _, headers = admin
    parent = catalog["tier2"]
    sections = client.get(f"/api/admin/content/course/{parent}/sections", headers=headers).json()
    assert sections["total"] == 2
    first_id = sections["sections"][0]["id"]

    moved = client.put(
        f"/api/admin/sections/{first_id}", json={"order_index": 5}, headers=headers
    )
    assert moved.status_code == 200
    ordered = client.get(f"/api/admin/content/course/{parent}/sections", headers=headers).json()
    assert [s["title"] for s in ordered["sections"]] == ["Entries", "Intro"]

    assert client.delete(f"/api/admin/sections/{first_id}", headers=headers).status_code == 204
    item = client.get(f"/api/admin/content/course/{parent}", headers=headers).json()["item"]
    assert item["section_count"] == 1

    report = client.post(
        "/api/admin/sections/reconcile", json={"repair": False}, headers=headers
    ).json()
    assert report["drifts"] == []


def test_update_and_delete_item(client, admin, catalog):
    _, headers = admin
    item_id = catalog["tier1"]
    updated = client.put(
        f"/api/admin/content/course/{item_id}",
        json={"title": "  Renamed  ", "published": False},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["title"] == "Renamed"
    assert updated.json()["tier_required"] == "tier1"

    assert client.delete(f"/api/admin/content/course/{item_id}", headers=headers).status_code == 204
    assert client.get(f"/api/admin/content/course/{item_id}", headers=headers).status_code == 404


def test_create_validation(client, admin):
    _, headers = admin
    resp = client.post("/api/admin/content", json={"kind": "blog", "title": "  "}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"]["field"] == "title"


def test_admin_content_requires_admin(client, member):
    _, headers = member
    resp = client.post("/api/admin/content", json={"kind": "blog", "title": "x"}, headers=headers)
    assert resp.status_code == 403
    assert client.get("/api/admin/content/blog", headers=headers).status_code == 403


def test_unknown_kind(client):
    assert client.get("/api/content/podcast").status_code == 422
