from datetime import datetime, timedelta, timezone

from raqm.modules.stories.service import group_by_author
from tests.fakes import image_file


def _story(supabase, user_id, age_hours=0.0, **extra):
    created_at = datetime.now(timezone.utc) - timedelta(hours=age_hours)
    return supabase.table("stories").insert({
        "user_id": user_id,
        "image_url": f"https://fake.supabase.co/storage/v1/object/public/story_images/{user_id}/s.jpg",
        "created_at": created_at.isoformat(),
        **extra,
    }).execute().data[0]


def test_create_story(client, supabase, alice):
    response = client.post(
        "/api/v1/stories",
        headers=alice.headers,
        files={"image": image_file("sunset.jpeg", content_type="image/jpeg")},
        data={"caption": "  "},
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["caption"] is None
    assert "/story_images/" in payload["image_url"]

    expires_at = datetime.fromisoformat(payload["expires_at"].replace("Z", "+00:00"))
    remaining = expires_at - datetime.now(timezone.utc)
    assert timedelta(hours=23) < remaining <= timedelta(hours=24)


def test_create_story_requires_image(client, alice):
    response = client.post("/api/v1/stories", headers=alice.headers, data={"caption": "no picture"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Please select an image"


def test_story_groups_only_recent_followed_and_own(client, supabase, alice, bob, carol):
    supabase.follow(alice.id, bob.id)
    _story(supabase, bob.id, age_hours=30)
    _story(supabase, bob.id, age_hours=2, caption="older")
    _story(supabase, carol.id, age_hours=1)
    _story(supabase, alice.id, age_hours=1.5)
    _story(supabase, bob.id, age_hours=0.5, caption="newest")

    groups = client.get("/api/v1/stories", headers=alice.headers).json()
    assert [g["user"]["id"] for g in groups] == [bob.id, alice.id]
    assert [s["caption"] for s in groups[0]["stories"]] == ["newest", "older"]


def test_delete_story(client, supabase, alice, bob):
    mine = _story(supabase, alice.id)
    theirs = _story(supabase, bob.id)

    assert client.delete(f"/api/v1/stories/{theirs['id']}", headers=alice.headers).status_code == 404
    assert client.delete(f"/api/v1/stories/{mine['id']}", headers=alice.headers).status_code == 204
    assert [s["id"] for s in supabase.tables["stories"]] == [theirs["id"]]
    assert supabase.storage.removed == [("story_images", f"{alice.id}/s.jpg")]


def test_group_by_author_keeps_first_appearance_order():
    stories = [
        {"id": "1", "user_id": "b", "image_url": "u", "created_at": "2024-05-01T10:00:00+00:00"},
        {"id": "2", "user_id": "a", "image_url": "u", "created_at": "2024-05-01T09:00:00+00:00"},
        {"id": "3", "user_id": "b", "image_url": "u", "created_at": "2024-05-01T08:00:00+00:00"},
    ]
    profiles = {"b": {"id": "b", "plate_number": "B 1"}}
    groups = group_by_author(stories, profiles)
    assert [len(g.stories) for g in groups] == [2, 1]
    assert groups[0].user.plate_number == "B 1"
    assert groups[1].user is None
