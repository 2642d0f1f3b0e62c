from raqm.modules.follows.service import FollowService


def test_follow_and_unfollow(client, supabase, alice, bob):
    response = client.post(f"/api/v1/follows/{bob.id}", headers=alice.headers)
    assert response.status_code == 200
    assert response.json() == {
        "user_id": bob.id,
        "is_following": True,
        "followers_count": 1,
        "following_count": 0,
    }

    response = client.delete(f"/api/v1/follows/{bob.id}", headers=alice.headers)
    assert response.status_code == 200
    assert response.json()["is_following"] is False
    assert response.json()["followers_count"] == 0
    assert supabase.tables["follows"] == []


def test_follow_twice_is_idempotent(client, supabase, alice, bob):
    client.post(f"/api/v1/follows/{bob.id}", headers=alice.headers)
    response = client.post(f"/api/v1/follows/{bob.id}", headers=alice.headers)
    assert response.json()["followers_count"] == 1
    assert len(supabase.tables["follows"]) == 1


def test_cannot_follow_self(client, alice):
    response = client.post(f"/api/v1/follows/{alice.id}", headers=alice.headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "You cannot follow yourself"


def test_follow_unknown_user(client, alice):
    assert client.post("/api/v1/follows/nobody", headers=alice.headers).status_code == 404


def test_follow_requires_verification(client, unverified, bob):
    assert client.post(f"/api/v1/follows/{bob.id}", headers=unverified.headers).status_code == 403


def test_followers_and_following_lists(client, supabase, alice, bob, carol):
    supabase.follow(alice.id, carol.id)
    supabase.follow(bob.id, carol.id)
    supabase.follow(carol.id, alice.id)

    followers = client.get(f"/api/v1/follows/{carol.id}/followers", headers=alice.headers).json()
    assert [p["plate_number"] for p in followers] == ["AB 12345", "DXB 777"]

    following = client.get(f"/api/v1/follows/{carol.id}/following", headers=alice.headers).json()
    assert [p["id"] for p in following] == [alice.id]


def test_following_set_and_counts(supabase, alice, bob, carol):
    supabase.follow(alice.id, bob.id)
    service = FollowService(supabase)
    assert service.following_set(alice.id, [bob.id, carol.id]) == {bob.id}
    assert service.following_set(alice.id, []) == set()
    assert service.counts(bob.id) == (1, 0)
    assert service.following_ids(alice.id) == [bob.id]
