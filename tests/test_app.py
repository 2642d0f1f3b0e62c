def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_ready(client):
    assert client.get("/ready").json() == {"status": "ready"}


def test_api_routes_are_versioned(app):
    paths = {route.path for route in app.routes}
    for path in (
        "/api/v1/auth/login",
        "/api/v1/posts/feed",
        "/api/v1/posts/feed/ws",
        "/api/v1/chats/{chat_id}/ws",
        "/api/v1/stories",
        "/api/v1/search/profiles",
        "/api/v1/verification/mulkiya",
        "/api/v1/follows/{user_id}",
        "/api/v1/profiles/me",
    ):
        assert path in paths
