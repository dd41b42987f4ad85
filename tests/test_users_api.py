def test_create_user_returns_token(client):
    resp = client.post("/users/", json={"id": 10, "name": "Omar", "email": "omar@example.com"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["id"] == 10
    assert body["api_token"]

    me = client.get("/users/me", headers={"Authorization": f"Bearer {body['api_token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Omar"
    assert "api_token" not in me.json()


def test_duplicate_user(client, user):
    resp = client.post("/users/", json={"id": 1, "name": "Again"})

    assert resp.status_code == 400


def test_invalid_user_id(client):
    assert client.post("/users/", json={"id": 0, "name": "Zero"}).status_code == 400


def test_me_requires_token(client):
    assert client.get("/users/me").status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
