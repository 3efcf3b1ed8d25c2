from pathlib import Path

from app.config import settings


def test_create_user(client):
    response = client.post("/api/users", json={"name": "Alice", "address": "1 North St", "password": "pw"})
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Alice"
    assert body["address"] == "1 North St"
    assert body["bio"] == ""
    assert body["hometown"] == ""
    assert "createdAt" in body
    assert "password" not in body
    assert "hashedPassword" not in body


def test_create_user_duplicate_name_is_case_insensitive(client, make_user):
    make_user("Alice")
    response = client.post("/api/users", json={"name": "alice", "address": "x", "password": "pw"})
    assert response.status_code == 400
    assert response.json()["detail"] == "User with this name already exists"


def test_create_user_missing_fields(client):
    response = client.post("/api/users", json={"name": "Alice"})
    assert response.status_code == 400

    response = client.post("/api/users", json={"name": "   ", "address": "x", "password": "pw"})
    assert response.status_code == 400


def test_get_and_list_users(client, make_user):
    alice = make_user("Alice")
    make_user("Bob")

    response = client.get(f"/api/users/{alice['id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "Alice"

    response = client.get("/api/users")
    assert [u["name"] for u in response.json()] == ["Alice", "Bob"]

    assert client.get("/api/users/999").status_code == 404


def test_search_users_by_name_or_address(client, make_user):
    make_user("Alice", address="12 Baker Street")
    make_user("Bob", address="7 Elm Road")

    names = [u["name"] for u in client.get("/api/users/search", params={"q": "ali"}).json()]
    assert names == ["Alice"]

    names = [u["name"] for u in client.get("/api/users/search", params={"q": "ELM"}).json()]
    assert names == ["Bob"]


def test_update_address_password_and_profile(client, make_user):
    alice = make_user("Alice")

    response = client.put(f"/api/users/{alice['id']}/address", json={"address": "9 New St"})
    assert response.status_code == 200
    assert response.json()["address"] == "9 New St"

    response = client.put(f"/api/users/{alice['id']}/password", json={"password": "changed"})
    assert response.status_code == 200
    login = client.post("/api/auth/login", json={"name": "Alice", "password": "changed"})
    assert login.status_code == 200

    response = client.put(
        f"/api/users/{alice['id']}/profile",
        json={"bio": "Loves hiking", "hometown": "Lyon", "age": 31},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["bio"] == "Loves hiking"
    assert body["hometown"] == "Lyon"
    assert body["age"] == 31

    # Champs absents : inchangés
    response = client.put(f"/api/users/{alice['id']}/profile", json={"age": 32})
    assert response.json()["bio"] == "Loves hiking"
    assert response.json()["age"] == 32

    assert client.put("/api/users/999/address", json={"address": "x"}).status_code == 404


def test_profile_rejects_invalid_age(client, make_user):
    alice = make_user("Alice")
    response = client.put(f"/api/users/{alice['id']}/profile", json={"age": -3})
    assert response.status_code == 400


def test_login_and_me(client, make_user):
    make_user("Alice", password="secret")

    response = client.post("/api/auth/login", json={"name": "ALICE", "password": "secret"})
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Alice"
    assert body["tokenType"] == "bearer"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert me.status_code == 200
    assert me.json()["id"] == body["id"]


def test_login_rejects_bad_credentials(client, make_user):
    make_user("Alice", password="secret")
    response = client.post("/api/auth/login", json={"name": "Alice", "password": "wrong"})
    assert response.status_code == 401
    response = client.post("/api/auth/login", json={"name": "Nobody", "password": "secret"})
    assert response.status_code == 401


def test_me_requires_valid_token(client):
    assert client.get("/api/auth/me").status_code == 401
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_delete_user_cascades(client, make_user, make_group, propose):
    alice = make_user("Alice")
    bob = make_user("Bob")
    carol = make_user("Carol")

    client.post(f"/api/users/{alice['id']}/friends", json={"friendName": "Bob"})
    client.post(f"/api/users/{carol['id']}/friends", json={"friendName": "Alice"})
    alice_group = make_group(alice, bob, name="Alice's trip")
    bob_group = make_group(bob, alice, carol, name="Bob's trip")
    activity = propose(bob_group, bob)
    client.post(
        f"/api/groups/{bob_group['id']}/activities/{activity['id']}/vote",
        json={"userId": alice["id"]},
    )
    post = client.post("/api/posts", json={"userId": alice["id"], "imageUrl": "/uploads/a.png"}).json()
    client.post(f"/api/posts/{post['id']}/like", json={"userId": bob["id"]})

    response = client.delete(f"/api/users/{alice['id']}")
    assert response.status_code == 200
    assert response.json() == {"success": True}

    assert client.get(f"/api/users/{alice['id']}").status_code == 404
    assert client.get(f"/api/users/{bob['id']}/friends/sent").json() == []
    assert client.get(f"/api/users/{carol['id']}/friends/sent").json() == []
    assert client.get(f"/api/groups/{alice_group['id']}").status_code == 404

    group = client.get(f"/api/groups/{bob_group['id']}").json()
    assert [m["userId"] for m in group["members"]] == [bob["id"], carol["id"]]
    # Le vote déjà exprimé reste en place
    assert group["activities"][0]["votes"] == [alice["id"]]

    assert client.get("/api/posts").json() == []
    assert client.delete("/api/users/999").status_code == 404


def test_stats(client, make_user, make_group):
    alice = make_user("Alice")
    bob = make_user("Bob")
    client.post(f"/api/users/{alice['id']}/friends", json={"friendName": "Bob"})
    make_group(alice, bob)
    client.post("/api/posts", json={"userId": bob["id"], "imageUrl": "/uploads/b.png"})

    assert client.get("/api/stats").json() == {
        "totalUsers": 2,
        "totalGroups": 1,
        "totalFriendships": 1,
        "totalPosts": 1,
    }


def test_change_avatar_replaces_previous_upload(client, make_user):
    alice = make_user("Alice")

    first = client.post(
        f"/api/users/{alice['id']}/avatar",
        files={"image": ("me.png", b"\x89PNG first", "image/png")},
    )
    assert first.status_code == 200
    first_url = first.json()["profilePicture"]
    assert first_url.startswith("/uploads/avatar-")
    first_file = Path(settings.UPLOAD_DIR) / first_url.rsplit("/", 1)[-1]
    assert first_file.exists()

    second = client.post(
        f"/api/users/{alice['id']}/avatar",
        files={"image": ("me.jpg", b"jpeg bytes", "image/jpeg")},
    )
    assert second.status_code == 200
    assert second.json()["profilePicture"] != first_url
    assert not first_file.exists()

    served = client.get(second.json()["profilePicture"])
    assert served.status_code == 200
    assert served.content == b"jpeg bytes"


def test_change_avatar_rejects_non_image(client, make_user):
    alice = make_user("Alice")
    response = client.post(
        f"/api/users/{alice['id']}/avatar",
        files={"image": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400

    response = client.post(
        "/api/users/999/avatar",
        files={"image": ("me.png", b"png", "image/png")},
    )
    assert response.status_code == 404
