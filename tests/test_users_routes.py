from __future__ import annotations

from conftest import befriend, make_user


def test_create_user(client):
    resp = client.post(
        "/users/create",
        json={"email": "test@example.com", "name": "Test User", "description": "hi"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["email"] == "test@example.com"
    assert body["name"] == "Test User"
    assert body["description"] == "hi"
    assert "password" not in body


def test_duplicate_email_conflicts(client):
    make_user(client, "Dup")
    resp = client.post("/users/create", json={"email": "DUP@example.com", "name": "Other"})
    assert resp.status_code == 409
    assert resp.json() == {"error": "Email is already in use"}


def test_blank_fields_rejected(client):
    resp = client.post("/users/create", json={"email": "  ", "name": "x"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "All fields are required and cannot be empty"


def test_wrong_type_is_a_400_with_error_body(client):
    resp = client.post("/users/create", json={"email": 5, "name": "x"})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_get_user(client):
    user = make_user(client, "Finder")
    assert client.get(f"/users/{user['id']}").json()["name"] == "Finder"
    assert client.get("/users/999").status_code == 404


def test_list_friends(client):
    alice = make_user(client, "Alice")
    bob = make_user(client, "Bob")
    carol = make_user(client, "Carol")
    befriend(client, alice, bob)
    befriend(client, carol, alice)

    resp = client.get(f"/users/friends/{alice['id']}")
    assert resp.status_code == 200
    names = sorted(f["name"] for f in resp.json()["friends"])
    assert names == ["Bob", "Carol"]


def test_list_friends_errors(client):
    resp = client.get("/users/friends/999")
    assert resp.status_code == 404
    assert resp.json()["error"] == "User not found."

    resp = client.get("/users/friends/invalidId")
    assert resp.status_code == 400
    assert resp.json()["error"] == "User ID must be a valid number."
