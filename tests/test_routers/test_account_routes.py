# tests/test_routers/test_account_routes.py - avatar, username, email, password updates

from app.core.config import settings


def test_update_avatar_with_data_url(client, auth_headers):
    avatar = "data:image/png;base64,iVBORw0KGgo="
    res = client.put("/api/user/update-avatar", json={"profileUrl": avatar}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["message"] == "Avatar updated successfully."

    profile = client.get("/api/profile", headers=auth_headers).json()
    assert profile["profileurl"] == avatar


def test_update_avatar_rejects_oversized_image(client, auth_headers):
    avatar = "data:image/png;base64," + "A" * settings.MAX_AVATAR_LENGTH
    res = client.put("/api/user/update-avatar", json={"profileUrl": avatar}, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Image too large."


def test_update_avatar_rejects_non_image_url(client, auth_headers):
    res = client.put("/api/user/update-avatar", json={"profileUrl": "javascript:alert(1)"}, headers=auth_headers)
    assert res.status_code == 400


def test_update_avatar_requires_token(client):
    res = client.put("/api/user/update-avatar", json={"profileUrl": "https://cdn.x.com/a.png"})
    assert res.status_code == 401


def test_update_username(client, auth_headers):
    res = client.put("/api/user/update-username", json={"newUsername": "alice_w"}, headers=auth_headers)
    assert res.status_code == 200
    assert client.get("/api/profile", headers=auth_headers).json()["username"] == "alice_w"


def test_update_username_too_short(client, auth_headers):
    res = client.put("/api/user/update-username", json={"newUsername": "al"}, headers=auth_headers)
    assert res.status_code == 400


def test_update_username_conflict_is_case_exact(client, login_as):
    alice = {"Authorization": f"Bearer {login_as()}"}
    login_as(username="bob", email="bob@x.com", password="pw")

    res = client.put("/api/user/update-username", json={"newUsername": "bob"}, headers=alice)
    assert res.status_code == 409
    assert res.json()["message"] == "Username already taken."

    res = client.put("/api/user/update-username", json={"newUsername": "BOB"}, headers=alice)
    assert res.status_code == 200


def test_update_username_to_own_name_is_allowed(client, auth_headers):
    res = client.put("/api/user/update-username", json={"newUsername": "alice"}, headers=auth_headers)
    assert res.status_code == 200


def test_update_email(client, auth_headers):
    res = client.put("/api/user/update-email", json={"newEmail": "alice@x.com"}, headers=auth_headers)
    assert res.status_code == 200
    assert client.post("/api/login", json={"email": "alice@x.com", "password": "pw123"}).status_code == 200


def test_update_email_conflict(client, login_as):
    alice = {"Authorization": f"Bearer {login_as()}"}
    login_as(username="bob", email="bob@x.com", password="pw")

    res = client.put("/api/user/update-email", json={"newEmail": "bob@x.com"}, headers=alice)
    assert res.status_code == 409


def test_update_email_invalid(client, auth_headers):
    res = client.put("/api/user/update-email", json={"newEmail": "not-an-email"}, headers=auth_headers)
    assert res.status_code == 400


def test_update_password(client, auth_headers):
    res = client.put(
        "/api/user/update-password",
        json={"oldPassword": "pw123", "newPassword": "better456"},
        headers=auth_headers,
    )
    assert res.status_code == 200
    assert client.post("/api/login", json={"email": "a@x.com", "password": "better456"}).status_code == 200


def test_update_password_wrong_old_password(client, auth_headers):
    res = client.put(
        "/api/user/update-password",
        json={"oldPassword": "guess", "newPassword": "better456"},
        headers=auth_headers,
    )
    assert res.status_code == 401
    assert res.json()["message"] == "Old password is incorrect."
    assert client.post("/api/login", json={"email": "a@x.com", "password": "pw123"}).status_code == 200
