from tests.conftest import auth_headers


def test_analytics_default_window(client, alice):
    headers = auth_headers(alice)
    todo = client.post("/api/todos", json={"title": "Ship it"}, headers=headers).json()
    client.put(f"/api/todos/{todo['id']}", json={"completed": True}, headers=headers)

    response = client.get("/api/analytics", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert len(body["trends"]["daily"]) == 30
    assert body["summary"]["completed"] == 1
    assert body["productivity"]["current_streak"] == 1
    assert body["achievements"][0]["id"] == "first_task"


def test_analytics_all_time(client, alice):
    response = client.get("/api/analytics", params={"days": "all"}, headers=auth_headers(alice))
    assert len(response.json()["trends"]["daily"]) == 365


def test_analytics_rejects_bad_days(client, alice):
    response = client.get("/api/analytics", params={"days": "0"}, headers=auth_headers(alice))
    assert response.status_code == 400


def test_analytics_rejects_unknown_timezone(client, alice):
    response = client.get("/api/analytics", params={"tz": "Mars/Olympus"}, headers=auth_headers(alice))
    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown timezone: Mars/Olympus"


def test_analytics_requires_authentication(client):
    assert client.get("/api/analytics").status_code == 401
