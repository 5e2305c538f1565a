from fastapi.testclient import TestClient

from tests.conftest import organizer_headers


def _create(client: TestClient, **overrides) -> int:
    payload = {"name": "Club Cup", "numberOfRounds": 2, "roundDurationMinutes": 90}
    payload.update(overrides)
    response = client.post("/api/tournaments", json=payload, headers=organizer_headers())
    assert response.status_code == 201
    return response.json()["id"]


def test_player_registers_self(client: TestClient):
    tid = _create(client)
    response = client.post(
        f"/api/tournaments/{tid}/participants",
        json={"name": "Rook", "isBeginner": True},
        headers={"X-User-Id": "77"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["userId"] == 77
    assert body["isBeginner"] is True
    assert body["confirmed"] is False
    assert body["isPaid"] is False
    assert body["armyListStatus"] == "NOT_SUBMITTED"


def test_player_cannot_register_someone_else(client: TestClient):
    tid = _create(client)
    response = client.post(
        f"/api/tournaments/{tid}/participants",
        json={"userId": 78, "name": "Pawn"},
        headers={"X-User-Id": "77"},
    )
    assert response.status_code == 403


def test_duplicate_registration_rejected(client: TestClient):
    tid = _create(client)
    payload = {"name": "Rook"}
    assert client.post(f"/api/tournaments/{tid}/participants", json=payload, headers={"X-User-Id": "77"}).status_code == 201
    response = client.post(f"/api/tournaments/{tid}/participants", json=payload, headers={"X-User-Id": "77"})
    assert response.status_code == 409
    assert response.json()["detail"].startswith("ALREADY_REGISTERED")


def test_max_participants_enforced(client: TestClient):
    tid = _create(client, maxParticipants=2)
    for user_id in (10, 11):
        response = client.post(
            f"/api/tournaments/{tid}/participants", json={"name": f"P{user_id}"}, headers={"X-User-Id": str(user_id)}
        )
        assert response.status_code == 201
    response = client.post(f"/api/tournaments/{tid}/participants", json={"name": "P12"}, headers={"X-User-Id": "12"})
    assert response.status_code == 409
    assert response.json()["detail"].startswith("TOURNAMENT_FULL")


def test_confirm_and_payment_by_organizer(client: TestClient):
    tid = _create(client)
    client.post(f"/api/tournaments/{tid}/participants", json={"name": "Rook"}, headers={"X-User-Id": "77"})

    response = client.post(f"/api/tournaments/{tid}/participants/77/confirm", headers={"X-User-Id": "77"})
    assert response.status_code == 403

    response = client.post(f"/api/tournaments/{tid}/participants/77/confirm", headers=organizer_headers())
    assert response.status_code == 200
    assert response.json()["confirmed"] is True

    response = client.patch(
        f"/api/tournaments/{tid}/participants/77/payment", params={"isPaid": "true"}, headers=organizer_headers()
    )
    assert response.status_code == 200
    assert response.json()["isPaid"] is True


def test_confirm_unknown_participant_404(client: TestClient):
    tid = _create(client)
    response = client.post(f"/api/tournaments/{tid}/participants/5/confirm", headers=organizer_headers())
    assert response.status_code == 404


def test_list_in_registration_order(client: TestClient):
    tid = _create(client)
    for user_id, name in ((30, "Cleo"), (10, "Abe"), (20, "Bo")):
        client.post(f"/api/tournaments/{tid}/participants", json={"name": name}, headers={"X-User-Id": str(user_id)})
    names = [p["name"] for p in client.get(f"/api/tournaments/{tid}/participants").json()]
    assert names == ["Cleo", "Abe", "Bo"]


def test_registration_closed_once_in_progress(client: TestClient):
    tid = _create(client)
    for user_id in (10, 11):
        client.post(f"/api/tournaments/{tid}/participants", json={"name": f"P{user_id}"}, headers={"X-User-Id": str(user_id)})
        client.post(f"/api/tournaments/{tid}/participants/{user_id}/confirm", headers=organizer_headers())
    client.post(f"/api/tournaments/{tid}/activate", headers=organizer_headers())
    client.post(f"/api/tournaments/{tid}/rounds/start-first", headers=organizer_headers())

    response = client.post(f"/api/tournaments/{tid}/participants", json={"name": "Late"}, headers={"X-User-Id": "12"})
    assert response.status_code == 409
    assert response.json()["detail"].startswith("TOURNAMENT_NOT_IN_PROGRESS")


def test_stats_before_any_match(client: TestClient):
    tid = _create(client)
    for user_id in (10, 11):
        client.post(f"/api/tournaments/{tid}/participants", json={"name": f"P{user_id}"}, headers={"X-User-Id": str(user_id)})
        client.post(f"/api/tournaments/{tid}/participants/{user_id}/confirm", headers=organizer_headers())

    stats = client.get(f"/api/tournaments/{tid}/participants/stats").json()
    assert [s["userName"] for s in stats] == ["P10", "P11"]
    assert all(s["tournamentPoints"] == 0 and s["rank"] == 1 for s in stats)
