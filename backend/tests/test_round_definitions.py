from fastapi.testclient import TestClient

from tests.conftest import organizer_headers


def _create(client: TestClient) -> int:
    response = client.post(
        "/api/tournaments",
        json={"name": "Scenario Night", "numberOfRounds": 3, "roundDurationMinutes": 120},
        headers=organizer_headers(),
    )
    return response.json()["id"]


def test_update_scenario_and_pairing_options(client: TestClient):
    tid = _create(client)
    response = client.put(
        f"/api/tournaments/{tid}/round-definitions/1",
        json={
            "deploymentId": 4,
            "deploymentName": "Hammer and Anvil",
            "primaryMissionName": "Take and Hold",
            "isSplitMapLayout": True,
            "mapLayoutEven": "Layout 2",
            "mapLayoutOdd": "Layout 5",
            "byeLargePoints": 2,
            "pairingAlgorithm": "CUSTOM",
            "playerLevelPairingStrategy": "BEGINNERS_WITH_VETERANS",
        },
        headers=organizer_headers(),
    )
    assert response.status_code == 200, response.text

    definition = client.get(f"/api/tournaments/{tid}/round-definitions/1").json()
    assert definition["deploymentName"] == "Hammer and Anvil"
    assert definition["isSplitMapLayout"] is True
    assert definition["byeLargePoints"] == 2
    # Untouched fields keep their defaults
    assert definition["splitLargePoints"] == 1
    assert definition["pairingAlgorithm"] == "CUSTOM"
    assert definition["playerLevelPairingStrategy"] == "BEGINNERS_WITH_VETERANS"


def test_round_out_of_range(client: TestClient):
    tid = _create(client)
    assert client.get(f"/api/tournaments/{tid}/round-definitions/4").status_code == 404
    response = client.put(
        f"/api/tournaments/{tid}/round-definitions/4", json={"byeLargePoints": 1}, headers=organizer_headers()
    )
    assert response.status_code == 409
    assert response.json()["detail"].startswith("ROUND_LIMIT_REACHED")


def test_only_organizer_edits(client: TestClient):
    tid = _create(client)
    response = client.put(
        f"/api/tournaments/{tid}/round-definitions/1", json={"byeLargePoints": 1}, headers={"X-User-Id": "55"}
    )
    assert response.status_code == 403


def test_negative_points_rejected(client: TestClient):
    tid = _create(client)
    response = client.put(
        f"/api/tournaments/{tid}/round-definitions/1", json={"splitSmallPoints": -1}, headers=organizer_headers()
    )
    assert response.status_code == 422


def test_bye_points_from_definition_used(client: TestClient):
    tid = _create(client)
    client.put(
        f"/api/tournaments/{tid}/round-definitions/1",
        json={"byeLargePoints": 2, "byeSmallPoints": 10},
        headers=organizer_headers(),
    )
    for user_id in (10, 11, 12):
        client.post(f"/api/tournaments/{tid}/participants", json={"name": f"P{user_id}"}, headers={"X-User-Id": str(user_id)})
        client.post(f"/api/tournaments/{tid}/participants/{user_id}/confirm", headers=organizer_headers())
    client.post(f"/api/tournaments/{tid}/activate", headers=organizer_headers())
    pairings = client.post(f"/api/tournaments/{tid}/rounds/start-first", headers=organizer_headers()).json()

    stats = {s["userId"]: s for s in client.get(f"/api/tournaments/{tid}/participants/stats").json()}
    bye_player = stats[pairings["byePlayerId"]]
    assert (bye_player["tournamentPoints"], bye_player["scorePoints"]) == (2, 10)


def test_null_points_rejected(client: TestClient):
    tid = _create(client)
    response = client.put(
        f"/api/tournaments/{tid}/round-definitions/1", json={"byeLargePoints": None}, headers=organizer_headers()
    )
    assert response.status_code == 422

    response = client.put(
        f"/api/tournaments/{tid}/round-definitions/1", json={"deploymentName": None}, headers=organizer_headers()
    )
    assert response.status_code == 200
