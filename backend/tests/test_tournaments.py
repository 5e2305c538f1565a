from fastapi.testclient import TestClient

from tests.conftest import ORGANIZER_ID, organizer_headers

TOURNAMENT_PAYLOAD = {
    "name": "Spring Open",
    "location": "Club Hall",
    "startDate": "2026-04-18",
    "numberOfRounds": 3,
    "roundDurationMinutes": 150,
    "scoreSubmissionExtraMinutes": 15,
}


def _create(client: TestClient, **overrides) -> dict:
    payload = dict(TOURNAMENT_PAYLOAD, **overrides)
    response = client.post("/api/tournaments", json=payload, headers=organizer_headers())
    assert response.status_code == 201, response.text
    return response.json()


def test_create_tournament_creates_round_definitions(client: TestClient):
    """Creating a tournament creates one round definition per round"""
    tournament = _create(client)
    assert tournament["status"] == "DRAFT"
    assert tournament["organizerId"] == ORGANIZER_ID
    assert tournament["roundStartMode"] == "ALL_MATCHES_TOGETHER"
    assert tournament["tournamentPointsSystem"] == "FIXED"

    response = client.get(f"/api/tournaments/{tournament['id']}/round-definitions")
    assert response.status_code == 200
    definitions = response.json()
    assert [d["roundNumber"] for d in definitions] == [1, 2, 3]
    # FIXED system: bye worth a win, split worth a draw
    assert definitions[0]["byeLargePoints"] == 3
    assert definitions[0]["splitLargePoints"] == 1
    assert definitions[0]["pairingAlgorithm"] == "STANDARD"
    assert definitions[0]["tableAssignmentStrategy"] == "BEST_FIRST"


def test_point_difference_defaults_for_bye_and_split(client: TestClient):
    tournament = _create(client, tournamentPointsSystem="POINT_DIFFERENCE_STRICT")
    definitions = client.get(f"/api/tournaments/{tournament['id']}/round-definitions").json()
    assert definitions[0]["byeLargePoints"] == 15
    assert definitions[0]["splitLargePoints"] == 10


def test_create_requires_acting_user(client: TestClient):
    response = client.post("/api/tournaments", json=TOURNAMENT_PAYLOAD)
    assert response.status_code == 401


def test_create_rejects_inverted_fixed_points(client: TestClient):
    response = client.post(
        "/api/tournaments",
        json=dict(TOURNAMENT_PAYLOAD, pointsForWin=1, pointsForDraw=3),
        headers=organizer_headers(),
    )
    assert response.status_code == 422
    assert any("pointsForWin >= pointsForDraw" in str(err) for err in response.json()["detail"])


def test_create_rejects_zero_rounds(client: TestClient):
    response = client.post(
        "/api/tournaments", json=dict(TOURNAMENT_PAYLOAD, numberOfRounds=0), headers=organizer_headers()
    )
    assert response.status_code == 422


def test_get_and_list_tournaments(client: TestClient):
    first = _create(client, name="First")
    _create(client, name="Second")

    response = client.get(f"/api/tournaments/{first['id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "First"

    listed = client.get("/api/tournaments").json()
    assert [t["name"] for t in listed] == ["First", "Second"]

    active = client.get("/api/tournaments", params={"status": "ACTIVE"}).json()
    assert active == []


def test_get_missing_tournament_404(client: TestClient):
    assert client.get("/api/tournaments/999").status_code == 404


def test_update_number_of_rounds_syncs_definitions(client: TestClient):
    tournament = _create(client)
    response = client.put(
        f"/api/tournaments/{tournament['id']}", json={"numberOfRounds": 5}, headers=organizer_headers()
    )
    assert response.status_code == 200
    assert response.json()["numberOfRounds"] == 5
    definitions = client.get(f"/api/tournaments/{tournament['id']}/round-definitions").json()
    assert [d["roundNumber"] for d in definitions] == [1, 2, 3, 4, 5]

    client.put(f"/api/tournaments/{tournament['id']}", json={"numberOfRounds": 2}, headers=organizer_headers())
    definitions = client.get(f"/api/tournaments/{tournament['id']}/round-definitions").json()
    assert [d["roundNumber"] for d in definitions] == [1, 2]


def test_update_by_other_user_forbidden(client: TestClient):
    tournament = _create(client)
    response = client.put(
        f"/api/tournaments/{tournament['id']}", json={"name": "Hijacked"}, headers=organizer_headers(42)
    )
    assert response.status_code == 403
    assert response.json()["detail"].startswith("NOT_TOURNAMENT_ORGANIZER")


def test_status_transitions(client: TestClient):
    tournament = _create(client)
    tid = tournament["id"]

    response = client.post(f"/api/tournaments/{tid}/activate", headers=organizer_headers())
    assert response.status_code == 200
    assert response.json()["status"] == "ACTIVE"

    # ACTIVE -> ACTIVE is not a forward move
    response = client.post(f"/api/tournaments/{tid}/activate", headers=organizer_headers())
    assert response.status_code == 409
    assert response.json()["detail"].startswith("INVALID_STATUS_TRANSITION")

    response = client.post(f"/api/tournaments/{tid}/cancel", headers=organizer_headers())
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"

    # Terminal: no way out, no more edits
    response = client.post(f"/api/tournaments/{tid}/cancel", headers=organizer_headers())
    assert response.status_code == 409
    response = client.put(f"/api/tournaments/{tid}", json={"name": "Renamed"}, headers=organizer_headers())
    assert response.status_code == 409
    assert response.json()["detail"].startswith("TOURNAMENT_NOT_IN_PROGRESS")


def test_complete_requires_in_progress(client: TestClient):
    tournament = _create(client)
    response = client.post(f"/api/tournaments/{tournament['id']}/complete", headers=organizer_headers())
    assert response.status_code == 409
    assert response.json()["detail"].startswith("TOURNAMENT_NOT_IN_PROGRESS")


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_points_system_switch_moves_bye_and_split_defaults(client: TestClient):
    tournament = _create(client)
    tid = tournament["id"]
    client.put(f"/api/tournaments/{tid}/round-definitions/2", json={"byeLargePoints": 2}, headers=organizer_headers())

    response = client.put(
        f"/api/tournaments/{tid}",
        json={"tournamentPointsSystem": "POINT_DIFFERENCE_STRICT"},
        headers=organizer_headers(),
    )
    assert response.status_code == 200, response.text

    definitions = client.get(f"/api/tournaments/{tid}/round-definitions").json()
    assert [(d["byeLargePoints"], d["splitLargePoints"]) for d in definitions] == [(15, 10), (2, 10), (15, 10)]


def test_fixed_points_change_moves_bye_and_split_defaults(client: TestClient):
    tournament = _create(client)
    response = client.put(
        f"/api/tournaments/{tournament['id']}",
        json={"pointsForWin": 4, "pointsForDraw": 2},
        headers=organizer_headers(),
    )
    assert response.status_code == 200, response.text
    definition = client.get(f"/api/tournaments/{tournament['id']}/round-definitions/1").json()
    assert (definition["byeLargePoints"], definition["splitLargePoints"]) == (4, 2)


def test_update_rejects_null_for_required_settings(client: TestClient):
    tournament = _create(client)
    for payload in ({"numberOfRounds": None}, {"pointsForWin": None}, {"name": None}):
        response = client.put(f"/api/tournaments/{tournament['id']}", json=payload, headers=organizer_headers())
        assert response.status_code == 422, payload

    # Optional details may still be cleared
    response = client.put(f"/api/tournaments/{tournament['id']}", json={"location": None}, headers=organizer_headers())
    assert response.status_code == 200
    assert response.json()["location"] is None
