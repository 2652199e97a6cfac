"""HTTP API tests through the Flask test client."""

import pytest


@pytest.fixture
def client(api):
    test_client, _ = api
    return test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "ok"
    assert data["db_pool_size"] == 4
    assert data["current_week"] == 2


def test_teams_and_participants(client):
    teams = client.get("/api/teams").get_json()
    assert [team["name"] for team in teams] == ["The Cloud Walkers", "The Mood Lifters"]

    participants = client.get("/api/participants").get_json()
    assert len(participants) == 10
    assert participants[0]["username"] == "Pam"


def test_move_participant(client):
    response = client.patch("/api/participants/1", json={"team_id": 2})
    assert response.status_code == 200
    assert response.get_json()["team_id"] == 2

    assert client.patch("/api/participants/1", json={"team_id": 99}).status_code == 404
    assert client.patch("/api/participants/999", json={"team_id": 1}).status_code == 404
    assert client.patch("/api/participants/1", json={}).status_code == 400


def test_login_by_name_and_team(client):
    response = client.post("/api/login", json={"username": "andy cooper", "team_id": 1})
    assert response.status_code == 200
    assert response.get_json()["id"] == 5

    assert client.post("/api/login", json={"username": "Andy Cooper", "team_id": 2}).status_code == 404
    assert client.post("/api/login", json={"team_id": 1}).status_code == 400


def test_log_lifecycle(client):
    created = client.post(
        "/api/logs", json={"participant_id": 2, "step_count": 8000, "activity_type": "Running", "date_logged": "2025-12-09"}
    )
    assert created.status_code == 201
    body = created.get_json()
    log_id = body["log"]["id"]
    assert body["log"]["activity_type"] == "Running"
    assert body["totals"]["week"] == 8000

    listed = client.get("/api/logs?participant_id=2").get_json()
    assert [log["id"] for log in listed] == [log_id]

    patched = client.patch(f"/api/logs/{log_id}", json={"step_count": 31_000})
    assert patched.status_code == 200
    assert patched.get_json()["weekly_qualified"] is True

    totals = client.get("/api/participants/2/totals").get_json()
    assert totals["challenge"] == 31_000

    deleted = client.delete(f"/api/logs/{log_id}")
    assert deleted.status_code == 200
    assert deleted.get_json()["deleted"]["id"] == log_id
    assert client.delete(f"/api/logs/{log_id}").status_code == 404


@pytest.mark.parametrize(
    "payload",
    [
        {"participant_id": 1, "step_count": 0},
        {"participant_id": 1, "step_count": 60_000},
        {"participant_id": 1, "step_count": "abc"},
        {"participant_id": 1, "step_count": 100, "date_logged": "yesterday"},
        {"step_count": 100},
    ],
)
def test_invalid_log_payloads(client, payload):
    response = client.post("/api/logs", json=payload)
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_unknown_participant_log(client):
    response = client.post("/api/logs", json={"participant_id": 404, "step_count": 100})
    assert response.status_code == 404


def test_bonus_log_without_steps(client):
    response = client.post("/api/logs", json={"participant_id": 3, "activity_type": "Bonus: Sauna"})
    assert response.status_code == 201
    assert response.get_json()["log"]["step_count"] > 0


def test_prizes_and_entries(api):
    client, _ = api
    prizes = client.get("/api/prizes").get_json()
    assert len(prizes) == 5
    assert prizes[-1]["prize_type"] == "grand"
    assert all(prize["already_drawn"] is False for prize in prizes)

    client.post("/api/logs", json={"participant_id": 6, "step_count": 30_000, "date_logged": "2025-12-10"})
    entries = client.get("/api/prizes/2/entries").get_json()
    assert [(entry["participant_id"], entry["qualified"]) for entry in entries["entries"]] == [(6, True)]

    opted = client.post("/api/prizes/2/opt", json={"participant_id": 6, "opted_in": False})
    assert opted.status_code == 200
    assert opted.get_json()["opted_in"] is False

    preview = client.get("/api/prizes/2/preview-draw").get_json()
    assert preview["qualified_count"] == 0

    assert client.get("/api/prizes/9/entries").status_code == 400


def test_draw_endpoints(client):
    empty = client.post("/api/prizes/1/draw")
    assert empty.status_code == 200
    assert empty.get_json()["success"] is False
    assert empty.get_json()["already_drawn"] is False
    assert empty.get_json()["winner"] is None

    client.post("/api/logs", json={"participant_id": 7, "step_count": 30_000, "date_logged": "2025-12-02"})
    first = client.post("/api/prizes/1/draw?announce=true").get_json()
    assert first["success"] is True
    assert first["winner"]["id"] == 7

    again = client.post("/api/prizes/1/draw").get_json()
    assert again["success"] is False
    assert again["already_drawn"] is True
    assert again["winner"]["id"] == 7


def test_grand_preview_and_draw(client):
    preview = client.get("/api/prizes/grand/preview").get_json()
    assert preview["prize"]["prize_type"] == "grand"
    assert preview["qualified_count"] == 0

    result = client.post("/api/prizes/grand/draw").get_json()
    assert result["success"] is False
    assert result["already_drawn"] is False


def test_milestone_status(client):
    response = client.get("/api/milestones/50_percent")
    assert response.status_code == 200
    data = response.get_json()
    assert data["achieved"] is False
    assert data["threshold"] == 1_085_000

    assert client.get("/api/milestones/everything").status_code == 400


def test_stats_endpoints(client):
    client.post("/api/logs", json={"participant_id": 9, "step_count": 5000, "date_logged": "2025-12-10"})

    teams = client.get("/api/stats/teams").get_json()
    assert teams[0]["id"] == 2
    assert teams[0]["total_steps"] == 5000

    board = client.get("/api/stats/leaderboard?limit=1").get_json()
    assert board == [
        {"id": 9, "username": "Arb", "team_id": 2, "avatar_emoji": "🦊", "total_steps": 5000, "rank": 1}
    ]

    progress = client.get("/api/stats/progress").get_json()
    assert progress["total_steps"] == 5000
    assert progress["goal"] == 2_170_000


def test_slack_slash_command(api):
    client, services = api
    runner = client.application.config["LOOP_RUNNER"]

    async def link_slack_account():
        async with services.pool.connection() as conn:
            await conn.execute("UPDATE participants SET slack_user_id='U808' WHERE id=8")

    runner.run(link_slack_account())

    reply = client.post("/api/slack/logsteps", data={"user_id": "U808", "text": "31,000 Running"})
    assert reply.status_code == 200
    body = reply.get_json()
    assert body["response_type"] == "ephemeral"
    assert body["text"].startswith("✅ Logged *31,000* steps (Running)")
    assert "this week's raffle" in body["text"]

    unknown = client.post("/api/slack/logsteps", data={"user_id": "UNKNOWN", "text": "5000"})
    assert unknown.status_code == 200
    assert unknown.get_json()["text"].startswith("❌")

    bad = client.post("/api/slack/logsteps", data={"user_id": "U808", "text": "lots"})
    assert bad.status_code == 200
    assert "❌" in bad.get_json()["text"]


def test_digest_triggers(client):
    daily = client.post("/api/digests/daily")
    assert daily.status_code == 200
    assert daily.get_json()["week"] == 2

    recap = client.post("/api/digests/morning-recap")
    assert recap.status_code == 200
    assert recap.get_json()["draw"] is None


def test_metrics_endpoint(client):
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert b"step_challenge_request_seconds" in response.data


def test_unknown_route_is_json(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert "error" in response.get_json()


@pytest.mark.parametrize(
    ("value", "expected"),
    [(False, False), ("false", False), ("off", False), (0, False), ("yes", True), (True, True)],
)
def test_opt_in_flag_spellings(client, value, expected):
    client.post("/api/logs", json={"participant_id": 6, "step_count": 30_000, "date_logged": "2025-12-10"})

    response = client.post("/api/prizes/2/opt", json={"participant_id": 6, "opted_in": value})

    assert response.status_code == 200
    assert response.get_json()["opted_in"] is expected


@pytest.mark.parametrize("value", ["maybe", 2, [], {"on": True}])
def test_opt_in_rejects_non_boolean(client, value):
    client.post("/api/logs", json={"participant_id": 6, "step_count": 30_000, "date_logged": "2025-12-10"})

    response = client.post("/api/prizes/2/opt", json={"participant_id": 6, "opted_in": value})

    assert response.status_code == 400
    entries = client.get("/api/prizes/2/entries").get_json()["entries"]
    assert entries[0]["opted_in"] is True


def test_announce_routes(api, notifier):
    client, services = api
    runner = client.application.config["LOOP_RUNNER"]

    assert client.post("/api/prizes/1/announce").status_code == 400
    assert client.post("/api/prizes/9/announce").status_code == 400
    assert client.post("/api/prizes/grand/announce").status_code == 400

    client.post("/api/logs", json={"participant_id": 7, "step_count": 30_000, "date_logged": "2025-12-02"})
    client.post("/api/prizes/1/draw")
    runner.run(services.dispatcher.drain())
    notifier.messages.clear()

    announced = client.post("/api/prizes/1/announce")
    runner.run(services.dispatcher.drain())

    assert announced.status_code == 200
    body = announced.get_json()
    assert body["already_drawn"] is True
    assert body["winner"]["id"] == 7
    assert body["qualified_count"] == 1
    assert notifier.kinds() == ["weekly_winner"]


def test_announce_grand_without_prize_is_not_found(api):
    client, services = api
    runner = client.application.config["LOOP_RUNNER"]

    async def remove_grand_prize():
        async with services.pool.connection() as conn:
            await conn.execute("DELETE FROM prizes WHERE prize_type='grand'")

    runner.run(remove_grand_prize())

    assert client.post("/api/prizes/grand/announce").status_code == 404


def test_daily_wins(api):
    client, services = api
    runner = client.application.config["LOOP_RUNNER"]

    async def crown():
        await services.daily_winners.record("2025-12-08", 4, 11_000)
        await services.daily_winners.record("2025-12-09", 4, 9000)

    runner.run(crown())

    assert client.get("/api/participants/4/daily-wins").get_json() == {"participant_id": 4, "daily_wins": 2}
    assert client.get("/api/participants/5/daily-wins").get_json()["daily_wins"] == 0
    assert client.get("/api/participants/404/daily-wins").status_code == 404


def test_morning_recap_preview_route(client):
    client.post("/api/logs", json={"participant_id": 2, "step_count": 9000, "date_logged": "2025-12-09"})

    response = client.get("/api/digests/preview/morning-recap/2025-12-09")
    assert response.status_code == 200
    body = response.get_json()
    assert body["date"] == "2025-12-09"
    assert body["top_walker"]["id"] == 2
    assert body["blocks"]

    assert client.post("/api/digests/morning-recap").get_json()["recorded"] is True

    for bad in ("12-09-2025", "2025-13-40", "yesterday"):
        bad_response = client.get(f"/api/digests/preview/morning-recap/{bad}")
        assert bad_response.status_code == 400
        assert bad_response.get_json()["error"] == "Invalid date format. Use YYYY-MM-DD"
