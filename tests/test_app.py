"""
HTTP and WebSocket tests
"""


def frame(event, data=None, ack=None):
    body = {"event": event, "data": data or {}}
    if ack is not None:
        body["ack"] = ack
    return body


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "rooms": 0}


def test_check_missing_room_over_http(client):
    response = client.get("/rooms/ABCD")
    assert response.status_code == 200
    assert response.json() == {"exists": False, "roomCode": "ABCD"}


def test_check_room_over_websocket_echoes_ack(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json(frame("check-room", {"roomCode": "ABCD"}, ack=7))
        assert ws.receive_json() == {"event": "check-room", "data": {"exists": False, "roomCode": "ABCD"}, "ack": 7}


def test_join_then_transcript_flow(client):
    with client.websocket_connect("/ws") as ana:
        ana.send_json(frame("join-room", {"userName": "Ana", "roomCode": "ABCD"}))
        joined = ana.receive_json()
        assert joined["event"] == "participant-joined"
        assert [p["name"] for p in joined["data"]["participants"]] == ["Ana"]
        assert ana.receive_json() == {"event": "conversation-history", "data": []}

        ana.send_json(frame("new-transcript", {
            "original": "the cat sat",
            "translated": "le chat assis",
            "changedIndices": [1],
            "speakerConfidence": 0.9,
        }))
        message = ana.receive_json()
        assert message["event"] == "new-message"
        assert message["data"]["userName"] == "Ana"
        assert message["data"]["translated"] == "le chat assis"

        with client.websocket_connect("/ws") as ben:
            ben.send_json(frame("join-room", {"userName": "Ben", "roomCode": "ABCD"}))
            roster = ben.receive_json()
            assert [p["name"] for p in roster["data"]["participants"]] == ["Ana", "Ben"]
            assert roster["data"]["newParticipant"]["name"] == "Ben"
            history = ben.receive_json()
            assert history["event"] == "conversation-history"
            assert [m["original"] for m in history["data"]] == ["the cat sat"]

            ana_view = ana.receive_json()
            assert ana_view["event"] == "participant-joined"
            assert ana_view["data"]["newParticipant"]["name"] == "Ben"

            ben.send_json(frame("request-callback"))
            callback = ben.receive_json()
            assert callback["event"] == "callback-message"
            assert callback["data"]["reference"] == "chat"
            assert callback["data"]["speaker"] == "Ben"
            assert ana.receive_json()["event"] == "callback-message"

        left = ana.receive_json()
        assert left == {
            "event": "participant-left",
            "data": {"userName": "Ben", "participants": [joined["data"]["participants"][0]]},
        }

        assert client.get("/rooms/ABCD").json()["exists"] is True

    assert client.get("/rooms/ABCD").json() == {"exists": False, "roomCode": "ABCD"}


def test_bad_frames_do_not_close_the_socket(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        ws.send_json({"no_event": True})
        ws.send_json(frame("dance"))
        ws.send_json(frame("join-room", {"roomCode": "ABCD"}))
        ws.send_json(frame("check-room", {"roomCode": "ABCD"}))
        assert ws.receive_json()["data"] == {"exists": False, "roomCode": "ABCD"}


def test_binary_and_over_nested_frames_keep_member_in_room(client):
    with client.websocket_connect("/ws") as ana, client.websocket_connect("/ws") as ben:
        ana.send_json(frame("join-room", {"userName": "Ana", "roomCode": "ABCD"}))
        ana.receive_json()
        ana.receive_json()
        ben.send_json(frame("join-room", {"userName": "Ben", "roomCode": "ABCD"}))
        ben.receive_json()
        ben.receive_json()
        assert ana.receive_json()["event"] == "participant-joined"

        ana.send_bytes(b"x")
        ana.send_text("[" * 100000 + "]" * 100000)
        ana.send_json(frame("check-room", {"roomCode": "ABCD"}))
        assert ana.receive_json()["data"] == {"exists": True, "roomCode": "ABCD"}

        ana.send_json(frame("new-transcript", {"original": "still here", "translated": "toujours la"}))
        next_for_ben = ben.receive_json()
        assert next_for_ben["event"] == "new-message"
        assert next_for_ben["data"]["userName"] == "Ana"
        assert ana.receive_json()["event"] == "new-message"
