import datetime as dt

from fastapi.testclient import TestClient


def today() -> dt.date:
    return dt.datetime.now(dt.timezone.utc).date()


def test_create_event(client: TestClient, organizer, auth, event_data):
    """Test creating a new event."""
    response = client.post("/api/v1/events/", json=event_data(), headers=auth(organizer))

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Python Meetup"
    assert data["status"] == "upcoming"
    assert data["organizer_id"] == organizer["id"]
    assert data["organizer"]["first_name"] == "Olga"
    assert data["attendee_count"] == 0
    assert data["spots_left"] == 50
    assert data["is_full"] is False
    assert data["price"] == 0.0
    assert data["additional_details"] == {}

    # Verify the event was created by getting it
    response = client.get(f"/api/v1/events/{data['id']}")
    assert response.status_code == 200
    assert response.json()["title"] == "Python Meetup"


def test_create_event_in_the_past_is_completed(create_event):
    event = create_event(date=(today() - dt.timedelta(days=1)).isoformat())
    assert event["status"] == "completed"


def test_create_event_requires_authentication(client: TestClient, event_data):
    response = client.post("/api/v1/events/", json=event_data())
    assert response.status_code == 401


def test_create_event_requires_organizer_role(client: TestClient, participant, auth, event_data):
    response = client.post("/api/v1/events/", json=event_data(), headers=auth(participant))
    assert response.status_code == 403


def test_create_event_validation(client: TestClient, organizer, auth, event_data):
    headers = auth(organizer)
    invalid = [
        {"time": "25:00"},
        {"time": "9:30"},
        {"category": "party"},
        {"location_type": "hybrid"},
        {"price": "-1"},
        {"max_attendees": 0},
        {"status": "cancelled"},
        {"title": ""},
    ]
    for overrides in invalid:
        response = client.post("/api/v1/events/", json=event_data(**overrides), headers=headers)
        assert response.status_code == 422, overrides


def test_read_missing_event(client: TestClient):
    response = client.get("/api/v1/events/9999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Event not found"


def test_list_events_paginates(client: TestClient, create_event):
    for i in range(3):
        create_event(title=f"Event {i}")

    response = client.get("/api/v1/events/", params={"page": 1, "size": 2})
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["pages"] == 2
    assert data["page"] == 1
    assert len(data["items"]) == 2

    response = client.get("/api/v1/events/", params={"page": 2, "size": 2})
    assert len(response.json()["items"]) == 1


def test_list_events_empty(client: TestClient):
    response = client.get("/api/v1/events/")
    assert response.status_code == 200
    assert response.json() == {"items": [], "total": 0, "page": 1, "size": 20, "pages": 1}


def test_list_events_ordered_by_date_then_time(client: TestClient, create_event):
    base = today() + dt.timedelta(days=5)
    create_event(title="Late", date=base.isoformat(), time="19:00")
    create_event(title="Next day", date=(base + dt.timedelta(days=1)).isoformat(), time="08:00")
    create_event(title="Early", date=base.isoformat(), time="09:00")

    titles = [e["title"] for e in client.get("/api/v1/events/").json()["items"]]
    assert titles == ["Early", "Late", "Next day"]


def test_list_events_filters(client: TestClient, create_event):
    day = today() + dt.timedelta(days=3)
    create_event(title="Deep Learning Workshop", category="workshop", date=day.isoformat())
    create_event(title="Founders Mixer", category="networking", description="Meet other founders")
    create_event(title="100% Python", category="conference")

    def titles(**params):
        response = client.get("/api/v1/events/", params=params)
        assert response.status_code == 200
        return sorted(e["title"] for e in response.json()["items"])

    assert titles(category="workshop") == ["Deep Learning Workshop"]
    assert len(titles(category="all")) == 3
    assert titles(search="deep learning") == ["Deep Learning Workshop"]
    assert titles(search="FOUNDERS") == ["Founders Mixer"]
    assert titles(search="100%") == ["100% Python"]
    assert titles(day=day.isoformat()) == ["Deep Learning Workshop"]


def test_list_events_unknown_category(client: TestClient):
    response = client.get("/api/v1/events/", params={"category": "party"})
    assert response.status_code == 422
    assert response.json()["field"] == "category"


def test_private_events_are_unlisted(client: TestClient, create_event, organizer, participant, create_user, auth):
    private = create_event(title="Secret Dinner", is_private=True)
    create_event(title="Open Talk")
    stranger = create_user()

    def listed(headers=None):
        response = client.get("/api/v1/events/", headers=headers or {})
        return sorted(e["title"] for e in response.json()["items"])

    assert listed() == ["Open Talk"]
    assert listed(auth(stranger)) == ["Open Talk"]
    assert listed(auth(organizer)) == ["Open Talk", "Secret Dinner"]

    # Reachable by direct id, and joining makes it visible to the attendee
    assert client.get(f"/api/v1/events/{private['id']}").status_code == 200
    response = client.post(f"/api/v1/events/{private['id']}/join", headers=auth(participant))
    assert response.status_code == 200
    assert listed(auth(participant)) == ["Open Talk", "Secret Dinner"]


def test_calendar(client: TestClient, create_event):
    create_event(title="March A", date="2031-03-01", time="10:00")
    create_event(title="March B", date="2031-03-31", time="09:00")
    create_event(title="April", date="2031-04-01", time="09:00")
    create_event(title="Hidden", date="2031-03-15", is_private=True)

    response = client.get("/api/v1/events/calendar/2031/3")
    assert response.status_code == 200
    assert [e["title"] for e in response.json()] == ["March A", "March B"]

    assert client.get("/api/v1/events/calendar/2031/13").status_code == 422


def test_organizer_events(client: TestClient, create_event, create_user):
    other = create_user(role="organizer")
    create_event(title="Mine")
    create_event(owner=other, title="Theirs")

    response = client.get(f"/api/v1/events/organizer/{other['id']}")
    assert response.status_code == 200
    assert [e["title"] for e in response.json()] == ["Theirs"]


def test_organizer_events_hide_private_from_outsiders(
    client: TestClient, create_event, create_user, organizer, participant, auth
):
    create_event(title="Open Talk", time="09:00")
    private = create_event(title="Board Meeting", time="10:00", is_private=True)
    stranger = create_user()
    client.post(f"/api/v1/events/{private['id']}/join", headers=auth(participant))

    def titles(headers=None):
        response = client.get(f"/api/v1/events/organizer/{organizer['id']}", headers=headers or {})
        assert response.status_code == 200
        return [e["title"] for e in response.json()]

    assert titles() == ["Open Talk"]
    assert titles(auth(stranger)) == ["Open Talk"]
    assert titles(auth(organizer)) == ["Open Talk", "Board Meeting"]
    assert titles(auth(participant)) == ["Open Talk", "Board Meeting"]


def test_update_event(client: TestClient, create_event, organizer, auth):
    event = create_event()

    response = client.put(
        f"/api/v1/events/{event['id']}",
        json={"title": "Python Meetup #2", "price": "12.50", "additional_details": {"dress_code": "casual"}},
        headers=auth(organizer),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Python Meetup #2"
    assert data["price"] == 12.5
    assert data["additional_details"] == {"dress_code": "casual"}
    assert data["location"] == event["location"]
    assert data["updated_at"] is not None


def test_update_event_rederives_status(client: TestClient, create_event, organizer, auth):
    event = create_event()
    response = client.put(
        f"/api/v1/events/{event['id']}",
        json={"date": (today() - dt.timedelta(days=2)).isoformat()},
        headers=auth(organizer),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"


def test_update_event_rules(client: TestClient, create_event, create_user, organizer, participant, auth):
    event = create_event(max_attendees=5)
    url = f"/api/v1/events/{event['id']}"
    client.post(f"{url}/join", headers=auth(participant))

    assert client.put(url, json={"title": "Hijacked"}, headers=auth(participant)).status_code == 403
    assert client.put(url, json={"status": "completed"}, headers=auth(organizer)).status_code == 422

    response = client.put(url, json={"title": None}, headers=auth(organizer))
    assert response.status_code == 422
    assert response.json()["field"] == "title"

    response = client.put(url, json={"max_attendees": None}, headers=auth(organizer))
    assert response.status_code == 200
    assert response.json()["spots_left"] is None

    other = create_user()
    client.post(f"{url}/join", headers=auth(other))
    response = client.put(url, json={"max_attendees": 1}, headers=auth(organizer))
    assert response.status_code == 422
    assert response.json()["field"] == "max_attendees"


def test_update_missing_event(client: TestClient, organizer, auth):
    response = client.put("/api/v1/events/9999", json={"title": "Nope"}, headers=auth(organizer))
    assert response.status_code == 404


def test_cancel_event_is_permanent(client: TestClient, create_event, organizer, participant, auth):
    event = create_event()
    url = f"/api/v1/events/{event['id']}"

    assert client.post(f"{url}/cancel", headers=auth(participant)).status_code == 403

    response = client.post(f"{url}/cancel", headers=auth(organizer))
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    # Moving the date does not revive it
    future = (today() + dt.timedelta(days=60)).isoformat()
    response = client.put(url, json={"date": future}, headers=auth(organizer))
    assert response.json()["status"] == "cancelled"
    assert client.get(url).json()["status"] == "cancelled"

    response = client.post(f"{url}/join", headers=auth(participant))
    assert response.status_code == 400
    assert response.json()["reason"] == "not_upcoming"


def test_delete_event(client: TestClient, create_event, organizer, participant, auth):
    event = create_event()
    url = f"/api/v1/events/{event['id']}"
    client.post(f"{url}/join", headers=auth(participant))

    assert client.delete(url, headers=auth(participant)).status_code == 403

    response = client.delete(url, headers=auth(organizer))
    assert response.status_code == 204

    assert client.get(url).status_code == 404
    attending = client.get("/api/v1/users/me/events", headers=auth(participant)).json()["attending"]
    assert attending == []


def test_delete_missing_event(client: TestClient, organizer, auth):
    assert client.delete("/api/v1/events/9999", headers=auth(organizer)).status_code == 404


def test_attendees_roster(client: TestClient, create_event, create_user, organizer, auth):
    event = create_event()
    url = f"/api/v1/events/{event['id']}"
    first, second = create_user(), create_user()
    client.post(f"{url}/join", headers=auth(second))
    client.post(f"{url}/join", headers=auth(first))

    response = client.get(f"{url}/attendees", headers=auth(organizer))
    assert response.status_code == 200
    assert [a["id"] for a in response.json()] == [second["id"], first["id"]]
    assert response.json()[0]["email"] == second["email"]

    assert client.get(f"{url}/attendees", headers=auth(first)).status_code == 403
    assert client.get(f"{url}/attendees").status_code == 401
