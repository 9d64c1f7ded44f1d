from datetime import date

import pytest

from staffing.db.models import Submission


def _payload(presets, **overrides) -> dict:
    data = {
        "start_date": "2026-04-10",
        "end_date": "2026-04-12",
        "organizer_id": presets.organizer.id,
        "event_name_id": presets.event_name.id,
        "event_type_id": presets.event_type.id,
        "city": "Paris",
        "country": "France",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_counsellor_creates_submission(client, presets, counsellor_headers):
    response = await client.post("/submissions", json=_payload(presets), headers=counsellor_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["submitted_by"] == "alice"
    assert body["organizer"] == "Global Education Fairs | Study Abroad Expo | Fair"


@pytest.mark.asyncio
async def test_create_validation(client, presets, counsellor_headers, admin_headers):
    inverted = await client.post(
        "/submissions",
        json=_payload(presets, start_date="2026-04-12", end_date="2026-04-10"),
        headers=counsellor_headers,
    )
    blank_city = await client.post("/submissions", json=_payload(presets, city="  "), headers=counsellor_headers)
    as_admin = await client.post("/submissions", json=_payload(presets), headers=admin_headers)

    assert inverted.status_code == 400
    assert blank_city.status_code == 422
    assert as_admin.status_code == 403


@pytest.mark.asyncio
async def test_batch_create(client, presets, counsellor_headers):
    response = await client.post(
        "/submissions/batch",
        json={"events": [_payload(presets), {"city": "Rome"}]},
        headers=counsellor_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert (body["submitted"], body["failed"]) == (1, 1)
    assert body["errors"] == [{"index": 1, "error": "Missing required fields"}]


@pytest.mark.asyncio
async def test_edit_resets_to_pending(client, db, counsellors, presets, make_submission, counsellor_headers):
    submission = make_submission(date(2099, 4, 10), date(2099, 4, 12), assigned=[counsellors[1]])

    response = await client.put(
        f"/submissions/{submission.id}",
        json=_payload(presets, start_date="2099-04-11", end_date="2099-04-13", city="Lyon"),
        headers=counsellor_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "pending"
    assert body["city"] == "Lyon"
    assert [member["username"] for member in body["assigned"]] == ["bob"]


@pytest.mark.asyncio
async def test_edit_confirmed_after_start_is_rejected(client, counsellors, presets, make_submission,
                                                      counsellor_headers):
    submission = make_submission(date(2020, 1, 1), date(2020, 1, 2), assigned=[counsellors[0]])

    response = await client.put(
        f"/submissions/{submission.id}", json=_payload(presets), headers=counsellor_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_edit_someone_elses_submission(client, presets, make_submission, counsellor_headers):
    submission = make_submission(date(2099, 4, 10), date(2099, 4, 12), submitted_by="bob")

    response = await client.put(f"/submissions/{submission.id}", json=_payload(presets), headers=counsellor_headers)
    missing = await client.put("/submissions/9999", json=_payload(presets), headers=counsellor_headers)

    assert response.status_code == 403
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_remarks_and_mine(client, make_submission, counsellor_headers):
    submission = make_submission(date(2099, 4, 10), date(2099, 4, 12))

    patched = await client.patch(
        f"/submissions/{submission.id}/remarks", json={"remarks": "two tables"}, headers=counsellor_headers
    )
    mine = await client.get("/submissions/mine", headers=counsellor_headers)

    assert patched.json()["remarks"] == "two tables"
    assert [row["id"] for row in mine.json()] == [submission.id]


@pytest.mark.asyncio
async def test_assignments(client, counsellors, make_submission, counsellor_headers):
    staffed = make_submission(date(2099, 4, 10), date(2099, 4, 12), submitted_by="bob", assigned=[counsellors[0]])

    response = await client.get("/submissions/assignments", headers=counsellor_headers)

    assert [row["id"] for row in response.json()] == [staffed.id]


@pytest.mark.asyncio
async def test_delete(client, db, make_submission, counsellor_headers, admin_headers):
    own = make_submission(date(2099, 4, 10), date(2099, 4, 12))
    other = make_submission(date(2099, 4, 10), date(2099, 4, 12), submitted_by="bob", city="Nice")

    assert (await client.delete(f"/submissions/{own.id}", headers=counsellor_headers)).json() == {"ok": True}
    assert (await client.delete(f"/submissions/{other.id}", headers=counsellor_headers)).status_code == 403
    assert (await client.delete(f"/submissions/{other.id}", headers=admin_headers)).status_code == 200
    assert db.query(Submission).count() == 0


@pytest.mark.asyncio
async def test_form_data(client, counsellors, presets, counsellor_headers, admin_headers):
    await client.post(
        "/admin/country-suggestions",
        json={"country": "France", "counsellor_id": counsellors[2].id},
        headers=admin_headers,
    )

    form = await client.get("/submissions/presets", headers=counsellor_headers)
    suggestions = await client.get(
        "/submissions/country-suggestions", params={"country": "France"}, headers=counsellor_headers
    )

    assert [p["name"] for p in form.json()["organizers"]] == ["Global Education Fairs"]
    assert [s["username"] for s in suggestions.json()] == ["carol"]
