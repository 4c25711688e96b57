import uuid

from app.core.security import issue_token


async def create_app(client, name="acme") -> dict:
    r = await client.post("/api/apps", json={"name": name})
    assert r.status_code == 201, r.text
    return r.json()


async def create_template(client, app_id, **overrides) -> dict:
    payload = {"app_id": app_id, "name": "receipt", "subject": "Receipt for {{name}}",
               "body": "Paid {{amount}}", "status": "ACTIVE"}
    payload.update(overrides)
    r = await client.post("/api/templates", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


async def test_liveness(client):
    r = await client.get("/api/health")
    assert r.json() == {"status": "ok"}


async def test_send_round_trip_uses_camel_case(client):
    app = await create_app(client)
    tpl = await create_template(client, app["id"])
    r = await client.patch(f"/api/templates/{tpl['id']}/tags", json={"tag_types": {"amount": "NUMBER"}})
    assert r.status_code == 200, r.text

    r = await client.post("/api/notifications/send", json={
        "apiKey": app["api_key"],
        "templateId": tpl["id"],
        "recipients": ["a@example.com", "b@example.com"],
        "placeholders": {"name": "Ann", "amount": 12},
    })
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "SUCCESS"
    assert body["totalRecipients"] == 2
    assert body["successfulRecipients"] == ["a@example.com", "b@example.com"]
    assert body["failedRecipients"] == []

    r = await client.get("/api/notifications/logs", params={"status": "SENT"})
    logs = r.json()
    assert len(logs) == 2
    assert logs[0]["body"] == "<p>Paid 12</p>"
    assert logs[0]["retryCount"] == 0

    r = await client.get("/api/notifications/health")
    assert r.json() == {"successfulNotifications": 2, "failedNotifications": 0, "healthPercentage": "100%"}


async def test_type_mismatch_is_400_with_details(client):
    app = await create_app(client)
    tpl = await create_template(client, app["id"])
    await client.patch(f"/api/templates/{tpl['id']}/tags", json={"tag_types": {"amount": "NUMBER"}})

    r = await client.post("/api/notifications/send", json={
        "apiKey": app["api_key"], "templateId": tpl["id"], "recipient": "a@example.com",
        "placeholders": {"name": "Ann", "amount": "12"},
    })
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Validation Error"
    assert body["details"]["type_errors"] == ["amount"]


async def test_error_mapping(client):
    app = await create_app(client)
    tpl = await create_template(client, app["id"])
    base = {"templateId": tpl["id"], "recipient": "a@example.com",
            "placeholders": {"name": "Ann", "amount": "12"}}

    r = await client.post("/api/notifications/send", json={**base, "apiKey": "bogus"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid API Key"

    r = await client.post("/api/notifications/send", json={**base, "apiKey": app["api_key"],
                                                          "templateId": str(uuid.uuid4())})
    assert r.status_code == 404

    r = await client.post(f"/api/notifications/{uuid.uuid4()}/retry")
    assert r.status_code == 404


async def test_bulk_endpoint_and_health_sentinel(client):
    r = await client.get("/api/notifications/health")
    assert r.json()["healthPercentage"] == "-"

    app = await create_app(client)
    tpl = await create_template(client, app["id"])
    r = await client.post("/api/notifications/send/bulk", json={
        "apiKey": app["api_key"],
        "templateId": tpl["id"],
        "recipients": [{"email": "a@example.com", "placeholders": {"name": "Ann"}},
                       {"email": "b@example.com"}],
        "globalPlaceholders": {"name": "Friend", "amount": "5"},
    })
    assert r.status_code == 200, r.text
    assert r.json()["successCount"] == 2

    r = await client.get("/api/notifications/logs", params={"recipient": "a@"})
    assert r.json()[0]["subject"] == "Receipt for Ann"


async def test_retry_of_sent_record_is_400(client):
    app = await create_app(client)
    tpl = await create_template(client, app["id"], body="Static body")
    r = await client.post("/api/notifications/send", json={
        "apiKey": app["api_key"], "templateId": tpl["id"], "recipient": "a@example.com",
        "placeholders": {"name": "Ann"},
    })
    assert r.status_code == 200, r.text
    record_id = (await client.get("/api/notifications/logs")).json()[0]["id"]

    r = await client.post(f"/api/notifications/{record_id}/retry")
    assert r.status_code == 400
    assert r.json()["message"] == "Only FAILED notifications can be retried."


async def test_management_scopes_are_enforced(client):
    token = issue_token(uuid.uuid4(), "reader", ["apps:read"])
    headers = {"Authorization": f"Bearer {token}"}
    r = await client.post("/api/apps", json={"name": "nope"}, headers=headers)
    assert r.status_code == 403
    r = await client.get("/api/apps", headers=headers)
    assert r.status_code == 200


async def test_actor_is_stamped_from_token(client):
    token = issue_token(uuid.uuid4(), "carol", ["*"])
    r = await client.post("/api/apps", json={"name": "stamped"}, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 201
    assert r.json()["created_by"] == "carol"


async def test_duplicate_app_is_409(client):
    await create_app(client, "dup")
    r = await client.post("/api/apps", json={"name": "dup"})
    assert r.status_code == 409


async def test_null_placeholder_is_reported_as_missing_tag(client):
    app = await create_app(client)
    tpl = await create_template(client, app["id"])

    r = await client.post("/api/notifications/send", json={
        "apiKey": app["api_key"], "templateId": tpl["id"], "recipient": "a@example.com",
        "placeholders": {"name": None, "amount": "12"},
    })
    assert r.status_code == 400, r.text
    body = r.json()
    assert body["error"] == "Validation Error"
    assert body["details"]["missing"] == ["name"]

    r = await client.post("/api/notifications/send/bulk", json={
        "apiKey": app["api_key"], "templateId": tpl["id"],
        "recipients": [{"email": "a@example.com", "placeholders": {"name": None}}],
        "globalPlaceholders": {"name": "Friend", "amount": "5"},
    })
    assert r.status_code == 400, r.text
    assert r.json()["details"]["missing"] == ["name"]
    assert (await client.get("/api/notifications/logs")).json() == []
