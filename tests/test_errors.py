from __future__ import annotations

from fastapi.testclient import TestClient

from core.errors import validation_message


def test_validation_message_unwraps_value_errors():
    errors = [{"loc": ("body", "title"), "msg": "Value error, Title is required"}]
    assert validation_message(errors) == "Title is required"


def test_validation_message_includes_field_location():
    errors = [{"loc": ("path", "ad_id"), "msg": "Input should be a valid integer"}]
    assert validation_message(errors) == "ad_id: Input should be a valid integer"


def test_validation_message_without_errors():
    assert validation_message([]) == "Invalid request."


def test_non_integer_id_is_a_bad_request(client):
    resp = client.get("/ads/not-a-number")
    assert resp.status_code == 400
    assert "ad_id" in resp.json()["message"]


def test_unknown_route_uses_message_body(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Not Found"}


def test_unexpected_errors_become_500(app, ad_repo):
    async def broken(**_):
        raise RuntimeError("connection reset")

    ad_repo.list_ads = broken
    client = TestClient(app, raise_server_exceptions=False)

    resp = client.get("/ads")

    assert resp.status_code == 500
    assert resp.json() == {"message": "Internal server error"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_ids_outside_bigint_range_are_bad_requests(client, store):
    huge = "99999999999999999999"
    store.add_category("Jobs")

    for method, url in (
        ("GET", f"/ads/{huge}"),
        ("DELETE", f"/ads/{huge}"),
        ("GET", f"/categories/{huge}"),
        ("DELETE", f"/categories/{huge}"),
        ("GET", "/ads/0"),
    ):
        resp = client.request(method, url)
        assert resp.status_code == 400, url

    resp = client.put(f"/ads/{huge}", json={"title": "X"})
    assert resp.status_code == 400
    assert "ad_id" in resp.json()["message"]

    resp = client.put(f"/categories/{huge}", json={"name": "X"})
    assert resp.status_code == 400
    assert "category_id" in resp.json()["message"]
