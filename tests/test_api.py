from messmate.core.pagination import normalize_pagination, pagination_meta


def test_health(client):
    body = client.get("/api/health").json()

    assert body["success"] is True
    assert body["data"]["environment"] == "testing"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found", "error": "RESOURCE_NOT_FOUND"}


def test_request_validation_is_reported_per_field(client, student_headers):
    response = client.post("/api/bookings/", json={"quantity": 2}, headers=student_headers)

    body = response.json()
    assert response.status_code == 400
    assert body["error"] == "VALIDATION_ERROR"
    assert "menu_item_id" in body["details"]["field_errors"]


def test_responses_carry_request_id(client):
    response = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


def test_pagination_is_clamped(client, db_session, admin_headers):
    body = client.get("/api/users/?page=0&limit=1000", headers=admin_headers).json()

    assert body["pagination"] == {"page": 1, "limit": 100, "total": 1, "pages": 1}


def test_normalize_pagination_defaults():
    params = normalize_pagination(None, None)

    assert (params.page, params.limit, params.offset) == (1, 10, 0)
    assert normalize_pagination(3, 20).offset == 40


def test_pagination_meta_pages():
    params = normalize_pagination(1, 10)

    assert pagination_meta(params, 0)["pages"] == 0
    assert pagination_meta(params, 21)["pages"] == 3
