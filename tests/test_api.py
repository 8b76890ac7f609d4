import httpx
from fastapi.testclient import TestClient

from pdf_chooser.config import get_settings
from pdf_chooser.main import create_app


def build_client(monkeypatch, upstream, *, api_key: str | None = "pat-123", page_size: int = 100):
    if api_key is not None:
        monkeypatch.setenv("PDFC_HUBSPOT_API_KEY", api_key)
    monkeypatch.setenv("PDFC_PAGE_SIZE", str(page_size))
    get_settings.cache_clear()

    app = create_app(transport=httpx.MockTransport(upstream))
    return TestClient(app)


def test_search_walks_all_pages_until_cursor_runs_out(monkeypatch, fake_hubspot):
    upstream = fake_hubspot(250)
    client = build_client(monkeypatch, upstream)
    with client:
        response = client.get("/api/hubspot-search", params={"limit": "500"})

    assert response.status_code == 200
    results = response.json()["results"]
    assert len(results) == 250
    assert [r["id"] for r in results[:3]] == ["1", "2", "3"]
    assert len(upstream.requests) == 3
    assert upstream.cursors == [None, "100", "200"]


def test_search_sends_pdf_filter_query_and_bearer_token(monkeypatch, fake_hubspot):
    upstream = fake_hubspot(5)
    client = build_client(monkeypatch, upstream)
    with client:
        response = client.get("/api/hubspot-search", params={"q": "report"})

    assert response.status_code == 200
    request = upstream.requests[0]
    assert request.url.path == "/files/v3/files/search"
    assert request.url.params["extension"] == "pdf"
    assert request.url.params["limit"] == "100"
    assert request.url.params["q"] == "report"
    assert "after" not in request.url.params
    assert request.headers["Authorization"] == "Bearer pat-123"


def test_search_truncates_overshooting_last_page(monkeypatch, fake_hubspot):
    upstream = fake_hubspot(1000)
    client = build_client(monkeypatch, upstream)
    with client:
        response = client.get("/api/hubspot-search", params={"limit": "250"})

    assert response.status_code == 200
    assert len(response.json()["results"]) == 250
    assert len(upstream.requests) == 3


def test_default_limit_is_500(monkeypatch, fake_hubspot):
    upstream = fake_hubspot(800)
    client = build_client(monkeypatch, upstream)
    with client:
        response = client.get("/api/hubspot-search")

    assert len(response.json()["results"]) == 500
    assert len(upstream.requests) == 5


def test_upstream_error_is_propagated_verbatim(monkeypatch, fake_hubspot):
    body = '{"status":"error","message":"You have reached your secondly limit."}'
    upstream = fake_hubspot(1000, fail_on_call=2, status_code=429, body=body)
    client = build_client(monkeypatch, upstream)
    with client:
        response = client.get("/api/hubspot-search", params={"limit": "500"})

    assert response.status_code == 429
    assert response.json() == {"error": body}
    assert len(upstream.requests) == 2


def test_missing_api_key_fails_before_any_upstream_call(monkeypatch, fake_hubspot):
    upstream = fake_hubspot(10)
    client = build_client(monkeypatch, upstream, api_key=None)
    with client:
        response = client.get("/api/hubspot-search")

    assert response.status_code == 500
    assert response.json() == {"error": "HubSpot API key not configured"}
    assert upstream.requests == []


def test_caller_token_does_not_replace_missing_api_key(monkeypatch, fake_hubspot):
    upstream = fake_hubspot(3)
    client = build_client(monkeypatch, upstream, api_key=None)
    with client:
        response = client.get("/api/hubspot-search", params={"token": "pat-from-plugin"})

    assert response.status_code == 500
    assert response.json() == {"error": "HubSpot API key not configured"}
    assert upstream.requests == []


def test_non_json_upstream_success_returns_json_error(monkeypatch):
    def upstream(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    client = build_client(monkeypatch, upstream)
    with client:
        response = client.get("/api/hubspot-search")

    assert response.status_code == 500
    assert response.headers["content-type"] == "application/json"
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.json()["error"].startswith("Invalid response from HubSpot")


def test_malformed_upstream_results_return_json_error(monkeypatch):
    def upstream(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": ["not-a-record"]})

    client = build_client(monkeypatch, upstream)
    with client:
        response = client.get("/api/hubspot-search")

    assert response.status_code == 500
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert "error" in response.json()


def test_upstream_http_client_lives_for_the_app_lifespan(monkeypatch, fake_hubspot):
    client = build_client(monkeypatch, fake_hubspot(1))
    with client:
        http_client = client.app.state.http_client
        assert not http_client.is_closed

    assert http_client.is_closed


def test_network_failure_returns_server_error(monkeypatch):
    def upstream(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = build_client(monkeypatch, upstream)
    with client:
        response = client.get("/api/hubspot-search")

    assert response.status_code == 500
    assert "connection refused" in response.json()["error"]


def test_preflight_returns_cors_headers(monkeypatch, fake_hubspot):
    client = build_client(monkeypatch, fake_hubspot(0))
    with client:
        response = client.options("/api/hubspot-search")

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert response.headers["Access-Control-Allow-Methods"] == "GET, POST, OPTIONS"
    assert response.headers["Access-Control-Allow-Headers"] == "Content-Type"


def test_post_is_not_allowed(monkeypatch, fake_hubspot):
    upstream = fake_hubspot(5)
    client = build_client(monkeypatch, upstream)
    with client:
        response = client.post("/api/hubspot-search", json={})

    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert upstream.requests == []


def test_invalid_limit_returns_bad_request(monkeypatch, fake_hubspot):
    upstream = fake_hubspot(5)
    client = build_client(monkeypatch, upstream)
    with client:
        not_a_number = client.get("/api/hubspot-search", params={"limit": "lots"})
        zero = client.get("/api/hubspot-search", params={"limit": "0"})

    assert not_a_number.status_code == 400
    assert "limit" in not_a_number.json()["error"]
    assert zero.status_code == 400
    assert upstream.requests == []


def test_empty_upstream_returns_empty_results(monkeypatch, fake_hubspot):
    upstream = fake_hubspot(0)
    client = build_client(monkeypatch, upstream)
    with client:
        response = client.get("/api/hubspot-search")

    assert response.status_code == 200
    assert response.json() == {"results": []}
    assert len(upstream.requests) == 1


def test_health(monkeypatch, fake_hubspot):
    client = build_client(monkeypatch, fake_hubspot(0))
    with client:
        response = client.get("/health")
    assert response.json() == {"status": "ok", "environment": "dev"}
