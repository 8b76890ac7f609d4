import httpx
import pytest

from pdf_chooser.config import get_settings


def make_record(index: int) -> dict:
    return {
        "id": str(index),
        "name": f"Document {index}.pdf",
        "url": f"https://files.example.com/docs/Document%20{index}.pdf",
        "defaultHostingUrl": f"https://files.example.com/hubfs/Document%20{index}.pdf",
        "size": 1000 + index,
        "path": f"/docs/Document {index}.pdf",
        "createdAt": "2024-01-01T00:00:00Z",
        "extension": "pdf",
        "access": "PUBLIC_INDEXABLE",
    }


class FakeHubSpot:
    """Cursor-paginated stand-in for the HubSpot Files search endpoint."""

    def __init__(self, records: list[dict], *, fail_on_call: int | None = None, status_code: int = 500, body: str = ""):
        self.records = records
        self.fail_on_call = fail_on_call
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_on_call == len(self.requests):
            return httpx.Response(self.status_code, text=self.body)

        limit = int(request.url.params["limit"])
        start = int(request.url.params.get("after", "0"))
        items = self.records[start:start + limit]
        payload: dict = {"results": items}
        end = start + len(items)
        if end < len(self.records):
            payload["paging"] = {"next": {"after": str(end), "link": f"?after={end}"}}
        return httpx.Response(200, json=payload)

    @property
    def cursors(self) -> list[str | None]:
        return [request.url.params.get("after") for request in self.requests]


@pytest.fixture
def fake_hubspot():
    def factory(total: int, **kwargs) -> FakeHubSpot:
        return FakeHubSpot([make_record(i) for i in range(1, total + 1)], **kwargs)

    return factory


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    monkeypatch.delenv("HUBSPOT_API_KEY", raising=False)
    monkeypatch.delenv("PDFC_HUBSPOT_API_KEY", raising=False)
    monkeypatch.setenv("PDFC_CACHE_DB_PATH", str(tmp_path / "cache.db"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
