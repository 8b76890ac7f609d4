"""Client-side PDF picker: cached loading, local search and field selection."""

import enum
import logging
from typing import Iterable
from urllib.parse import unquote

import httpx

from pdf_chooser.cache import ResultCache
from pdf_chooser.config import Settings, get_settings
from pdf_chooser.context import TOKEN_PARAMETER, FieldContext
from pdf_chooser.exceptions import InvalidResponseError, NetworkError, UpstreamError
from pdf_chooser.models import NormalizedFile
from pdf_chooser.normalize import normalize_files
from pdf_chooser.proxy_client import ProxyClient
from pdf_chooser.store import SqliteStore

logger = logging.getLogger(__name__)


class LoadState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


def filter_files(files: Iterable[NormalizedFile], query: str) -> list[NormalizedFile]:
    term = query.strip().lower()
    if not term:
        return list(files)
    return [f for f in files if term in f.name.lower() or term in f.path.lower()]


def urls_match(stored: str, candidate: str) -> bool:
    """Compare two URLs in raw and percent-decoded form, in all four pairings."""
    stored_forms = {stored, unquote(stored)}
    candidate_forms = {candidate, unquote(candidate)}
    return not stored_forms.isdisjoint(candidate_forms)


class FilePicker:
    def __init__(
        self,
        ctx: FieldContext,
        *,
        proxy: ProxyClient,
        cache: ResultCache,
        fetch_limit: int = 1000,
    ):
        self.ctx = ctx
        self.proxy = proxy
        self.cache = cache
        self.fetch_limit = fetch_limit

        self.state = LoadState.UNINITIALIZED
        self.all_files: list[NormalizedFile] = []
        self.filtered_files: list[NormalizedFile] = []
        self.query = ""
        self.selected: NormalizedFile | None = None
        self.error: str | None = None
        self._active_token: str | None = None

    @property
    def token(self) -> str | None:
        return self.ctx.plugin_parameters.get(TOKEN_PARAMETER) or None

    @property
    def status_text(self) -> str:
        if self.state is LoadState.LOADING:
            return "Loading all PDFs..."
        if self.state is LoadState.FAILED:
            return self.error or "Failed to load PDFs"
        if self.state is LoadState.READY:
            if self.query.strip():
                return f"{len(self.filtered_files)} of {len(self.all_files)} PDFs match \"{self.query.strip()}\""
            return f"Loaded {len(self.all_files)} PDFs"
        return ""

    def _reset(self) -> None:
        self.state = LoadState.UNINITIALIZED
        self.all_files = []
        self.filtered_files = []
        self.error = None

    def _begin_loading(self) -> bool:
        if self.state is not LoadState.UNINITIALIZED:
            return False
        self.state = LoadState.LOADING
        return True

    def _replace_files(self, files: list[NormalizedFile]) -> None:
        self.all_files = files
        self.filtered_files = filter_files(files, self.query)
        self.resolve_selection()

    def activate(self) -> None:
        """Load the file set once per credential, preferring a fresh cache entry."""
        token = self.token
        if token != self._active_token:
            self._active_token = token
            self._reset()

        if not self._begin_loading():
            return

        if not token:
            self.state = LoadState.FAILED
            self.error = "HubSpot access token is not configured"
            self.ctx.alert(self.error)
            return

        cached = self.cache.load(token)
        if cached is not None:
            self._replace_files(cached)
            self.state = LoadState.READY
            return

        self._fetch(token)

    def refresh(self) -> None:
        """Drop the cache entry and in-memory files, then load from the proxy."""
        token = self.token
        self._active_token = token
        self._reset()
        if token:
            self.cache.evict(token)
        self.activate()

    def _fetch(self, token: str) -> None:
        try:
            records = self.proxy.fetch_all(token, limit=self.fetch_limit)
        except UpstreamError as exc:
            self._fail(exc.body)
            return
        except InvalidResponseError as exc:
            self._fail(str(exc))
            return
        except NetworkError as exc:
            logger.error("Load error: %s", exc)
            self._fail("Failed to load PDFs. Check your connection and try again.")
            return

        files = normalize_files(records)
        self._replace_files(files)
        self.cache.save(token, files)
        self.state = LoadState.READY
        logger.info("Loaded %d PDFs and cached them", len(files))
        self.ctx.notice(f"Loaded {len(files)} PDFs")

    def _fail(self, message: str) -> None:
        self.state = LoadState.FAILED
        self.error = message
        self.ctx.alert(message)

    def search(self, query: str) -> list[NormalizedFile]:
        self.query = query
        self.filtered_files = filter_files(self.all_files, query)
        return self.filtered_files

    def resolve_selection(self) -> NormalizedFile | None:
        """Find the loaded file whose URL matches the current field value."""
        current = self.ctx.get_field_value()
        if not current or not self.all_files:
            self.selected = None
            return None

        self.selected = next((f for f in self.all_files if urls_match(current, f.url)), None)
        if self.selected is None:
            logger.debug("No matching file found for field URL")
        return self.selected

    def select(self, file: NormalizedFile) -> str:
        clean_url = unquote(file.url)
        self.ctx.set_field_value(clean_url)
        self.selected = file
        self.ctx.notice(f"Selected: {file.name}")
        return clean_url

    def clear(self) -> None:
        self.ctx.set_field_value("")
        self.selected = None
        self.ctx.notice("Selection cleared")


def create_picker(ctx: FieldContext, http_client: httpx.Client, settings: Settings | None = None) -> FilePicker:
    """Build a picker whose cache lives in the configured SQLite file."""
    settings = settings or get_settings()
    store = SqliteStore(settings.cache_db_path)
    store.init()
    cache = ResultCache(store, ttl_seconds=settings.cache_ttl_seconds)
    return FilePicker(ctx, proxy=ProxyClient(http_client), cache=cache, fetch_limit=settings.client_fetch_limit)
