"""Shared fixtures: fake Playwright objects so tests never launch Chromium"""

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from icp_lookup.config_loader import load_config

QUERY_MARKUP = (
    '<html><body><div class="result">'
    '<a href="/home/info?host=ZXhhbXBsZS5jb20=" target="_blank">详情</a>'
    '</div></body></html>'
)

DETAIL_FIELDS = {
    "td#license": " 京ICP证030173号 ",
    "td#verifyTime": "2023-05-10\n",
    "td#comName": "  北京某某公司  ",
    "td#typ": "企业",
    "td#permit": "京ICP证030173号-1",
    "td#host": "example.com",
}


class FakeLocator:
    """A list value in page.fields means the selector matches several cells"""

    def __init__(self, page, selector, first=False):
        self.page = page
        self.selector = selector
        self.is_first = first

    @property
    def first(self):
        return FakeLocator(self.page, self.selector, first=True)

    def inner_text(self, timeout=None):
        if self.selector not in self.page.fields:
            raise PlaywrightTimeoutError(f"Timeout waiting for {self.selector}")
        value = self.page.fields[self.selector]
        if isinstance(value, list):
            if not self.is_first:
                raise PlaywrightError(f"strict mode violation: {self.selector} resolved to {len(value)} elements")
            return value[0]
        return value


class FakePage:
    def __init__(self, markup=QUERY_MARKUP, fields=None, goto_error=None):
        self.markup = markup
        self.fields = dict(DETAIL_FIELDS if fields is None else fields)
        self.goto_error = goto_error
        self.visited = []
        self.waited_for = []

    def set_default_timeout(self, timeout):
        self.default_timeout = timeout

    def set_default_navigation_timeout(self, timeout):
        self.navigation_timeout = timeout

    def goto(self, url, wait_until=None):
        self.visited.append(url)
        if self.goto_error is not None:
            raise self.goto_error

    def content(self):
        return self.markup

    def wait_for_selector(self, selector, state=None, timeout=None):
        self.waited_for.append((selector, timeout))
        if selector not in self.fields:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded")

    def locator(self, selector):
        return FakeLocator(self, selector)


class FakeContext:
    def __init__(self, page_factory, **options):
        self.page_factory = page_factory
        self.options = options
        self.pages = []
        self.closed = False

    def new_page(self):
        page = self.page_factory()
        self.pages.append(page)
        return page

    def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page_factory=FakePage):
        self.page_factory = page_factory
        self.contexts = []
        self.closed = False

    def new_context(self, **options):
        context = FakeContext(self.page_factory, **options)
        self.contexts.append(context)
        return context

    @property
    def pages(self):
        return [page for context in self.contexts for page in context.pages]

    def close(self):
        self.closed = True


@pytest.fixture
def make_config(tmp_path, monkeypatch):
    """Build a config from defaults plus overrides, ignoring any local settings.yaml"""
    monkeypatch.chdir(tmp_path)

    def _make(**sections):
        return load_config(None, sections)

    return _make


@pytest.fixture
def sleeps(monkeypatch):
    """Record time.sleep calls instead of sleeping"""
    calls = []
    monkeypatch.setattr("icp_lookup.collector.time.sleep", calls.append)
    return calls


@pytest.fixture
def fake_browser(monkeypatch):
    """Patch browser start-up so collect_all drives a FakeBrowser"""
    browser = FakeBrowser()

    def _start(self):
        self.browser = browser

    monkeypatch.setattr("icp_lookup.collector.IcpCollector.start_browser", _start)
    return browser
