"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all tests in the test suite. Playwright objects are replaced by small
in-memory fakes so the crawler logic runs without a browser.
"""

import re
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from src.core.config import Config
from src.core.error_logger import configure_error_logger
from src.crawler.pagination import EXACT_NEXT_SELECTOR
from src.storage.models import BusinessRecord, ContactPerson, GenderDistribution

LISTING_URL = "https://www.bia.ge/Company/AdvancedSearch"


# ============================================================================
# Paths and Directories
# ============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def test_output_dir(tmp_path: Path) -> Path:
    """Create a temporary output directory for tests."""
    output_dir = tmp_path / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture(autouse=True)
def error_log_dir(tmp_path: Path) -> Path:
    """Send structured error records to a per-test directory."""
    log_dir = tmp_path / "errors"
    configure_error_logger(log_dir)
    return log_dir


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def detail_html(fixtures_dir: Path) -> str:
    """Saved detail page of a fictional restaurant."""
    return (fixtures_dir / "company_detail.html").read_text(encoding="utf-8")


@pytest.fixture
def sample_record() -> BusinessRecord:
    """Return a populated BusinessRecord."""
    return BusinessRecord(
        id="12345",
        name="შპს ტესტ რესტორანი",
        name_georgian="შპს ტესტ რესტორანი",
        tax_payer_id="404123456",
        registration_number="404123456",
        phone_numbers=["+995 322 123456"],
        emails=["info@test-restaurant.ge"],
        address="საქართველო, თბილისი, ვაკის რაიონი, ჭავჭავაძის გამზ. 1",
        city="თბილისი",
        region="ვაკის რაიონი",
        is_vat_payer=True,
        gender_distribution=GenderDistribution(male=40, female=60),
        contact_persons=[
            ContactPerson(position="დირექტორი", name="გიორგი ბერიძე", personal_id="01001012345"),
        ],
        banks="თიბისი ბანკი",
        insurance="არ სარგებლობს",
        profile_url="https://www.bia.ge/Company/12345",
    )


@pytest.fixture
def make_record() -> Callable[..., BusinessRecord]:
    """Factory for minimal records keyed by company id."""
    def _make(company_id: str, **fields) -> BusinessRecord:
        return BusinessRecord(
            id=company_id,
            name=f"Company {company_id}",
            profile_url=f"https://www.bia.ge/Company/{company_id}",
            **fields,
        )
    return _make


@pytest.fixture
def crawl_config(tmp_path: Path, monkeypatch) -> Config:
    """Config pointing every output at tmp_path, with pacing disabled."""
    for name in ("BIA_EMAIL", "BIA_PASSWORD", "MAX_COMPANIES", "START_PAGE", "CHECKPOINT_EVERY"):
        monkeypatch.delenv(name, raising=False)
    cfg = Config(env_path=tmp_path / "test.env")
    cfg.email = "crawler@example.com"
    cfg.password = "secret"
    cfg.max_companies = 20
    cfg.page_delay_ms = 0
    cfg.detail_delay_ms = 0
    cfg.checkpoint_every = 2
    cfg.output_excel_path = tmp_path / "output" / "bia_companies.xlsx"
    cfg.checkpoint_path = tmp_path / "output" / "checkpoint.json"
    cfg.log_dir = tmp_path / "logs"
    cfg.error_log_dir = tmp_path / "errors"
    return cfg


# ============================================================================
# Playwright Fakes
# ============================================================================

class FakeElement:
    """Stand-in for a Playwright ElementHandle."""

    def __init__(
        self,
        text: str = "",
        attrs: Optional[Dict[str, str]] = None,
        visible: bool = True,
        in_pagination: bool = False,
        children: Optional[Dict[str, List["FakeElement"]]] = None,
        on_click: Optional[Callable[[], None]] = None,
        click_error: Optional[Exception] = None,
    ):
        self.text = text
        self.attrs = attrs or {}
        self.visible = visible
        self.in_pagination = in_pagination
        self.children = children or {}
        self.on_click = on_click
        self.click_error = click_error
        self.clicks = 0
        self.filled: Optional[str] = None
        self.pressed: List[str] = []

    async def text_content(self):
        return self.text

    async def get_attribute(self, name):
        return self.attrs.get(name)

    async def is_visible(self):
        return self.visible

    async def evaluate(self, script):
        return self.in_pagination

    async def query_selector_all(self, selector):
        return list(self.children.get(selector, []))

    async def click(self):
        self.clicks += 1
        if self.click_error is not None:
            raise self.click_error
        if self.on_click is not None:
            self.on_click()

    async def fill(self, value):
        self.filled = value

    async def press(self, key):
        self.pressed.append(key)

    async def scroll_into_view_if_needed(self):
        return None


class FakePage:
    """
    Stand-in for a Playwright Page.

    selectors maps a selector string to the elements it returns; anything
    not listed matches nothing.
    """

    def __init__(
        self,
        url: str = "about:blank",
        selectors: Optional[Dict[str, List[FakeElement]]] = None,
        html: str = "",
        on_evaluate: Optional[Callable[[str], None]] = None,
    ):
        self.url = url
        self.selectors = selectors or {}
        self.html = html
        self.on_evaluate = on_evaluate
        self.goto_calls: List[str] = []
        self.goto_errors: List[Exception] = []
        self.evaluated: List[str] = []
        self.timeouts: List[int] = []
        self.filled: Dict[str, str] = {}

    async def query_selector_all(self, selector):
        return list(self.selectors.get(selector, []))

    async def wait_for_selector(self, selector, timeout=None, state=None):
        elements = self.selectors.get(selector)
        if not elements:
            raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return elements[0]

    async def eval_on_selector_all(self, selector, script):
        return [el.attrs.get("href") for el in self.selectors.get(selector, [])]

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append(url)
        if self.goto_errors:
            raise self.goto_errors.pop(0)
        self.url = url

    async def wait_for_timeout(self, ms):
        self.timeouts.append(ms)

    async def wait_for_load_state(self, state="load", timeout=None):
        return None

    async def content(self):
        return self.html

    async def evaluate(self, script):
        self.evaluated.append(script)
        if self.on_evaluate is not None:
            self.on_evaluate(script)

    async def fill(self, selector, value, force=False):
        self.filled[selector] = value


class FakeListingSite(FakePage):
    """
    A paged result list behind the exact next button.

    Page i (1-based) lives at LISTING_URL?page=i and lists pages[i - 1]
    as relative detail hrefs. The last page has no next button.
    """

    PAGE_RE = re.compile(r"[?&]page=(\d+)")

    def __init__(self, pages: List[List[str]], result_selector: str):
        super().__init__(url=f"{LISTING_URL}?page=1")
        self.pages = pages
        self.result_selector = result_selector
        self.index = 1

    def _show(self, index: int) -> None:
        self.index = index
        self.url = f"{LISTING_URL}?page={index}"

    async def query_selector_all(self, selector):
        if selector == EXACT_NEXT_SELECTOR and self.index < len(self.pages):
            button = FakeElement(
                text="შემდეგი",
                attrs={"class": "form-button-paging button-next"},
                on_click=lambda: self._show(self.index + 1),
            )
            return [button]
        return []

    async def wait_for_selector(self, selector, timeout=None, state=None):
        elements = await self.query_selector_all(selector)
        if not elements:
            raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return elements[0]

    async def eval_on_selector_all(self, selector, script):
        if selector != self.result_selector:
            return []
        return list(self.pages[self.index - 1])

    async def goto(self, url, wait_until=None, timeout=None):
        self.goto_calls.append(url)
        self.url = url
        m = self.PAGE_RE.search(url)
        if m:
            self.index = int(m.group(1))


@pytest.fixture
def fake_page() -> FakePage:
    """Empty fake page: every selector matches nothing."""
    return FakePage(url=f"{LISTING_URL}?page=1")


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
