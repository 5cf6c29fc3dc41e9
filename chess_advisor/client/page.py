"""
Read-only access to the game page's DOM.

The advisor only ever queries elements and reads attributes or text, so the
surface is small enough to be faked in tests.
"""

from typing import Optional, Protocol
from urllib.parse import urlparse

from selenium.webdriver.common.by import By

GAME_FEN_SCRIPT = """
if (window.game && typeof window.game.getFen === 'function') {
    return window.game.getFen();
}
return null;
"""


class PageElement(Protocol):
    def query_selector(self, selector: str) -> Optional["PageElement"]: ...

    def get_attribute(self, name: str) -> Optional[str]: ...

    @property
    def text_content(self) -> str: ...


class Page(Protocol):
    @property
    def url(self) -> str: ...

    def query_selector(self, selector: str) -> Optional[PageElement]: ...

    def read_game_fen(self) -> Optional[str]:
        """Position from the page's global game object. May raise."""
        ...


def url_path(page: Page) -> str:
    return urlparse(page.url or "").path


def url_host(page: Page) -> str:
    return urlparse(page.url or "").hostname or ""


class SeleniumElement:
    def __init__(self, element):
        self._element = element

    def query_selector(self, selector: str) -> Optional["SeleniumElement"]:
        found = self._element.find_elements(By.CSS_SELECTOR, selector)
        return SeleniumElement(found[0]) if found else None

    def get_attribute(self, name: str) -> Optional[str]:
        return self._element.get_attribute(name)

    @property
    def text_content(self) -> str:
        # .text only returns rendered text; textContent matches what the page sees
        return self._element.get_attribute("textContent") or ""


class SeleniumPage:
    """Page backed by a Selenium WebDriver already pointed at the game."""

    def __init__(self, driver):
        self.driver = driver

    @property
    def url(self) -> str:
        return self.driver.current_url

    def query_selector(self, selector: str) -> Optional[SeleniumElement]:
        found = self.driver.find_elements(By.CSS_SELECTOR, selector)
        return SeleniumElement(found[0]) if found else None

    def read_game_fen(self) -> Optional[str]:
        return self.driver.execute_script(GAME_FEN_SCRIPT)
