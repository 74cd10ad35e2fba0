from __future__ import annotations

from urllib.parse import quote

from selenium import webdriver
from selenium.webdriver import ChromeOptions, FirefoxOptions

from locator_healing.core.dom_query import SeleniumDomQuery


class BrowserSession:
    """Owns one Selenium Manager driver and binds DOM queries to it."""

    def __init__(
        self,
        browser_name: str = "chrome",
        headless: bool = True,
        page_load_timeout_seconds: float = 30.0,
        window_size: tuple[int, int] = (1440, 1200),
    ) -> None:
        self.browser_name = browser_name.lower()
        self.headless = headless
        self.page_load_timeout_seconds = page_load_timeout_seconds
        self.window_size = window_size
        self.driver = None

    def start(self):
        if self.driver is not None:
            return self.driver
        width, height = self.window_size
        if self.browser_name == "chrome":
            options = ChromeOptions()
            if self.headless:
                options.add_argument("--headless=new")
            options.add_argument(f"--window-size={width},{height}")
            driver = webdriver.Chrome(options=options)
        elif self.browser_name == "firefox":
            options = FirefoxOptions()
            if self.headless:
                options.add_argument("-headless")
            driver = webdriver.Firefox(options=options)
            driver.set_window_size(width, height)
        else:
            raise ValueError(f"Unsupported browser: {self.browser_name}")
        driver.set_page_load_timeout(self.page_load_timeout_seconds)
        driver.implicitly_wait(0)
        self.driver = driver
        return driver

    def stop(self) -> None:
        if self.driver is None:
            return
        try:
            self.driver.quit()
        finally:
            self.driver = None

    def open(self, url: str) -> None:
        self.start().get(url)

    def load_html(self, html: str) -> None:
        self.open("data:text/html;charset=utf-8," + quote(html))

    def dom_query(self) -> SeleniumDomQuery:
        return SeleniumDomQuery(self.start())

    def __enter__(self) -> "BrowserSession":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
