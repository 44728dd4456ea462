"""Browser session lifecycle for the action library."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from .config import RunnerSettings
from .pages import CartPage, CheckoutPage, InventoryPage, LoginPage, MenuPage
from .timestamp import get_formatted_timestamp

VIDEO_SIZE = {"width": 1280, "height": 720}


@dataclass
class SessionPages:
    login: LoginPage
    inventory: InventoryPage
    cart: CartPage
    checkout: CheckoutPage
    menu: MenuPage

    @classmethod
    def for_page(cls, page: Page) -> "SessionPages":
        return cls(
            login=LoginPage(page),
            inventory=InventoryPage(page),
            cart=CartPage(page),
            checkout=CheckoutPage(page),
            menu=MenuPage(page),
        )


class BrowserSession:
    """Owns one Playwright browser, context and page.

    ``start`` is idempotent and ``close`` tears everything down so the next
    ``start`` begins from a fresh browser. Videos can only be written once the
    page is closed, so a failure only reserves the file name and ``close``
    saves it.
    """

    def __init__(self, settings: Optional[RunnerSettings] = None) -> None:
        self.settings = settings or RunnerSettings()
        self.logger = logging.getLogger("keyword_runner.session")
        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self.pages: Optional[SessionPages] = None
        self._pending_video: Optional[Path] = None

    @property
    def is_started(self) -> bool:
        return self.page is not None

    async def start(self) -> SessionPages:
        if self.pages is not None:
            return self.pages

        browser_settings = self.settings.browser
        self._playwright = await async_playwright().start()
        self.browser = await self._playwright.chromium.launch(
            headless=browser_settings.headless,
            slow_mo=browser_settings.slow_mo_ms,
        )

        context_options = {}
        if self.settings.videos.enabled:
            self.settings.videos.path.mkdir(parents=True, exist_ok=True)
            context_options["record_video_dir"] = str(self.settings.videos.path)
            context_options["record_video_size"] = VIDEO_SIZE
        self.context = await self.browser.new_context(**context_options)
        if browser_settings.trace_path:
            await self.context.tracing.start(screenshots=True, snapshots=True)

        self.page = await self.context.new_page()
        self.pages = SessionPages.for_page(self.page)
        self.logger.info("Browser session started (headless=%s)", browser_settings.headless)
        return self.pages

    async def page_title(self) -> Optional[str]:
        if self.page is None:
            return None
        try:
            return await self.page.title()
        except Exception as exc:  # pragma: no cover
            self.logger.debug("Failed to read page title: %s", exc)
            return None

    async def capture_screenshot(self, timestamp: Optional[str] = None) -> Optional[str]:
        if self.page is None or not self.settings.screenshots.enabled:
            return None
        directory = self.settings.screenshots.path
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"error-step-{timestamp or get_formatted_timestamp()}.png"
        try:
            await self.page.screenshot(path=str(path))
        except Exception as exc:  # pragma: no cover
            self.logger.error("Screenshot capture failed: %s", exc)
            return None
        self.logger.info("Screenshot saved to %s", path)
        return str(path)

    def reserve_failure_video(self, timestamp: Optional[str] = None) -> Optional[str]:
        videos = self.settings.videos
        if self.page is None or not videos.enabled or videos.record_on != "failed":
            return None
        if self._pending_video is None:
            self._pending_video = videos.path / f"error-test-{timestamp or get_formatted_timestamp()}.webm"
        return str(self._pending_video)

    async def close(self) -> None:
        """Tear the session down stage by stage.

        A failing stage is logged and the remaining stages still run; the
        session always ends up reset, so the next ``start`` launches anew.
        """
        video_target = self._video_target()
        video = self.page.video if self.page is not None else None

        try:
            if self.page is not None:
                await self._teardown_stage("page close", self.page.close())
            if video is not None and video_target is not None:
                if await self._teardown_stage("video save", video.save_as(str(video_target))):
                    self.logger.info("Video saved to %s", video_target)
            if self.context is not None:
                if self.settings.browser.trace_path:
                    trace_path = str(self.settings.browser.trace_path)
                    await self._teardown_stage("trace save", self.context.tracing.stop(path=trace_path))
                await self._teardown_stage("context close", self.context.close())
            if self.browser is not None:
                await self._teardown_stage("browser close", self.browser.close())
            if self._playwright is not None:
                await self._teardown_stage("playwright stop", self._playwright.stop())
        finally:
            self._playwright = None
            self.browser = None
            self.context = None
            self.page = None
            self.pages = None
            self._pending_video = None

    async def _teardown_stage(self, stage: str, awaitable: Awaitable) -> bool:
        try:
            await awaitable
        except Exception as exc:
            self.logger.error("Session teardown failed at %s: %s", stage, exc)
            return False
        return True

    def _video_target(self) -> Optional[Path]:
        videos = self.settings.videos
        if not videos.enabled or self.page is None:
            return None
        if videos.record_on == "all":
            return videos.path / f"test-{get_formatted_timestamp()}.webm"
        return self._pending_video

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, *_exc_info) -> None:
        await self.close()
