"""LoginFlow - signs in through the browser and captures the API session headers.

The portal has no documented API. The only way to get working API headers is to
sign in like a person would and copy them off the XHR the portal's own UI sends
when a schedule category is opened.

Flow (confirmed against the live site):
  appointment page -> redirect to Okta sign-in
    input#okta-signin-username -> input#okta-signin-submit
    input[type=password]       -> input[type=submit]
  portal home (tos.churchofjesuschrist.org)
    button#select-this-temple-button
    span.schedule-item-text x4 (baptism, initiatory, endowment, sealing)
      clicking endowment POSTs /api/templeSchedule/getSessionInfo

Steps run strictly in order. A missing element ends the run with
AutomationError; nothing is retried except the username focus workaround.
"""

import asyncio
from enum import Enum

from playwright.async_api import (
    Page,
    Route,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from src.portal.config import PortalConfig
from src.portal.errors import AutomationError, EmptyCredentialError
from src.portal.logging import get_logger
from src.portal.models import Credential

log = get_logger(__name__)

SESSION_INFO_PATH = "/api/templeSchedule/getSessionInfo"
EXPECTED_SCHEDULE_ITEMS = 4
ENDOWMENT_ITEM_INDEX = 2
USERNAME_FOCUS_CLICKS = 3


class LoginStep(str, Enum):
    START = "start"
    PAGE_LOADED = "page_loaded"
    USERNAME_FOCUSED = "username_focused"
    USERNAME_TYPED = "username_typed"
    USERNAME_SUBMITTED = "username_submitted"
    PASSWORD_FOCUSED = "password_focused"
    PASSWORD_TYPED = "password_typed"
    POST_LOGIN_SUBMITTED = "post_login_submitted"
    PORTAL_LOADED = "portal_loaded"
    ITEM_SELECTED = "item_selected"
    CREDENTIAL_CAPTURED = "credential_captured"
    DONE = "done"


class LoginFlow:
    """Sign-in page object driving one acquisition on an open Page.

    Each _to_* method performs exactly one transition and advances self.step.
    """

    def __init__(self, page: Page, config: PortalConfig) -> None:
        self.page = page
        self.config = config
        self.step = LoginStep.START
        self._captured: asyncio.Future[dict[str, str]] | None = None

    def _advance(self, step: LoginStep) -> None:
        self.step = step
        log.debug("login_step", step=step.value)

    async def _wait_for(self, selector: str):
        """Wait (bounded) for an element to become visible and return its locator."""
        locator = self.page.locator(selector).first
        try:
            await locator.wait_for(state="visible", timeout=self.config.element_timeout_ms)
        except PlaywrightTimeoutError:
            raise AutomationError(
                f"Login stalled after {self.step.value}: {selector!r} not visible "
                f"within {self.config.element_timeout_ms} ms"
            )
        return locator

    async def _to_page_loaded(self) -> None:
        try:
            await self.page.goto(
                self.config.appointment_url,
                wait_until="domcontentloaded",
                timeout=self.config.element_timeout_ms,
            )
        except PlaywrightTimeoutError:
            raise AutomationError(
                f"Sign-in page failed to load: {self.config.appointment_url}"
            )
        self._advance(LoginStep.PAGE_LOADED)

    async def _to_username_focused(self) -> None:
        # A single click does not reliably focus the field on slow connections
        for _ in range(USERNAME_FOCUS_CLICKS):
            field = await self._wait_for(self.config.username_selector)
            await field.click()
        self._advance(LoginStep.USERNAME_FOCUSED)

    async def _to_username_typed(self, username: str) -> None:
        await self.page.keyboard.type(username)
        self._advance(LoginStep.USERNAME_TYPED)

    async def _to_username_submitted(self) -> None:
        button = await self._wait_for(self.config.username_submit_selector)
        await button.click()
        self._advance(LoginStep.USERNAME_SUBMITTED)

    async def _to_password_focused(self) -> None:
        field = await self._wait_for(self.config.password_selector)
        await field.click()
        self._advance(LoginStep.PASSWORD_FOCUSED)

    async def _to_password_typed(self, password: str) -> None:
        await self.page.keyboard.type(password)
        self._advance(LoginStep.PASSWORD_TYPED)

    async def _to_post_login_submitted(self) -> None:
        # Submitting immediately after typing sometimes crashes the sign-in widget
        await self.page.wait_for_timeout(self.config.credential_settle_ms)
        button = await self._wait_for(self.config.password_submit_selector)
        await button.click()
        # Okta bounces through several redirects with nothing to wait on
        await self.page.wait_for_timeout(self.config.login_settle_ms)
        self._advance(LoginStep.POST_LOGIN_SUBMITTED)

    async def _to_portal_loaded(self) -> None:
        try:
            await self.page.goto(
                self.config.portal_url,
                wait_until="domcontentloaded",
                timeout=self.config.element_timeout_ms,
            )
        except PlaywrightTimeoutError:
            raise AutomationError(f"Portal failed to load: {self.config.portal_url}")
        button = await self._wait_for(self.config.select_temple_selector)
        await button.click()
        self._advance(LoginStep.PORTAL_LOADED)

    async def _intercept_session_info(self, route: Route) -> None:
        request = route.request
        try:
            if request.method == "POST" and self._captured is not None and not self._captured.done():
                headers = await request.all_headers()
                # Another POST may have resolved it while headers were read
                if not self._captured.done():
                    self._captured.set_result(headers)
                    log.info("session_info_intercepted", header_names=sorted(headers))
        finally:
            await route.continue_()

    async def _to_item_selected(self) -> None:
        await self._wait_for(self.config.schedule_item_selector)
        items = self.page.locator(self.config.schedule_item_selector)
        count = await items.count()
        if count != EXPECTED_SCHEDULE_ITEMS:
            raise AutomationError(
                f"Expected {EXPECTED_SCHEDULE_ITEMS} schedule items on the portal, found {count}"
            )

        # Fresh per acquisition; route callbacks resolve it from the driver's dispatch
        self._captured = asyncio.get_running_loop().create_future()
        await self.page.route(f"**{SESSION_INFO_PATH}", self._intercept_session_info)

        await items.nth(ENDOWMENT_ITEM_INDEX).click()
        self._advance(LoginStep.ITEM_SELECTED)

    async def _to_credential_captured(self) -> dict[str, str]:
        # No timeout: if the portal stops sending getSessionInfo this waits forever
        headers = await self._captured
        self._advance(LoginStep.CREDENTIAL_CAPTURED)
        return headers

    async def run(self, username: str, password: str) -> Credential:
        """Drive the full sign-in sequence and return the captured credential.

        Raises:
            AutomationError: If any element is missing or the portal layout differs.
            EmptyCredentialError: If the intercepted request had no session cookie.
        """
        log.info("login_started", url=self.config.appointment_url)

        await self._to_page_loaded()
        await self._to_username_focused()
        await self._to_username_typed(username)
        await self._to_username_submitted()
        await self._to_password_focused()
        await self._to_password_typed(password)
        await self._to_post_login_submitted()
        await self._to_portal_loaded()
        await self._to_item_selected()
        headers = await self._to_credential_captured()

        credential = Credential(headers=headers)
        if not headers or credential.is_empty:
            log.error("login_failed", reason="empty_credential", header_count=len(headers))
            raise EmptyCredentialError(
                "Intercepted getSessionInfo request carried no session cookie"
            )

        self._advance(LoginStep.DONE)
        log.info("login_succeeded", header_count=len(headers))
        return credential


class SessionAcquirer:
    """Launches Chromium, runs LoginFlow, and closes the browser again."""

    def __init__(self, config: PortalConfig) -> None:
        self.config = config

    async def acquire_async(self, username: str, password: str) -> Credential:
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(headless=self.config.headless)
            try:
                context = await browser.new_context()
                page = await context.new_page()
                page.set_default_timeout(self.config.element_timeout_ms)
                return await LoginFlow(page, self.config).run(username, password)
            finally:
                await browser.close()

    def acquire(self, username: str, password: str) -> Credential:
        """Sign in with a fresh headless browser and return the captured credential."""
        return asyncio.run(self.acquire_async(username, password))
