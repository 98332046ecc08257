import asyncio
from unittest.mock import Mock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.portal.credential_store import CredentialStore
from src.portal.errors import AutomationError, EmptyCredentialError
from src.portal.pages.login import SESSION_INFO_PATH, LoginFlow, LoginStep, SessionAcquirer
from src.portal.transport import PortalClient

SESSION_INFO_URL = f"https://tos.test{SESSION_INFO_PATH}"
CAPTURED = {"cookie": "ChurchSSO=abc; TOS=1", "x-xsrf-token": "tok", "accept": "application/json"}


class FakeRequest:
    def __init__(self, method, url, headers):
        self.method = method
        self.url = url
        self._headers = headers

    async def all_headers(self):
        return dict(self._headers)


class FakeRoute:
    def __init__(self, request):
        self.request = request
        self.continued = False

    async def continue_(self):
        self.continued = True


class FakeKeyboard:
    def __init__(self):
        self.typed = []

    async def type(self, text):
        self.typed.append(text)


class FakeLocator:
    def __init__(self, page, selector, index=None):
        self.page = page
        self.selector = selector
        self.index = index

    @property
    def first(self):
        return FakeLocator(self.page, self.selector, 0)

    def nth(self, index):
        return FakeLocator(self.page, self.selector, index)

    async def wait_for(self, state="visible", timeout=None):
        if self.page.counts.get(self.selector, 1) == 0:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.selector}")

    async def count(self):
        return self.page.counts.get(self.selector, 1)

    async def click(self):
        self.page.clicks.append((self.selector, self.index))
        if self.selector == self.page.item_selector and self.index == 2:
            self.page.send_session_info()


class FakePage:
    """Just enough of playwright's Page for LoginFlow.

    Clicking the third schedule item delivers a GET and then the POST to
    getSessionInfo through any armed route handler, as a separate task.
    """

    def __init__(self, config, headers=CAPTURED, counts=None):
        self.item_selector = config.schedule_item_selector
        self.headers = headers
        self.counts = {self.item_selector: 4, **(counts or {})}
        self.keyboard = FakeKeyboard()
        self.visited = []
        self.clicks = []
        self.pauses = []
        self.routes = []
        self.delivered = []
        self._tasks = []

    async def goto(self, url, **kwargs):
        self.visited.append(url)

    def locator(self, selector):
        return FakeLocator(self, selector)

    async def wait_for_timeout(self, ms):
        self.pauses.append(ms)

    async def route(self, pattern, handler):
        self.routes.append((pattern, handler))

    def send_session_info(self):
        async def deliver():
            await asyncio.sleep(0)
            for _, handler in self.routes:
                for method in ("GET", "POST"):
                    route = FakeRoute(FakeRequest(method, SESSION_INFO_URL, self.headers))
                    await handler(route)
                    self.delivered.append(route)

        self._tasks.append(asyncio.get_running_loop().create_task(deliver()))


def _run(page, config, flow=None):
    flow = flow or LoginFlow(page, config)
    return flow, asyncio.run(flow.run("operator@example.com", "hunter2"))


def test_login_captures_session_info_headers(config):
    page = FakePage(config)

    flow, credential = _run(page, config)

    assert credential.headers == CAPTURED
    assert credential.xsrf_token == "tok"
    assert flow.step is LoginStep.DONE
    assert page.visited == [config.appointment_url, config.portal_url]
    assert page.keyboard.typed == ["operator@example.com", "hunter2"]


def test_username_field_is_clicked_three_times(config):
    page = FakePage(config)

    _run(page, config)

    username_clicks = [c for c in page.clicks if c[0] == config.username_selector]
    assert len(username_clicks) == 3


def test_settle_pauses_surround_final_submit(config):
    page = FakePage(config)

    _run(page, config)

    assert page.pauses == [config.credential_settle_ms, config.login_settle_ms]


def test_interception_ignores_other_methods_and_continues_all(config):
    page = FakePage(config)

    _run(page, config)

    (pattern, _handler), = page.routes
    assert pattern.endswith(SESSION_INFO_PATH)
    assert [r.request.method for r in page.delivered] == ["GET", "POST"]
    assert all(r.continued for r in page.delivered)


class YieldingRequest(FakeRequest):
    async def all_headers(self):
        await asyncio.sleep(0)
        return await super().all_headers()


class BrokenRequest(FakeRequest):
    async def all_headers(self):
        raise RuntimeError("target closed")


def test_concurrent_posts_are_all_continued(config):
    flow = LoginFlow(FakePage(config), config)
    first = FakeRoute(YieldingRequest("POST", SESSION_INFO_URL, {"cookie": "first"}))
    second = FakeRoute(YieldingRequest("POST", SESSION_INFO_URL, {"cookie": "second"}))

    async def deliver_both():
        flow._captured = asyncio.get_running_loop().create_future()
        await asyncio.gather(
            flow._intercept_session_info(first),
            flow._intercept_session_info(second),
        )
        return flow._captured.result()

    captured = asyncio.run(deliver_both())

    assert captured == {"cookie": "first"}
    assert first.continued and second.continued


def test_route_is_continued_when_header_read_fails(config):
    flow = LoginFlow(FakePage(config), config)
    route = FakeRoute(BrokenRequest("POST", SESSION_INFO_URL, {}))

    async def deliver():
        flow._captured = asyncio.get_running_loop().create_future()
        await flow._intercept_session_info(route)

    with pytest.raises(RuntimeError):
        asyncio.run(deliver())

    assert route.continued


def test_endowment_item_is_the_one_clicked(config):
    page = FakePage(config)

    _run(page, config)

    assert (config.schedule_item_selector, 2) in page.clicks


@pytest.mark.parametrize("count", [3, 5])
def test_unexpected_schedule_item_count_fails_fast(config, count):
    page = FakePage(config, counts={config.schedule_item_selector: count})

    with pytest.raises(AutomationError, match=f"found {count}"):
        _run(page, config)

    assert page.routes == []


def test_missing_element_stops_at_current_step(config):
    page = FakePage(config, counts={config.password_selector: 0})
    flow = LoginFlow(page, config)

    with pytest.raises(AutomationError, match="password"):
        _run(page, config, flow)

    assert flow.step is LoginStep.USERNAME_SUBMITTED
    assert page.visited == [config.appointment_url]


@pytest.mark.parametrize("headers", [{}, {"cookie": ""}, {"accept": "*/*"}])
def test_empty_capture_is_rejected(config, headers):
    page = FakePage(config, headers=headers)
    flow = LoginFlow(page, config)

    with pytest.raises(EmptyCredentialError):
        _run(page, config, flow)

    assert flow.step is LoginStep.CREDENTIAL_CAPTURED


class FakeBrowserAcquirer(SessionAcquirer):
    def __init__(self, config, page):
        super().__init__(config)
        self.page = page

    async def acquire_async(self, username, password):
        return await LoginFlow(self.page, self.config).run(username, password)


def test_empty_capture_leaves_no_cache_file(config):
    acquirer = FakeBrowserAcquirer(config, FakePage(config, headers={"cookie": ""}))
    store = CredentialStore(config, Mock(spec=PortalClient), acquirer)

    with pytest.raises(EmptyCredentialError):
        store.load_or_acquire()

    assert not store.cache_file.exists()


def test_acquired_credential_is_cached(config):
    acquirer = FakeBrowserAcquirer(config, FakePage(config))
    store = CredentialStore(config, Mock(spec=PortalClient), acquirer)

    credential = store.load_or_acquire()

    assert store.load() == credential
