"""
Browser tests for the editor page's poll loop.

A real uvicorn server runs in a thread and Chromium drives the page; jobs are
moved along through job_storage the way the editing backend would. Polling is
observed through the status requests the page sends.
"""
import asyncio
import re
import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace

import pytest
import uvicorn

pytest.importorskip("playwright.sync_api")
from playwright.sync_api import Error as PlaywrightError, expect, sync_playwright

from config import DEMO_USER_EMAIL, DEMO_USER_ID, SESSION_COOKIE
from routes import page_routes
from services.job_storage import job_storage
from shared_dependencies import create_access_token

POLL_INTERVAL = 0.2
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


class ThreadedServer(uvicorn.Server):
    def install_signal_handlers(self):
        pass


def run_async(coro):
    """Run a job_storage coroutine away from the Playwright event loop"""
    with ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


@pytest.fixture(scope="module")
def live_server():
    from app import app

    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    server = ThreadedServer(uvicorn.Config(app, host="127.0.0.1", port=port, log_level="warning"))
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + 10
    while not server.started:
        if time.monotonic() > deadline:
            pytest.fail("uvicorn did not start")
        time.sleep(0.05)

    yield f"http://127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=5)


@pytest.fixture(scope="module")
def browser():
    with sync_playwright() as playwright:
        try:
            chromium = playwright.chromium.launch(args=["--no-sandbox"])
        except PlaywrightError as launch_error:
            pytest.skip(f"Chromium is not installed: {launch_error}")
        yield chromium
        chromium.close()


@pytest.fixture
def poll_settings(monkeypatch):
    monkeypatch.setattr(page_routes, "POLL_INTERVAL_SECONDS", POLL_INTERVAL)
    monkeypatch.setattr(page_routes, "POLL_TIMEOUT_SECONDS", 30)
    return monkeypatch


@pytest.fixture
def editor(browser, live_server, poll_settings):
    """Signed-in demo session with a record of every status URL the page requests"""
    context = browser.new_context()
    token = create_access_token({"sub": DEMO_USER_ID, "email": DEMO_USER_EMAIL})
    context.add_cookies([{"name": SESSION_COOKIE, "value": token, "url": live_server}])
    page = context.new_page()

    status_requests = []

    def record(request):
        if request.url.endswith("/status"):
            status_requests.append(request.url)

    page.on("request", record)

    yield SimpleNamespace(page=page, status_requests=status_requests, base_url=live_server)
    context.close()


def open_editor(editor, prompt="Remove the coffee cup from the table"):
    page = editor.page
    page.goto(editor.base_url + "/")
    page.set_input_files("#video-file", files=[
        {"name": "clip.mp4", "mimeType": "video/mp4", "buffer": VIDEO_BYTES}
    ])
    expect(page.locator("#upload-status")).to_have_text("Uploaded clip.mp4")
    page.fill("#prompt", prompt)


def start_job(editor, previous_job_id: str = "") -> str:
    page = editor.page
    button = page.locator("#start-edit")
    expect(button).to_be_enabled()
    button.click()

    job_id_label = page.locator("#job-id")
    expect(job_id_label).to_have_text(re.compile(r"^mock-\d+$"))
    if previous_job_id:
        expect(job_id_label).not_to_have_text(previous_job_id)
    return job_id_label.inner_text()


def wait_for_polls(editor, count: int = 1, timeout: float = 5.0):
    deadline = time.monotonic() + timeout
    while len(editor.status_requests) < count:
        assert time.monotonic() < deadline, "editor never polled the job status"
        editor.page.wait_for_timeout(50)


def assert_polling_stopped(editor):
    seen = len(editor.status_requests)
    editor.page.wait_for_timeout(POLL_INTERVAL * 1000 * 5)
    assert len(editor.status_requests) == seen


def test_completed_job_shows_download_and_stops_polling(editor):
    open_editor(editor)
    job_id = start_job(editor)
    page = editor.page

    expect(page.locator("#start-edit")).to_have_text("⏳ Editing Video...")
    expect(page.locator("#processing-panel")).to_be_visible()
    wait_for_polls(editor)

    run_async(job_storage.complete_job(job_id, "/uploads/result.mp4"))

    expect(page.locator("#completed-panel")).to_be_visible()
    expect(page.locator("#start-edit")).to_have_text("✅ Download Ready!")
    expect(page.locator("#download-link")).to_have_attribute("href", "/uploads/result.mp4")
    expect(page.locator("#processing-panel")).to_be_hidden()
    assert all(url.endswith(f"/api/jobs/{job_id}/status") for url in editor.status_requests)
    assert_polling_stopped(editor)


def test_failed_job_shows_error_and_stops_polling(editor):
    open_editor(editor)
    job_id = start_job(editor)
    wait_for_polls(editor)

    run_async(job_storage.fail_job(job_id, "Render worker crashed"))

    page = editor.page
    expect(page.locator("#failed-message")).to_have_text("Render worker crashed")
    expect(page.locator("#start-edit")).to_have_text("⚠ Try Again")
    expect(page.locator("#completed-panel")).to_be_hidden()
    assert_polling_stopped(editor)


def test_polling_gives_up_after_timeout(editor, poll_settings):
    poll_settings.setattr(page_routes, "POLL_TIMEOUT_SECONDS", 1)
    open_editor(editor)
    start_job(editor)

    page = editor.page
    expect(page.locator("#failed-message")).to_have_text("Timed out waiting for the result.")
    expect(page.locator("#start-edit")).to_have_text("⚠ Try Again")
    assert_polling_stopped(editor)


def test_pagehide_stops_polling(editor):
    open_editor(editor)
    start_job(editor)
    wait_for_polls(editor)

    editor.page.evaluate("window.dispatchEvent(new Event('pagehide'))")

    assert_polling_stopped(editor)
    expect(editor.page.locator("#start-edit")).to_have_text("⏳ Editing Video...")


def test_new_job_only_polls_its_own_status(editor):
    open_editor(editor)
    first_job = start_job(editor)
    wait_for_polls(editor)
    run_async(job_storage.fail_job(first_job, "Render worker crashed"))
    expect(editor.page.locator("#start-edit")).to_have_text("⚠ Try Again")

    second_job = start_job(editor, previous_job_id=first_job)
    polls_before_second_job = len(editor.status_requests)
    wait_for_polls(editor, count=polls_before_second_job + 3)

    later_polls = editor.status_requests[polls_before_second_job:]
    assert all(url.endswith(f"/api/jobs/{second_job}/status") for url in later_polls)


def test_job_owned_by_another_account_is_reported(editor):
    open_editor(editor)
    job_id = start_job(editor)
    run_async(job_storage.update_job(job_id, {"user_id": "someone-else"}))

    page = editor.page
    expect(page.locator("#failed-message")).to_have_text("This job belongs to another account. Start a new edit.")
    assert_polling_stopped(editor)


def test_whitespace_prompt_enables_start(editor):
    open_editor(editor, prompt="   ")

    expect(editor.page.locator("#start-edit")).to_be_enabled()
