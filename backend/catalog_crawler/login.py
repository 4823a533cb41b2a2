"""
Manual login pre-step.

Opens the login page in the shared session and waits for the operator to
confirm that login (and any 2FA) is complete. The confirmation source is
injected; the default reads one line from stdin without blocking the
event loop.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

LOGIN_PROMPT = 'Complete login and any 2FA in the browser, then press Enter here to continue...\n'


async def wait_for_enter(prompt: str = LOGIN_PROMPT):
    """Block (in a worker thread) until the operator presses Enter."""
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, input, prompt)


class LoginGate:
    """
    Await external confirmation after loading a login page.

    Args:
        login_url: Page where the operator signs in
        confirm: Awaitable factory that returns once login is confirmed
    """

    def __init__(
        self,
        login_url: str,
        confirm: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.login_url = login_url
        self.confirm = confirm or wait_for_enter

    async def __call__(self, page):
        logger.info(f"Opening login page {self.login_url}")
        await page.goto(self.login_url, wait_until='domcontentloaded')
        await self.confirm()
        logger.info("Login confirmed, continuing")
