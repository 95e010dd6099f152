"""
Login Automation - Signs in to the reservation site when the page asks for it
"""
from typing import Optional
from loguru import logger

from ..app.config import settings as default_settings, Settings, Selectors
from .browser import BrowserSession
from .errors import TransientError


class LoginAutomation:
    """Handles the reservation site login form"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    async def login(self, session: BrowserSession, email: str, password: str):
        """Open the login form if needed, enter credentials and submit.

        Raises TransientError if the form cannot be completed.
        """
        login_link = await session.query_one(Selectors.LOGIN_AFFORDANCE)
        if login_link:
            logger.info("Opening login form...")
            await session.click(login_link)
            await session.settle(self.settings.login_click_settle_ms)

        email_input = await session.query_one(Selectors.EMAIL_INPUT)
        if not email_input:
            raise TransientError("Login form not found (email field missing)")
        await session.fill(email_input, email)

        password_input = await session.query_one(Selectors.PASSWORD_INPUT)
        if not password_input:
            raise TransientError("Login form not found (password field missing)")
        await session.fill(password_input, password)

        submit = await session.query_one(Selectors.LOGIN_SUBMIT)
        if not submit:
            raise TransientError("Sign In button not found")

        logger.info("Submitting credentials...")
        await session.click(submit)
        await session.settle(self.settings.login_submit_settle_ms)
        await session.wait_ready()
