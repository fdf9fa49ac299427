"""
Login handshake for the registry portal.
"""

from playwright.async_api import Page

from src.core.config import Config
from src.core.error_logger import get_error_logger
from src.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from src.core.logging import get_logger
from src.crawler.navigation import goto_with_retry

logger = get_logger(__name__)

LOGIN_FORM = "form#UserLoginForm"
EMAIL_INPUT = f'{LOGIN_FORM} input[name="Email"]'
PASSWORD_INPUT = f'{LOGIN_FORM} input[name="Password"]'
SUBMIT_LOGIN_JS = "() => { const f = document.getElementById('UserLoginForm'); if (f) f.submit(); }"


async def login(page: Page, cfg: Config) -> bool:
    """
    Sign in with the configured credentials.

    The form is submitted through JavaScript because the visible button is
    not reliably clickable. A login that lands back on a Login URL is only
    warned about; the crawl carries on with whatever session it has.

    Returns:
        True if the page left the login URL
    """
    logger.info(f"Navigating to login page: {cfg.login_url}")
    await goto_with_retry(
        page, cfg.login_url, timeout_ms=cfg.nav_timeout_ms, max_retries=cfg.max_retries
    )

    await page.fill(EMAIL_INPUT, cfg.email, force=True)
    await page.fill(PASSWORD_INPUT, cfg.password, force=True)

    logger.info("Submitting #UserLoginForm via JS")
    await page.evaluate(SUBMIT_LOGIN_JS)
    await page.wait_for_load_state("networkidle")

    current = page.url
    if "Login" in current:
        logger.warning(f"Still on login page after submitting credentials. Current URL: {current}")
        get_error_logger().log_error(
            component=ErrorComponent.AUTH,
            stage=ErrorStage.LOGIN,
            error_type=ErrorType.NAVIGATION_ERROR,
            message="Still on login page after submitting credentials",
            url=current,
            severity=ErrorSeverity.WARNING,
        )
        return False
    logger.info(f"Login appears successful. Current URL: {current}")
    return True
