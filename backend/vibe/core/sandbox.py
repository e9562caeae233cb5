"""Thin async adapter over the E2B sandbox SDK.

None of these calls retry; a failure propagates to the caller, and the job
runner's retry policy decides what happens next.
"""

import logging

from e2b_code_interpreter import AsyncSandbox

from vibe.core.config import settings

logger = logging.getLogger(__name__)


async def create_sandbox(template: str | None = None) -> AsyncSandbox:
    """Provision a fresh sandbox from *template* (defaults to the configured one)."""
    template = template or settings.SANDBOX_TEMPLATE
    sandbox = await AsyncSandbox.create(template=template, api_key=settings.E2B_API_KEY or None)
    # Default lifetime is too short for a full agent run
    await sandbox.set_timeout(settings.SANDBOX_TIMEOUT_SECONDS)
    logger.info("Sandbox %s created from template %s", sandbox.sandbox_id, template)
    return sandbox


async def get_sandbox(sandbox_id: str) -> AsyncSandbox:
    """Reconnect to a running sandbox by id."""
    return await AsyncSandbox.connect(sandbox_id, api_key=settings.E2B_API_KEY or None)


def preview_url(sandbox: AsyncSandbox, port: int | None = None) -> str:
    host = sandbox.get_host(port or settings.SANDBOX_PREVIEW_PORT)
    return f"https://{host}"
