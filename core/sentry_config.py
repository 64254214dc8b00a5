import logging

import sentry_sdk

from middleware.error_handler import register_alert_hook

logger = logging.getLogger(__name__)


async def _capture_with_sentry(request, exc):
    sentry_sdk.capture_exception(exc)


def init_sentry(dsn, environment="production"):
    """
    Initialize Sentry when a DSN is configured and route 5xx errors to it.
    """
    if not dsn:
        logger.debug("Sentry disabled: no DSN configured")
        return False

    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.5,
        environment=environment,
    )
    register_alert_hook(_capture_with_sentry)
    logger.info("Sentry initialized", extra={"environment": environment})
    return True
