import argparse
import logging
import os
import sys
import time

import requests

from lawhelp.core.constants import (
    HEALTH_CHECK_MAX_RETRIES, HEALTH_CHECK_RETRY_DELAY, HEALTH_CHECK_TIMEOUT, HEALTH_CHECK_URL,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


def check_health(
    url: str,
    max_retries: int = HEALTH_CHECK_MAX_RETRIES,
    retry_delay: float = HEALTH_CHECK_RETRY_DELAY,
    timeout: float = HEALTH_CHECK_TIMEOUT,
    sleep=time.sleep,
) -> bool:
    """
    Poll the health endpoint until it answers 200.

    Returns:
        True on the first 200 response, False once every attempt failed.
    """
    for attempt in range(1, max_retries + 1):
        try:
            response = requests.get(url, timeout=timeout)
            if response.status_code == 200:
                logger.info(f"Health check passed: {response.text[:200]}")
                return True
            logger.warning(f"Attempt {attempt}/{max_retries}: status {response.status_code}")
        except requests.RequestException as e:
            logger.warning(f"Attempt {attempt}/{max_retries}: {e}")

        if attempt < max_retries:
            sleep(retry_delay)

    logger.error(f"Health check failed after {max_retries} attempts")
    return False


def main() -> int:
    parser = argparse.ArgumentParser(description="Check that a LawHelp server is up.")
    parser.add_argument(
        '--url',
        type=str,
        default=os.getenv("HEALTH_CHECK_URL", HEALTH_CHECK_URL),
        help='Health endpoint to poll.'
    )
    args = parser.parse_args()
    return 0 if check_health(args.url) else 1


if __name__ == "__main__":
    sys.exit(main())
