import argparse
import logging

from lawhelp.core.config import get_config
from lawhelp.seed import SEED_USERS, seed_database
from lawhelp.storage import initialize_storage

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the configured LawHelp database with default accounts.")
    parser.add_argument(
        '--list',
        action='store_true',
        help='Only print the default credentials.'
    )
    args = parser.parse_args()

    if not args.list:
        storage = initialize_storage(get_config())
        if storage.backend_name == "memory":
            logger.warning("No database reachable - seeding in-memory storage has no lasting effect")
        seed_database(storage)

    logger.info("Default login credentials:")
    for entry in SEED_USERS:
        logger.info(f"  {entry['role']:<7} {entry['email']} / {entry['password']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
