#!/usr/bin/env python3
"""
Walk a creature through its whole lifecycle against a running service.

The script creates a creature, reads it back, updates its power,
deletes it and finally lists whatever remains in storage, logging the
result of each step.  It stops at the first failed create; later
failures are logged and the walk continues, so every operation is
exercised.

Usage:
    python demo_client.py --base-url http://localhost:4041
"""

import argparse
import logging
import sys

from creature_service.app.core.logging_config import setup_logging
from creature_service_api import CreatureServiceAPI

logger = logging.getLogger("demo_client")


def run_demo(api: CreatureServiceAPI) -> int:
    """Run the create/read/update/delete/list scenario; return an exit code."""
    logger.info("Creating the creature")
    creature, error = api.create_creature(code="Poke01", name="Pikachu", power="Fire", description="Fluffy")
    if error:
        logger.error("Unexpected error: %s", error)
        return 1
    logger.info("Creature has been created: %s", creature)
    creature_id = creature["id"]

    logger.info("Reading the creature")
    creature, error = api.get_creature(creature_id)
    if error:
        logger.error("Error happened while reading: %s", error)
    logger.info("Creature was read: %s", creature)

    creature, error = api.update_creature(
        creature_id, code="Poke01", name="Pikachu", power="Fire Fire Fire", description="Fluffy"
    )
    if error:
        logger.error("Error happened while updating: %s", error)
    logger.info("Creature was updated: %s", creature)

    deleted_id, error = api.delete_creature(creature_id)
    if error:
        logger.error("Error happened while deleting: %s", error)
    logger.info("Creature was deleted: %s", deleted_id)

    creatures, error = api.list_creatures()
    if error:
        logger.error("Error while listing creatures: %s", error)
        return 1
    for item in creatures:
        logger.info("%s", item)
    return 0


def main() -> None:
    ap = argparse.ArgumentParser(description="Exercise every creature service operation once.")
    ap.add_argument("--base-url", default="http://localhost:4041", help="Service URL (default: %(default)s)")
    ap.add_argument("--timeout", type=float, default=15, help="Request timeout in seconds")
    args = ap.parse_args()

    setup_logging("INFO")
    api = CreatureServiceAPI(base_url=args.base_url, timeout=args.timeout)
    sys.exit(run_demo(api))


if __name__ == "__main__":
    main()
