"""
Generate the static filter vocabulary.

Run this job after updating the reference store so the card browser has
filter options before the store finishes loading.
"""

import asyncio
import logging

from preparea.config import settings
from preparea.db.database import content_engine
from preparea.db.reference import load_reference_data
from preparea.services.vocabulary import build_filter_vocabulary, write_static_vocabulary

logger = logging.getLogger(__name__)


async def run_generate() -> None:
    """Build the vocabulary from the reference store and write it to disk."""
    logger.info("Generating filter data from %s", settings.content_database_url)

    try:
        async with content_engine.connect() as conn:
            reference = await load_reference_data(conn)
        if reference.is_empty:
            logger.warning("Reference store has no cards; writing an empty vocabulary")
        vocabulary = build_filter_vocabulary(reference)
        write_static_vocabulary(vocabulary, settings.filter_data_path)
        logger.info(
            "Wrote %s set groups, %s affiliations to %s",
            len(vocabulary.set_groups),
            len(vocabulary.affiliations),
            settings.filter_data_path,
        )
    except Exception as e:
        logger.error("Failed to generate filter data: %s", e)
        raise
    finally:
        await content_engine.dispose()


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_generate())


if __name__ == "__main__":
    main()
