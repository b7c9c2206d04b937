"""Example script running the ReversR phases through the generation gateway."""

import asyncio
import logging

from reversr import ExhaustedError, GenerationGateway, InnovationClient
from reversr.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Analyze a product, apply a pattern and generate its spec."""

    logger.info("=" * 60)
    logger.info("ReversR Innovation Engine")
    logger.info("=" * 60)

    # One gateway per process; pool and cache live inside it
    gateway = GenerationGateway.from_settings(settings)
    client = InnovationClient(gateway, settings)

    description = "A reusable water bottle with stainless steel body, screw-top lid, and carrying loop."

    try:
        analysis = await client.analyze_product(description)
        logger.info(f"Product: {analysis.get('productName')}")

        innovation = await client.apply_pattern(analysis, "Task Unification")
        logger.info(f"Concept: {innovation.get('conceptName')}")

        spec = await client.generate_technical_spec(innovation)
        logger.info(f"Spec sections: {', '.join(spec.keys())}")

        # Same request again is served from the cache
        await client.analyze_product(description)

    except ExhaustedError as e:
        if e.rate_limited:
            logger.error("System is at capacity (rate limit). Please wait a few seconds and retry.")
        else:
            logger.error(f"Generation failed after {e.attempts} attempts: {e.last_error}")

    logger.info("-" * 60)
    status = gateway.get_status()
    for credential in status["credentials"]:
        logger.info(
            f"  {credential['label']}: available={credential['available']} "
            f"failures={credential['consecutive_failures']}"
        )
    logger.info(f"  cache: {status['cache']}")


if __name__ == "__main__":
    asyncio.run(main())
