#!/usr/bin/env python3
"""
Analysis Runner

Runs the competitor and keyword analysis for one stored business document:
1. Competitor discovery and similarity ranking
2. Keyword intersection with each competitor
3. Diverse target keyword selection
4. Keyword ideas from seed keywords

Usage:
    # Set environment variables first (or use a .env file):
    export DATAFORSEO_LOGIN=your_login
    export DATAFORSEO_PASSWORD=your_password
    export OPENAI_API_KEY=your_key
    export JINA_API_KEY=your_key          # optional

    # Run analysis for businesses/<business_id>.json under the storage path:
    python scripts/run_analysis.py abc123

    # With a custom storage directory:
    python scripts/run_analysis.py abc123 --storage ./data
"""

import asyncio
import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


async def run_analysis(business_id: str, storage_path: str = None) -> dict:
    """Run the pipeline for one business and return its final status."""

    load_dotenv()

    from src.integrations import ExternalAPIClients, ExternalAPIConfig
    from src.persistence import FileDocumentStore, get_status
    from src.services import SEOAnalysisPipeline
    from src.utils.config import get_settings
    from src.utils.errors import EngineError

    settings = get_settings()
    logging.getLogger().setLevel(settings.LOG_LEVEL.upper())

    config = ExternalAPIConfig(settings)
    config.log_status()

    missing = []
    if not config.has_dataforseo:
        missing.append("DATAFORSEO_LOGIN / DATAFORSEO_PASSWORD")
    if not config.has_embeddings:
        missing.append("OPENAI_API_KEY")

    if missing:
        print("ERROR: Missing required environment variables:")
        for var in missing:
            print(f"  - {var}")
        return {"status": "failed", "error": "missing credentials"}

    store = FileDocumentStore(storage_path or settings.STORAGE_PATH)

    print(f"\n{'='*70}")
    print("KEYWORD OPPORTUNITY ENGINE - ANALYSIS")
    print(f"{'='*70}")
    print(f"Business:     {business_id}")
    print(f"Storage:      {store.base_path}")
    print(f"{'='*70}\n")

    start_time = datetime.now()

    async with ExternalAPIClients(config) as clients:
        pipeline = SEOAnalysisPipeline(
            store,
            clients.dataforseo,
            clients.embeddings,
            clients.jina,
            settings=settings,
        )
        try:
            results = await pipeline.process(business_id)
        except EngineError as e:
            logger.error(f"Analysis failed: {e}")
            results = None

    status = await get_status(store, business_id)
    duration = (datetime.now() - start_time).total_seconds()

    print("\n" + "="*70)
    print(f"ANALYSIS {status['status'].upper()}")
    print("="*70)
    print(f"Duration: {duration:.1f} seconds")
    if results:
        print(f"Competitors: {len(results.get('top_competitors', []))}")
    if status.get("error"):
        print(f"Error: {status['error']}")
    print("="*70 + "\n")

    return status


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run competitor discovery and keyword opportunity analysis for a business"
    )
    parser.add_argument(
        "business_id",
        help="Business document id (businesses/<business_id>)"
    )
    parser.add_argument(
        "--storage",
        default=None,
        help="Document storage directory (default: STORAGE_PATH or ~/.keyword-engine/storage)"
    )

    args = parser.parse_args()

    status = asyncio.run(run_analysis(args.business_id, storage_path=args.storage))
    sys.exit(0 if status.get("status") == "completed" else 1)


if __name__ == "__main__":
    main()
