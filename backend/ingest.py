import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from config import find_config_path
from pipelines import run_ingestion

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def main():
    parser = argparse.ArgumentParser(
        description="Ingest documents into the knowledge base"
    )
    parser.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="Specific files to ingest (default: scan the ingestion directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.toml in project root)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Clear the knowledge base and re-ingest all documents",
    )

    args = parser.parse_args()

    try:
        config_path = find_config_path(args.config)
        results = run_ingestion(config_path, force=args.force, files=args.files)
        print("\n=== Ingestion Complete ===")
        print(f"Documents ingested: {results['documents']}")
        print(f"Unchanged files skipped: {results['skipped']}")
        print(f"Failed files: {len(results['failed'])}")
        print(f"Total chunks in knowledge base: {results['total_chunks']}")
        return 1 if results["failed"] else 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
