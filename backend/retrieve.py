import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from config import find_config_path
from models import FilteringConfig, Message
from pipelines import get_rag_service

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def main():
    parser = argparse.ArgumentParser(
        description="Show how a query would be augmented with knowledge base context"
    )
    parser.add_argument("query", help="User query to retrieve context for")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.toml in project root)",
    )
    parser.add_argument(
        "--preset",
        choices=["default", "strict", "lenient"],
        default=None,
        help="Filtering preset (default: retrieval.preset from config)",
    )
    parser.add_argument(
        "--system",
        default=None,
        help="Existing system prompt to augment",
    )
    rerank = parser.add_mutually_exclusive_group()
    rerank.add_argument("--rerank", dest="rerank", action="store_true", default=None)
    rerank.add_argument("--no-rerank", dest="rerank", action="store_false")
    parser.set_defaults(rerank=None)
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print knowledge base statistics and exit",
    )

    args = parser.parse_args()

    try:
        config_path = find_config_path(args.config)
        with get_rag_service(config_path) as service:
            if args.stats:
                print(service.stats().model_dump_json(indent=2))
                return 0

            messages = []
            if args.system:
                messages.append(Message(role="system", content=args.system))
            messages.append(Message(role="user", content=args.query))

            config = FilteringConfig.preset(args.preset) if args.preset else None
            info = service.augment(
                args.query, messages, config=config, use_reranking=args.rerank
            )
            print(info.model_dump_json(indent=2))
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
