#!/usr/bin/env python3
"""Generate a synthetic lending book and export it.

Borrower and investor leads are generated with Faker and driven through
the real lifecycle engine (stage pipeline, proposal negotiation,
schedule generation), then collections and payouts are simulated for
every entry already due. Records go to JSON files, the console, and
optionally Kafka; domain events can be published alongside.
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lendflow.config import LendFlowConfig
from lendflow.exceptions import LendFlowError
from lendflow.logging import setup_logging
from lendflow.scenarios import LendingBookScenario
from lendflow.sinks import ConsoleSink, JsonFileSink, KafkaSink

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Generate a synthetic lending book")
    parser.add_argument(
        "--borrowers",
        type=int,
        default=50,
        help="Number of borrower inquiries (default: 50)",
    )
    parser.add_argument(
        "--investors",
        type=int,
        default=20,
        help="Number of investor inquiries (default: 20)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility (default: LENDFLOW_SEED or random)",
    )
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Simulated today, YYYY-MM-DD (default: today)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for JSON files (default: LENDFLOW_OUTPUT_DIR or ./output)",
    )
    parser.add_argument(
        "--console",
        action="store_true",
        help="Also print the first records of each entity",
    )
    parser.add_argument(
        "--kafka",
        action="store_true",
        help="Also publish records to Kafka",
    )
    parser.add_argument(
        "--events",
        action="store_true",
        help="Publish domain events while generating (to Kafka with --kafka, else JSON Lines)",
    )
    parser.add_argument(
        "--log-format",
        choices=["standard", "json"],
        default="standard",
        help="Log output format (default: standard)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    config = LendFlowConfig.from_env()
    setup_logging(config.log_level, args.log_format)

    seed = args.seed if args.seed is not None else config.seed
    output_dir = args.output_dir or config.output.json_output_dir

    json_sink = JsonFileSink(output_dir, pretty=config.output.pretty_json)
    kafka_sink = KafkaSink(config.kafka) if args.kafka else None
    publisher = None
    if args.events:
        publisher = kafka_sink or json_sink

    sinks: list = [json_sink]
    if args.console:
        sinks.append(ConsoleSink(max_records=3))
    if kafka_sink is not None:
        sinks.append(kafka_sink)

    try:
        scenario = LendingBookScenario(
            num_borrowers=args.borrowers,
            num_investors=args.investors,
            seed=seed,
            reference_date=args.as_of,
            config=config,
            publisher=publisher,
        )
        scenario.generate()
        scenario.export(sinks)
    except LendFlowError as exc:
        logger.error("Generation failed [%s]: %s", exc.code, exc)
        return 1
    finally:
        for sink in sinks:
            sink.close()

    for key, value in scenario.get_book_summary().items():
        logger.info("%-24s %s", key, value)
    return 0


if __name__ == "__main__":
    sys.exit(main())
