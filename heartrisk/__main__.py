"""
Main entry point for the heart-disease risk analysis.

Runs the full pipeline over one CSV file and reports the results.
"""

import argparse
import json
import logging
import sys

from heartrisk.components.config import Config
from heartrisk.analysis.pipeline import run_analysis, export_results
from heartrisk.errors import AnalysisError


def setup_logging(level: str = 'INFO') -> None:
    """
    Set up logging.

    Args:
        level: Logging level
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def parse_args(argv=None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description='Heart-disease risk analysis')

    parser.add_argument(
        'data',
        nargs='?',
        help='Path to the heart-disease CSV file (overrides data.path)'
    )

    parser.add_argument(
        '--config',
        help='Path to configuration file (JSON or YAML)'
    )

    parser.add_argument(
        '--output-dir',
        help='Directory to write result tables to'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (overrides logging.level)'
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main entry point.
    """
    args = parse_args(argv)

    config = Config.from_file(args.config) if args.config else Config()
    if args.data:
        config.set('data.path', args.data)

    setup_logging(args.log_level or config.get('logging.level', 'info'))
    logger = logging.getLogger('heartrisk')

    try:
        result = run_analysis(config)
    except AnalysisError as e:
        logger.error(f"Analysis aborted: {e}")
        return 1

    if args.output_dir:
        export_results(result, args.output_dir)

    logger.info("Summary:\n" + json.dumps(result.summary(), indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
