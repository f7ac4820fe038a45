"""
Main entry point for the prime power guess search.
"""

import argparse
import logging
import sys

import psutil
from tqdm import tqdm

from .engine import DEFAULT_BATCH_SIZE, DEFAULT_PROGRESS_INTERVAL, DEFAULT_TRIALS, SearchEngine
from .guess import STRATEGIES, make_strategy
from .primes import BoundOverflowError, PrimeCandidateGenerator, bound_from_target
from .report import render_report
from .utils import TargetReadError, get_cache_file, get_config, read_target, setup_logging


def positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def non_negative_int(value):
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be a non-negative integer, got {value}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        description='Search for an exponent assignment over primes <= sqrt(N) whose product is N. '
                    'N is read from a file as a big-endian integer.')
    parser.add_argument('-f', '--file', type=str, required=True,
                        help='File whose raw bytes hold the number to factorize')
    parser.add_argument('-c', '--cache', type=str, default=None,
                        help='Prime cache file (parquet); created if missing')
    parser.add_argument('-t', '--trials', type=non_negative_int, default=None,
                        help=f'Number of guesses to try (default: {DEFAULT_TRIALS})')
    parser.add_argument('-b', '--batch-size', type=positive_int, default=None,
                        help=f'Guesses per worker task (default: {DEFAULT_BATCH_SIZE})')
    parser.add_argument('-p', '--processes', type=positive_int, default=None,
                        help='Number of worker threads (default: number of physical cores)')
    parser.add_argument('-s', '--strategy', choices=STRATEGIES, default=None,
                        help='How each trial builds its guess (default: counter)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log every guess at debug level')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    setup_logging(verbose=args.verbose)
    config = get_config()

    trials = args.trials if args.trials is not None else config.get('trials', DEFAULT_TRIALS)
    batch_size = args.batch_size if args.batch_size is not None else config.get('batch_size', DEFAULT_BATCH_SIZE)
    progress_interval = config.get('progress_interval', DEFAULT_PROGRESS_INTERVAL)
    strategy_name = args.strategy or config.get('strategy', 'counter')

    if args.processes is not None:
        cores = args.processes
        print(f"Using {cores} workers (user-specified)")
    else:
        cores = psutil.cpu_count(logical=False) or 1
        print(f"Using {cores} workers (physical cores)")

    try:
        number = read_target(args.file)
    except TargetReadError as e:
        print(f"\nError: {e}")
        return 1
    logging.info(f"Number to factorize: {number}")

    try:
        bound = bound_from_target(number)
    except BoundOverflowError as e:
        logging.error(str(e))
        print(f"\nError: {e}")
        return 1
    generator = PrimeCandidateGenerator(get_cache_file(args.cache))
    primes = generator.candidates(bound)
    logging.info(f"Generated {len(primes)} prime candidates up to sqrt({number})")

    strategy = make_strategy(strategy_name, number, primes)
    with tqdm(total=trials, desc="Guess search", unit="trial") as pbar:
        engine = SearchEngine(
            number, primes,
            trials=trials,
            strategy=strategy,
            workers=cores,
            batch_size=batch_size,
            progress_interval=progress_interval,
            progress=pbar,
        )
        result = engine.run()
        pbar.set_postfix({"state": engine.state.value})

    generator.wait()
    print(render_report(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
