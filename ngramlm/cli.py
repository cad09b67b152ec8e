"""
Command Line Interface

Train a smoothed n-gram model on the Brown corpus, evaluate it on held-out
sentences and sample from it.

Usage:
    ngramlm-train --n 3 --smoothing fixed_interpolation
    ngramlm-train --n 3 --smoothing validated_interpolation --tuning em
    ngramlm-train --n 2 --smoothing katz_backoff --cutoff 5 --generate 10
"""

import argparse
import random
from typing import Dict, List, Optional

from .smoothing import DEFAULT_DISCOUNT, SmoothingMethod
from .training import (
    evaluate_model_cli, setup_logging, show_generated_sentences, train_model_cli
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Train a smoothed n-gram language model on the Brown corpus",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --n 3 --smoothing fixed_interpolation
  %(prog)s --n 3 --smoothing validated_interpolation --tuning em
  %(prog)s --n 1 --smoothing good_turing --cutoff 5
  %(prog)s --n 3 --smoothing katz_backoff --categories news fiction

Available smoothing methods:
  good_turing              - Good-Turing with a count cutoff
  absolute_discount        - Absolute discounting with backoff
  katz_backoff             - Katz backoff over a Good-Turing lower order
  fixed_interpolation      - Linear interpolation with fixed weights
  validated_interpolation  - Linear interpolation tuned on held-out data
  kneser_ney               - Kneser-Ney (continuation counts)
        """
    )

    parser.add_argument('-n', '--n', type=int, default=3, choices=[1, 2, 3],
                        help='Order of the n-gram model (default: 3 for trigram)')
    parser.add_argument('-s', '--smoothing', type=str, default='fixed_interpolation',
                        choices=[m.value for m in SmoothingMethod],
                        help='Smoothing method (default: fixed_interpolation)')
    parser.add_argument('--discount', type=float, default=DEFAULT_DISCOUNT,
                        help=f'Absolute discount (default: {DEFAULT_DISCOUNT})')
    parser.add_argument('--cutoff', type=int, default=None,
                        help='Good-Turing count cutoff (default: 5 for unigrams, 10 otherwise)')
    parser.add_argument('-c', '--categories', type=str, nargs='+', default=None,
                        help='Brown corpus categories to use (default: all)')
    parser.add_argument('--validation-fraction', type=float, default=0.1,
                        help='Share of sentences used to tune weights (default: 0.1)')
    parser.add_argument('--test-fraction', type=float, default=0.1,
                        help='Share of sentences used for evaluation (default: 0.1)')
    parser.add_argument('--tuning', type=str, default='grid', choices=['grid', 'em'],
                        help='Weight search for validated interpolation (default: grid)')
    parser.add_argument('-g', '--generate', type=int, default=5,
                        help='Number of sentences to generate (default: 5)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for the split, the check and generation')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Show debug logging')
    return parser


def smoothing_params_from_args(args: argparse.Namespace) -> Dict:
    """Smoother keyword arguments selected on the command line."""
    params = {'discount': args.discount}
    if args.cutoff is not None:
        params['cutoff'] = args.cutoff
    return params


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    result = train_model_cli(
        n=args.n,
        smoothing=args.smoothing,
        smoothing_params=smoothing_params_from_args(args),
        categories=args.categories,
        validation_fraction=args.validation_fraction,
        test_fraction=args.test_fraction,
        tuning=args.tuning,
        seed=args.seed,
    )

    rng = random.Random(args.seed)
    model = result['model']
    if result['test']:
        evaluate_model_cli(model, result['test'], rng=rng)
    if args.generate > 0:
        show_generated_sentences(model, args.generate, rng=rng)

    return 0
