#!/usr/bin/env python3
"""
N-gram Language Model Training Script

Usage:
    python train.py --n 3 --smoothing fixed_interpolation
    python train.py --n 2 --smoothing katz_backoff --cutoff 5 --generate 10

See ``python train.py --help`` for every option.
"""

import sys

from ngramlm.cli import main


if __name__ == '__main__':
    sys.exit(main())
