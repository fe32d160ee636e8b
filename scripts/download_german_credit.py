"""Download the German Credit dataset to the local cache."""

from __future__ import annotations

import argparse

from credit_cv.data import download_german_credit


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch german.data from UCI")
    parser.add_argument("--dest", help="Target directory (default: $CREDIT_CV_DATA_DIR or ./data)")
    parser.add_argument("--force", action="store_true", help="Re-download even if cached")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    path = download_german_credit(args.dest, force=args.force)
    print(path)


if __name__ == "__main__":
    main()
