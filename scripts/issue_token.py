#!/usr/bin/env python3
"""
Print a bearer token for an event author.

Usage: python scripts/issue_token.py --user-id 1 [--ttl-minutes 120]
"""

from __future__ import annotations

import argparse
import sys

from oricloud.api.auth import issue_access_token


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--user-id", type=int, required=True)
    parser.add_argument("--ttl-minutes", type=int, default=None)
    args = parser.parse_args(argv)

    print(issue_access_token(args.user_id, ttl_minutes=args.ttl_minutes))
    return 0


if __name__ == "__main__":
    sys.exit(main())
