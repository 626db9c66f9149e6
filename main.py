#!/usr/bin/env python3
"""
News Digest entry point
Fetches RSS/Atom feeds and renders a headline digest
"""

import sys

from news_digest.cli import main


if __name__ == '__main__':
    sys.exit(main())
