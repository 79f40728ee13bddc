#!/usr/bin/env python3
"""
Convenience shim to run slskarr from a source checkout.
Usage: python slskarr.py [--config PATH] {verify,search,download,queue,remove,clear-searches}
"""

from slskarr.cli import main


if __name__ == "__main__":
    main()
