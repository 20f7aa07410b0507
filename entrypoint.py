#!/usr/bin/env python3
"""
flashguard Entrypoint
Wrapper script for the Docker container / CI action
"""

import sys

from flashguard.run_audit import main

if __name__ == "__main__":
    sys.exit(main())
