#!/usr/bin/env python
"""
PortLens - Listening Port Inspector

Lists the processes listening on TCP ports, labelled by the project they
run, with container ports mapped to their containers.

Usage:
    python run_portlens.py [COMMAND] [OPTIONS]

Examples:
    python run_portlens.py
    python run_portlens.py --dev --by-port
    python run_portlens.py --all --export ports.json
    python run_portlens.py kill 4242 --force

Requirements:
    - macOS or Linux with lsof and ps
    - Python 3.9+
    - pip install -e .
"""

import sys

from portlens.cli import main

if __name__ == "__main__":
    sys.exit(main())
