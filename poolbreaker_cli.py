#!/usr/bin/env python3
"""
poolbreaker CLI Entry Point
Wrapper script to run poolbreaker from a checkout without installation
"""

import sys
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent / 'src'
sys.path.insert(0, str(src_path))

from poolbreaker.cli import main

if __name__ == '__main__':
    sys.exit(main())
