#!/usr/bin/env python3
"""
Parallel progress bar demo - Entry Point

Usage:
    python run.py              # Run example 1 on a thread pool
    python run.py --help       # Show options
"""

import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

if __name__ == "__main__":
    from parbar.orchestrator import main

    sys.exit(main())
