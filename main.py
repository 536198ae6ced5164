#!/usr/bin/env python3
"""
Entry point wrapper for running the grading CLI from a checkout or a bundle.

Uses absolute imports so it works both as a script and as a frozen executable.
"""

import sys
import os

# Ensure the examcore package can be imported
if getattr(sys, 'frozen', False):
    # Running as compiled executable
    bundle_dir = sys._MEIPASS
else:
    # Running as script
    bundle_dir = os.path.dirname(os.path.abspath(__file__))

sys.path.insert(0, bundle_dir)

if __name__ == "__main__":
    from examcore.cli import main
    sys.exit(main())
