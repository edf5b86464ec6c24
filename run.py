"""
Entry Point Script (Bootstrap)
==============================
Development runner that works from a source checkout without installing.

Why is this file needed?
------------------------
1. It is located outside the 'src' package to act as a convenient runner.
2. It puts 'src' on 'sys.path' so 'import bezierwarp' resolves.

Usage:
    $ python run.py --cut-h 0.5 --texture photo.png
"""
import os
import sys

current_dir: str = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.join(current_dir, 'src'))

from bezierwarp.main import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
