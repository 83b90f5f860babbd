"""
Entry Point Script (Bootstrap)
==============================
Starting point of the decoration preview for development.

Why is this file needed?
------------------------
1. It is located outside the 'src' package to act as a convenient runner.
2. It adds 'src' to 'sys.path' so 'from monumentdesigner...' resolves
   without installing the package.

Usage:
    $ python run.py "IN LOVING MEMORY" 20
"""
import sys
import os

current_dir: str = os.path.dirname(os.path.abspath(__file__))
src_path: str = os.path.join(current_dir, 'src')
sys.path.insert(0, src_path)

from monumentdesigner.main import main

if __name__ == "__main__":
    main()
