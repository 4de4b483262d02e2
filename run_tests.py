#!/usr/bin/env python3
"""Test runner for Polyblog with coverage reporting."""

import sys
import subprocess
import os
from pathlib import Path


def run_tests():
    """Run all tests with coverage reporting."""

    # Change to the project directory
    os.chdir(Path(__file__).parent)

    print("Running Polyblog Test Suite")
    print("=" * 50)

    result = subprocess.run([
        sys.executable, "-m", "pytest",
        "tests/",
        "-v",
        "--cov=polyblog_pkg",
        "--cov-report=term-missing",
        "--cov-fail-under=80"
    ], check=False)

    if result.returncode == 0:
        print("\nAll tests passed!")
        return True
    print(f"\nTests failed with return code {result.returncode}")
    return False


if __name__ == "__main__":
    sys.exit(0 if run_tests() else 1)
