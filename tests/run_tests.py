"""
Test runner script for the agency reports test suite.
Provides short commands for the test categories and the coverage report.
"""

import subprocess
import sys
import os
from pathlib import Path

COMMANDS = {
    "all": ("python -m pytest tests/ -v", "Running all tests"),
    "unit": ("python -m pytest tests/unit/ -v", "Running unit tests"),
    "functional": ("python -m pytest tests/functional/ -v", "Running functional tests"),
    "builder": (
        "python -m pytest tests/unit/test_query_builder.py tests/unit/test_identifiers.py "
        "tests/unit/test_join_conditions.py -v",
        "Running query builder tests",
    ),
    "tenancy": ("python -m pytest tests/unit/test_pool_manager.py -v", "Running tenant pool tests"),
    "coverage": (
        "python -m pytest tests/ --cov=agency_reports --cov-report=html --cov-report=term-missing -v",
        "Running tests with coverage report",
    ),
    "install": ('pip install -e ".[test]"', "Installing test dependencies"),
}


def run_command(command, description):
    """Run a command and handle output"""
    print(f"\n{'='*60}")
    print(f"Running: {description}")
    print(f"Command: {command}")
    print(f"{'='*60}")

    result = subprocess.run(command, shell=True, capture_output=True, text=True)

    if result.stdout:
        print(result.stdout)
    if result.stderr:
        print("STDERR:", result.stderr)

    return result.returncode == 0


def main():
    """Main test runner"""
    # Change to project root directory
    project_root = Path(__file__).parent.parent
    os.chdir(project_root)

    if len(sys.argv) < 2 or sys.argv[1].lower() not in COMMANDS:
        print("Usage: python tests/run_tests.py [command]")
        print("\nAvailable commands:")
        for name, (_, description) in COMMANDS.items():
            print(f"  {name:<12} - {description}")
        sys.exit(1)

    command, description = COMMANDS[sys.argv[1].lower()]
    success = run_command(command, description)

    if success and sys.argv[1].lower() == "coverage":
        print("\nCoverage report generated in htmlcov/index.html")

    if success:
        print("\nDone: tests completed successfully")
    else:
        print("\nSome tests failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
