"""
Test Runner - runs the suites under tests/ and logs to results.txt
==================================================================
"""

import sys
import subprocess
import argparse
from datetime import datetime

RESULTS_FILE = "results.txt"

SUITES = {
    "unit": (
        "🧪 Unit Tests - Dates, Pricing, Validation, Quick Replies",
        [
            "tests/test_date_resolver.py",
            "tests/test_pricing.py",
            "tests/test_passenger_validation.py",
            "tests/test_suggestion_engine.py",
            "tests/test_response_parser.py",
            "tests/test_state_machine.py",
            "tests/test_flight_search.py",
        ],
    ),
    "integration": (
        "🔗 Integration Tests - Session Store, Orchestrator, Gemini Adapter",
        [
            "tests/test_context_manager.py",
            "tests/test_conversation_service.py",
            "tests/test_gemini_adapter.py",
            "tests/test_llm_service.py",
        ],
    ),
    "api": (
        "🌐 API Tests - FastAPI Endpoints",
        ["tests/test_chat_api.py"],
    ),
}


def write_to_results(text: str):
    """Append a line to results.txt."""
    with open(RESULTS_FILE, "a", encoding="utf-8") as f:
        f.write(text + "\n")


def run_pytest(pytest_args: list, description: str = ""):
    """Run pytest with given args, print output, and save to results.txt."""

    header = f"\n{'='*70}\n  {description}\n{'='*70}\n"
    print(header)
    write_to_results(header)

    cmd = ["pytest", "-v", "--tb=short"] + pytest_args

    result = subprocess.run(cmd, capture_output=True, text=True)

    print(result.stdout)
    print(result.stderr)

    write_to_results(result.stdout)
    write_to_results(result.stderr)

    return result.returncode == 0


def main():
    parser = argparse.ArgumentParser(description="Run travel advisor tests")

    parser.add_argument("--all", action="store_true", help="Run all tests")
    parser.add_argument("--unit", action="store_true")
    parser.add_argument("--integration", action="store_true")
    parser.add_argument("--api", action="store_true")

    parser.add_argument("--coverage", action="store_true")
    parser.add_argument("--html", action="store_true")
    parser.add_argument("-k", "--keyword")
    parser.add_argument("--failfast", action="store_true")

    args = parser.parse_args()

    if not any([args.all, args.unit, args.integration, args.api]):
        args.all = True

    open(RESULTS_FILE, "w").close()

    header = (
        "\n" + "="*70 + "\n"
        " AIR DISCOVERY TRAVEL ADVISOR - TEST SUITE\n"
        + "="*70 + "\n"
        f" Start Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
        + "="*70
    )
    print(header)
    write_to_results(header)

    base_pytest_args = []

    if args.coverage:
        base_pytest_args += ["--cov=app", "--cov=services", "--cov-report=term-missing"]
        if args.html:
            base_pytest_args.append("--cov-report=html")

    if args.keyword:
        base_pytest_args += ["-k", args.keyword]

    if args.failfast:
        base_pytest_args += ["--maxfail=1"]

    results = []
    for name, (description, paths) in SUITES.items():
        if args.all or getattr(args, name):
            success = run_pytest(paths + base_pytest_args, description)
            results.append((description, success))

    passed = sum(1 for _, ok in results if ok)
    failed = len(results) - passed

    summary_lines = [
        "\n" + "="*70,
        " TEST EXECUTION SUMMARY",
        "="*70,
    ]

    for name, ok in results:
        status = "PASS" if ok else "FAIL"
        summary_lines.append(f"  {status}  {name}")

    summary_lines += [
        "="*70,
        f"  Total: {len(results)} suites",
        f"  Passed: {passed}",
        f"  Failed: {failed}",
        "="*70,
        f" End Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        "="*70
    ]

    print("\n".join(summary_lines))
    for line in summary_lines:
        write_to_results(line)

    sys.exit(0 if failed == 0 else 1)


if __name__ == "__main__":
    main()
