"""
CLI entry point for running benchmarks.

Usage:
    python -m benchmarks.run_benchmark                               # throughput, 100 jobs
    python -m benchmarks.run_benchmark --num-jobs 500
    python -m benchmarks.run_benchmark --mode race --num-jobs 50 --credits 10

Prerequisites:
    the API must be running (uvicorn api.main:app)
"""

import argparse
import json

from benchmarks.throughput import ThroughputBenchmark


def main():
    parser = argparse.ArgumentParser(description="Image Enhancement API Benchmark")
    parser.add_argument(
        "--num-jobs", type=int, default=100,
        help="Number of jobs to submit (default: 100)",
    )
    parser.add_argument(
        "--mode", type=str, default="throughput",
        choices=["throughput", "race", "all"],
        help="throughput = admit and finish N jobs; race = N concurrent starts vs --credits",
    )
    parser.add_argument(
        "--credits", type=int, default=10,
        help="Balance for the admission race user (default: 10)",
    )
    parser.add_argument(
        "--base-url", type=str, default="http://localhost:8000",
        help="API base URL (default: http://localhost:8000)",
    )
    args = parser.parse_args()

    print("=== Image Enhancement API Benchmark ===")
    print(f"Jobs: {args.num_jobs} | Mode: {args.mode}\n")

    bench = ThroughputBenchmark(base_url=args.base_url, num_jobs=args.num_jobs)

    results = []
    if args.mode in ("throughput", "all"):
        results.append(bench.run())
    if args.mode in ("race", "all"):
        results.append(bench.run_admission_race(args.credits))

    print("=== RESULTS ===")
    print(json.dumps(results, indent=2))


if __name__ == "__main__":
    main()
