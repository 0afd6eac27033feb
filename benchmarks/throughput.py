"""
Throughput benchmark — measures how fast the service admits and finishes jobs.

How it works:
1. Register a benchmark user and give it exactly N credits
2. Submit N enhancement jobs (tiny 1x1 PNG, so the enhancer is not the bottleneck)
3. Poll each job's status until none are processing
4. Calculate: throughput = N / total_wall_clock_time

The admission race mode instead fires N concurrent start requests at a
user holding only K credits, and checks that exactly K were admitted:
the credit ledger must never overdraw under contention.

Set STEP_DELAY_SECONDS low on the server when benchmarking, otherwise the
between-step pause dominates.
"""

import time
import uuid
from concurrent.futures import ThreadPoolExecutor

import httpx

BASE_URL = "http://localhost:8000"

# 1x1 transparent PNG
TINY_PNG = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


class ThroughputBenchmark:

    def __init__(self, base_url: str = BASE_URL, num_jobs: int = 100):
        self.base_url = base_url
        self.num_jobs = num_jobs
        self.client = httpx.Client(timeout=30.0)

    def _new_user(self, credits: int) -> str:
        """Register a throwaway user and set its balance to exactly `credits`."""
        user_id = f"bench-{uuid.uuid4().hex[:8]}"
        resp = self.client.post(f"{self.base_url}/api/users/register", json={"user_id": user_id})
        resp.raise_for_status()
        delta = credits - resp.json()["credits"]
        if delta:
            self.client.post(
                f"{self.base_url}/api/users/credits",
                json={"user_id": user_id, "amount": delta},
            ).raise_for_status()
        return user_id

    def _start(self, user_id: str) -> httpx.Response:
        return self.client.post(
            f"{self.base_url}/api/enhance",
            json={"user_id": user_id, "image_base64": TINY_PNG, "style": "white"},
        )

    def submit_jobs(self, user_id: str) -> list[str]:
        job_ids = []
        for _ in range(self.num_jobs):
            resp = self._start(user_id)
            resp.raise_for_status()
            job_ids.append(resp.json()["job_id"])
        return job_ids

    def wait_for_completion(self, job_ids: list[str], timeout: float = 120.0) -> dict:
        """Poll until no job in the batch is still processing. Returns counts per status."""
        start = time.monotonic()
        pending = set(job_ids)
        counts = {"completed": 0, "failed": 0}
        while pending and time.monotonic() - start < timeout:
            for job_id in list(pending):
                status = self.client.get(f"{self.base_url}/api/jobs/{job_id}/status").json()["status"]
                if status != "processing":
                    counts[status] += 1
                    pending.discard(job_id)
            if pending:
                time.sleep(0.2)
        if pending:
            raise TimeoutError(f"{len(pending)} jobs didn't complete within {timeout}s")
        return counts

    def run(self) -> dict:
        user_id = self._new_user(self.num_jobs)

        start = time.monotonic()
        job_ids = self.submit_jobs(user_id)
        admitted_at = time.monotonic() - start
        counts = self.wait_for_completion(job_ids)
        elapsed = time.monotonic() - start

        return {
            "mode": "throughput",
            "num_jobs": self.num_jobs,
            "admission_sec": round(admitted_at, 3),
            "wall_clock_sec": round(elapsed, 3),
            "throughput_jobs_per_sec": round(self.num_jobs / elapsed, 2),
            **counts,
        }

    def run_admission_race(self, credits: int, concurrency: int = 16) -> dict:
        user_id = self._new_user(credits)

        with ThreadPoolExecutor(max_workers=concurrency) as pool:
            responses = list(pool.map(lambda _: self._start(user_id), range(self.num_jobs)))

        admitted = sum(1 for r in responses if r.status_code == 202)
        rejected = sum(1 for r in responses if r.status_code == 402)
        remaining = self.client.get(f"{self.base_url}/api/users/{user_id}/credits").json()["credits"]

        return {
            "mode": "admission_race",
            "num_jobs": self.num_jobs,
            "credits": credits,
            "admitted": admitted,
            "rejected": rejected,
            "remaining_credits": remaining,
            "ok": admitted == min(credits, self.num_jobs) and remaining >= 0,
        }
