"""
Seed script — registers a demo user and runs a few enhancement jobs end to end.

Usage:
    python -m scripts.generate_sample_image     # once, creates sample_data/sample.b64
    python -m scripts.seed_demo

This:
- registers user "demo-user" (gets the signup credit grant)
- tops the balance up by 5 credits
- starts one job per background style
- cancels the last one straight away (it stays "processing")
- polls the others until they finish and prints their results

Run this after the API is up to populate the system with demo data.
"""

import os
import time

import httpx

BASE_URL = "http://localhost:8000"
USER_ID = "demo-user"
SAMPLE = "sample_data/sample.b64"


def _load_image() -> str:
    if not os.path.exists(SAMPLE):
        raise SystemExit(f"{SAMPLE} not found, run `python -m scripts.generate_sample_image` first")
    with open(SAMPLE) as f:
        return f.read().strip()


def _wait_for(client: httpx.Client, job_id: str, timeout: float = 60.0) -> dict:
    start = time.monotonic()
    while time.monotonic() - start < timeout:
        status = client.get(f"/api/jobs/{job_id}/status").json()
        if status["status"] != "processing":
            return status
        time.sleep(0.5)
    raise TimeoutError(f"Job {job_id} didn't finish within {timeout}s")


def seed():
    client = httpx.Client(base_url=BASE_URL, timeout=10.0)
    image = _load_image()

    client.post("/api/users/register", json={"user_id": USER_ID, "device_type": "android"}).raise_for_status()
    credits = client.post("/api/users/credits", json={"user_id": USER_ID, "amount": 5}).json()
    print(f"User {USER_ID} has {credits['credits']} credits\n")

    styles = client.get("/api/backgrounds").json()["backgrounds"]
    job_ids = []
    for style in styles:
        resp = client.post("/api/enhance", json={
            "user_id": USER_ID,
            "image_base64": image,
            "style": style,
        })
        resp.raise_for_status()
        data = resp.json()
        job_ids.append(data["job_id"])
        print(f"  [{data['status']}] {style} (id: {data['job_id'][:8]}..., ~{data['estimated_seconds']}s)")

    cancelled_id = job_ids.pop()
    cancel = client.post(f"/api/jobs/{cancelled_id}/cancel").json()
    print(f"\nCancel {cancelled_id[:8]}...: {cancel['cancelled']}")

    print("\nWaiting for the rest to finish...")
    for job_id in job_ids:
        final = _wait_for(client, job_id)
        result = client.get(f"/api/jobs/{job_id}/result").json()
        size = len(result.get("output_payload") or "")
        print(f"  {job_id[:8]}... {final['status']} ({size} base64 chars) {result['message']}")

    credits = client.get(f"/api/users/{USER_ID}/credits").json()
    print(f"\nDone! {USER_ID} has {credits['credits']} credits left.")


if __name__ == "__main__":
    seed()
