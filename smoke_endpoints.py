"""
Split-Dataset EDA Service — Live Smoke Check
==============================================
Hits every /api/v1/eda endpoint on a running server with a real train/test
pair. Prints the response body on failure.

HOW TO RUN:
  Step 0:  pip install -e ".[test]"                        (httpx is in the test extra)
  Step 1:  python main.py                                  (Terminal 1)
  Step 2:  python smoke_endpoints.py train.csv test.csv    (Terminal 2)
"""

import json
import sys

import httpx

ROOT = "http://localhost:8001"
BASE = f"{ROOT}/api/v1/eda"
PASS = 0
FAIL = 0
TOTAL = 0


def check(name, response, expected_status=200, check_field=None):
    """Record one result. On failure, prints the actual response."""
    global PASS, FAIL, TOTAL
    TOTAL += 1
    try:
        data = response.json()
    except ValueError:
        data = response.text

    ok = response.status_code == expected_status
    if ok and check_field and isinstance(data, dict):
        ok = check_field in data

    if ok:
        PASS += 1
        print(f"  ✅ TEST {TOTAL:2d} PASS │ {name}")
    else:
        FAIL += 1
        print(f"  ❌ TEST {TOTAL:2d} FAIL │ {name} │ status={response.status_code}")
        print(f"         ↳ Response: {json.dumps(data, default=str)[:200]}")
    return data


def main(train_path: str, test_path: str) -> int:
    print()
    print("=" * 72)
    print("  Split-Dataset EDA Service — Live Smoke Check")
    print("=" * 72)

    try:
        info = httpx.get(f"{ROOT}/", timeout=10).json()
        print(f"  🟢 Server online: {info.get('service', '?')} v{info.get('version', '?')}")
    except httpx.ConnectError:
        print("  🔴 Server NOT running! Start with: python main.py")
        return 1

    with open(train_path, "rb") as f:
        train_bytes = f.read()
    with open(test_path, "rb") as f:
        test_bytes = f.read()

    with httpx.Client(timeout=60) as client:
        check("GET /health", client.get(f"{BASE}/health"), check_field="components")

        data = check(
            "POST /analyze",
            client.post(f"{BASE}/analyze", files={
                "train_file": (train_path, train_bytes, "text/csv"),
                "test_file": (test_path, test_bytes, "text/csv"),
            }),
            check_field="run_id",
        )
        run_id = data.get("run_id") if isinstance(data, dict) else None

        check(
            "POST /analyze — swapped files → 422",
            client.post(f"{BASE}/analyze", files={
                "train_file": (test_path, test_bytes, "text/csv"),
                "test_file": (train_path, train_bytes, "text/csv"),
            }),
            expected_status=422,
        )

        if run_id:
            report = check("GET /runs/{id}", client.get(f"{BASE}/runs/{run_id}"), check_field="report")
            overview = report.get("report", {}).get("overview", {}) if isinstance(report, dict) else {}
            print(f"         → {overview}")
            check("GET /runs/{id}/charts", client.get(f"{BASE}/runs/{run_id}/charts"), check_field="charts")
            check("GET /runs/{id}/export/json", client.get(f"{BASE}/runs/{run_id}/export/json"),
                  check_field="survivalRates")
            csv_resp = client.get(f"{BASE}/runs/{run_id}/export/csv")
            check("GET /runs/{id}/export/csv", csv_resp)
            print(f"         → {len(csv_resp.text.splitlines()) - 1} rows exported")

        check("GET /runs", client.get(f"{BASE}/runs"))
        check("GET /runs/unknown → 404", client.get(f"{BASE}/runs/unknown"), expected_status=404)

    print()
    print("=" * 72)
    if FAIL == 0:
        print(f"  🎉 ALL {TOTAL} CHECKS PASSED")
    else:
        print(f"  📊 RESULTS: {PASS}/{TOTAL} passed, {FAIL} failed")
    print("=" * 72)
    return 0 if FAIL == 0 else 1


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("usage: python smoke_endpoints.py TRAIN.csv TEST.csv")
        sys.exit(2)
    sys.exit(main(sys.argv[1], sys.argv[2]))
