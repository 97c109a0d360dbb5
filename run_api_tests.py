"""Manual smoke run against a local server: uvicorn src.main:app --port 8000"""

import json
import urllib.error
import urllib.request
import uuid

BASE = "http://localhost:8000/api/v1"

def post(path, body):
    data = json.dumps(body).encode()
    req = urllib.request.Request(
        f"{BASE}{path}",
        data=data,
        headers={"Content-Type": "application/json"}
    )
    try:
        with urllib.request.urlopen(req) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        return json.loads(e.read())

def get(path, params=None):
    url = f"{BASE}{path}"
    if params:
        url += "?" + "&".join(f"{k}={v}" for k, v in params.items())
    req = urllib.request.Request(url)
    try:
        with urllib.request.urlopen(req) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        return json.loads(e.read())

def section(title):
    print(f"\n{'='*60}")
    print(f"### {title} ###")
    print('='*60)

def label(name):
    print(f"\n--- {name} ---")

def out(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))

ALICE = str(uuid.uuid4())
BOB = str(uuid.uuid4())

# ── Top-ups ────────────────────────────────────────────────────
section("TOP-UP")

label("Alice +1000.00")
out(post("/deposits/change", {"owner_id": ALICE, "amount": 100000, "description": "salary"}))

label("Alice +500.00 (idempotent, sent twice)")
out(post("/deposits/change", {"owner_id": ALICE, "amount": 50000, "idempotency_key": "smoke-1"}))
out(post("/deposits/change", {"owner_id": ALICE, "amount": 50000, "idempotency_key": "smoke-1"}))

label("Bob +20.00")
out(post("/deposits/change", {"owner_id": BOB, "amount": 2000}))

# ── Withdrawals ────────────────────────────────────────────────
section("WITHDRAWAL")

label("Alice -120.00")
out(post("/deposits/change", {"owner_id": ALICE, "amount": -12000, "description": "coffee"}))

label("Bob overdraft (expect 2001)")
out(post("/deposits/change", {"owner_id": BOB, "amount": -999999}))

label("Zero amount (expect 1001)")
out(post("/deposits/change", {"owner_id": BOB, "amount": 0}))

# ── Transfers ──────────────────────────────────────────────────
section("TRANSFER")

label("Alice -> Bob 300.00")
out(post("/deposits/transfer", {
    "sender_id": ALICE, "recipient_id": BOB, "amount": 30000,
    "description": "thanks for dinner",
}))

label("Bob -> Bob (expect 1001)")
out(post("/deposits/transfer", {"sender_id": BOB, "recipient_id": BOB, "amount": 1}))

# ── Balances ───────────────────────────────────────────────────
section("BALANCE")

for name, owner in (("Alice", ALICE), ("Bob", BOB)):
    label(f"{name} in base currency")
    out(get(f"/deposits/{owner}/balance"))
    label(f"{name} in USD")
    out(get(f"/deposits/{owner}/balance", {"currency": "USD"}))

label("Unknown currency (expect 503)")
out(get(f"/deposits/{ALICE}/balance", {"currency": "XYZ"}))

# ── History ────────────────────────────────────────────────────
section("HISTORY")

label("Alice, newest first")
out(post("/deposits/history", {
    "owner_id": ALICE, "order_by": "transaction_date", "order_direction": "DESC",
}))

label("Bob, largest amount first, page of 2")
out(post("/deposits/history", {
    "owner_id": BOB, "order_by": "amount", "order_direction": "DESC", "limit": 2,
}))
