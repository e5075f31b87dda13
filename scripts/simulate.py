"""
Order Rush Simulation Script

Registers a crowd of diners and has them order concurrently against a
running service, then prints a summary.
Run from project root: python scripts/simulate.py --diners 25

The admin credentials default to the bootstrap admin (a@jwt.com / admin).
"""

import asyncio
import sys
import random
import time
import argparse
import uuid
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:3000"
TOTAL_DINERS = 25

FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]
MENU = [
    {"title": "Veggie", "description": "A garden of delight", "image": "pizza1.png", "price": 0.0038},
    {"title": "Pepperoni", "description": "Spicy treat", "image": "pizza2.png", "price": 0.0042},
    {"title": "Margarita", "description": "Essential classic", "image": "pizza3.png", "price": 0.0042},
    {"title": "Crusty", "description": "A dry mouthed favorite", "image": "pizza4.png", "price": 0.0028},
    {"title": "Charred Leopard", "description": "For those with a darker side", "image": "pizza5.png", "price": 0.0099},
]


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# SETUP
# =============================================================================

async def prepare_catalog(client: httpx.AsyncClient, admin_email: str, admin_password: str) -> dict[str, Any]:
    """Log in as admin, make sure a menu exists and create a fresh franchise with one store."""
    response = await client.put("/api/auth", json={"email": admin_email, "password": admin_password})
    response.raise_for_status()
    admin_token = response.json()["token"]

    menu = (await client.get("/api/order/menu")).json()
    if not menu:
        for item in MENU:
            response = await client.put("/api/order/menu", json=item, headers=auth_header(admin_token))
            response.raise_for_status()
        menu = response.json()

    franchise_name = f"rush-{uuid.uuid4().hex[:8]}"
    response = await client.post(
        "/api/franchise",
        json={"name": franchise_name, "admins": [{"email": admin_email}]},
        headers=auth_header(admin_token),
    )
    response.raise_for_status()
    franchise = response.json()

    response = await client.post(
        f"/api/franchise/{franchise['id']}/store",
        json={"name": "Rush Store"},
        headers=auth_header(admin_token),
    )
    response.raise_for_status()
    store = response.json()

    return {"admin_token": admin_token, "menu": menu, "franchise": franchise, "store": store}


# =============================================================================
# DINERS
# =============================================================================

async def run_diner(client: httpx.AsyncClient, diner_num: int, catalog: dict[str, Any]) -> dict[str, Any]:
    """Register one diner, place one order, log out."""
    name = f"{random.choice(FIRST_NAMES)} {diner_num}"
    email = f"diner-{uuid.uuid4().hex[:10]}@rush.test"
    start_time = time.time()

    try:
        response = await client.post("/api/auth", json={"name": name, "email": email, "password": "rush"})
        response.raise_for_status()
        token = response.json()["token"]

        picks = random.sample(catalog["menu"], k=random.randint(1, min(3, len(catalog["menu"]))))
        payload = {
            "franchiseId": catalog["franchise"]["id"],
            "storeId": catalog["store"]["id"],
            "items": [{"menuId": m["id"], "description": m["title"], "price": m["price"]} for m in picks],
        }
        response = await client.post("/api/order", json=payload, headers=auth_header(token))
        elapsed = round(time.time() - start_time, 3)

        await client.delete("/api/auth", headers=auth_header(token))

        if response.status_code == 200:
            data = response.json()
            return {
                "diner_num": diner_num,
                "success": True,
                "order_id": data["order"]["id"],
                "total": sum(item["price"] for item in data["order"]["items"]),
                "time": elapsed,
            }
        return {
            "diner_num": diner_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "diner_num": diner_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    num_diners: int = TOTAL_DINERS,
    admin_email: str = "a@jwt.com",
    admin_password: str = "admin",
) -> dict[str, Any]:
    print("=" * 70)
    print("🍕 ORDER RUSH SIMULATION")
    print("=" * 70)
    print(f"👥 Diners: {num_diners}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        catalog = await prepare_catalog(client, admin_email, admin_password)
        print(f"\n🏪 Franchise '{catalog['franchise']['name']}' store #{catalog['store']['id']} ready")

        tasks = [run_diner(client, i + 1, catalog) for i in range(num_diners)]
        results = await asyncio.gather(*tasks)

        franchises = (await client.get(
            "/api/franchise",
            params={"name": catalog["franchise"]["name"]},
            headers=auth_header(catalog["admin_token"]),
        )).json()["franchises"]

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_diners}")
    print(f"❌ Failed Orders: {len(failed)}/{num_diners}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Ordered: {sum(r['total'] for r in successful):.4f} ₿")

    if franchises:
        revenue = sum(s.get("totalRevenue", 0) for s in franchises[0]["stores"])
        print(f"   🏪 Store revenue reported by the service: {revenue:.4f} ₿")

    if failed:
        print(f"\n⚠️  Failed Diner Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Diner #{f['diner_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_diners,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Rush Simulation Script")
    parser.add_argument("--diners", type=int, default=TOTAL_DINERS, help="Number of diners")
    parser.add_argument("--url", default=API_BASE_URL, help="Service base URL")
    parser.add_argument("--admin-email", default="a@jwt.com")
    parser.add_argument("--admin-password", default="admin")
    args = parser.parse_args()

    API_BASE_URL = args.url
    summary = asyncio.run(run_simulation(args.diners, args.admin_email, args.admin_password))
    sys.exit(0 if summary["failed"] == 0 else 1)
