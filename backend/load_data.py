"""
Data Loader Script - Seeds the nine DYS sessions and their check-in codes via API.

Logs in as the configured admin, creates any DYS session that does not exist
yet, and sets the default code on every seeded session that has none.
Existing sessions keep their details and any code already set.
This can be run from inside the backend container or from the host.

Usage:
    python load_data.py                              # Uses default URL
    python load_data.py http://localhost:8000         # Custom API URL
    python load_data.py http://backend:8000           # Inside Docker network

Admin credentials come from ADMIN_EMAIL / ADMIN_PASSWORD.
"""

import os
import sys
from datetime import date, timedelta

import httpx

# Default check-in code per session
SESSION_CODES = {
    "DYS1": "SELF2024",
    "DYS2": "EMOT2024",
    "DYS3": "COMM2024",
    "DYS4": "LEAD2024",
    "DYS5": "TEAM2024",
    "DYS6": "PROB2024",
    "DYS7": "GOAL2024",
    "DYS8": "BRAND2024",
    "DYS9": "FINAL2024",
}

SESSION_NAMES = {
    "DYS1": "Self Awareness",
    "DYS2": "Emotional Intelligence",
    "DYS3": "Communication Skills",
    "DYS4": "Leadership",
    "DYS5": "Teamwork",
    "DYS6": "Problem Solving",
    "DYS7": "Goal Setting",
    "DYS8": "Personal Branding",
    "DYS9": "Final Assessment",
}


def login(client, api_url):
    resp = client.post(f"{api_url}/api/auth/admin/login", json={
        "email": os.getenv("ADMIN_EMAIL", "admin@ethicraft.com"),
        "password": os.getenv("ADMIN_PASSWORD", "change-me"),
    })
    if resp.status_code != 200:
        print(f"Admin login failed ({resp.status_code}): {resp.text}")
        sys.exit(1)
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def main():
    # Determine API base URL
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:8000")
    first_date = date.today() + timedelta(days=7)

    with httpx.Client(timeout=30.0) as client:
        headers = login(client, api_url)

        resp = client.get(f"{api_url}/api/sessions", headers=headers)
        resp.raise_for_status()
        existing = {s["id"]: s for s in resp.json()["data"]}
        print(f"Found {len(existing)} existing sessions")
        print()

        created = coded = 0
        for index, (session_id, code) in enumerate(SESSION_CODES.items()):
            if session_id not in existing:
                resp = client.post(f"{api_url}/api/sessions", headers=headers, json={
                    "name": SESSION_NAMES[session_id],
                    "date": (first_date + timedelta(weeks=index)).isoformat(),
                    "time": "10:00",
                    "venue": "Seminar Hall",
                    "type": "Assessment",
                })
                resp.raise_for_status()
                new_id = resp.json()["id"]
                if new_id != session_id:
                    # Ids are assigned server-side as the first free DYS<n>
                    print(f"  ⚠️ {SESSION_NAMES[session_id]} was created as {new_id}")
                existing[new_id] = resp.json()
                session_id = new_id
                created += 1

            if existing[session_id].get("session_code"):
                print(f"  ⏭️ {session_id}: code already set")
                continue

            resp = client.put(f"{api_url}/api/sessions/{session_id}/code",
                              headers=headers, json={"session_code": code})
            if resp.status_code != 200:
                print(f"  ❌ {session_id}: {resp.text}")
                continue
            coded += 1
            print(f"  ✅ {session_id}: code set to {code}")

    print()
    print("=" * 60)
    print("SEED SUMMARY")
    print("=" * 60)
    print(f"  Sessions Created: {created}")
    print(f"  Codes Set:        {coded}")
    print("=" * 60)


if __name__ == "__main__":
    main()
