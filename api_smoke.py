"""
Smoke script for the Unified Customer Service API
This script exercises the endpoints of a running server and prints the results.
Start the server first (python app.py), then run: python api_smoke.py [base_url]
"""
import sys

import requests
from tabulate import tabulate

# Configuration
API_URL = "http://localhost:8000"

SEARCH_QUERY = "Mustermann"
LOOKUP_EMAILS = [
    "max.mustermann@example.de",   # both systems
    "jan.schmidt@example.de",      # System A only
    "lisa.neu@example.de",         # System B only
    "ghost@example.de",            # neither
]
SYNC_EMAILS = ["sophie.mueller@example.de", "erika.muster@example.de", "jan.schmidt@example.de"]


def print_step(step_number, description):
    """Print a formatted step header"""
    print(f"\n{'='*80}")
    print(f"STEP {step_number}: {description}")
    print(f"{'='*80}")


def check_health(api_url):
    """Check that the API and both systems are up"""
    try:
        response = requests.get(f"{api_url}/health", timeout=10)
    except requests.exceptions.ConnectionError:
        print(f"❌ Could not connect to API at {api_url}")
        return False

    details = response.json().get("details", {})
    rows = [(system, info.get("status")) for system, info in details.items()]
    print(tabulate(rows, headers=["System", "Status"]))
    if response.status_code == 200:
        print("✅ Both systems are healthy")
    else:
        print(f"⚠️ Health check returned status code {response.status_code}")
    return True


def lookup_customers(api_url, emails):
    """Look up each email and summarize the unified records"""
    rows = []
    for email in emails:
        response = requests.get(f"{api_url}/customer/{email}", timeout=10)
        body = response.json()
        if response.status_code == 200:
            data = body["data"]
            meta = data["_metadata"]
            rows.append((email, response.status_code, data["name"], ",".join(meta["sources"]),
                         meta["isPartial"], meta["conflictsDetected"]))
        else:
            rows.append((email, response.status_code, body["error"]["message"], "", "", ""))
    print(tabulate(rows, headers=["Email", "Status", "Name / Error", "Sources", "Partial", "Conflicts"]))


def search_customers(api_url, query):
    """Search by name and list the merged hits"""
    response = requests.get(f"{api_url}/customer/search", params={"q": query}, timeout=30)
    if response.status_code != 200:
        print(f"❌ Search failed: {response.text}")
        return
    rows = [
        (c["email"], c["name"], ",".join(c["_metadata"]["sources"]), c["_metadata"]["isPartial"])
        for c in response.json()["data"]
    ]
    print(f"Found {len(rows)} customers matching \"{query}\"")
    print(tabulate(rows, headers=["Email", "Name", "Sources", "Partial"]))


def sync_customers(api_url, emails):
    """Run a sync check for each email and print the conflicts"""
    for email in emails:
        response = requests.post(f"{api_url}/customer/sync", json={"email": email}, timeout=10)
        if response.status_code != 200:
            print(f"❌ Sync failed for {email}: {response.text}")
            continue
        data = response.json()["data"]
        print(f"\n{email}: {data['status']} (matched: {', '.join(data['matchedFields']) or '-'})")
        if data["conflicts"]:
            rows = [
                (c["field"], c["systemAValue"], c["systemBValue"], c["newerSource"])
                for c in data["conflicts"]
            ]
            print(tabulate(rows, headers=["Field", "System A", "System B", "Newer"]))


def main():
    api_url = sys.argv[1].rstrip("/") if len(sys.argv) > 1 else API_URL

    print_step(1, "Checking health")
    if not check_health(api_url):
        return

    print_step(2, "Looking up customers by email")
    lookup_customers(api_url, LOOKUP_EMAILS)

    print_step(3, f"Searching for \"{SEARCH_QUERY}\"")
    search_customers(api_url, SEARCH_QUERY)

    print_step(4, "Running sync checks")
    sync_customers(api_url, SYNC_EMAILS)

    print("\n✅ Smoke run completed")


if __name__ == "__main__":
    main()
