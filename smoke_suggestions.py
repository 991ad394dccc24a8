#!/usr/bin/env python3
"""
Simple script to check a running song radio server end to end.
Usage: python smoke_suggestions.py [base_url] [search_query]
"""
import sys
import requests

base_url = sys.argv[1].rstrip("/") if len(sys.argv) > 1 else "http://localhost:8000"
query = sys.argv[2] if len(sys.argv) > 2 else "tum hi ho"

# Test 1: Health
print("Test 1: Checking health...")
response = requests.get(f"{base_url}/health", timeout=10)
print(f"Status: {response.status_code}")
if response.status_code != 200:
    print(f"Error: {response.text}")
    sys.exit(1)
print(f"Profile: {response.json().get('engineProfile')}")

# Test 2: Search for a seed song
print(f"\nTest 2: Searching for {query!r}...")
response = requests.get(f"{base_url}/api/search", params={"q": query, "limit": 5}, timeout=30)
print(f"Status: {response.status_code}")
if response.status_code != 200:
    print(f"Error: {response.text}")
    sys.exit(1)
songs = response.json().get("data", [])
for song in songs[:3]:
    print(f"  - {song['title']} by {song['primaryArtists']} ({song['id']})")
if not songs:
    sys.exit(1)

# Test 3: Suggestions for the first hit
seed = songs[0]
print(f"\nTest 3: Getting suggestions for {seed['title']}...")
response = requests.get(f"{base_url}/api/suggestions/{seed['id']}", params={"limit": 10}, timeout=60)
print(f"Status: {response.status_code}")
if response.status_code == 200:
    data = response.json()
    print(f"Got {data['results']} suggestions in {data['performance']['totalTime']}:")
    for item in data.get("data", [])[:5]:
        print(f"  {item['rank']}. {item['title']} by {item['primaryArtists']} [{item['aiScore']}] {item['matchReason']}")
else:
    print(f"Error: {response.text}")
