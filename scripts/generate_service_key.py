#!/usr/bin/env python3
"""
Generate the service key used by the completion scheduler.
Run from the project root: python3 scripts/generate_service_key.py
"""
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from interview_booking.utils.api_key import generate_api_key, hash_api_key


def main():
    api_key = generate_api_key()
    key_hash = hash_api_key(api_key)

    print("=" * 50)
    print(f"API Key:      {api_key}")
    print(f"SHA-256 Hash: {key_hash}")
    print("=" * 50)
    print("\n1. Add the hash to your .env file:")
    print(f"   SERVICE_API_KEY_HASH={key_hash}")
    print("2. Restart the server.")
    print("3. Give the API Key to the scheduler; it sends it in the 'X-API-Key' header.")
    print("\n⚠️  Save the API key now. Only the hash is stored.")


if __name__ == "__main__":
    main()
