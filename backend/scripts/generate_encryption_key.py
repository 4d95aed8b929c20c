#!/usr/bin/env python3
"""Print a fresh 256-bit ENCRYPTION_KEY for the .env file."""
import secrets

if __name__ == "__main__":
    print("Add this to your .env file:")
    print(f"ENCRYPTION_KEY={secrets.token_hex(32)}")
