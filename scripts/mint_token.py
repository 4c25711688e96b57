"""Mint a bearer token for the management endpoints.

Usage: python scripts/mint_token.py <name> [scope ...]   (default scope "*")
"""
import os
import sys
import uuid

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.core.security import issue_token

def main(argv: list[str]) -> None:
    if not argv:
        print(__doc__.strip())
        raise SystemExit(2)
    name, scopes = argv[0], argv[1:] or ["*"]
    print(issue_token(uuid.uuid4(), name, scopes))

if __name__ == "__main__":
    main(sys.argv[1:])
