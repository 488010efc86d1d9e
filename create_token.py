"""Mint a bearer token for an existing local account.

Only meaningful with ``STORAGE_BACKEND=local``: the token is signed
with ``SECRET_KEY`` and accepted by the local identity provider as
long as the account exists.

Usage:
    python create_token.py <user id> [days]
"""
import sys

from vehicle_docs_api.app.core.security import create_access_token


def main() -> None:
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    user_id = sys.argv[1]
    days = int(sys.argv[2]) if len(sys.argv) > 2 else 365
    print(create_access_token({"sub": user_id}, expires_delta=days * 24 * 60 * 60))


if __name__ == "__main__":
    main()
