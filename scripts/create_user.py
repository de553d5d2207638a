"""Create a user in the credential store.

Usage:
  python scripts/create_user.py --username alice --password '...'

Goes through the same path as POST /api/auth/register.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from fairshare_gateway.auth.crud import CredentialStore, register_user
from fairshare_gateway.config import load_config
from fairshare_gateway.db import init_db
from fairshare_gateway.errors import ValidationError


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--username", required=True)
    ap.add_argument("--password", required=True)
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN, timeout_seconds=cfg.STORE_TIMEOUT_SECONDS)
    store = CredentialStore(cfg.DB_DSN, timeout_seconds=cfg.STORE_TIMEOUT_SECONDS)

    try:
        record = register_user(store, cfg, username=args.username, password=args.password)
    except ValidationError as e:
        raise SystemExit(f"Could not create user: {e.message}")

    print("Created user:")
    print(record)


if __name__ == "__main__":
    main()
