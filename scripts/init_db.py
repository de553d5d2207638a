import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from fairshare_gateway.config import load_config
from fairshare_gateway.db import init_db


def main() -> None:
    cfg = load_config()
    init_db(cfg.DB_DSN, timeout_seconds=cfg.STORE_TIMEOUT_SECONDS)
    print("Credential store initialized")


if __name__ == "__main__":
    main()
