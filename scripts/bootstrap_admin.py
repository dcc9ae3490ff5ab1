#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from billmaster.core.config import BOOTSTRAP_ALLOW, BOOTSTRAP_COMPANY_NAME  # noqa: E402
from billmaster.core.database import Base, SessionLocal, engine  # noqa: E402
import billmaster.models  # noqa: E402,F401
from billmaster.services.admin_bootstrap import upsert_super_admin  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or update a platform Super Admin.")
    parser.add_argument("--email", required=True, help="Admin email")
    parser.add_argument("--password", help="Admin password (required when creating)")
    parser.add_argument("--name", default="Platform Admin", help="Admin display name")
    parser.add_argument(
        "--company",
        default=BOOTSTRAP_COMPANY_NAME,
        help="Platform company the admin belongs to (created if missing)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Run without BOOTSTRAP_ALLOW=1",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if not BOOTSTRAP_ALLOW and not args.force:
        print("Bootstrap disabled. Set BOOTSTRAP_ALLOW=1 or pass --force.")
        return 1

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        admin, created = upsert_super_admin(
            db,
            email=args.email,
            name=args.name,
            password=args.password,
            company_name=args.company,
        )
    except ValueError as exc:
        print(str(exc))
        return 1
    finally:
        db.close()

    action = "created" if created else "updated"
    print(f"Super Admin {action}: email={admin.email} company_id={admin.company_id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
