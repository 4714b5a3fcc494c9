"""Print a Bearer access token for local API testing.

    python scripts/issue_dev_token.py 3 --role admin
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_ledger.attendance_ledger.auth.access import issue_access_token
from src.attendance_ledger.attendance_ledger.auth.model import Principal
from src.attendance_ledger.attendance_ledger.core.enums import Role


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("employee_id", type=int)
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.EMPLOYEE.value)
    parser.add_argument("--minutes", type=int, default=60)
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    token = issue_access_token(
        Principal(employee_id=args.employee_id, role=Role(args.role)),
        settings.SECRET_KEY,
        minutes=args.minutes,
    )
    print(token)


if __name__ == "__main__":
    main()
