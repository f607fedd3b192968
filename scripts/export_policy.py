"""Export the role/permission matrix as CSV for HR documentation.

Rows are grouped by permission category; one column per role.
"""

from __future__ import annotations

import csv
import sys
from datetime import datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT / "src" / "ekhaya_hr") not in sys.path:
    sys.path.insert(0, str(REPO_ROOT / "src" / "ekhaya_hr"))

from ekhaya_hr.core.enums import Role
from ekhaya_hr.policy.defaults import build_default_engine
from ekhaya_hr.policy.permissions import PermissionCategory, permissions_in


def main() -> None:
    policy = build_default_engine()

    out_dir = REPO_ROOT / "exports"
    out_dir.mkdir(parents=True, exist_ok=True)
    out_file = out_dir / f"permission_matrix_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"

    roles = list(Role)
    with out_file.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["category", "permission"] + [r.value for r in roles])
        for category in PermissionCategory:
            for permission in sorted(permissions_in(category), key=lambda p: p.value):
                writer.writerow(
                    [category.value, permission.value]
                    + ["x" if policy.has_permission(r, permission) else "" for r in roles]
                )
        writer.writerow([])
        writer.writerow(["constraint", ""] + [r.value for r in roles])
        for field in ("expense_limit", "salary_limit", "team_size_limit", "department_only", "team_only"):
            values = [getattr(policy.get_role_constraints(r), field) for r in roles]
            writer.writerow([field, ""] + ["unlimited" if v is None else v for v in values])

    print(f"OK: Permission matrix written: {out_file}")


if __name__ == "__main__":
    main()
