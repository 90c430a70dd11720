#!/usr/bin/env python3
"""Field Permissions quickstart.

Demonstrates the core workflow of the visibility engine:

1. Create an engine over the default configuration.
2. Annotate properties with visibility requirements.
3. Open a session and decide per user and property.
4. Filter a result row down to what each user may see.
5. Add a level and an assignment through the admin API.
6. Observe that only the next session sees the change.

Run:
    python examples/quickstart.py
"""
from __future__ import annotations

import asyncio

from field_permissions import (
    FieldPermissionsConfig,
    InMemoryAnnotationSource,
    UserIdentity,
    VisibilityAdmin,
    VisibilityEngine,
)

USERS = [
    UserIdentity(user_id=1, name="Ada", groups=["user", "lab_member"]),
    UserIdentity(user_id=2, name="Bob", groups=["user"]),
    UserIdentity(user_id=3, name="Carol", groups=["pi"]),
    UserIdentity(user_id=4, name="Dana", groups=["hr"]),
    UserIdentity(user_id=0, name="203.0.113.7"),
]

ROW = {
    "Name": ["Ada Lovelace"],
    "Email": ["ada@example.org"],
    "Salary": [5200],
}


async def main() -> None:
    # -- Step 1: Create the engine -------------------------------------------
    annotations = InMemoryAnnotationSource()
    engine = VisibilityEngine.from_config(FieldPermissionsConfig(), annotations)
    print("[1] Engine created with levels public(0), internal(10), sensitive(20)")

    # -- Step 2: Annotate properties -----------------------------------------
    annotations.put_level("Email", "Visibility:Internal")
    annotations.put_level("Salary", "sensitive")
    annotations.put_allowed_groups("Salary", "HR")
    print("[2] Email requires 'internal'; Salary requires 'sensitive', visible to HR")

    # -- Step 3 and 4: Decide and filter -------------------------------------
    async with await engine.begin_session() as session:
        print(f"[3] Session {session.key}")
        for user in USERS:
            label = user.name if not user.is_anonymous else f"anonymous ({user.name})"
            visible = session.filter_properties(user, ROW)
            print(f"    {label:<26} sees {sorted(visible) or 'nothing'}")

    # -- Step 5: Administrative change ---------------------------------------
    admin = VisibilityAdmin(engine.store)
    await admin.add_level("restricted", 15)
    await admin.set_group_level("hr", "restricted")
    print("[4] Added level 'restricted' (15) and assigned it to group 'hr'")

    # -- Step 6: The next session sees the change ----------------------------
    async with await engine.begin_session() as session:
        dana = USERS[3]
        print(f"[5] Dana may see Email now: {session.decide(dana, 'Email')}")

    print("\nDone.")


if __name__ == "__main__":
    asyncio.run(main())
