#!/usr/bin/env python
"""Seed development database with fixture data.

Creates the fixture user (with personal queues) and enqueues one or two
fixture items per media type so local UIs have something to show.

Constraints:
- Refuses to run in staging or prod (UPNEXT_ENV check)
- Idempotent: existing users and already-queued media are skipped
- Never runs automatically (manual invocation only)

Usage:
    cd python && DATABASE_URL=... python ../scripts/seed_dev.py
"""

import os
import sys


def main():
    # 1. Environment check (hard fail in staging/prod)
    upnext_env = os.getenv("UPNEXT_ENV", "local")
    if upnext_env not in ("local", "test"):
        print(f"ERROR: seed_dev.py refuses to run in UPNEXT_ENV={upnext_env}")
        sys.exit(1)

    # 2. Check DATABASE_URL
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("ERROR: DATABASE_URL environment variable must be set")
        sys.exit(1)

    # 3. Import fixture data (single source of truth)
    from tests.fixtures import FIXTURE_USERNAME, SEED_QUEUE_ITEMS

    from upnext.db.session import session_scope
    from upnext.errors import ApiErrorCode
    from upnext.logging import configure_logging
    from upnext.services import queues, users

    configure_logging(json_format=False)

    with session_scope() as db:
        # 4. Idempotent seeding
        user_created = not users.user_exists(db, FIXTURE_USERNAME)
        if user_created:
            users.sign_up_user(db, FIXTURE_USERNAME, first_name="Alice")

        added: list[str] = []
        for media_type, payloads in SEED_QUEUE_ITEMS.items():
            queue = queues.get_queue_by_media_type_and_username_and_group(
                db, media_type, FIXTURE_USERNAME, None
            ).unwrap()
            for payload in payloads:
                result = queues.add_media_to_queue(db, media_type, queue.id, payload)
                if result.ok:
                    added.append(f"{media_type} {payload['_id']}")
                elif result.code != ApiErrorCode.E_MEDIA_ALREADY_IN_QUEUE:
                    result.unwrap()

    # 5. Report
    db_display = database_url.split("@")[1] if "@" in database_url else database_url
    print(f"Database: {db_display}")
    print(f"UPNEXT_ENV: {upnext_env}")
    print()
    print(f"{'✓ Created' if user_created else '• Exists'}: user {FIXTURE_USERNAME}")
    for item in added:
        print(f"✓ Queued: {item}")
    if not added:
        print("• All fixture media already queued")


if __name__ == "__main__":
    main()
