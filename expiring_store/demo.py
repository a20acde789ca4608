import argparse
import logging
from typing import List, Optional, Sequence

from .audit import setup_logging
from .cache import NOT_FOUND, ExpiringStore
from .settings import SECONDS_PER_HOUR

PROFILE_KEY = "user:123:profile"


def run(max_items: int, ttl_seconds: int, show_log: bool = False) -> List[str]:
    store = ExpiringStore(max_items)
    store.set(PROFILE_KEY, {"name": "Alice", "role": "dev"}, ttl_seconds)

    lines = []
    profile = store.get(PROFILE_KEY)
    if profile is NOT_FOUND:
        lines.append(f"No profile cached for {PROFILE_KEY}")
    else:
        lines.append(f"Retrieved User: {profile['name']}")

    audit_log = store.get_audit_log()
    lines.append(f"Total Audit Entries: {len(audit_log)}")
    if show_log:
        for entry in audit_log:
            lines.append(f"[{entry.timestamp.isoformat()}] {entry.level.value}: {entry.message}")
    return lines


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Store a profile in an expiring store and read it back.")
    parser.add_argument("--max-items", type=int, default=10, help="Store capacity threshold")
    parser.add_argument("--ttl", type=int, default=2 * SECONDS_PER_HOUR, help="Profile time to live, in seconds")
    parser.add_argument("--show-log", action="store_true", help="Print every audit entry")
    parser.add_argument("--log-level", default="WARNING", help="Level for the mirrored stdlib log")
    args = parser.parse_args(argv)

    level = logging.getLevelName(args.log_level.upper())
    if not isinstance(level, int):
        parser.error(f"unknown log level: {args.log_level}")
    setup_logging(level)
    for line in run(args.max_items, args.ttl, args.show_log):
        print(line)


if __name__ == "__main__":
    main()
