"""
Batch profile rebuild.

Reads a JSON-lines export of per-user activity bundles and writes one
profile snapshot per line:

    input   {"userId": "...", "user": {...}, "activity": {"posts": [...], ...}}
    output  {"profile": {...UserProfile...}, "segment": "casual_consumer"}

A malformed line is logged and counted, never fatal: the remaining users
still get fresh snapshots.

Entry point:
    def run_profile_rebuild(lines, out, *, now_utc=None, peak_hours=None) -> dict
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from datetime import datetime
from typing import IO, Any, Iterable

from services.personalization.profile.builder import build_profile
from services.personalization.profile.segments import classify_segment
from services.personalization.util import utcnow

logger = logging.getLogger(__name__)


def rebuild_one(
    bundle: dict[str, Any],
    *,
    now_utc: datetime | None = None,
    peak_hours: Iterable[int] | None = None,
) -> dict[str, Any]:
    """Build the output record for one activity bundle."""
    user_id = bundle.get("userId") or (bundle.get("user") or {}).get("_id")
    if not user_id:
        raise ValueError("activity bundle has no userId")

    profile = build_profile(
        str(user_id),
        bundle.get("user") or {},
        bundle.get("activity") or {},
        now_utc=now_utc,
        peak_hours=peak_hours,
    )
    return {"profile": profile.to_dict(), "segment": classify_segment(profile).value}


def run_profile_rebuild(
    lines: Iterable[str],
    out: IO[str],
    *,
    now_utc: datetime | None = None,
    peak_hours: Iterable[int] | None = None,
) -> dict[str, Any]:
    """
    Rebuild profiles for every bundle in ``lines`` and write them to ``out``.

    Returns a run summary: users_rebuilt, errors, segments histogram, duration_ms.
    """
    start_ts = time.monotonic()
    now = now_utc or utcnow()
    peak = list(peak_hours) if peak_hours is not None else None

    rebuilt = 0
    errors = 0
    segments: dict[str, int] = {}

    for line_no, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            bundle = json.loads(line)
            if not isinstance(bundle, dict):
                raise ValueError("activity bundle must be a JSON object")
            record = rebuild_one(bundle, now_utc=now, peak_hours=peak)
        except (ValueError, TypeError, AttributeError) as exc:
            errors += 1
            logger.warning("profile_rebuild: skipping line %d: %s", line_no, exc)
            continue

        out.write(json.dumps(record, ensure_ascii=False) + "\n")
        rebuilt += 1
        segments[record["segment"]] = segments.get(record["segment"], 0) + 1

    duration_ms = int((time.monotonic() - start_ts) * 1000)

    logger.info(
        "profile_rebuild: complete users=%d errors=%d duration_ms=%d",
        rebuilt,
        errors,
        duration_ms,
    )

    return {
        "status": "success",
        "users_rebuilt": rebuilt,
        "errors": errors,
        "segments": segments,
        "duration_ms": duration_ms,
    }


# ---------------------------------------------------------------------------
# Standalone entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    """Standalone entry point for running from cron or a Cloud Run Job."""
    from services.personalization.config import settings

    parser = argparse.ArgumentParser(description="Rebuild user profiles from activity exports")
    parser.add_argument("input", help="JSON-lines activity bundles ('-' for stdin)")
    parser.add_argument("output", help="JSON-lines profile output ('-' for stdout)")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    src = sys.stdin if args.input == "-" else open(args.input, encoding="utf-8")
    dst = sys.stdout if args.output == "-" else open(args.output, "w", encoding="utf-8")
    try:
        result = run_profile_rebuild(src, dst, peak_hours=settings.default_peak_hours)
    finally:
        if src is not sys.stdin:
            src.close()
        if dst is not sys.stdout:
            dst.close()

    print(json.dumps(result, indent=2), file=sys.stderr)


if __name__ == "__main__":
    main()
