"""
Batch jobs for the personalization service.

These run as standalone Python scripts via cron / Cloud Scheduler,
NOT inside the FastAPI process.

Usage:
    python -m services.personalization.jobs.profile_rebuild activity.jsonl profiles.jsonl

Schedule: profile_rebuild runs on a minutes-to-hours cadence. Ranking and
notification scoring always use the most recently completed snapshot, so a
slow or failed run only means a stale profile, never an error.
"""
