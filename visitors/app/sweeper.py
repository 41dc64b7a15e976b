"""Daily retention sweep for the visitor log.

Once a day, at midnight server-local time, records whose ``dateTime`` is
older than the retention window are removed from the log. Records whose
timestamp cannot be parsed are removed too. A failed sweep is logged and
skipped; the next day's run starts over.

Run ``python -m visitors.app.sweeper`` to sweep once immediately.
"""

import argparse
import asyncio
import datetime
import logging
import sys

import common.log
import common.settings

from .errors import StorageError
from .models import VisitorRecord
from .store import VisitorStore

logger = logging.getLogger(__name__)

RUN_AT = datetime.time(0, 0)


def parse_timestamp(value: str) -> datetime.datetime | None:
    """Parse an ISO-8601 timestamp into an aware datetime, or None.

    A bare date is midnight UTC; a date-time without an offset is server-local.
    """
    text = value.strip()
    try:
        parsed = datetime.datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        return parsed
    if 'T' not in text and ' ' not in text:
        return parsed.replace(tzinfo=datetime.UTC)
    return parsed.astimezone()


def retention_cutoff(
    now: datetime.datetime | None = None, days: int | None = None
) -> datetime.datetime:
    """Return the oldest instant a record may have and still be kept."""
    if now is None:
        now = datetime.datetime.now(datetime.UTC)
    if days is None:
        days = common.settings.RETENTION_DAYS
    return now - datetime.timedelta(days=days)


def is_retained(record: VisitorRecord, cutoff: datetime.datetime) -> bool:
    """True if the record's timestamp parses and is at or after *cutoff*."""
    recorded_at = parse_timestamp(record.dateTime)
    return recorded_at is not None and recorded_at >= cutoff


def sweep(
    store: VisitorStore,
    now: datetime.datetime | None = None,
    retention_days: int | None = None,
) -> int:
    """Drop expired and unparseable records from *store*; return how many went."""
    cutoff = retention_cutoff(now, retention_days)
    logger.info('Running cleanup job (cutoff %s)', cutoff.isoformat())
    removed = store.rewrite_filtered(lambda record: is_retained(record, cutoff))
    logger.info('Cleanup job completed, %d record(s) removed', removed)
    return removed


def sweep_quietly(
    store: VisitorStore, retention_days: int | None = None
) -> int | None:
    """Run :func:`sweep`, logging and discarding any error."""
    try:
        return sweep(store, retention_days=retention_days)
    except Exception:
        logger.exception('Error during cleanup of %s', store.path)
        return None


def next_run_after(
    after: datetime.datetime, run_at: datetime.time = RUN_AT
) -> datetime.datetime:
    """Return the first local wall-clock time *run_at* strictly after *after*."""
    local = after.astimezone()
    run_time = datetime.time(run_at.hour, run_at.minute)
    # Combine naive wall-clock values so the UTC offset is resolved per day.
    candidate = datetime.datetime.combine(local.date(), run_time).astimezone()
    if candidate <= local:
        next_day = local.date() + datetime.timedelta(days=1)
        candidate = datetime.datetime.combine(next_day, run_time).astimezone()
    return candidate


async def run_daily(
    store: VisitorStore,
    run_at: datetime.time = RUN_AT,
    retention_days: int | None = None,
) -> None:
    """Sweep *store* every day at *run_at* until cancelled."""
    last_run: datetime.datetime | None = None
    while True:
        now = datetime.datetime.now().astimezone()
        target = next_run_after(max(now, last_run) if last_run else now, run_at)
        delay = (target - now).total_seconds()
        logger.debug('Next cleanup at %s (in %.0fs)', target.isoformat(), delay)
        await asyncio.sleep(delay)
        await asyncio.to_thread(sweep_quietly, store, retention_days)
        last_run = target


def main(argv: list[str] | None = None) -> int:
    """Sweep the visitor log once and exit."""
    parser = argparse.ArgumentParser(
        description='Remove visitor log records older than the retention window'
    )
    parser.add_argument(
        '--path',
        default=common.settings.VISITOR_LOG_PATH,
        help='visitor log file (default: %(default)s)',
    )
    parser.add_argument(
        '--days',
        type=int,
        default=common.settings.RETENTION_DAYS,
        help='retention window in days (default: %(default)s)',
    )
    args = parser.parse_args(argv)

    common.log.configure_logging()
    try:
        sweep(VisitorStore(args.path), retention_days=args.days)
    except StorageError as exc:
        logger.error('Cleanup failed: %s', exc.message)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
