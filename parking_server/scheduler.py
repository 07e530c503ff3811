# parking_server/scheduler.py
"""
In-process scheduler: runs each reconciler on its own interval.

Used when no external cron calls the /reconcile endpoints. Each pass runs
in a worker thread with a fresh session; a failed pass is logged and the
loop keeps going.
"""
import asyncio
import logging
from typing import Callable

from .db import SessionLocal
from .deps import get_clock
from .services.expiry_reconciler import run_expiry_check
from .services.overstay_reconciler import run_overstay_check
from .utils.notification_service import get_dispatcher

logger = logging.getLogger(__name__)


def _run_pass(reconcile: Callable):
    db = SessionLocal()
    try:
        return reconcile(db, get_dispatcher(), get_clock().now())
    finally:
        db.close()


async def run_reconcile_loop(name: str, reconcile: Callable, interval_seconds: int) -> None:
    logger.info(f"Starting {name} loop (interval: {interval_seconds}s)")

    while True:
        try:
            summary = await asyncio.to_thread(_run_pass, reconcile)
            if summary.errors:
                logger.warning(f"{name} pass finished with {len(summary.errors)} error(s)")
        except Exception as e:
            logger.error(f"{name} loop error: {e}")

        await asyncio.sleep(interval_seconds)


def start_reconcile_loops(expiry_interval: int, overstay_interval: int) -> list:
    return [
        asyncio.create_task(
            run_reconcile_loop("expiry check", run_expiry_check, expiry_interval)),
        asyncio.create_task(
            run_reconcile_loop("overstay check", run_overstay_check, overstay_interval)),
    ]


async def stop_reconcile_loops(tasks: list) -> None:
    for task in tasks:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
