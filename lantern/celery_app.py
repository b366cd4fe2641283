"""Celery application setup.

Only used when ``decay_backend`` is "celery": beat then drives the station
decay instead of the in-process loop.
"""

from __future__ import annotations

from celery import Celery

from lantern.config import settings

celery_app = Celery(
    "lantern",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["lantern.tasks.station_tasks"],
)

celery_app.conf.beat_schedule = {
    "decay-stations": {
        "task": "lantern.tasks.station_tasks.decay_stations",
        "schedule": settings.signal_reset_timeout,
    },
}
