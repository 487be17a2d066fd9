from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging as celery_setup_logging

from fundscope.core.config import settings
from fundscope.core.logging import setup_logging

app = Celery("fundscope")
app.conf.broker_url = settings.CELERY_BROKER_URL
app.conf.result_backend = settings.CELERY_RESULT_BACKEND
app.conf.timezone = settings.CELERY_TIMEZONE
app.conf.enable_utc = False

app.conf.include = [
    "fundscope.tasks.quality_scores",
    "fundscope.tasks.fund_scores",
]

# Fund rebuild reads the stock ratings cache, so it runs after scoring.
app.conf.beat_schedule = {
    "compute-quality-scores": {
        "task": "fundscope.tasks.quality_scores.compute_quality_scores",
        "schedule": crontab(
            hour=settings.SCORE_REFRESH_HOUR,
            minute=settings.SCORE_REFRESH_MINUTE,
        ),
    },
    "rebuild-fund-scores": {
        "task": "fundscope.tasks.fund_scores.rebuild_fund_scores",
        "schedule": crontab(
            hour=settings.FUND_REFRESH_HOUR,
            minute=settings.FUND_REFRESH_MINUTE,
        ),
    },
    "refresh-fund-nav-cagr": {
        "task": "fundscope.tasks.fund_scores.refresh_fund_nav_cagr",
        "schedule": crontab(
            hour=settings.NAV_REFRESH_HOUR,
            minute=settings.NAV_REFRESH_MINUTE,
        ),
    },
}


@celery_setup_logging.connect
def configure_worker_logging(**kwargs) -> None:
    """Workers log through the same format and levels as the API."""
    setup_logging()
