from catalog.tasks.celery_app import celery_app
from catalog.tasks import progress
from catalog.database import SessionLocal
from catalog.services.maintenance import (
    backfill_product_codes,
    cleanup_duplicate_variants,
    fix_duplicate_csv_sizes,
)
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

JOBS = {
    "backfill-codes": backfill_product_codes,
    "cleanup-duplicate-variants": cleanup_duplicate_variants,
    "fix-duplicate-csv-sizes": fix_duplicate_csv_sizes,
}


def run_job(task_id: str, job: str, celery_task_id=None) -> dict:
    """
    Run one maintenance job in its own session, committing once at the end and
    reporting progress to Redis.
    """
    if job not in JOBS:
        raise ValueError(f"Unknown maintenance job {job!r}")

    progress.update_progress(
        task_id,
        job=job,
        status="processing",
        message=f"Running {job}...",
        celery_task_id=celery_task_id,
    )

    db = SessionLocal()
    try:
        result = JOBS[job](db)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"[maintenance] {job} failed: {e}")
        progress.update_progress(
            task_id,
            status="failed",
            message=f"{job} failed: {str(e)}",
            progress=100.0,
            completed_at=datetime.utcnow().isoformat(),
            errors=[str(e)],
        )
        raise
    finally:
        db.close()

    progress.update_progress(
        task_id,
        status="completed",
        result=result,
        message=f"{job} completed",
        progress=100.0,
        completed_at=datetime.utcnow().isoformat(),
    )
    logger.info(f"[maintenance] {job} completed: {result}")
    return result


@celery_app.task(bind=True, ignore_result=True)
def run_maintenance_job(self, task_id: str, job: str):
    return run_job(task_id, job, celery_task_id=self.request.id)
