from fastapi import APIRouter, HTTPException
from catalog.schemas import TaskEnqueuedResponse, TaskProgressResponse
from catalog.tasks import progress
from catalog.tasks.maintenance import JOBS, run_maintenance_job
import redis
import uuid

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.post("/maintenance/{job}", response_model=TaskEnqueuedResponse, status_code=202)
def enqueue_maintenance_job(job: str):
    """Queue a catalog maintenance job (backfill-codes, cleanup-duplicate-variants, fix-duplicate-csv-sizes)."""
    if job not in JOBS:
        raise HTTPException(status_code=404, detail=f"Unknown job. Valid jobs: {sorted(JOBS)}")

    task_id = str(uuid.uuid4())
    try:
        progress.update_progress(task_id, job=job, status="pending", message=f"Queued {job}")
    except redis.exceptions.RedisError as e:
        raise HTTPException(status_code=500, detail=f"Error connecting to Redis: {str(e)}")

    run_maintenance_job.delay(task_id, job)

    return TaskEnqueuedResponse(task_id=task_id, job=job, message=f"{job} queued")


@router.get("/{task_id}/progress", response_model=TaskProgressResponse)
def get_task_progress(task_id: str):
    """Get progress of a maintenance job."""
    try:
        data = progress.read_progress(task_id)
    except redis.exceptions.RedisError as e:
        raise HTTPException(status_code=500, detail=f"Error connecting to Redis: {str(e)}")

    if not data:
        raise HTTPException(status_code=404, detail="Task not found")

    return TaskProgressResponse(**data)
