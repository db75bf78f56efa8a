"""FastAPI dependency utilities."""

from fastapi import HTTPException, Request, status

from teamgit.application.use_cases import ActivityStore


def get_activity_store(request: Request) -> ActivityStore:
    """Return the activity store created by the application lifespan."""

    store = getattr(request.app.state, "activity_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Activity store is not initialized",
        )
    return store
