from fastapi import APIRouter

from bayesab.stats.distributions import Family

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "families": [f.value for f in Family]}
