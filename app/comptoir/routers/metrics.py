from fastapi import APIRouter, Response

from app.comptoir.core.metrics import metrics

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
def get_metrics():
    snapshot = metrics.render()
    return Response(content=snapshot.content, media_type=snapshot.content_type)
