"""
Webhook 라우터

POST /webhooks/document-extraction/{provider}
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config import Settings
from app.repositories import ExtractionRepository
from app.services import ExtractionService
from providers import KoncileWebhookHandler
from api.dependencies import get_app_settings, get_db

router = APIRouter()

# URL의 provider 이름 → webhook 핸들러
WEBHOOK_HANDLERS = {
    "koncile": KoncileWebhookHandler,
}


@router.post("/webhooks/document-extraction/{provider}")
async def receive_webhook(
    provider: str,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
):
    """
    Provider webhook 수신

    서명 검증은 원본 body 그대로 사용 (JSON 재직렬화 금지)
    """
    handler_cls = WEBHOOK_HANDLERS.get(provider)
    if handler_cls is None:
        return JSONResponse(status_code=404, content={"error": "Unknown provider"})

    raw_body = await request.body()
    service = ExtractionService(ExtractionRepository(db))
    response = handler_cls(service, settings).handle(raw_body, request.headers)

    return JSONResponse(status_code=response.status_code, content=response.body)
