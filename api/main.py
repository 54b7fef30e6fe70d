"""
FastAPI 메인 애플리케이션

- POST /extractions, POST /extractions/upload
- GET /extractions/{extraction_id}, GET /extractions
- POST /webhooks/document-extraction/{provider}
"""

import logging
from pathlib import Path
from typing import List, Optional
from fastapi import FastAPI, Depends, File, Form, UploadFile, HTTPException
from pydantic import BaseModel, Field

from app.config import get_settings
from app.database import init_db
from app.logging_config import configure_logging
from app.models import ExtractionStatus
from app.services import ExtractionService, FileStorage
from api.dependencies import get_extraction_service, get_storage
from api.webhooks import router as webhook_router

logger = logging.getLogger(__name__)

# FastAPI 앱 생성
app = FastAPI(
    title="Document Extraction API",
    description="외부 OCR provider를 통한 문서 추출 요청/결과 관리 API",
    version="1.0.0"
)

app.include_router(webhook_router)


# ============================================================================
# Request/Response Models
# ============================================================================

class ExtractionRequest(BaseModel):
    """추출 요청"""
    type: str
    filename: str
    metadata: dict = Field(default_factory=dict)
    force: bool = False


class ExtractionResponse(BaseModel):
    """추출 기록 응답"""
    id: str
    type: str
    filename: str
    identifier: str
    extracted_data: dict
    metadata: dict
    status: str
    error_message: Optional[str]
    external_task_id: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]


# ============================================================================
# Startup/Shutdown Events
# ============================================================================

@app.on_event("startup")
def startup_event():
    """앱 시작 시 로깅/데이터베이스 초기화"""
    configure_logging(get_settings().log_level)
    init_db()
    logger.info("Database initialized")


# ============================================================================
# API Endpoints
# ============================================================================

@app.post("/extractions", response_model=ExtractionResponse)
def request_extraction(
    payload: ExtractionRequest,
    service: ExtractionService = Depends(get_extraction_service)
):
    """
    추출 요청

    같은 (type, filename) 기록이 있으면 그대로 반환 (force=True면 새로 생성)
    """
    extraction = service.request_extraction(
        payload.type,
        payload.filename,
        metadata=payload.metadata,
        force=payload.force
    )
    return ExtractionResponse(**extraction.to_dict())


@app.post("/extractions/upload", response_model=ExtractionResponse)
async def upload_and_extract(
    file: UploadFile = File(...),
    type: str = Form(...),
    force: bool = Form(False),
    storage: FileStorage = Depends(get_storage),
    service: ExtractionService = Depends(get_extraction_service)
):
    """
    파일 업로드 후 추출 요청

    파일은 저장소 루트에 파일명 그대로 저장되고, 그 이름이 filename 키가 됨
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="업로드 파일 이름이 없습니다")

    key = Path(file.filename).name
    storage.put(key, await file.read())

    extraction = service.request_extraction(type, key, force=force)
    return ExtractionResponse(**extraction.to_dict())


@app.get("/extractions/{extraction_id}", response_model=ExtractionResponse)
def get_extraction(extraction_id: str, service: ExtractionService = Depends(get_extraction_service)):
    """추출 기록 조회"""
    extraction = service.get_extraction(extraction_id)
    if not extraction:
        raise HTTPException(status_code=404, detail=f"추출 기록을 찾을 수 없습니다: {extraction_id}")

    return ExtractionResponse(**extraction.to_dict())


@app.get("/extractions", response_model=List[ExtractionResponse])
def list_extractions(
    status: Optional[ExtractionStatus] = None,
    type: Optional[str] = None,
    service: ExtractionService = Depends(get_extraction_service)
):
    """추출 기록 목록 (최신순)"""
    extractions = service.list_extractions(status=status, document_type=type)
    return [ExtractionResponse(**extraction.to_dict()) for extraction in extractions]


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/")
def root():
    """API 루트"""
    return {
        "message": "Document Extraction API",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": [
            "POST /extractions - 추출 요청",
            "POST /extractions/upload - 파일 업로드 후 추출 요청",
            "GET /extractions/{extraction_id} - 추출 기록 조회",
            "GET /extractions - 추출 기록 목록",
            "POST /webhooks/document-extraction/{provider} - provider webhook"
        ]
    }


# ============================================================================
# 실행
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
