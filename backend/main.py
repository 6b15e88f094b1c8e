from typing import Optional
from fastapi import Depends, FastAPI, File, Header, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import extract_text_from_image, transcribe
from config import settings, logger, check_api_keys_on_startup
from exceptions import VerifactException
from middleware.context import RequestContextMiddleware, SESSION_HEADER, get_request_id
from models.inputs import AnalysisRequest, Modality
from models.verdicts import VerificationResponse
from services import VerificationService

app = FastAPI(title="Verifact API")

@app.on_event("startup")
async def startup_event():
    check_api_keys_on_startup()

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

verification_service = VerificationService()

def get_verification_service() -> VerificationService:
    return verification_service

@app.exception_handler(VerifactException)
async def verifact_exception_handler(request: Request, exc: VerifactException):
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message, extra={"request_id": get_request_id(), "details": exc.details})
    else:
        logger.info("Request rejected: %s", exc.message, extra={"request_id": get_request_id(), "details": exc.details})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.get("/")
async def health_check():
    return {"status": "ok", "message": "Verifact API is running."}

@app.post("/api/v1/analyze", response_model=VerificationResponse)
async def analyze(
    req: AnalysisRequest,
    x_session_id: Optional[str] = Header(default=None, alias=SESSION_HEADER),
    service: VerificationService = Depends(get_verification_service),
):
    """Analyze text, a URL, OCR text or a transcript."""
    return await service.verify(req.payload, req.modality, req.session_id or x_session_id)

@app.get("/api/v1/isFakeNews", response_model=VerificationResponse)
async def is_fake_news(
    news: str = Query(..., max_length=20000),
    x_session_id: Optional[str] = Header(default=None, alias=SESSION_HEADER),
    service: VerificationService = Depends(get_verification_service),
):
    """Text or URL check; a bare URL is fetched and its content analyzed."""
    return await service.verify(news, Modality.TEXT, x_session_id)

@app.post("/api/v1/analyzeImage", response_model=VerificationResponse)
async def analyze_image(
    file: UploadFile = File(...),
    x_session_id: Optional[str] = Header(default=None, alias=SESSION_HEADER),
    service: VerificationService = Depends(get_verification_service),
):
    image_bytes = await file.read()
    extracted_text = await extract_text_from_image(image_bytes) if image_bytes else ""
    return await service.verify(extracted_text, Modality.IMAGE_TEXT, x_session_id)

@app.post("/api/v1/analyzeAudio", response_model=VerificationResponse)
async def analyze_audio(
    file: UploadFile = File(...),
    x_session_id: Optional[str] = Header(default=None, alias=SESSION_HEADER),
    service: VerificationService = Depends(get_verification_service),
):
    audio_bytes = await file.read()
    transcript = await transcribe(audio_bytes) if audio_bytes else None
    return await service.verify(transcript or "", Modality.AUDIO_TEXT, x_session_id)

@app.delete("/api/v1/sessions/{session_id}")
async def end_session(
    session_id: str,
    service: VerificationService = Depends(get_verification_service),
):
    return {"session_id": session_id, "ended": service.end_session(session_id)}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
