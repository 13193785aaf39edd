from fastapi import APIRouter, Depends

from swasthya.api.deps import get_ai_service
from swasthya.schemas.ai import (
    DocumentPathRequest,
    ExtractedTextResponse,
    SummaryResponse,
    TranslateDocumentRequest,
    TranslateReportRequest,
    TranslationResponse,
)
from swasthya.services.ai_service import AIService

router = APIRouter()

@router.post("/translate-document", response_model=TranslationResponse)
async def translate_document(
    payload: TranslateDocumentRequest,
    service: AIService = Depends(get_ai_service)
):
    translated = await service.translate_document(payload.document_text)
    return TranslationResponse(translated_text=translated)

@router.post("/translate-medical-report", response_model=TranslationResponse)
async def translate_medical_report(
    payload: TranslateReportRequest,
    service: AIService = Depends(get_ai_service)
):
    translated = await service.translate_medical_report(payload.medical_text)
    return TranslationResponse(translated_text=translated, original_text=payload.medical_text)

@router.post("/summarize-document", response_model=SummaryResponse)
async def summarize_document(
    payload: DocumentPathRequest,
    service: AIService = Depends(get_ai_service)
):
    summary = await service.summarize_document(payload.file_path)
    return SummaryResponse(summary=summary)

@router.post("/extract-pdf-text", response_model=ExtractedTextResponse)
async def extract_pdf_text(
    payload: DocumentPathRequest,
    service: AIService = Depends(get_ai_service)
):
    text = await service.extract_pdf_text(payload.file_path)
    return ExtractedTextResponse(extracted_text=text, message="Text extracted successfully from PDF")

@router.post("/process-document-ocr", response_model=ExtractedTextResponse)
async def process_document_ocr(
    payload: DocumentPathRequest,
    service: AIService = Depends(get_ai_service)
):
    content = await service.process_document_ocr(payload.file_path)
    return ExtractedTextResponse(
        extracted_text=content,
        summary=content,
        message="Document processed successfully with OCR"
    )
