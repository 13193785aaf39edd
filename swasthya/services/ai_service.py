"""
Calls to the hosted generative-AI APIs used by the portals.

- Gemini ``generateContent`` for plain-language translation, document
  summaries, PDF text extraction and the dashboard tracking figure.
- An OpenAI-compatible AI gateway for translating clinical reports.
- Mistral's Pixtral chat model for OCR of uploaded documents.

Upstream failures surface as HTTP errors; only the tracking figure falls back
to a fixed default.
"""
import base64
import mimetypes
from typing import Optional

import httpx
from fastapi import HTTPException

from swasthya.core.config import settings
from swasthya.core.logger import logger
from swasthya.services.storage_service import StorageService

TRANSLATE_DOCUMENT_PROMPT = """Please translate this medical document text into simple, easy-to-understand language that a common person can comprehend. Use simple words, explain medical terms in plain language, and structure the information clearly with bullet points where appropriate. Make it friendly and reassuring while maintaining accuracy:

{text}

Format the response with clear headings and use **bold text** for important points instead of asterisks (*). Make it conversational and easy to read."""

REPORT_SYSTEM_PROMPT = "You are a medical assistant. Translate clinical text into clear, simple language for patients. Keep it accurate, concise, and friendly."

REPORT_USER_PROMPT = "Translate this to plain language and explain terms if needed. Return short paragraphs or bullet points.\n\n{text}"

SUMMARY_PROMPT = "Please analyze this medical document and provide: 1) A concise summary of the key medical information (2-3 sentences), 2) Main findings or diagnosis, 3) Key recommendations or prescribed treatments. Format it clearly with bullet points and make it easy to understand for patients."

EXTRACT_PROMPT = "Please extract all the text content from this medical document. Focus on extracting complete medical information including patient details, diagnosis, prescriptions, test results, doctor's notes, and any other relevant medical data. Format the output clearly and preserve all important medical terminology."

OCR_PROMPT = """You are analyzing a medical document. Extract ALL text using OCR, then provide:

1. **Complete Text Extraction**: All readable text from the document
2. **Summary** (2-3 sentences): Brief overview of the document
3. **Key Medical Findings**: Important diagnoses, test results, or observations (bullet points)
4. **Prescribed Treatments**: Medications, procedures, or recommendations (bullet points)

Format your response clearly with headings and bullet points for easy reading."""

TRACKING_PROMPT = """Based on the following health system statistics, calculate a realistic health tracking percentage:
- Total Registered Workers: {workers}
- Total Medical Records: {records}
- Total Medical Documents: {documents}

Calculate a percentage that represents how well the system is tracking health data.
Consider factors like:
- Record-to-worker ratio
- Document availability
- Overall system engagement

Return only a number between 80-99 (as an integer), nothing else."""


class AIService:
    def __init__(self, storage: StorageService, client: Optional[httpx.AsyncClient] = None):
        self.storage = storage
        self.client = client or httpx.AsyncClient(timeout=settings.AI_TIMEOUT_SECONDS)

    async def close(self):
        await self.client.aclose()

    @staticmethod
    def _require(value: Optional[str], message: str) -> str:
        if not value or not value.strip():
            raise HTTPException(status_code=400, detail=message)
        return value

    async def _post(self, name: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self.client.post(url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{name} request failed: {e}")
            raise HTTPException(status_code=502, detail=f"{name} request failed")

    async def _gemini(self, parts: list, generation_config: dict) -> str:
        if not settings.GEMINI_API_KEY:
            raise HTTPException(status_code=500, detail="Gemini API key not configured")

        url = f"{settings.GEMINI_BASE_URL}/models/{settings.GEMINI_MODEL}:generateContent"
        response = await self._post(
            "Gemini API",
            url,
            params={"key": settings.GEMINI_API_KEY},
            json={"contents": [{"parts": parts}], "generationConfig": generation_config},
        )
        if response.status_code != 200:
            logger.error(f"Gemini API error: {response.status_code} {response.text}")
            raise HTTPException(status_code=502, detail=f"Gemini API error: {response.status_code}")

        try:
            return response.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            return ""

    async def _document_part(self, file_path: str) -> dict:
        data = await self.storage.download(file_path)
        mime_type = mimetypes.guess_type(file_path)[0] or "application/pdf"
        return {
            "inline_data": {
                "mime_type": mime_type,
                "data": base64.b64encode(data).decode("ascii"),
            }
        }

    async def translate_document(self, document_text: Optional[str]) -> str:
        text = self._require(document_text, "Document text is required")
        translated = await self._gemini(
            [{"text": TRANSLATE_DOCUMENT_PROMPT.format(text=text)}],
            {"temperature": 0.3, "topK": 40, "topP": 0.95, "maxOutputTokens": 2048},
        )
        if not translated:
            raise HTTPException(status_code=502, detail="No translation received from Gemini API")
        logger.info("Document translation completed")
        return translated

    async def translate_medical_report(self, medical_text: Optional[str]) -> str:
        text = self._require(medical_text, "Medical text is required")
        if not settings.AI_GATEWAY_API_KEY:
            raise HTTPException(status_code=500, detail="AI gateway API key is not configured")

        response = await self._post(
            "AI gateway",
            settings.AI_GATEWAY_URL,
            headers={"Authorization": f"Bearer {settings.AI_GATEWAY_API_KEY}"},
            json={
                "model": settings.AI_GATEWAY_MODEL,
                "messages": [
                    {"role": "system", "content": REPORT_SYSTEM_PROMPT},
                    {"role": "user", "content": REPORT_USER_PROMPT.format(text=text)},
                ],
            },
        )
        if response.status_code == 429:
            raise HTTPException(status_code=429, detail="Rate limits exceeded, please try again later.")
        if response.status_code == 402:
            raise HTTPException(status_code=402, detail="Payment required, please add funds to your AI workspace.")
        if response.status_code != 200:
            logger.error(f"AI gateway error: {response.status_code} {response.text}")
            raise HTTPException(status_code=502, detail="AI gateway error")

        try:
            translated = (response.json()["choices"][0]["message"]["content"] or "").strip()
        except (ValueError, KeyError, IndexError, TypeError):
            translated = ""
        if not translated:
            raise HTTPException(status_code=502, detail="Failed to get translation from AI")
        return translated

    async def summarize_document(self, file_path: Optional[str]) -> str:
        path = self._require(file_path, "File path is required")
        logger.info(f"Generating summary for document {path}")
        summary = await self._gemini(
            [{"text": SUMMARY_PROMPT}, await self._document_part(path)],
            {"temperature": 0.3, "topK": 32, "topP": 0.95, "maxOutputTokens": 2048},
        )
        if not summary:
            raise HTTPException(status_code=502, detail="No summary could be generated from the document")
        return summary

    async def extract_pdf_text(self, file_path: Optional[str]) -> str:
        path = self._require(file_path, "File path is required")
        logger.info(f"Extracting text from {path}")
        text = await self._gemini(
            [{"text": EXTRACT_PROMPT}, await self._document_part(path)],
            {"temperature": 0.1, "topK": 32, "topP": 0.95, "maxOutputTokens": 8192},
        )
        if not text:
            raise HTTPException(status_code=502, detail="No text could be extracted from the document")
        return text

    async def process_document_ocr(self, file_path: Optional[str]) -> str:
        path = self._require(file_path, "File path is required")
        if not settings.MISTRAL_API_KEY:
            raise HTTPException(status_code=500, detail="Mistral API key not configured")

        part = await self._document_part(path)
        data_url = f"data:{part['inline_data']['mime_type']};base64,{part['inline_data']['data']}"
        response = await self._post(
            "Mistral API",
            settings.MISTRAL_URL,
            headers={"Authorization": f"Bearer {settings.MISTRAL_API_KEY}"},
            json={
                "model": settings.MISTRAL_MODEL,
                "messages": [{
                    "role": "user",
                    "content": [
                        {"type": "text", "text": OCR_PROMPT},
                        {"type": "image_url", "image_url": data_url},
                    ],
                }],
                "max_tokens": 3000,
            },
        )
        if response.status_code != 200:
            logger.error(f"Mistral API error: {response.status_code} {response.text}")
            raise HTTPException(status_code=502, detail=f"Mistral API error: {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise HTTPException(status_code=502, detail="No content could be extracted from the document")
        logger.info(f"Document {path} processed with OCR")
        return content

    async def health_tracking_percentage(self, workers: int, records: int, documents: int) -> int:
        fallback = settings.DEFAULT_HEALTH_TRACKING
        try:
            reply = await self._gemini(
                [{"text": TRACKING_PROMPT.format(workers=workers, records=records, documents=documents)}],
                {"temperature": 0.3, "topK": 1, "topP": 1, "maxOutputTokens": 10},
            )
            percentage = int(reply.strip())
        except HTTPException as e:
            logger.warning(f"Health tracking estimate unavailable: {e.detail}")
            return fallback
        except ValueError:
            logger.warning("Health tracking estimate was not a number")
            return fallback
        if not 0 <= percentage <= 100:
            return fallback
        return percentage
