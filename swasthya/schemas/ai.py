from pydantic import BaseModel, Field
from typing import Optional

class TranslateDocumentRequest(BaseModel):
    document_text: Optional[str] = Field(default=None, alias="documentText")

    class Config:
        populate_by_name = True

class TranslateReportRequest(BaseModel):
    medical_text: Optional[str] = Field(default=None, alias="medicalText")

    class Config:
        populate_by_name = True

class DocumentPathRequest(BaseModel):
    file_path: Optional[str] = Field(default=None, alias="filePath")

    class Config:
        populate_by_name = True

class TranslationResponse(BaseModel):
    success: bool = True
    translated_text: str
    original_text: Optional[str] = None
    message: str = "Document translated successfully"

class SummaryResponse(BaseModel):
    success: bool = True
    summary: str
    message: str = "Document summarized successfully"

class ExtractedTextResponse(BaseModel):
    success: bool = True
    extracted_text: str
    summary: Optional[str] = None
    message: str = "Text extracted successfully"
