"""
Services package for the prospectus analysis application.

Contains:
- pdf_service: PDF validation, byte slicing and page rendering
- storage: blob storage for uploaded files
- ai: OpenAI integration for property data extraction
"""

from .ai import AIService
from .pdf_service import PDFService
from .storage import BlobStore

__all__ = ["AIService", "BlobStore", "PDFService"]
