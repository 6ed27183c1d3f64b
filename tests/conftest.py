"""Pytest configuration and fixtures."""

import os
from typing import Generator

# In-memory storage and mock AI mode for every test
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.skogsanalys.database import SessionLocal, init_db
from app.skogsanalys.main import app
from app.skogsanalys.models import AnalysisOptions, PropertyRecord


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Database session on the in-memory test database."""
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """
    Create a minimal valid PDF for testing.

    This is a minimal PDF structure that should be recognized as a valid PDF.
    """
    pdf_content = b"""%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
2 0 obj
<< /Type /Pages /Kids [3 0 R] /Count 1 >>
endobj
3 0 obj
<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R >>
endobj
4 0 obj
<< /Length 44 >>
stream
BT
/F1 12 Tf
100 700 Td
(Test) Tj
ET
endstream
endobj
xref
0 5
0000000000 65535 f
0000000009 00000 n
0000000058 00000 n
0000000115 00000 n
0000000214 00000 n
trailer
<< /Size 5 /Root 1 0 R >>
startxref
306
%%EOF"""
    return pdf_content


@pytest.fixture
def invalid_file_bytes() -> bytes:
    """Create invalid (non-PDF) file bytes for testing."""
    return b"This is not a PDF file"


@pytest.fixture
def scenario_data() -> dict:
    """Reference property: 50 ha, 6000 m3sk, bonitet 5, asking 2.1 MSEK."""
    return {
        "skogsmark_ha": 50,
        "volym_total_m3sk": 6000,
        "bonitet": 5,
        "pris_forvantning_sek": 2100000,
        "huggningsklasser": {"S1_m3sk": 1200, "S2_m3sk": 300},
    }


@pytest.fixture
def scenario_record(scenario_data: dict) -> PropertyRecord:
    """The reference property as a validated record."""
    return PropertyRecord.model_validate(scenario_data)


@pytest.fixture
def default_options() -> AnalysisOptions:
    """Analysis options with every default in place."""
    return AnalysisOptions()
