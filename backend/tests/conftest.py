"""
Pytest configuration and fixtures for Lexi tests.
"""
import io
import os
import sys
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Pin environment before importing app settings
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("ALLOW_LOW_QUALITY_TEXT", "false")
os.environ.setdefault("MAX_FILE_SIZE_MB", "1")


INDEMNITY_CLAUSE = (
    "The Contractor shall indemnify and hold harmless the Client from all "
    "liability and damages arising under this Agreement."
)

FILLER_PARAGRAPH = (
    "The parties have agreed to the schedule of deliverables described in "
    "the attached statement of work, and each party will appoint a project "
    "manager responsible for coordinating the work. Progress meetings will "
    "take place every second week at a time agreed by both project managers."
)


@pytest.fixture
def indemnity_text() -> str:
    """Single indemnification clause."""
    return INDEMNITY_CLAUSE


@pytest.fixture
def filler_text() -> str:
    """Contract prose without any catalog trigger terms."""
    return FILLER_PARAGRAPH


@pytest.fixture
def two_indemnity_text() -> str:
    """Two separated indemnification clauses."""
    return f"{INDEMNITY_CLAUSE} {FILLER_PARAGRAPH} {INDEMNITY_CLAUSE}"


@pytest.fixture
def sample_contract_text() -> str:
    """A short contract that trips several rules."""
    return "\n".join([
        "SERVICES AGREEMENT",
        "1. Indemnification. The Customer shall indemnify the Provider against "
        "all claims, losses and expenses arising from the Customer's use.",
        "2. Termination. The Provider may terminate this Agreement at its "
        "sole discretion upon written notice to the Customer.",
        "Page 1 of 2",
        "3. Disputes. Any dispute shall be settled by binding arbitration and "
        "the Customer agrees to waive any right to a jury trial.",
        "4. Fees. The setup fee is payable in advance and is non-refundable.",
        "5. Governing Law. This Agreement is governed by the laws of the "
        "State of New York.",
        "2",
    ])


@pytest.fixture
def docx_bytes() -> bytes:
    """A small DOCX with one paragraph and one table."""
    import docx

    document = docx.Document()
    document.add_paragraph(INDEMNITY_CLAUSE)
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Payment terms"
    table.rows[0].cells[1].text = "Net 30 days from invoice"

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def test_client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from main import app

    with TestClient(app) as client:
        yield client
