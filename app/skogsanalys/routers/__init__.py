"""
Routers package for FastAPI endpoints.

Organized by domain:
- analyses: Analyzer listing and direct analysis of base data
- files: Stored file retrieval
- process: Extraction and analysis of an uploaded prospectus
- upload: Prospectus upload
"""

from . import analyses, files, process, upload

__all__ = ["analyses", "files", "process", "upload"]
