"""
Skogsanalys Backend Application.

A FastAPI service that extracts structured property data from Swedish
forest prospectuses (PDF) using AI and runs financial analyses on it.
"""

__version__ = "1.0.0"
