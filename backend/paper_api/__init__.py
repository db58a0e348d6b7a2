"""Serve PDFs and extracted text for DOIs resolved through a document mirror."""

__version__ = "1.0.0"
