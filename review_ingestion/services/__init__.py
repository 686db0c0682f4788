"""Ingestion services (own the store transaction for a batch)."""

from review_ingestion.services.import_service import ImportService, PreviewHandle

__all__ = ["ImportService", "PreviewHandle"]
