from paper_api.services.extractor import TextExtractor
from paper_api.services.fetcher import DocumentFetcher
from paper_api.services.locator import SourceLocator
from paper_api.services.metadata import MetadataResolver
from paper_api.services.paper_service import PaperService

__all__ = ["DocumentFetcher", "MetadataResolver", "PaperService", "SourceLocator", "TextExtractor"]
