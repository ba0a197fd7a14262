from recruitcrm.services.normalizer import (
    strip_code_fences,
    decode_json_object,
    normalize_record,
)
from recruitcrm.services.ai_client import GeminiClient, AIClientError, get_ai_client
from recruitcrm.services.cv_parser import CV_PROMPT, parse_cv_response
from recruitcrm.services.enrichment import (
    PageFetcher,
    ScrapeError,
    build_enrichment_prompt,
    get_page_fetcher,
    normalize_company_response,
)
from recruitcrm.services.storage import StorageError, get_cv_bucket
from recruitcrm.services.email import EmailError, get_mailer

__all__ = [
    "strip_code_fences",
    "decode_json_object",
    "normalize_record",
    "GeminiClient",
    "AIClientError",
    "get_ai_client",
    "CV_PROMPT",
    "parse_cv_response",
    "PageFetcher",
    "ScrapeError",
    "build_enrichment_prompt",
    "get_page_fetcher",
    "normalize_company_response",
    "StorageError",
    "get_cv_bucket",
    "EmailError",
    "get_mailer",
]
