"""
Company Enrichment.

Fetches a company's public profile page, reduces it to text, and asks the
model for a fixed five-field company record.
"""

import re
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from recruitcrm.core.logging import get_logger
from recruitcrm.services.normalizer import normalize_record

logger = get_logger("enrichment")

COMPANY_FIELDS = [
    "company_name",
    "location",
    "industry",
    "number_of_employees",
    "website",
]

# Loose labels the model uses when it answers in plain lines
COMPANY_ALIASES = {
    "name": "company_name",
    "company": "company_name",
    "headquarters": "location",
    "employees": "number_of_employees",
    "company_size": "number_of_employees",
    "size": "number_of_employees",
    "website_url": "website",
}

# Profile page blocks that carry the company facts
PROFILE_SELECTORS = [
    ".org-top-card-summary-info-list",
    ".org-page-header__content",
    ".org-page-details",
    ".org-top-card-summary",
    ".break-words",
    ".artdeco-card",
    ".org-grid__core",
    "main",
    ".organization-outlet",
    ".org-company-employees-snackbar",
    ".org-top-card",
]

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


class ScrapeError(Exception):
    """Raised when the profile page cannot be fetched."""


def extract_page_text(html: str) -> str:
    """Reduce a profile page to a single line of readable text."""
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    blocks: list[str] = []
    for selector in PROFILE_SELECTORS:
        for element in soup.select(selector):
            text = element.get_text(separator=" ", strip=True)
            if text and text not in blocks:
                blocks.append(text)

    content = "\n".join(blocks)
    if not content.strip() and soup.body:
        content = soup.body.get_text(separator=" ", strip=True)

    return re.sub(r"\s+", " ", content).strip()


class PageFetcher:
    """Downloads a public page and returns its readable text."""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.BaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def fetch(self, url: str) -> str:
        logger.info(f"Scraping URL: {url}")
        try:
            with httpx.Client(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
                transport=self.transport,
            ) as client:
                response = client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error during scraping: {e}")
            raise ScrapeError(str(e)) from e

        content = extract_page_text(response.text)
        logger.info(f"Scraped content length: {len(content)}")
        return content


def get_page_fetcher() -> PageFetcher:
    return PageFetcher()


def build_enrichment_prompt(content: str) -> str:
    return f"""Analyze the following LinkedIn company page content and extract company information. Return ONLY a JSON object with these exact fields. If information is not found, use an empty string:

Content to analyze:
{content}

Extract and return only this JSON format:
{{
  "company_name": "Company name from the page",
  "location": "Company headquarters/location",
  "industry": "Company industry",
  "number_of_employees": "Employee count (format like '11-50', '51-200', '1000+', etc.)",
  "website": "Company website URL"
}}

Return ONLY the JSON object, no additional text or explanation."""


def normalize_company_response(text: str) -> dict[str, str]:
    """Best-effort five-field company record; never raises on bad output."""
    return normalize_record(text, COMPANY_FIELDS, COMPANY_ALIASES)
