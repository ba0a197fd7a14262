"""
CV Parser - Gemini-backed CV field extraction.

The uploaded document is sent to the model together with an extraction
prompt; the answer is decoded into a flat candidate record and the model's
list of relevant jobs is collapsed into a coarse experience band.
"""

from datetime import date, datetime
from typing import Optional

from recruitcrm.services.normalizer import decode_json_object

CV_FIELDS = [
    "first_name",
    "middle_name",
    "last_name",
    "email_1",
    "mobile_phone",
    "address",
    "city",
    "state",
    "zip",
    "current_salary",
    "desired_salary",
    "skills",
    "current_company",
    "title",
    "source",
    "referred_by",
    "ownership",
    "general_comments",
    "category",
    "industry",
    "willing_to_relocate",
    "date_available",
]

CV_PROMPT = (
    "Extract the following information from the CV and return it as a JSON object. "
    "If a field is not found, leave it as an empty string: "
    + ", ".join(
        f"{name} (yes/no)" if name == "willing_to_relocate"
        else f"{name} (YYYY-MM-DD)" if name == "date_available"
        else name
        for name in CV_FIELDS
    )
    + ". Also, extract job experiences relevant to the 'title' into a field called "
    "'relevant_experience'. 'relevant_experience' should be an array of JSON objects, "
    "where each object has 'start_date' and 'end_date'. Dates should be in 'YYYY-MM' "
    "format. If the end date is the current job, use 'Present'. If no relevant "
    "experience is found, leave 'relevant_experience' as an empty array."
)

ONGOING_END_DATES = {"present", "current"}

# (minimum years, band), checked in order
EXPERIENCE_BANDS = [
    (5, "5+"),
    (3, "3+"),
    (1, "1+"),
]


def _parse_month(value) -> Optional[date]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    for fmt in ("%Y-%m", "%Y-%m-%d", "%Y"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def total_experience_years(experiences: list, today: Optional[date] = None) -> float:
    """
    Sum job spans in years, counting both the start and end month.

    Entries without a start date, without an end date (unless ongoing), or
    with unreadable dates are skipped.
    """
    today = today or date.today()
    total_months = 0

    for entry in experiences or []:
        if not isinstance(entry, dict) or not entry.get("start_date"):
            continue

        start = _parse_month(entry.get("start_date"))
        raw_end = entry.get("end_date")
        if isinstance(raw_end, str) and raw_end.strip().lower() in ONGOING_END_DATES:
            end = today
        elif raw_end:
            end = _parse_month(raw_end)
        else:
            continue

        if start is None or end is None:
            continue

        total_months += (end.year - start.year) * 12 - start.month + end.month + 1

    return total_months / 12


def experience_band(years: float) -> str:
    """Map total years of experience to '5+', '3+', '1+' or ''."""
    for minimum, band in EXPERIENCE_BANDS:
        if years >= minimum:
            return band
    return ""


def parse_cv_response(text: str, today: Optional[date] = None) -> dict:
    """
    Decode the model's answer for a CV.

    Returns:
        The decoded fields plus ``years_of_experience``; the intermediate
        ``relevant_experience`` list is removed.

    Raises:
        ValueError: if the answer is not a JSON object
    """
    parsed = decode_json_object(text)

    experiences = parsed.pop("relevant_experience", None)
    if not isinstance(experiences, list):
        experiences = []

    parsed["years_of_experience"] = experience_band(total_experience_years(experiences, today))
    return parsed
