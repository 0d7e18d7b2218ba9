# src/jobboard/render/format.py
"""
Pure presentation helpers: a raw record field in, a display string out.

None of these raise on missing or junk input; they return "" (or an empty
list) instead, so one bad record can never break a whole document.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union
from urllib.parse import quote

from jobboard.models import JobRaw

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

DateLike = Union[str, datetime, None]

_SKILL_RE = re.compile(r"^(.+?)(?:\([^)]+\))?$")
_SLUG_RE = re.compile(r"[^a-z0-9]+")
_NAME_RE = re.compile(r"[^a-z0-9]")

PLACEHOLDER_LOGO_PATH = "/api/company-logo?name=_placeholder"
# left unescaped by encodeURIComponent on top of quote()'s defaults
_URI_SAFE = "!*'()"


# ---- Dates --------------------------------------------------------------------

def parse_ts(value: DateLike) -> Optional[datetime]:
    """ISO-ish string (or datetime) to an aware UTC datetime, None if unparseable."""
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        # fromisoformat on older interpreters rejects the Z suffix
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def fmt_date(value: DateLike) -> str:
    """d-Mon-YYYY, e.g. 6-Feb-2026."""
    dt = parse_ts(value)
    if dt is None:
        return ""
    return f"{dt.day}-{MONTHS[dt.month - 1]}-{dt.year}"


def fmt_datetime(value: DateLike) -> str:
    """d-Mon-YYYY HH:MM UTC, e.g. 26-Feb-2026 04:35 UTC."""
    dt = parse_ts(value)
    if dt is None:
        return ""
    return f"{fmt_date(dt)} {dt.hour:02d}:{dt.minute:02d} UTC"


def fmt_age(value: DateLike, now: datetime) -> str:
    """Elapsed time since `value` as <1h / Nh / 1d / Nd. A naive `now` is taken as UTC."""
    dt, ref = parse_ts(value), parse_ts(now)
    if dt is None or ref is None:
        return ""
    hours = math.floor((ref - dt).total_seconds() / 3600)
    if hours < 1:
        return "<1h"
    if hours < 24:
        return f"{hours}h"
    days = hours // 24
    if days == 1:
        return "1d"
    return f"{days}d"


# ---- Money --------------------------------------------------------------------

def _num(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)


def fmt_k(n: float) -> str:
    """950 -> $950, 1200 -> $1k, 1500000 -> $1500k."""
    if n >= 1000:
        # half-up, not banker's rounding
        return f"${math.floor(n / 1000 + 0.5)}k"
    return f"${_num(n)}"


def salary_numeric(job: JobRaw) -> str:
    """Annual USD display built only from salaryMin/salaryMax."""
    lo, hi = job.get("salaryMin"), job.get("salaryMax")
    if lo and hi and lo == hi:
        return f"{fmt_k(lo)}/year"
    if lo and hi:
        return f"{fmt_k(lo)}–{fmt_k(hi)}/year"
    if lo:
        return f"{fmt_k(lo)}+/year"
    if hi:
        return f"{fmt_k(hi)}/year"
    return ""


def salary_prefer_text(job: JobRaw) -> str:
    """
    Human-readable salary string when there is one (handles hourly, GBP, EUR...),
    otherwise the numeric range. A lone bound is not shown.
    """
    text = (job.get("salary") or "").strip()
    if text:
        return text[:32] + "..." if len(text) > 35 else text
    lo, hi = job.get("salaryMin"), job.get("salaryMax")
    if lo and hi and lo == hi:
        return fmt_k(lo)
    if lo and hi:
        return f"{fmt_k(lo)}–{fmt_k(hi)}"
    return ""


# ---- Skills -------------------------------------------------------------------

def parse_skills(value: Optional[str]) -> List[str]:
    """'Python(0.95), AWS(0.80), Go' -> ['Python', 'AWS', 'Go']."""
    if not value:
        return []
    out: List[str] = []
    for part in value.split(","):
        part = part.strip()
        m = _SKILL_RE.match(part)
        name = m.group(1).strip() if m else part
        if name:
            out.append(name)
    return out


def top_skills(value: Optional[str], n: int = 3) -> str:
    skills = parse_skills(value)
    if not skills:
        return ""
    shown = ", ".join(skills[:n])
    if len(skills) > n:
        shown += f" +{len(skills) - n}"
    return shown


# ---- Text ---------------------------------------------------------------------

def esc(value: object) -> str:
    """Make free text safe inside a markdown table cell."""
    if value is None:
        return ""
    return str(value).replace("|", "\\|").replace("\n", " ")


def slugify(text: str) -> str:
    return _SLUG_RE.sub("-", text.lower()).strip("-")[:80]


def job_url(job: JobRaw, site_url: str, ref: str) -> str:
    slug = slugify(f"{job.get('title') or ''} at {job.get('company') or ''}")
    return f"{site_url}/jobs/{job.get('id')}{'-' + slug if slug else ''}?ref={ref}"


def fmt_role(title: Optional[str]) -> str:
    t = esc(title)
    return t[:37] + "..." if len(t) > 40 else t


def fmt_location(job: JobRaw) -> str:
    """Location for the role sub-line; placeholders such as 'Unknown' render empty."""
    raw = (job.get("location") or "").strip()
    if not raw or raw.lower().startswith("unknown"):
        return ""
    return esc(raw)[:35]


def normalize_name(name: Optional[str]) -> str:
    """Company name as used for companyLogos keys."""
    return _NAME_RE.sub("", (name or "").lower())


def company_cell(job: JobRaw, logos: Dict[str, str], site_url: str) -> str:
    """Logo (placeholder when unknown) followed by the company name, truncated."""
    name = esc(job.get("company"))[:25]
    logo_id = logos.get(normalize_name(job.get("company")))
    if logo_id:
        logo_url = f"{site_url}/api/company-logo?id={quote(str(logo_id), safe=_URI_SAFE)}"
    else:
        logo_url = site_url + PLACEHOLDER_LOGO_PATH
    return f'<img src="{logo_url}" alt="" height="16"> {name}'


def _int32(h: int) -> int:
    h &= 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def teaser_mask(job: JobRaw) -> str:
    """
    Varying-length block mask standing in for a teaser's company name.

    Length is 4 + abs(h) % 9 where h is the 32-bit signed string hash
    (h = h * 31 + code point) of the title, or of the id when there is no
    title. Cosmetic only: it hides the name length, nothing more.
    """
    h = 0
    for ch in job.get("title") or job.get("id") or "":
        h = _int32((h << 5) - h + ord(ch))
    return "░" * (4 + abs(h) % 9)
