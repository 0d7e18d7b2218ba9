# src/jobboard/clients/feed.py

"""
Client for the jobs API's NDJSON matching-data feed.

- All HTTP details (URL, headers, timeouts, retries) live here.
- The response is a stream of JSON lines: {"type": "meta", ...},
  {"type": "job", "d": {...}} many times, then {"type": "done"}.
- fetch_feed() returns a Feed (meta + jobs); deciding what an empty feed
  means is up to the caller.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from jobboard.models import FeedMeta, JobRaw

logger = logging.getLogger(__name__)

FEED_PATH = "/api/matching-data"
MAX_ATTEMPTS = 5
INITIAL_DELAY_S = 3  # 3s, 6s, 12s, 24s
# The endpoint streams tens of MB slowly; bound each attempt as a whole
FETCH_TIMEOUT_S = 360


class FeedFormatError(ValueError):
    """A feed line was not a valid JSON envelope. Never retried."""


@dataclass
class Feed:
    meta: Optional[FeedMeta] = None
    jobs: List[JobRaw] = field(default_factory=list)

    @property
    def logos(self) -> Dict[str, str]:
        return dict((self.meta or {}).get("companyLogos") or {})


# ---- Internal helpers ---------------------------------------------------------

def _default_headers(user_id: str) -> Dict[str, str]:
    return {
        "x-user-id": user_id,
        "Accept": "application/x-ndjson",
        "Accept-Encoding": "gzip",
    }


def is_retryable(exc: BaseException) -> bool:
    """Transport failures (incl. timeouts), 5xx and 429 are worth another try."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status >= 500 or status == 429
    return False


def _read_lines(resp: httpx.Response, deadline: float, timeout: float = FETCH_TIMEOUT_S) -> List[str]:
    """Buffer the body as lines, checking the attempt deadline on every chunk."""
    lines: List[str] = []
    partial: List[str] = []
    for chunk in resp.iter_text():
        if time.monotonic() > deadline:
            raise httpx.ReadTimeout(
                f"Feed not complete after {timeout}s", request=resp.request
            )
        if "\n" not in chunk:
            partial.append(chunk)
            continue
        first, *rest = chunk.split("\n")
        partial.append(first)
        lines.append("".join(partial).rstrip("\r"))
        lines.extend(line.rstrip("\r") for line in rest[:-1])
        partial = [rest[-1]]
    tail = "".join(partial)
    if tail:
        lines.append(tail.rstrip("\r"))
    return lines


def _get_lines(
    client: httpx.Client, url: str, params: Dict[str, str], headers: Dict[str, str], timeout: float
) -> List[str]:
    """One attempt: GET and buffer the whole body as lines."""
    deadline = time.monotonic() + timeout
    with client.stream("GET", url, params=params, headers=headers) as resp:
        if not resp.is_success:
            resp.read()
            raise httpx.HTTPStatusError(
                f"API returned {resp.status_code}: {resp.text[:500]}",
                request=resp.request,
                response=resp,
            )
        return _read_lines(resp, deadline, timeout)


# ---- Public API ---------------------------------------------------------------

def parse_feed(lines: Iterable[str]) -> Feed:
    """
    Turn NDJSON lines into a Feed.

    Blank lines are skipped, the last `meta` wins, `job` lines contribute their
    `d` payload in order, anything else (the `done` marker) is ignored.
    """
    feed = Feed()
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            raise FeedFormatError(f"Malformed feed line {lineno}: {e}") from e
        if not isinstance(obj, dict):
            raise FeedFormatError(f"Malformed feed line {lineno}: expected an object")
        kind = obj.get("type")
        if kind == "meta":
            feed.meta = obj
        elif kind == "job":
            job = obj.get("d")
            if not isinstance(job, dict):
                raise FeedFormatError(f"Malformed feed line {lineno}: job payload is not an object")
            feed.jobs.append(job)
    return feed


def fetch_feed(
    base_url: str,
    user_id: str,
    *,
    hours: int = 8760,
    client: Optional[httpx.Client] = None,
    max_attempts: int = MAX_ATTEMPTS,
    timeout: float = FETCH_TIMEOUT_S,
    sleep: Callable[[float], None] = time.sleep,
) -> Feed:
    """
    Fetch and parse the whole feed, retrying transient failures.

    Waits 3s, 6s, 12s, 24s between attempts (no jitter). Any other non-2xx
    status or a malformed line fails at once. After the last attempt the
    last error is re-raised unchanged.
    """
    url = f"{base_url.rstrip('/')}{FEED_PATH}"
    params = {"hours": str(hours)}
    headers = _default_headers(user_id)
    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=timeout, follow_redirects=True)

    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=INITIAL_DELAY_S, exp_base=2),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    try:
        for attempt in retrying:
            with attempt:
                n = attempt.retry_state.attempt_number
                logger.info("Fetching from %s?hours=%s ... (attempt %d/%d)", url, hours, n, max_attempts)
                lines = _get_lines(client, url, params, headers, timeout)
    finally:
        if own_client:
            client.close()

    feed = parse_feed(lines)
    logger.info("Fetched %d jobs", len(feed.jobs))
    return feed
