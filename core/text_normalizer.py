"""
Text Normalizer for Pulse Terminal.
Turns raw feed descriptions (HTML fragments) into plain summary text.
"""

import html
import logging
import re
import warnings
from typing import Any

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from storage.models import NO_SUMMARY

logger = logging.getLogger(__name__)


_TAG_PATTERN = re.compile(r"<[^>]+>")
_URL_PATTERN = re.compile(r"https?://\S+", re.IGNORECASE)
_WHITESPACE_PATTERN = re.compile(r"\s+")


def strip_html_dom(raw: str) -> str:
    """Extract text content with BeautifulSoup's lenient html.parser."""
    with warnings.catch_warnings():
        # Descriptions that are just a URL are valid input here
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        soup = BeautifulSoup(raw, "html.parser")
    return soup.get_text(separator=" ")


def strip_html_regex(raw: str) -> str:
    """Remove tags with a regex and decode entities."""
    return html.unescape(_TAG_PATTERN.sub(" ", raw))


def _clean(text: str) -> str:
    text = _URL_PATTERN.sub("", text)
    # Leftover angle brackets (unterminated tags, decoded &lt;/&gt;)
    text = text.replace("<", " ").replace(">", " ")
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def normalize(raw: Any, use_dom: bool = True) -> str:
    """
    Convert an HTML or text description into a plain-text summary.

    Never raises: non-string input, an empty result or a stripping failure
    all produce the "No summary available." fallback.

    Args:
        raw: Raw description from a feed item
        use_dom: Use the BeautifulSoup stripper, falling back to the regex one

    Returns:
        Plain text without tags, URLs or repeated whitespace
    """
    if not raw or not isinstance(raw, str):
        return NO_SUMMARY

    text = None
    if use_dom:
        try:
            text = strip_html_dom(raw)
        except Exception as e:
            logger.warning(f"DOM stripping failed, using regex fallback: {e}")

    try:
        if text is None:
            text = strip_html_regex(raw)
        return _clean(text) or NO_SUMMARY
    except Exception as e:
        logger.error(f"Failed to normalize summary text: {e}")
        return NO_SUMMARY
