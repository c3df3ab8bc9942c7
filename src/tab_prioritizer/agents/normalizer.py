"""
Normalization of raw tab records into TabInput.

Raw records come from the content extraction step (browser extension) and
are trusted only for shape: text is capped, headings are cleaned, and records
without an id or url are rejected.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from tab_prioritizer.agents.models import RejectedTab, TabInput
from tab_prioritizer.config import get_logger
from tab_prioritizer.errors import InvalidInput

logger = get_logger(__name__)

MAX_TEXT_CONTENT = 2000
MAX_HEADINGS = 5


def _first(raw: Mapping, *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _clean_headings(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, Iterable):
        return []

    headings = []
    for heading in value:
        if heading is None:
            continue
        text = str(heading).strip()
        if text:
            headings.append(text)
        if len(headings) == MAX_HEADINGS:
            break
    return headings


def normalize_tab(raw: Any) -> TabInput:
    """
    Validate and clean a raw tab record.

    Args:
        raw: Mapping with camelCase or snake_case keys, or a TabInput

    Returns:
        TabInput with capped text content and headings

    Raises:
        InvalidInput: If the record is not a mapping or lacks an id or url
    """
    if isinstance(raw, TabInput):
        raw = raw.model_dump()
    if not isinstance(raw, Mapping):
        raise InvalidInput(f"Tab record must be an object, got {type(raw).__name__}")

    tab_id = raw.get("id")
    if tab_id is None or isinstance(tab_id, bool) or not isinstance(tab_id, (int, str)):
        raise InvalidInput("Tab record is missing a valid id")
    if isinstance(tab_id, str) and not tab_id.strip():
        raise InvalidInput("Tab record is missing a valid id")

    url = raw.get("url")
    if not isinstance(url, str) or not url.strip():
        raise InvalidInput("Tab record is missing a url", tab_id=tab_id)

    title = _first(raw, "title")
    meta_description = _first(raw, "metaDescription", "meta_description")
    text_content = _first(raw, "textContent", "text_content")

    return TabInput(
        id=tab_id,
        title=str(title).strip() if title is not None else "",
        url=url.strip(),
        meta_description=str(meta_description).strip() if meta_description is not None else "",
        headings=_clean_headings(_first(raw, "headings")),
        text_content=str(text_content)[:MAX_TEXT_CONTENT] if text_content is not None else "",
    )


def normalize_tabs(raws: Iterable[Any]) -> tuple[list[TabInput], list[RejectedTab]]:
    """
    Normalize a batch of raw records, skipping invalid ones.

    Duplicate ids are rejected after their first occurrence so that ids stay
    unique within the batch.

    Args:
        raws: Raw tab records

    Returns:
        Tuple of (accepted tabs in input order, rejected records)
    """
    tabs: list[TabInput] = []
    rejected: list[RejectedTab] = []
    seen_ids: set = set()

    for raw in raws:
        try:
            tab = normalize_tab(raw)
        except InvalidInput as e:
            logger.warning(f"Skipping invalid tab record: {e}")
            rejected.append(RejectedTab(id=e.tab_id, reason=str(e)))
            continue

        if tab.id in seen_ids:
            logger.warning(f"Skipping duplicate tab id {tab.id!r}")
            rejected.append(RejectedTab(id=tab.id, reason="Duplicate tab id"))
            continue

        seen_ids.add(tab.id)
        tabs.append(tab)

    return tabs, rejected
