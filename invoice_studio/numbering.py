"""Document number sequencing (INV-0001, QT-0042, ...)."""
from __future__ import annotations

import re
from typing import Optional, Union

from .schemas import DocumentType

_TRAILING_DIGITS = re.compile(r"\d+$")


def next_sequence(latest_number: Optional[str]) -> int:
    """Sequence number following the most recent document number.

    Falls back to 1 when there is no previous number or it has no numeric suffix.
    """
    if not latest_number:
        return 1
    match = _TRAILING_DIGITS.search(latest_number.strip())
    if not match:
        return 1
    return int(match.group()) + 1


def format_document_number(doc_type: Union[DocumentType, str], sequence: int) -> str:
    prefix = DocumentType(doc_type).prefix
    return f"{prefix}-{sequence:04d}"
