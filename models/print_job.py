"""
Print job model.

A PrintJob is the immutable snapshot of one accepted print request. It is
created after validation and passed to the materializer; it never outlives
the request except through the transient files it produces.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from core.paper_sizes import PaperSize


@dataclass(frozen=True)
class PrintJob:
    """
    N logical copies of one image at one paper size.

    ``image_bytes`` is the print-ready payload written for every physical
    sheet. It is never mutated.
    """

    image_bytes: bytes = field(repr=False)
    requested_copies: int
    paper_size: PaperSize
    printer_name: Optional[str] = None
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def physical_job_count(self) -> int:
        """Number of physical sheets after applying the size's fold factor."""
        return self.paper_size.physical_job_count(self.requested_copies)

    @property
    def short_id(self) -> str:
        return self.job_id[:8]
