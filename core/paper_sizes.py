"""
Paper size catalog for DNP dye-sublimation printers.

Single source of truth for which sizes a booth accepts and how many physical
sheets a request turns into. Some sizes are narrow strips that the printer
prints two-up on a wider sheet and then cuts apart ("2x6" is half of a 4x6
sheet), so one physical job yields ``fold_factor`` logical copies:

    physical jobs = ceil(requested copies / fold_factor)

The fold factor is an explicit table entry per size, never inferred from
the size name.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .exceptions import ConfigurationError, UnknownPaperSizeError


@dataclass(frozen=True)
class PaperSize:
    """One logical print format and the DNP media it is printed on."""

    name: str
    width: float
    height: float
    media: str
    fold_factor: int = 1
    cut_enabled: bool = False
    description: str = ""
    subdirectory: Optional[str] = None

    @property
    def folder_name(self) -> str:
        """Hot folder subdirectory for this size."""
        return self.subdirectory or self.name

    @property
    def sheet_size(self) -> Tuple[float, float]:
        """Physical sheet (width, height) in inches; folded strips sit side by side."""
        return (self.width * self.fold_factor, self.height)

    def physical_job_count(self, requested_copies: int) -> int:
        """
        Sheets needed for ``requested_copies`` logical prints.

        Args:
            requested_copies: Copies the client asked for (>= 1)

        Returns:
            ceil(requested_copies / fold_factor)
        """
        return math.ceil(requested_copies / self.fold_factor)

    def prints_produced(self, consumed_jobs: int, requested_copies: int) -> int:
        """Logical copies produced by ``consumed_jobs`` sheets, capped at what was asked for."""
        return min(consumed_jobs * self.fold_factor, requested_copies)

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "dnpSize": self.media,
            "foldFactor": self.fold_factor,
            "cutEnabled": self.cut_enabled,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PaperSize":
        """
        Build a size from a table entry; accepts snake_case or API keys.

        Raises:
            ConfigurationError: Missing field, bad value or fold factor < 1
        """
        try:
            fold_factor = int(data.get("fold_factor", data.get("foldFactor", 1)))
            size = cls(
                name=str(data["name"]),
                width=float(data["width"]),
                height=float(data["height"]),
                media=str(data.get("media", data.get("dnpSize", ""))),
                fold_factor=fold_factor,
                cut_enabled=bool(data.get("cut_enabled", data.get("cutEnabled", fold_factor > 1))),
                description=str(data.get("description", "")),
                subdirectory=data.get("subdirectory"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid paper size entry: {data!r}", {"reason": str(e)})

        if size.fold_factor < 1:
            raise ConfigurationError(
                f"Paper size {size.name} has fold factor {size.fold_factor}; it must be >= 1"
            )
        return size


def _size(name, width, height, media, fold_factor=1):
    cut = fold_factor > 1
    suffix = " with cutting enabled" if cut else ""
    return PaperSize(
        name=name,
        width=width,
        height=height,
        media=media,
        fold_factor=fold_factor,
        cut_enabled=cut,
        description=f"{name} prints on {media}{suffix}",
    )


# DNP DS-RX1HS media table. 3x4 folds by two like 2x6; see DESIGN.md.
DEFAULT_PAPER_SIZES: Tuple[PaperSize, ...] = (
    _size("5x3.5", 5, 3.5, "(5x3.5)"),
    _size("5x5", 5, 5, "(5x5)"),
    _size("5x7", 5, 7, "(5x7)"),
    _size("6x4", 6, 4, "(6x4)"),
    _size("6x6", 6, 6, "(6x6)"),
    _size("6x8", 6, 8, "(6x8)"),
    _size("6x9", 6, 9, "(6x9)"),
    _size("2x6", 2, 6, "(6x4) x 2", fold_factor=2),
    _size("3x4", 3, 4, "(6x4) x 2", fold_factor=2),
    _size("3.5x5", 3.5, 5, "PR (3.5x5)"),
    _size("4x6", 4, 6, "PR (4x6)"),
    _size("2x3", 2, 3, "PR (4x6) x 2", fold_factor=2),
)


class PaperSizeCatalog:
    """
    Lookup of size name -> PaperSize.

    Used by request validation, the materializer, image preparation and the
    size listing endpoint, so all of them agree on the folding rule.
    """

    def __init__(self, sizes: Iterable[PaperSize] = DEFAULT_PAPER_SIZES):
        self._sizes: Dict[str, PaperSize] = {}
        for size in sizes:
            if size.name in self._sizes:
                raise ConfigurationError(f"Duplicate paper size in catalog: {size.name}")
            self._sizes[size.name] = size

        if not self._sizes:
            raise ConfigurationError("Paper size catalog is empty")

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "PaperSizeCatalog":
        """
        Load a deployment-specific table.

        The file holds a JSON list of objects with ``name``, ``width``,
        ``height``, ``media``, ``fold_factor`` and optional ``cut_enabled``,
        ``description`` and ``subdirectory``.

        Args:
            path: JSON file to read

        Returns:
            A validated catalog

        Raises:
            ConfigurationError: Unreadable file, bad JSON or an invalid entry
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read paper size table {path}: {e}")

        if not isinstance(entries, list):
            raise ConfigurationError(f"Paper size table {path} must contain a JSON list")

        return cls(PaperSize.from_dict(entry) for entry in entries)

    def resolve(self, size_name: str) -> PaperSize:
        """
        Look up a size by name, ignoring surrounding whitespace.

        Args:
            size_name: Name as sent by the client (e.g. "2x6")

        Returns:
            The matching PaperSize

        Raises:
            UnknownPaperSizeError: No such size; carries the available names
        """
        size = self._sizes.get((size_name or "").strip())
        if size is None:
            raise UnknownPaperSizeError(size_name, self.names())
        return size

    def __contains__(self, size_name: str) -> bool:
        return (size_name or "").strip() in self._sizes

    def __len__(self) -> int:
        return len(self._sizes)

    def names(self) -> List[str]:
        """Size names in table order."""
        return list(self._sizes)

    def all(self) -> List[PaperSize]:
        return list(self._sizes.values())

    def to_list(self) -> List[Dict]:
        """
        Catalog as JSON-ready dicts for the size listing endpoints.

        Returns:
            One ``PaperSize.to_dict()`` per size, in table order
        """
        return [size.to_dict() for size in self._sizes.values()]
