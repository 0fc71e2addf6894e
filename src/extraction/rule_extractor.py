"""Rule-based field extraction for vehicle registration documents.

Parses loosely structured Spanish OCR text into chassis (VIN), engine
number, brand, model, year, displacement, plate and titleholders using
label anchors and regular expressions. Every field is a small pure
matcher; absence of a field is ``None``, never an error.
"""

import re
from dataclasses import asdict, dataclass

from src.utils.logger import get_logger

logger = get_logger(__name__)

# Labels that start another field; a model value never runs into one.
_FIELD_LABELS = (
    r"(?:a[ñn]o|cilindrada|matr[ií]cula|marca|modelo|motor|chasis|titulares?)\b"
)

_CHASSIS_PATTERN = re.compile(r"([A-HJ-NPR-Za-hj-npr-z0-9]{17})")

_FIELD_PATTERNS: dict[str, re.Pattern[str]] = {
    "engine": re.compile(r"motor\s*[:\-]?\s*([A-Z0-9\-]{6,})", re.IGNORECASE),
    "brand": re.compile(r"marca\s*[:\-]?\s*(\S{2,30})", re.IGNORECASE),
    "model": re.compile(
        rf"modelo\s*[:\-]?\s*((?:(?!\s+{_FIELD_LABELS})[A-Z0-9 \-]){{2,40}})",
        re.IGNORECASE,
    ),
    "year": re.compile(r"a[ñn]o\s*[:\-]?\s*(\d{4})", re.IGNORECASE),
    "displacement": re.compile(r"cilindrada\s*[:\-]?\s*([\d.]{3,5})", re.IGNORECASE),
    "plate": re.compile(
        r"matr[ií]cula\s*[:\-]?\s*([A-Z]{2,3}\s?\d{3,4})", re.IGNORECASE
    ),
}

_TITLEHOLDER_LABEL = re.compile(r"titulares?[:\-]?", re.IGNORECASE)
_TITLEHOLDER_STOP = re.compile(
    r"chasis|motor|marca|modelo|año|cilindrada|matr[ií]cula", re.IGNORECASE
)

# Internal field name -> key expected by the front-end client.
WIRE_KEYS: dict[str, str] = {
    "chassis": "chasis",
    "engine": "motor",
    "brand": "marca",
    "model": "modelo",
    "year": "anio",
    "displacement": "cilindrada",
    "plate": "matricula",
    "titleholders": "titulares",
}


@dataclass(frozen=True)
class VehicleRecord:
    """Structured fields read from a registration document."""

    chassis: str | None = None
    engine: str | None = None
    brand: str | None = None
    model: str | None = None
    year: str | None = None
    displacement: str | None = None
    plate: str | None = None
    titleholders: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        """Return the record keyed by its wire (Spanish) field names."""
        return {WIRE_KEYS[name]: value for name, value in asdict(self).items()}

    @property
    def found_count(self) -> int:
        return sum(1 for value in asdict(self).values() if value is not None)


def flatten(text: str) -> str:
    """Join all lines of ``text`` into one space-separated string."""
    return text.replace("\n", " ")


def split_lines(text: str) -> list[str]:
    """Split ``text`` on newlines and trim each line."""
    return [line.strip() for line in text.split("\n")]


def extract_chassis(flat_text: str) -> str | None:
    """Return the first run of 17 VIN-alphabet characters (no I, O or Q)."""
    match = _CHASSIS_PATTERN.search(flat_text)
    return match.group(1) if match else None


def extract_labeled(field_name: str, flat_text: str) -> str | None:
    """Return the first value following ``field_name``'s label.

    Args:
        field_name: One of the keys of the labeled field patterns.
        flat_text: Text with newlines replaced by spaces.

    Returns:
        The stripped capture, or ``None`` if the pattern does not match.
    """
    match = _FIELD_PATTERNS[field_name].search(flat_text)
    if not match:
        return None
    return match.group(1).strip() or None


def extract_titleholders(lines: list[str]) -> str | None:
    """Collect titleholder names that may span several lines.

    Accumulation starts on the first line carrying a titular/titulares
    label (the label itself is removed) and stops before the next line
    that mentions any other field label.

    Args:
        lines: Trimmed document lines in order.

    Returns:
        The joined titleholder text, or ``None`` if no label is present.
    """
    for index, line in enumerate(lines):
        if not _TITLEHOLDER_LABEL.search(line):
            continue

        parts = [_TITLEHOLDER_LABEL.sub("", line, count=1).strip()]
        for following in lines[index + 1 :]:
            if _TITLEHOLDER_STOP.search(following):
                break
            if following:
                parts.append(following)
        return " ".join(part for part in parts if part).strip()
    return None


class RuleExtractor:
    """Regex-based extractor producing a ``VehicleRecord``.

    Holds no per-call state, so one instance can be shared across
    concurrent requests.
    """

    def __init__(self) -> None:
        self.patterns = _FIELD_PATTERNS

    def extract(self, text: str) -> VehicleRecord:
        """Extract every field from OCR text.

        Args:
            text: Full recognized text, newlines preserved.

        Returns:
            Record with ``None`` for each field that was not found.
        """
        flat_text = flatten(text)
        values = {name: extract_labeled(name, flat_text) for name in self.patterns}
        record = VehicleRecord(
            chassis=extract_chassis(flat_text),
            titleholders=extract_titleholders(split_lines(text)),
            **values,
        )
        logger.info("Rule extraction found %d fields", record.found_count)
        return record


def parse_vehicle_text(text: str) -> VehicleRecord:
    """Parse OCR text into a ``VehicleRecord``."""
    return RuleExtractor().extract(text)
