"""Convert extracted Records to CSV format."""

import csv
import io
from typing import TextIO

from .filters import matching_rules
from .models import Record, Settings

CSV_COLUMNS = [
    "index",
    "text",
    "has_image",
    "has_video",
    "is_primary_language",
    "primary_char_count",
    "secondary_word_count",
    "views",
    "likes",
    "retweets",
    "hidden",
    "rules",
]


def _flag(value: bool) -> str:
    return "true" if value else "false"


def records_to_csv(
    records: list[Record],
    settings: Settings | None = None,
    output: TextIO | None = None,
) -> str:
    """Convert records to CSV format.

    Args:
        records: Records in document order.
        settings: Settings used for the hidden/rules columns (defaults apply
            if None).
        output: Optional file-like object to write to. If None, returns CSV as string.

    Returns:
        CSV content as a string (also written to output if provided).
    """
    settings = settings or Settings()
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS, quoting=csv.QUOTE_MINIMAL)
    writer.writeheader()

    for index, r in enumerate(records, start=1):
        rules = matching_rules(r, settings)
        writer.writerow(
            {
                "index": index,
                "text": r.text,
                "has_image": _flag(r.has_image),
                "has_video": _flag(r.has_video),
                "is_primary_language": _flag(r.is_primary_language),
                "primary_char_count": r.primary_char_count,
                "secondary_word_count": r.secondary_word_count,
                "views": r.engagement.views,
                "likes": r.engagement.likes,
                "retweets": r.engagement.retweets,
                "hidden": _flag(bool(rules)),
                "rules": "|".join(rules),
            }
        )

    result = buf.getvalue()
    if output is not None:
        output.write(result)
    return result
