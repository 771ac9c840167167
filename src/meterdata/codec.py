"""Value and date literal conversions for meter export files."""

import math

from aws_lambda_powertools import Logger

from meterdata.common import VALUE_SEPARATOR

logger = Logger(service="meterdata-codec", child=True)


def parse_value(cell: str | None) -> float:
    """
    Parse an hourly cell such as ".739,+" into kWh.

    Only the text before the first comma is numeric, the rest is a quality flag.
    Empty, missing, non-numeric and NaN cells are returned as 0.0.

    Args:
        cell: Raw cell text, or None when the row is shorter than 24 hours

    Returns:
        Parsed value, 0.0 when the cell carries no number
    """
    if not cell:
        return 0.0

    number = cell.split(VALUE_SEPARATOR, 1)[0].strip()
    if not number:
        return 0.0

    try:
        value = float(number)
    except ValueError:
        logger.debug("Non-numeric cell coerced to zero", extra={"cell": cell})
        return 0.0

    if math.isnan(value):
        logger.debug("NaN cell coerced to zero", extra={"cell": cell})
        return 0.0
    return value


def format_date(raw_date: str) -> str:
    """Reorder DD-MM-YYYY into YYYY-MM-DD. Anything else is returned unchanged."""
    parts = raw_date.strip().split("-")
    if len(parts) != 3:
        return raw_date
    return f"{parts[2]}-{parts[1]}-{parts[0]}"
