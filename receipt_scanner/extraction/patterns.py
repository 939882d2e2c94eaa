"""Regular expressions for scanning raw receipt text."""

import re


# 2024-03-01, 2024/3/1 (year first) or 01/03/2024, 1-3-24 (day or month first)
DATE_PATTERN = re.compile(
    r"(?<!\d)(?:"
    r"(?P<ymd>\d{4}[/-]\d{1,2}[/-]\d{1,2})"
    r"|(?P<dmy>\d{1,2}[/-]\d{1,2}[/-]\d{2,4})"
    r")(?!\d)"
)

# Optional currency symbol, digits, optional thousands groups and decimals:
# $45.20, € 12,50, 1,234.56, 3
AMOUNT_PATTERN = re.compile(
    r"(?:[$€£¥]\s?)?(?<![\d.,])\d+(?:[.,]\d{3})*(?:[.,]\d{1,2})?(?!\d)"
)
