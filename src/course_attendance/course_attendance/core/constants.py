"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Second field of a line produced by the handheld barcode scanners.
SCANNER_MARKER = "Codabar"
SCANNER_DATE_FORMAT = "%d/%m/%Y %H:%M:%S"

# Value of the "omitted students" selector meaning "leave them alone".
NO_CHANGE_STATUS = "-"

REMARK_BARCODE_SCAN = "Checked off by barcode scan"
REMARK_BARCODE_SCAN_DATE = "Checked off by barcode scan at {date}"
REMARK_IN_CLASS = "In class at {date}"

# Live check-off lists sessions starting up to this far in the future.
LIVE_TIME_ADJUSTMENT_SECONDS = 15 * 60
