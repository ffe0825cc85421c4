"""
Report Variants
===============

One composer per document type, all sharing the same pipeline.
"""

from .base import ComposedDocument, ReportComposer, ReportContent
from .checkin import CheckinReportComposer
from .deposit import DepositPackComposer
from .short_stay import ShortStayReportComposer
from .factory import get_composer

__all__ = [
    "ReportComposer", "ReportContent", "ComposedDocument",
    "CheckinReportComposer", "DepositPackComposer", "ShortStayReportComposer",
    "get_composer",
]
