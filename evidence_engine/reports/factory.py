"""
Composer Factory
================

Maps a report type to the composer that builds it.
"""

from typing import Dict, Optional, Type, Union

from ..config import Settings, get_settings
from ..errors import InvalidRequestError
from ..models import ReportType
from .base import ReportComposer
from .checkin import CheckinReportComposer
from .deposit import DepositPackComposer
from .short_stay import ShortStayReportComposer


_composers: Dict[ReportType, Type[ReportComposer]] = {
    ReportType.CHECKIN_REPORT: CheckinReportComposer,
    ReportType.DEPOSIT_PACK: DepositPackComposer,
    ReportType.SHORT_STAY_REPORT: ShortStayReportComposer,
}


def get_composer(report_type: Union[ReportType, str], settings: Optional[Settings] = None) -> ReportComposer:
    """
    Get the composer for a report type.

    Raises:
        InvalidRequestError: unknown report type
    """
    try:
        key = ReportType(report_type)
    except ValueError:
        raise InvalidRequestError(f"Unknown report type: {report_type}")
    return _composers[key](settings or get_settings())
