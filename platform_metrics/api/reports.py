"""
FastAPI router module for client report export.

Renders a report as CSV, Excel (tab-separated) or a branded print-ready HTML
document and returns it as a file download.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import Response

from platform_metrics.models import ReportExportRequest
from platform_metrics.services.export import export_report

# Configure logging
logger = logging.getLogger(__name__)

# Create router with prefix and tags for OpenAPI documentation
router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/export")
async def export_report_endpoint(request: ReportExportRequest) -> Response:
    """
    Export a report in the format chosen by ``options.format``.

    Returns:
        The rendered document with a ``Content-Disposition`` attachment header
    """
    exported = export_report(request)
    return Response(
        content=exported.content,
        media_type=exported.mediaType,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
