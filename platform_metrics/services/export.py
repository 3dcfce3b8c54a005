"""
Client report export: CSV, Excel and print-ready (PDF) documents.

All three formats render the same content: a report header (name, client,
date) followed by one section per connected platform listing its metrics.

Formats:
- csv: header rows, then per platform a title row and a
  ``Metric,Value,Change,Trend`` table. Fields containing commas (for example
  ``KES 250,000``) are quoted.
- excel: the same sheet, tab-separated, served as ``application/vnd.ms-excel``.
- pdf: a self-contained, branded HTML document ready for the browser's print
  to PDF. Binary PDF rendering is not done server side.

Tables are built with pandas so quoting and separators are handled by the
writer rather than by string concatenation.

Usage:
    from platform_metrics.services.export import export_report

    exported = export_report(request)
    return Response(exported.content, media_type=exported.mediaType)
"""

import html
import io
import logging
import re
from datetime import date
from typing import Dict, List, Mapping, Optional

import pandas as pd

from platform_metrics.models import (
    ExportedReport,
    ExportFormat,
    ExportOptions,
    PlatformData,
    ReportExportRequest,
)

logger = logging.getLogger(__name__)


DEFAULT_BRAND_COLOR = '#3b82f6'
DEFAULT_COMPANY_NAME = 'WebProMetrics'

METRIC_COLUMNS = ['Metric', 'Value', 'Change', 'Trend']

PLATFORM_TITLES: Dict[str, str] = {
    'google_ads': 'Google Ads Performance',
    'ga4': 'Google Analytics 4',
    'meta_ads': 'Meta Ads (Facebook/Instagram)',
    'search_console': 'Google Search Console',
    'linkedin': 'LinkedIn Company Page',
    'x_ads': 'X (Twitter) Ads',
    'tiktok_ads': 'TikTok Ads',
    'shopify': 'Shopify Commerce',
    'hubspot': 'HubSpot CRM',
    'hubspot_crm': 'HubSpot CRM',
    'gmb': 'Google Business Profile',
}

_HEX_COLOR = re.compile(r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$')
_SLUG_SEPARATORS = re.compile(r'[^A-Za-z0-9]+')


def get_platform_title(key: str) -> str:
    return PLATFORM_TITLES.get(key, key)


def _connected(platform_data: Mapping[str, Optional[PlatformData]]) -> List[tuple]:
    return [(key, data) for key, data in platform_data.items() if data is not None]


def metrics_frame(data: PlatformData) -> pd.DataFrame:
    """One row per metric with the display columns used by every format."""
    return pd.DataFrame(
        [[m.label, m.value, m.change, m.trend.value] for m in data.metrics],
        columns=METRIC_COLUMNS,
    )


# =============================================================================
# Delimited Sheets (CSV / Excel)
# =============================================================================


def generate_sheet(request: ReportExportRequest, sep: str = ',') -> str:
    """Sectioned sheet with ``sep`` as the field separator."""
    buffer = io.StringIO()

    header = pd.DataFrame([
        ['Report Name', request.reportName],
        ['Client', request.clientName],
        ['Date', request.reportDate],
    ])
    header.to_csv(buffer, sep=sep, header=False, index=False, lineterminator='\n')
    buffer.write('\n')

    for key, data in _connected(request.platformData):
        buffer.write('\n')
        pd.DataFrame([[get_platform_title(key)]]).to_csv(
            buffer, sep=sep, header=False, index=False, lineterminator='\n'
        )
        metrics_frame(data).to_csv(buffer, sep=sep, index=False, lineterminator='\n')

    return buffer.getvalue()


# =============================================================================
# Branded HTML (PDF)
# =============================================================================


def _brand_color(options: ExportOptions) -> str:
    color = options.customBranding.brandColor if options.customBranding else None
    if color and _HEX_COLOR.match(color):
        return color
    return DEFAULT_BRAND_COLOR


def _company_name(options: ExportOptions) -> str:
    name = options.customBranding.companyName if options.customBranding else None
    return name or DEFAULT_COMPANY_NAME


def generate_html_body(request: ReportExportRequest) -> str:
    """Header block plus one metric-card section per connected platform."""
    options = request.options
    esc = html.escape

    parts = ['<div class="header">']
    logo_url = options.customBranding.logoUrl if options.customBranding else None
    if options.includeLogo and logo_url:
        parts.append(f'<img src="{esc(logo_url)}" alt="Logo" class="logo" />')
    parts.append(f'<h1>{esc(request.reportName)}</h1>')
    parts.append(f'<p>{esc(request.clientName)} | {esc(request.reportDate)}</p>')
    if options.dateRange:
        parts.append(f'<p>Period: {esc(options.dateRange)}</p>')
    parts.append('</div>')

    for key, data in _connected(request.platformData):
        parts.append('<div class="section">')
        parts.append(f'<h2>{esc(get_platform_title(key))}</h2>')
        parts.append('<div class="metrics">')
        for m in data.metrics:
            parts.append(
                f'<div class="metric-card trend-{m.trend.value}">'
                f'<div class="label">{esc(m.label)}</div>'
                f'<div class="value">{esc(m.value)}</div>'
                f'<div class="change">{esc(m.change)}</div>'
                f'</div>'
            )
        parts.append('</div>')

        if options.includeCharts and data.chartData:
            chart = pd.DataFrame(
                [[point.name, point.value] for point in data.chartData],
                columns=['Period', 'Value'],
            )
            parts.append(chart.to_html(index=False, classes='chart', border=0))

        parts.append('</div>')

    return '\n'.join(parts)


def generate_html_document(
    request: ReportExportRequest,
    generated_on: Optional[date] = None,
) -> str:
    options = request.options
    color = _brand_color(options)
    generated_on = generated_on or date.today()
    title = html.escape(f'{request.reportName} - {request.clientName}')

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{title}</title>
  <style>
    body {{ font-family: Arial, sans-serif; padding: 40px; color: #333; }}
    .header {{ text-align: center; margin-bottom: 40px; border-bottom: 3px solid {color}; padding-bottom: 20px; }}
    .header h1 {{ color: {color}; margin: 0; }}
    .header p {{ color: #666; margin: 5px 0; }}
    .logo {{ max-width: 200px; margin-bottom: 20px; }}
    .section {{ margin: 30px 0; }}
    .section h2 {{ color: #1f2937; border-bottom: 2px solid #e5e7eb; padding-bottom: 10px; }}
    .metrics {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; margin: 20px 0; }}
    .metric-card {{ padding: 15px; background: #f9fafb; border-left: 4px solid {color}; }}
    .metric-card .label {{ font-size: 12px; color: #6b7280; text-transform: uppercase; }}
    .metric-card .value {{ font-size: 24px; font-weight: bold; margin: 5px 0; }}
    .metric-card .change {{ font-size: 14px; color: #10b981; }}
    .metric-card.trend-down .change {{ color: #ef4444; }}
    .metric-card.trend-neutral .change {{ color: #6b7280; }}
    table.chart {{ border-collapse: collapse; margin: 10px 0; }}
    table.chart td, table.chart th {{ padding: 4px 12px; border-bottom: 1px solid #e5e7eb; }}
    .footer {{ margin-top: 60px; padding-top: 20px; border-top: 1px solid #e5e7eb; text-align: center; color: #9ca3af; font-size: 12px; }}
  </style>
</head>
<body>
{generate_html_body(request)}
<div class="footer">
  <p>Generated on {generated_on.isoformat()} by {html.escape(_company_name(options))}</p>
  <p>Confidential - For {html.escape(request.clientName)} Only</p>
</div>
</body>
</html>
"""


# =============================================================================
# Dispatch
# =============================================================================


def report_filename(request: ReportExportRequest, extension: str) -> str:
    slug = _SLUG_SEPARATORS.sub('-', request.reportName).strip('-').lower() or 'report'
    return f'{slug}.{extension}'


def export_report(
    request: ReportExportRequest,
    generated_on: Optional[date] = None,
) -> ExportedReport:
    """
    Render a report in the format selected by ``request.options.format``.

    Args:
        request: Report header, platform data and export options.
        generated_on: Date printed in the PDF footer (defaults to today).

    Returns:
        ExportedReport with UTF-8 encoded content, media type and filename.
    """
    fmt = request.options.format
    connected = len(_connected(request.platformData))
    logger.info(f"Exporting report '{request.reportName}' as {fmt.value} ({connected} platforms)")

    if fmt == ExportFormat.CSV:
        return ExportedReport(
            content=generate_sheet(request, sep=',').encode('utf-8'),
            mediaType='text/csv',
            filename=report_filename(request, 'csv'),
        )

    if fmt == ExportFormat.EXCEL:
        return ExportedReport(
            content=generate_sheet(request, sep='\t').encode('utf-8'),
            mediaType='application/vnd.ms-excel',
            filename=report_filename(request, 'xls'),
        )

    return ExportedReport(
        content=generate_html_document(request, generated_on).encode('utf-8'),
        mediaType='text/html',
        filename=report_filename(request, 'html'),
    )
