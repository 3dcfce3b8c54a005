"""
Response normalization: formatting at the adapter boundary and keyed numeric
extraction for cross-platform aggregation.

Two directions are covered here:

1. Raw numbers -> display strings. Adapters call ``format_number``,
   ``format_currency`` and ``format_percent`` so every ``Metric.value`` is a
   renderable string (missing upstream fields become ``0``, never ``None``).
2. Display strings -> numbers. ``normalize_shopify`` / ``normalize_hubspot``
   turn an already built PlatformData into semantically keyed numeric metrics.
   Lookup is by ``Metric.key`` (falling back to the metric label), so the
   result does not depend on the order of the metrics list.
"""

import math
import re
from typing import Any, Callable, Dict, Optional, Tuple

from platform_metrics.models import (
    NormalizedMetric,
    NormalizedPlatform,
    PlatformData,
    Trend,
)


CURRENCY_CODE = "KES"

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")
_SIGNED_NUMBER = re.compile(r"[-+]?\d+(?:\.\d+)?")


# =============================================================================
# Numeric Coercion
# =============================================================================


def extract_number(value: Any) -> float:
    """
    Parse a display string back into a number.

    Every character other than digits, '.' and '-' is dropped before parsing,
    so currency codes, thousands separators and unit suffixes are ignored:
    ``"KES 250,000"`` -> ``250000.0``. Only the leading number of what remains
    is read (``"12-5"`` -> ``12.0``, ``"1.2.3"`` -> ``1.2``). Unparseable or
    empty input yields 0.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if not value:
        return 0.0
    cleaned = _NON_NUMERIC.sub("", str(value))
    match = _LEADING_NUMBER.match(cleaned)
    if match is None:
        return 0.0
    parsed = float(match.group())
    return parsed if math.isfinite(parsed) else 0.0


# Percent strings parse exactly like plain numbers ("18.4%" -> 18.4)
extract_percent = extract_number


def to_number(value: Any) -> float:
    """Coerce an upstream field (number, numeric string, or missing) to float."""
    if value is None:
        return 0.0
    return extract_number(value)


# =============================================================================
# Display Formatting
# =============================================================================


def format_number(value: Any, max_fraction_digits: int = 0) -> str:
    """
    Format with thousands separators, e.g. ``2400`` -> ``"2,400"``.

    Fraction digits are trimmed of trailing zeros.
    """
    number = to_number(value)
    if max_fraction_digits <= 0:
        return f"{number:,.0f}"
    text = f"{number:,.{max_fraction_digits}f}"
    return text.rstrip("0").rstrip(".")


def format_currency(value: Any, currency: str = CURRENCY_CODE) -> str:
    """Currency amount with code prefix, e.g. ``"KES 250,000"``."""
    return f"{currency} {format_number(value)}"


def format_percent(value: Any, decimals: int = 1) -> str:
    """Percent value (already in percent units) with one decimal: ``"2.5%"``."""
    return f"{to_number(value):.{decimals}f}%"


def format_change(value: float, suffix: str = "%") -> str:
    """
    Signed change string, e.g. ``8`` -> ``"+8%"``, ``-2`` -> ``"-2%"``.

    Whole numbers print without decimals, others with one.
    """
    sign = "-" if value < 0 else "+"
    magnitude = abs(value)
    if float(magnitude).is_integer():
        body = f"{int(magnitude)}"
    else:
        body = f"{magnitude:.1f}"
    return f"{sign}{body}{suffix}"


def trend_for_change(change: str) -> Trend:
    """Derive the trend from the sign of the first number in a change string."""
    match = _SIGNED_NUMBER.search(change or "")
    if not match:
        return Trend.NEUTRAL
    number = float(match.group(0))
    if number > 0:
        return Trend.UP
    if number < 0:
        return Trend.DOWN
    return Trend.NEUTRAL


# =============================================================================
# Keyed Normalization
# =============================================================================

# key -> (label, unit)
METRIC_DEFINITIONS: Dict[str, Tuple[str, str]] = {
    "revenue": ("Revenue", CURRENCY_CODE),
    "orders": ("Orders", ""),
    "aov": ("Average Order Value", CURRENCY_CODE),
    "repeat_rate": ("Repeat Rate", "%"),
    "deals_created": ("Deals Created", ""),
    "deals_won": ("Deals Won", ""),
    "pipeline_value": ("Pipeline Value", CURRENCY_CODE),
    "win_rate": ("Win Rate", "%"),
    "avg_cycle": ("Avg Sales Cycle (days)", "days"),
}

# key -> label the adapter displays, used when a metric carries no key
SHOPIFY_DISPLAY_LABELS: Dict[str, str] = {
    "revenue": "Revenue",
    "orders": "Orders",
    "aov": "AOV",
    "repeat_rate": "Repeat Rate",
}

HUBSPOT_DISPLAY_LABELS: Dict[str, str] = {
    "deals_created": "Deals Created",
    "deals_won": "Deals Won",
    "pipeline_value": "Pipeline Value",
    "win_rate": "Win Rate",
    "avg_cycle": "Avg Cycle (days)",
}


def _lookup_value(data: PlatformData, key: str, display_label: str) -> Optional[str]:
    metric = data.get_metric(key) or data.get_metric(display_label)
    return metric.value if metric else None


def _normalize(
    data: PlatformData,
    platform_name: str,
    display_labels: Dict[str, str],
) -> NormalizedPlatform:
    metrics = []
    for key, display_label in display_labels.items():
        label, unit = METRIC_DEFINITIONS[key]
        raw = _lookup_value(data, key, display_label)
        value = extract_percent(raw) if unit == "%" else extract_number(raw)
        metrics.append(NormalizedMetric(key=key, label=label, unit=unit, value=value))
    return NormalizedPlatform(platform=platform_name, metrics=metrics, chart=data.chartData)


def normalize_shopify(data: PlatformData) -> NormalizedPlatform:
    """Numeric revenue / orders / aov / repeat_rate view of Shopify data."""
    return _normalize(data, "Shopify", SHOPIFY_DISPLAY_LABELS)


def normalize_hubspot(data: PlatformData) -> NormalizedPlatform:
    """Numeric deal pipeline view of HubSpot data."""
    return _normalize(data, "HubSpot CRM", HUBSPOT_DISPLAY_LABELS)


NORMALIZERS: Dict[str, Callable[[PlatformData], NormalizedPlatform]] = {
    "shopify": normalize_shopify,
    "hubspot": normalize_hubspot,
}


def normalize_platform(data: PlatformData) -> NormalizedPlatform:
    """
    Dispatch to the normalizer registered for ``data.id``.

    Raises:
        ValueError: If no normalizer exists for the platform.
    """
    try:
        normalizer = NORMALIZERS[data.id]
    except KeyError:
        raise ValueError(f"No normalizer registered for platform '{data.id}'") from None
    return normalizer(data)
