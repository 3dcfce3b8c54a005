"""
Platform Metrics Backend Package.

FastAPI service layer that aggregates marketing and analytics metrics from
third-party platforms (Google Business Profile, Search Console, LinkedIn, X,
Shopify, HubSpot) into a uniform PlatformData shape for client-facing reports.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, proxy HTTP client, and dependencies
    - models: Pydantic schemas and enums
    - services: Rate limiting, provider adapters, normalization, insights,
      attribution, and report export
"""

__version__ = "1.0.0"
