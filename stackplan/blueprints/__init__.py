"""
Blueprints return plain lists of declarations for a SiteConfig. Nothing is
registered anywhere; callers pass the list to compiler.compile().

- **website**: S3 + CloudFront static site behind an ACM certificate, with
  apex and subdomain alias records in an existing hosted zone.
- **dns**: a hosted zone for domain_name with an NS record set delegating to
  the configured name servers.
- **cost**: a monthly budget with forecasted and actual e-mail alerts.
"""

from stackplan.blueprints.cost import budget_alerts
from stackplan.blueprints.dns import delegated_zone
from stackplan.blueprints.website import static_website

BLUEPRINTS = {
    "website": static_website,
    "dns": delegated_zone,
    "cost": budget_alerts,
}

__all__ = ["BLUEPRINTS", "budget_alerts", "delegated_zone", "static_website"]
