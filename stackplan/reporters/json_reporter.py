"""
JSON provisioning plan report.
"""
import json
from collections import Counter
from datetime import datetime, timezone

from stackplan import __version__
from stackplan.models.plan import ProvisioningPlan


def count_by_type(plan: ProvisioningPlan) -> dict:
    return dict(sorted(Counter(d.resource_type for d in plan).items()))


def build_report(plan: ProvisioningPlan, source_path: str) -> str:
    report = {
        "meta": {
            "generated": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "source": source_path,
            "tool": "stackplan",
            "version": __version__,
            "target": plan.target,
        },
        "summary": {
            "resources": len(plan),
            "by_type": count_by_type(plan),
        },
        "fingerprint": plan.fingerprint(),
        "steps": plan.to_dict()["steps"],
    }
    return json.dumps(report, indent=2)
