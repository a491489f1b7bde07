"""
Markdown + Mermaid provisioning plan report.
"""
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List

from jinja2 import Environment

from stackplan import __version__
from stackplan.models.declaration import ResourceDeclaration
from stackplan.models.plan import PlanStep, ProvisioningPlan
from stackplan.reporters.json_reporter import count_by_type

_SERVICE_MAP = {
    # Resource type prefix → subgraph label
    "AWS::Route53::": "DNS",
    "AWS::CertificateManager::": "Certificates",
    "AWS::CloudFront::": "CDN",
    "AWS::S3::": "Storage",
    "Custom::CDKBucketDeployment": "Storage",
    "AWS::Budgets::": "Cost",
}

_SERVICE_ORDER = ["DNS", "Certificates", "Storage", "CDN", "Cost", "Other"]


def _node_id(position: int) -> str:
    # Positions are unique; logical names may collide once sanitised or
    # clash with Mermaid keywords such as "end".
    return f"n{position}"


def _label(name: str) -> str:
    return '"' + name.replace('"', "#quot;") + '"'


def _service(d: ResourceDeclaration) -> str:
    for prefix, label in _SERVICE_MAP.items():
        if d.resource_type.startswith(prefix):
            return label
    return "Other"


def _node_shape(d: ResourceDeclaration) -> str:
    """Return a Mermaid node definition string (without ID)."""
    label = _label(d.name)
    sg = _service(d)

    if sg == "Storage":
        return f"[({label})]"
    if sg == "DNS":
        return f"{{{{{label}}}}}"
    if sg == "Certificates":
        return f"[/{label}/]"
    return f"[{label}]"


def build_mermaid(plan: ProvisioningPlan) -> str:
    subgraphs: Dict[str, List[PlanStep]] = defaultdict(list)
    for step in plan.steps:
        subgraphs[_service(step.declaration)].append(step)

    lines = ["flowchart LR"]

    for sg_name in _SERVICE_ORDER:
        members = subgraphs.get(sg_name, [])
        if not members:
            continue
        lines.append(f"    subgraph {sg_name}")
        for step in members:
            lines.append(f"        {_node_id(step.position)}{_node_shape(step.declaration)}")
        lines.append("    end")

    # Edges point the way the plan flows: dependency first
    for step in plan.steps:
        for dep in step.depends_on:
            src = plan.steps[plan.index(dep)].position
            lines.append(f"    {_node_id(src)} --> {_node_id(step.position)}")

    return "\n".join(lines)


_TEMPLATE = """\
# Provisioning Plan

**Generated:** {{ generated }}
**Source:** {{ source }}
**Tool:** stackplan v{{ version }}
**Fingerprint:** `{{ fingerprint }}`
{% if target %}**Target:** account `{{ target.account or "-" }}`, region `{{ target.region or "-" }}`
{% endif %}

---

## Summary

**{{ resource_count }} resources** in dependency order:
{% for rtype, n in by_type.items() %}
- `{{ rtype }}`: {{ n }}{% endfor %}

---

## Steps

| # | Resource | Type | Depends on | Removal policy |
|---|----------|------|------------|----------------|
{% for s in steps %}| {{ s.position }} | `{{ s.name }}` | `{{ s.declaration.resource_type }}` | {% if s.depends_on %}{% for dep in s.depends_on %}`{{ dep }}`{% if not loop.last %}, {% endif %}{% endfor %}{% else %}-{% endif %} | {{ s.declaration.removal_policy.value if s.declaration.removal_policy else "-" }} |
{% endfor %}

---

## Dependency Graph

```mermaid
{{ mermaid }}
```
"""


def build_report(plan: ProvisioningPlan, source_path: str) -> str:
    env = Environment(autoescape=False)
    template = env.from_string(_TEMPLATE)

    return template.render(
        generated=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        source=source_path,
        version=__version__,
        fingerprint=plan.fingerprint(),
        target=plan.target,
        resource_count=len(plan),
        by_type=count_by_type(plan),
        steps=plan.steps,
        mermaid=build_mermaid(plan),
    )
