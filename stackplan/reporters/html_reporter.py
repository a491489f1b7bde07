"""
HTML + Mermaid provisioning plan report.
"""
import json
from datetime import datetime, timezone

from jinja2 import Environment

from stackplan import __version__
from stackplan.models.plan import ProvisioningPlan
from stackplan.reporters import markdown
from stackplan.reporters.json_reporter import count_by_type

_HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Provisioning Plan - stackplan</title>
    <script src="https://cdn.jsdelivr.net/npm/mermaid/dist/mermaid.min.js"></script>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 1200px; margin: 0 auto; padding: 2rem; background: #f9f9f9; }
        header { border-bottom: 2px solid #ddd; margin-bottom: 2rem; padding-bottom: 1rem; }
        h1 { color: #1565c0; margin-bottom: 0; }
        .meta { color: #666; font-size: 0.9rem; margin-bottom: 2rem; }
        .summary-cards { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 1rem; margin-bottom: 2rem; }
        .card { background: white; padding: 1rem; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); text-align: center; border-left: 5px solid #1565c0; }
        .card-num { font-size: 2rem; font-weight: bold; margin-bottom: 0.2rem; }
        .card-label { color: #666; font-size: 0.8rem; word-break: break-all; }
        .mermaid-container { background: white; padding: 2rem; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); margin-bottom: 2rem; overflow-x: auto; }
        .plan-table { width: 100%; border-collapse: collapse; background: white; border-radius: 8px; overflow: hidden; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
        .plan-table th, .plan-table td { padding: 1rem; text-align: left; border-bottom: 1px solid #eee; vertical-align: top; }
        .plan-table th { background: #f5f5f5; font-weight: 600; }
        .props { background: #f5f5f5; font-family: monospace; padding: 0.5rem; border-radius: 4px; white-space: pre-wrap; font-size: 0.8rem; }
        footer { margin-top: 4rem; text-align: center; color: #999; font-size: 0.8rem; }
    </style>
</head>
<body>
    <header>
        <h1>Provisioning Plan</h1>
        <div class="meta">Generated: {{ generated }} | Source: {{ source }} | stackplan v{{ version }} | Fingerprint: <code>{{ fingerprint }}</code>{% if target %} | Target: {{ target.account or "-" }} / {{ target.region or "-" }}{% endif %}</div>
    </header>

    <div class="summary-cards">
        {% for rtype, n in by_type.items() %}
        <div class="card"><div class="card-num">{{ n }}</div><div class="card-label">{{ rtype }}</div></div>
        {% endfor %}
    </div>

    <h2>Dependency Graph</h2>
    <div class="mermaid-container">
        <div class="mermaid">
{{ mermaid }}
        </div>
    </div>

    <h2>Steps</h2>
    <table class="plan-table">
        <thead>
            <tr>
                <th>#</th>
                <th>Resource</th>
                <th>Type</th>
                <th>Depends on</th>
                <th>Properties</th>
            </tr>
        </thead>
        <tbody>
            {% for s in steps %}
            <tr>
                <td>{{ s.position }}</td>
                <td><strong>{{ s.name }}</strong>{% if s.removal_policy %}<div style="font-size: 0.8rem; color: #666;">removal: {{ s.removal_policy }}</div>{% endif %}</td>
                <td>{{ s.resource_type }}</td>
                <td>{{ s.depends_on | join(", ") }}</td>
                <td><div class="props">{{ s.properties_json }}</div></td>
            </tr>
            {% endfor %}
        </tbody>
    </table>

    <footer>
        stackplan - declarative resource graph compiler
    </footer>

    <script>
        mermaid.initialize({ startOnLoad: true, theme: 'neutral', securityLevel: 'strict' });
    </script>
</body>
</html>
"""


def build_report(plan: ProvisioningPlan, source_path: str) -> str:
    steps = []
    for s in plan.to_dict()["steps"]:
        s["properties_json"] = json.dumps(s["properties"], indent=2)
        steps.append(s)

    env = Environment(autoescape=True)
    template = env.from_string(_HTML_TEMPLATE)

    return template.render(
        generated=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        source=source_path,
        version=__version__,
        fingerprint=plan.fingerprint(),
        target=plan.target,
        by_type=count_by_type(plan),
        steps=steps,
        mermaid=markdown.build_mermaid(plan),
    )
