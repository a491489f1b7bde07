"""
Site configuration consumed by the blueprints.

Read from a YAML file (``stackplan.yaml`` by default)::

    domain_name: example.com
    apex_domain: example.com
    subdomains: [www, blog]
    name_servers: [ns-1.awsdns-00.com, ns-2.awsdns-00.net]
    website_build_path: ./site/dist
    region: us-east-1
    budget:
      amount: 1
      alert_emails: [ops@example.com]

``account`` may be left out of the file and supplied through the
STACKPLAN_ACCOUNT environment variable.
"""
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

import yaml

from stackplan.errors import ConfigError

DEFAULT_CONFIG_FILE = "stackplan.yaml"
ACCOUNT_ENV_VAR = "STACKPLAN_ACCOUNT"


@dataclass
class BudgetConfig:
    name: str = "monthly-cost-budget"
    amount: float = 1.0
    currency: str = "USD"
    alert_emails: List[str] = field(default_factory=list)
    forecast_threshold: float = 100.0   # percent of amount
    actual_threshold: float = 50.0


@dataclass
class SiteConfig:
    apex_domain: str
    region: str
    domain_name: Optional[str] = None   # delegated zone; defaults to apex_domain
    subdomains: List[str] = field(default_factory=list)
    name_servers: List[str] = field(default_factory=list)
    website_build_path: str = "./dist"
    account: Optional[str] = None
    budget: BudgetConfig = field(default_factory=BudgetConfig)

    def __post_init__(self):
        if self.domain_name is None:
            self.domain_name = self.apex_domain

    @property
    def subdomain_names(self) -> List[str]:
        return [f"{s}.{self.apex_domain}" for s in self.subdomains]

    @property
    def env(self) -> Dict[str, Optional[str]]:
        return {"account": self.account, "region": self.region}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SiteConfig":
        if not isinstance(data, dict):
            raise ConfigError("config must be a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError("unknown settings: " + ", ".join(unknown))

        missing = [k for k in ("apex_domain", "region") if not data.get(k)]
        if missing:
            raise ConfigError("missing required settings: " + ", ".join(missing))

        for key in ("subdomains", "name_servers"):
            val = data.get(key, [])
            if not isinstance(val, list) or not all(isinstance(v, str) and v for v in val):
                raise ConfigError(f"'{key}' must be a list of non-empty strings")
        if len(set(data.get("subdomains", []))) != len(data.get("subdomains", [])):
            raise ConfigError("'subdomains' contains duplicates")

        kwargs = dict(data)
        kwargs["budget"] = _budget_from_dict(data.get("budget") or {})
        kwargs["account"] = os.environ.get(ACCOUNT_ENV_VAR) or data.get("account")
        if kwargs["account"] is not None:
            kwargs["account"] = str(kwargs["account"])
        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> "SiteConfig":
        try:
            with open(path, encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except OSError as exc:
            raise ConfigError(f"cannot read {path}: {exc.strerror or exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
        try:
            return cls.from_dict(data or {})
        except ConfigError as exc:
            raise ConfigError(f"{path}: {exc}") from exc


def _budget_from_dict(data: Dict[str, Any]) -> BudgetConfig:
    if not isinstance(data, dict):
        raise ConfigError("'budget' must be a mapping")
    known = {f.name for f in fields(BudgetConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError("unknown budget settings: " + ", ".join(unknown))

    budget = BudgetConfig(**data)
    try:
        budget.amount = float(budget.amount)
        budget.forecast_threshold = float(budget.forecast_threshold)
        budget.actual_threshold = float(budget.actual_threshold)
    except (TypeError, ValueError):
        raise ConfigError("budget amount and thresholds must be numbers") from None
    if budget.amount <= 0:
        raise ConfigError("budget amount must be positive")
    if not isinstance(budget.alert_emails, list):
        raise ConfigError("'budget.alert_emails' must be a list")
    return budget
