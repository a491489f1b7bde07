import os

import pytest

from stackplan.config import ACCOUNT_ENV_VAR, BudgetConfig, SiteConfig
from stackplan.errors import ConfigError

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture(autouse=True)
def _no_account_env(monkeypatch):
    monkeypatch.delenv(ACCOUNT_ENV_VAR, raising=False)


class TestSiteConfigFile:
    def test_loads_fixture(self):
        cfg = SiteConfig.from_file(os.path.join(FIXTURES, "site.yaml"))
        assert cfg.apex_domain == "example.com"
        assert cfg.domain_name == "jacaroo.example.com"
        assert cfg.subdomains == ["www", "blog"]
        assert cfg.region == "us-east-1"
        assert cfg.account == "123456789012"
        assert cfg.budget.amount == 1.0
        assert cfg.budget.alert_emails == ["ops@example.com"]

    def test_subdomain_names(self):
        cfg = SiteConfig.from_file(os.path.join(FIXTURES, "site.yaml"))
        assert cfg.subdomain_names == ["www.example.com", "blog.example.com"]

    def test_env_overrides_account(self, monkeypatch):
        monkeypatch.setenv(ACCOUNT_ENV_VAR, "999999999999")
        cfg = SiteConfig.from_file(os.path.join(FIXTURES, "site.yaml"))
        assert cfg.env == {"account": "999999999999", "region": "us-east-1"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            SiteConfig.from_file(str(tmp_path / "absent.yaml"))

    def test_invalid_yaml(self, tmp_path):
        f = tmp_path / "site.yaml"
        f.write_text("apex_domain: [oops\n")
        with pytest.raises(ConfigError):
            SiteConfig.from_file(str(f))

    def test_error_mentions_path(self, tmp_path):
        f = tmp_path / "site.yaml"
        f.write_text("region: us-east-1\n")
        with pytest.raises(ConfigError) as exc_info:
            SiteConfig.from_file(str(f))
        assert str(f) in str(exc_info.value)
        assert "apex_domain" in str(exc_info.value)


class TestSiteConfigValidation:
    def test_defaults(self):
        cfg = SiteConfig.from_dict({"apex_domain": "example.com", "region": "eu-west-1"})
        assert cfg.domain_name == "example.com"
        assert cfg.subdomains == []
        assert cfg.account is None
        assert cfg.budget == BudgetConfig()

    def test_unknown_setting(self):
        with pytest.raises(ConfigError):
            SiteConfig.from_dict({"apex_domain": "a.com", "region": "r", "colour": "blue"})

    def test_subdomains_must_be_strings(self):
        with pytest.raises(ConfigError):
            SiteConfig.from_dict({"apex_domain": "a.com", "region": "r", "subdomains": "www"})

    def test_duplicate_subdomains(self):
        with pytest.raises(ConfigError):
            SiteConfig.from_dict({"apex_domain": "a.com", "region": "r", "subdomains": ["www", "www"]})

    def test_budget_amount_positive(self):
        with pytest.raises(ConfigError):
            SiteConfig.from_dict({"apex_domain": "a.com", "region": "r", "budget": {"amount": 0}})

    def test_budget_amount_numeric(self):
        with pytest.raises(ConfigError):
            SiteConfig.from_dict({"apex_domain": "a.com", "region": "r", "budget": {"amount": "lots"}})

    def test_unknown_budget_setting(self):
        with pytest.raises(ConfigError):
            SiteConfig.from_dict({"apex_domain": "a.com", "region": "r", "budget": {"limit": 3}})

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError):
            SiteConfig.from_dict(["apex_domain"])
