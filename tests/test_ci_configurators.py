"""Tests for CI workflow configurators."""

import pytest
import yaml

from site_sync.sync.ci import (
    DEFAULT_HUGO_VERSION,
    ForgejoActionsConfigurator,
    GitHubActionsConfigurator,
    GitLabCIConfigurator,
    WorkflowOptions,
    get_ci_configurator,
)

ALL = [GitHubActionsConfigurator, GitLabCIConfigurator, ForgejoActionsConfigurator]


class TestLookup:
    @pytest.mark.parametrize(
        ("provider", "cls"),
        [
            ("github", GitHubActionsConfigurator),
            ("gitlab", GitLabCIConfigurator),
            ("forgejo", ForgejoActionsConfigurator),
        ],
    )
    def test_known_providers(self, provider, cls):
        assert isinstance(get_ci_configurator(provider), cls)

    @pytest.mark.parametrize("provider", ["generic", "bitbucket", "", None])
    def test_generic_and_unknown_have_none(self, provider):
        """Generic and unknown providers get no configurator."""
        assert get_ci_configurator(provider) is None


@pytest.mark.parametrize("cls", ALL)
class TestRender:
    def test_deterministic(self, cls):
        """Same options give byte-identical output."""
        options = WorkflowOptions(branch="live", override_base_url="https://x.test/")
        assert cls().render(options) == cls().render(options)

    def test_default_hugo_version(self, cls):
        """Without a version the default Hugo release is used."""
        assert DEFAULT_HUGO_VERSION in cls().render(WorkflowOptions())

    def test_base_url_flag_only_when_set(self, cls):
        """--baseURL appears only with an override."""
        assert "--baseURL" not in cls().render(WorkflowOptions())
        text = cls().render(WorkflowOptions(override_base_url="https://x.test/"))
        assert "hugo --minify --baseURL https://x.test/" in text

    def test_valid_yaml(self, cls):
        """Rendered workflows parse as YAML mappings."""
        assert isinstance(yaml.safe_load(cls().render(WorkflowOptions())), dict)

    def test_write_workflow(self, cls, tmp_path):
        """write_workflow writes to the provider's conventional path."""
        path = cls().write_workflow(tmp_path)
        assert path == tmp_path.joinpath(*cls.workflow_path.parts)
        assert path.read_text() == cls().render(WorkflowOptions())


def test_github_branch_trigger():
    """The GitHub workflow triggers on the configured branch."""
    data = yaml.safe_load(
        GitHubActionsConfigurator().render(WorkflowOptions(branch="live"))
    )
    # PyYAML reads the bare key `on` as boolean True
    triggers = data.get("on", data.get(True))
    assert triggers["push"]["branches"] == ["live"]


def test_gitlab_paths():
    """GitLab writes .gitlab-ci.yml at the repository root."""
    assert str(GitLabCIConfigurator.workflow_path) == ".gitlab-ci.yml"
    assert GitLabCIConfigurator().get_name() == "GitLab CI"
