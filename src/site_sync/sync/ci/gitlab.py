from pathlib import PurePosixPath

from .base import CIConfigurator, WorkflowOptions

_TEMPLATE = """\
image: registry.gitlab.com/pages/hugo/hugo_extended:{hugo_version}

variables:
  GIT_SUBMODULE_STRATEGY: recursive

stages:
  - build
  - deploy

build:
  stage: build
  script:
    - {build_command}
  artifacts:
    paths:
      - public
  rules:
    - if: $CI_COMMIT_BRANCH == "{branch}"

pages:
  stage: deploy
  script:
    - {build_command}
  artifacts:
    paths:
      - public
  rules:
    - if: $CI_COMMIT_BRANCH == "{branch}"
"""


class GitLabCIConfigurator(CIConfigurator):
    """GitLab CI: ``build`` and ``pages`` jobs on the official Hugo extended image."""

    name = "GitLab CI"
    workflow_path = PurePosixPath(".gitlab-ci.yml")

    def render(self, options: WorkflowOptions) -> str:
        return _TEMPLATE.format(
            branch=options.branch,
            hugo_version=options.hugo_version,
            build_command=options.build_command,
        )
