"""Wrap PyGithub objects in the protocols GitHubClient consumes."""

from typing import Any, Dict, List
import logging

from github import Github
from github.GithubObject import NotSet
from github.PullRequest import PullRequest
from github.Repository import Repository

from . import (
    GRAPHQL_URL,
    GitHubLabelProtocol,
    GitHubPullRequestProtocol,
    GitHubRefProtocol,
    GitHubRepoProtocol,
    GitHubReviewProtocol,
    PyGithubProtocol,
)
from .types import GitHubRequester

logger = logging.getLogger(__name__)


class PullRequestAdapter(GitHubPullRequestProtocol):
    """One open pull request; reviews are only fetched on demand."""

    def __init__(self, pr: PullRequest) -> None:
        self._pr = pr

    @property
    def number(self) -> int:
        return self._pr.number

    @property
    def head(self) -> GitHubRefProtocol:
        return self._pr.head

    @property
    def labels(self) -> List[GitHubLabelProtocol]:
        return list(self._pr.labels)

    def get_reviews(self) -> List[GitHubReviewProtocol]:
        return list(self._pr.get_reviews())


class RepoAdapter(GitHubRepoProtocol):
    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def get_pulls(self, state: str = "open", head: str = "") -> List[GitHubPullRequestProtocol]:
        # PyGithub wants NotSet rather than an empty filter
        found = self._repo.get_pulls(state=state, head=head or NotSet)
        return [PullRequestAdapter(pr) for pr in found]


class PyGithubAdapter(PyGithubProtocol):
    """The PyGithub client, plus GraphQL through its authenticated requester."""

    def __init__(self, github: Github) -> None:
        self._github = github

    def get_repo(self, full_name_or_id: str) -> GitHubRepoProtocol:
        return RepoAdapter(self._github.get_repo(full_name_or_id))

    @property
    def requester(self) -> GitHubRequester:
        # PyGithub keeps it name-mangled; there is no public accessor
        return getattr(self._github, '_Github__requester')

    def graphql(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"GraphQL request with variables {variables}")
        _headers, data = self.requester.requestJsonAndCheck(
            "POST", GRAPHQL_URL, input={"query": query, "variables": variables}
        )
        return data
