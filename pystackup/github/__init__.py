"""GitHub interfaces and implementation."""

import os
import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
from pathlib import Path

import yaml

from ..typing import PullRequestInfo, REVIEW_APPROVED
from ..config.models import StackupConfig
from ..util import ensure

# Import GraphQL response types from dedicated module
from .types import parse_graphql_response

# Get module logger
logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"

PULL_REQUEST_QUERY = """
query Query($owner: String!, $name: String!, $head: String!) {
  repository(owner: $owner, name: $name) {
    pullRequests(headRefName: $head, states: OPEN, first: 1) {
      nodes {
        number
        headRefName
        reviewDecision
        labels(first: 50) {
          nodes {
            name
          }
        }
      }
    }
  }
}
"""

REVIEW_CHANGES_REQUESTED = "CHANGES_REQUESTED"

# Define protocols for GitHub objects
@runtime_checkable
class GitHubUserProtocol(Protocol):
    """Protocol for GitHub user objects (real or fake)."""
    @property
    def login(self) -> str:
        """Get the user's login name."""
        ...

@runtime_checkable
class GitHubLabelProtocol(Protocol):
    """Protocol for GitHub label objects."""
    @property
    def name(self) -> str:
        ...

@runtime_checkable
class GitHubReviewProtocol(Protocol):
    """Protocol for pull request reviews."""
    @property
    def state(self) -> str:
        """APPROVED, CHANGES_REQUESTED, COMMENTED, DISMISSED or PENDING."""
        ...

    @property
    def user(self) -> Optional[GitHubUserProtocol]:
        ...

@runtime_checkable
class GitHubRefProtocol(Protocol):
    """Protocol for GitHub ref objects (base/head references)."""
    @property
    def ref(self) -> str:
        """Get the ref name (e.g., 'main', 'feature-branch')."""
        ...

@runtime_checkable
class GitHubPullRequestProtocol(Protocol):
    """Protocol for GitHub pull request objects (real or fake)."""
    @property
    def number(self) -> int:
        ...

    @property
    def head(self) -> GitHubRefProtocol:
        ...

    @property
    def labels(self) -> List[GitHubLabelProtocol]:
        ...

    def get_reviews(self) -> List[GitHubReviewProtocol]:
        """Reviews in chronological order."""
        ...

@runtime_checkable
class GitHubRepoProtocol(Protocol):
    """Protocol for GitHub repository objects (real or fake)."""
    def get_pulls(self, state: str = "open", head: str = "") -> List[GitHubPullRequestProtocol]:
        """Get pull requests with optional filtering."""
        ...

@runtime_checkable
class PyGithubProtocol(Protocol):
    """Protocol for PyGithub implementations (real or fake)."""
    def get_repo(self, full_name_or_id: str) -> GitHubRepoProtocol:
        """Get a repository by full name or ID."""
        ...

    def graphql(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """Run a GraphQL query and return the JSON response body."""
        ...

def find_github_token() -> Optional[str]:
    """Find GitHub token from env var or gh CLI config."""
    # First try environment variable
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    # Then try gh CLI config at ~/.config/gh/hosts.yml
    try:
        gh_config_path = Path.home() / ".config" / "gh" / "hosts.yml"
        if gh_config_path.exists():
            with open(gh_config_path, "r") as f:
                gh_config = yaml.safe_load(f)
                if gh_config and "github.com" in gh_config:
                    github_config: Dict[str, object] = gh_config["github.com"]
                    token = github_config.get("oauth_token")
                    if isinstance(token, str) and token:
                        return token
    except Exception as e:
        logger.error(f"Error reading gh CLI config: {e}")

    return None

def review_decision_from_reviews(reviews: List[GitHubReviewProtocol]) -> Optional[str]:
    """Approximate GraphQL's reviewDecision from REST reviews.

    Only each reviewer's latest approving or blocking review counts.
    """
    latest: Dict[str, str] = {}
    for review in reviews:
        if review.state not in (REVIEW_APPROVED, REVIEW_CHANGES_REQUESTED, "DISMISSED"):
            continue
        login = review.user.login if review.user else ""
        latest[login] = review.state
    states = set(latest.values())
    if REVIEW_CHANGES_REQUESTED in states:
        return REVIEW_CHANGES_REQUESTED
    if REVIEW_APPROVED in states:
        return REVIEW_APPROVED
    return None

class GitHubClient:
    """Looks up open pull requests by head branch. Implements HostInterface."""
    def __init__(self, config: StackupConfig, github_client: PyGithubProtocol):
        """Initialize with config and GitHub client implementation (real or fake)."""
        self.config = config
        self.client = github_client
        self._repo: Optional[GitHubRepoProtocol] = None
        self._cache: Dict[str, Optional[PullRequestInfo]] = {}

    @property
    def full_name(self) -> str:
        owner = ensure(self.config.repo.github_repo_owner, "repo.github_repo_owner")
        name = ensure(self.config.repo.github_repo_name, "repo.github_repo_name")
        return f"{owner}/{name}"

    @property
    def repo(self) -> GitHubRepoProtocol:
        """Get GitHub repository."""
        if self._repo is None:
            self._repo = self.client.get_repo(self.full_name)
        return self._repo

    def pull_request_for_branch(self, branch: str) -> Optional[PullRequestInfo]:
        """Get the open PR for ``branch`` with labels and review decision."""
        if branch in self._cache:
            return self._cache[branch]

        logger.info(f"> github fetch pull request for {branch}")
        try:
            info = self._query_graphql(branch)
        except Exception as e:
            logger.debug(f"GraphQL query failed: {e}")
            logger.debug("Falling back to REST API")
            info = self._query_rest(branch)

        self._cache[branch] = info
        return info

    def _query_graphql(self, branch: str) -> Optional[PullRequestInfo]:
        variables = {
            "owner": ensure(self.config.repo.github_repo_owner, "repo.github_repo_owner"),
            "name": ensure(self.config.repo.github_repo_name, "repo.github_repo_name"),
            "head": branch,
        }
        graphql_resp = parse_graphql_response(self.client.graphql(PULL_REQUEST_QUERY, variables))
        if graphql_resp.errors:
            raise RuntimeError("; ".join(err.message for err in graphql_resp.errors))
        if graphql_resp.data is None or graphql_resp.data.repository is None:
            raise RuntimeError(f"Repository {self.full_name} not found")

        nodes = graphql_resp.data.repository.pullRequests.nodes
        if not nodes:
            return None
        pr = nodes[0]
        return PullRequestInfo(
            number=pr.number,
            head_ref=pr.headRefName,
            labels=[label.name for label in pr.labels.nodes],
            review_decision=pr.reviewDecision,
        )

    def _query_rest(self, branch: str) -> Optional[PullRequestInfo]:
        owner = ensure(self.config.repo.github_repo_owner, "repo.github_repo_owner")
        pulls = self.repo.get_pulls(state="open", head=f"{owner}:{branch}")
        for pr in pulls:
            if pr.head.ref != branch:
                continue
            return PullRequestInfo(
                number=pr.number,
                head_ref=pr.head.ref,
                labels=[label.name for label in pr.labels],
                review_decision=review_decision_from_reviews(list(pr.get_reviews())),
            )
        return None

def create_github_client(config: StackupConfig) -> Optional[GitHubClient]:
    """Build a real GitHub client, or None when the integration is unavailable."""
    if not config.repo.github_repo_owner or not config.repo.github_repo_name:
        logger.warning("GitHub repository unknown. GitHub label checks will be skipped.")
        return None

    token = find_github_token()
    if not token:
        logger.warning("No GitHub token found (GITHUB_TOKEN or 'gh auth login'). GitHub label checks will be skipped.")
        return None

    from github import Auth, Github
    from .adapters import PyGithubAdapter

    real_github = Github(auth=Auth.Token(token))
    logger.info("GitHub client is available")
    return GitHubClient(config, PyGithubAdapter(real_github))
