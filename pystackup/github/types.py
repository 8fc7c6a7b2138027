"""Type definitions for GitHub API responses."""

from typing import Any, Dict, List, Optional, Protocol, Tuple, Union
from pydantic import BaseModel

# GraphQL response types with Pydantic models
class LabelNode(BaseModel):
    name: str

class LabelConnection(BaseModel):
    nodes: List[LabelNode]

class PRNode(BaseModel):
    number: int
    headRefName: str
    reviewDecision: Optional[str] = None
    labels: LabelConnection

class PullRequestConnection(BaseModel):
    nodes: List[PRNode]

class RepositoryNode(BaseModel):
    pullRequests: PullRequestConnection

class GraphQLData(BaseModel):
    repository: Optional[RepositoryNode] = None

class GraphQLErrorLocation(BaseModel):
    line: int
    column: int

class GraphQLError(BaseModel):
    message: str
    locations: Optional[List[GraphQLErrorLocation]] = None
    path: Optional[List[Union[str, int]]] = None
    extensions: Optional[Dict[str, object]] = None

class GraphQLResponse(BaseModel):
    data: Optional[GraphQLData] = None
    errors: Optional[List[GraphQLError]] = None

def parse_graphql_response(response: Dict[str, object]) -> GraphQLResponse:
    """Parse GraphQL response into Pydantic model."""
    try:
        return GraphQLResponse.model_validate(response)
    except Exception as e:
        raise TypeError(f"Invalid GraphQL response: {e}")

class GitHubRequester(Protocol):
    """PyGithub's private requester, used for GraphQL calls.

    ``requestJsonAndCheck`` returns a (headers, data) tuple.
    """
    def requestJsonAndCheck(
        self,
        verb: str,
        url: str,
        parameters: Optional[Dict[str, object]] = None,
        headers: Optional[Dict[str, str]] = None,
        input: Optional[Dict[str, object]] = None
    ) -> Tuple[Dict[str, object], Dict[str, Any]]:
        ...
