"""View models for the repository browser page."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from gitgenie.client.app import ClientApp
from gitgenie.client.repositories import FetchState
from gitgenie.features.profile import UserProfile
from gitgenie.features.repositories.schemas import Repository

NO_DESCRIPTION = "No description available"
EMPTY_TITLE = "No repositories found"
EMPTY_HINT_WITH_SEARCH = "Try adjusting your search terms"
EMPTY_HINT_WITHOUT_SEARCH = "No repositories available"
SKELETON_CARDS = 6

LANGUAGE_COLORS = {
    "TypeScript": "#3b82f6",
    "JavaScript": "#eab308",
    "Python": "#22c55e",
    "Java": "#ef4444",
    "C++": "#a855f7",
    "Go": "#06b6d4",
}
DEFAULT_LANGUAGE_COLOR = "#6b7280"


class PageMode(str, Enum):
    LOGIN = "login"
    LOADING = "loading"
    ERROR = "error"
    LIST = "list"


@dataclass
class RepositoryCard:
    id: int
    name: str
    full_name: str
    description: str
    html_url: str
    language: str | None
    language_color: str
    stars: int
    forks: int
    updated: str
    private: bool


@dataclass
class PageView:
    mode: PageMode
    search_term: str = ""
    cards: list[RepositoryCard] = field(default_factory=list)
    total: int = 0
    error: str | None = None
    empty_title: str | None = None
    empty_hint: str | None = None
    remote_query: str | None = None
    profile: UserProfile | None = None
    skeletons: int = SKELETON_CARDS


def filter_repositories(repositories: list[Repository], search_term: str) -> list[Repository]:
    """Case-insensitive substring match on name or description, order preserved."""
    term = search_term.strip().lower()
    if not term:
        return list(repositories)
    return [
        repo
        for repo in repositories
        if term in repo.name.lower() or term in (repo.description or "").lower()
    ]


def format_date(value: datetime | None) -> str:
    """Format like ``Jan 15, 2024``."""
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value.year}"


def language_color(language: str | None) -> str:
    return LANGUAGE_COLORS.get(language or "", DEFAULT_LANGUAGE_COLOR)


def to_card(repo: Repository) -> RepositoryCard:
    return RepositoryCard(
        id=repo.id,
        name=repo.name,
        full_name=repo.full_name,
        description=repo.description or NO_DESCRIPTION,
        html_url=repo.html_url,
        language=repo.language,
        language_color=language_color(repo.language),
        stars=repo.stargazers_count,
        forks=repo.forks_count,
        updated=format_date(repo.updated_at),
        private=repo.private,
    )


def build_page(client_app: ClientApp, search_term: str = "") -> PageView:
    """
    Pick exactly one of the login, loading, error and list views.

    The list is filtered locally on every render from the full in-memory
    result; filtering never triggers a request.
    """
    auth = client_app.auth
    repos = client_app.repositories

    if auth.loading:
        return PageView(mode=PageMode.LOADING, search_term=search_term)
    if auth.user is None:
        return PageView(mode=PageMode.LOGIN)

    profile = auth.profile
    waiting_for_profile = repos.state is FetchState.AWAITING_SESSION and profile is not None
    if repos.state is FetchState.FETCHING or waiting_for_profile:
        return PageView(mode=PageMode.LOADING, search_term=search_term, profile=profile)
    if repos.state is FetchState.ERROR:
        return PageView(
            mode=PageMode.ERROR, search_term=search_term, error=repos.error, profile=profile
        )

    visible = filter_repositories(repos.repositories, search_term)
    page = PageView(
        mode=PageMode.LIST,
        search_term=search_term,
        cards=[to_card(repo) for repo in visible],
        total=len(repos.repositories),
        remote_query=repos.last_search_query,
        profile=profile,
    )
    if not visible:
        page.empty_title = EMPTY_TITLE
        searched = search_term.strip() or repos.last_search_query
        page.empty_hint = EMPTY_HINT_WITH_SEARCH if searched else EMPTY_HINT_WITHOUT_SEARCH
    return page
