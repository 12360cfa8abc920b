"""Page-state codec: maps the current ``Page`` to and from a URL.

Each page variant declares its canonical path root, the field carried as the
second path segment (if any) and the fields carried as query parameters.
``encode`` and ``decode`` are driven by those declarations, so adding a
variant only requires registering it in ``Page``.

``decode`` is total: unknown paths, missing ids and invalid query values never
raise; the page degrades to ``HomePage`` or the offending parameter is dropped.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, ClassVar, Literal, Union, get_args
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from prompts_go.db.models import Prompt

logger = structlog.get_logger()

RepoOrigin = Literal["explore", "repos", "my-repo"]
PromptOrigin = Literal[
    "home", "explore", "repos", "my-repo", "my-prompts", "repo", "profile", "create"
]


@dataclass(frozen=True)
class PageUrl:
    """Path plus query parameters for one page."""

    path: str
    query: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        if not self.query:
            return self.path
        return f"{self.path}?{urlencode(self.query)}"


class BasePage(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path_root: ClassVar[str] = ""
    # Field carried as the second path segment
    id_field: ClassVar[str | None] = None
    # Field name -> query parameter name
    query_fields: ClassVar[dict[str, str]] = {}

    @model_validator(mode="before")
    @classmethod
    def _blank_is_absent(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name in cls.query_fields:
            alias = cls.model_fields[name].alias or name
            for key in (name, alias):
                if data.get(key) == "":
                    data[key] = None
        return data


class HomePage(BasePage):
    type: Literal["home"] = "home"


class ExplorePage(BasePage):
    type: Literal["explore"] = "explore"
    search_query: str | None = None

    path_root: ClassVar[str] = "explore"
    query_fields: ClassVar[dict[str, str]] = {"search_query": "q"}


class ReposPage(BasePage):
    type: Literal["repos"] = "repos"
    user_id: str | None = None

    path_root: ClassVar[str] = "repos"
    query_fields: ClassVar[dict[str, str]] = {"user_id": "userId"}


class MyRepoPage(BasePage):
    type: Literal["my-repo"] = "my-repo"
    user_id: str | None = None

    path_root: ClassVar[str] = "my-repo"
    query_fields: ClassVar[dict[str, str]] = {"user_id": "userId"}


class MyPromptsPage(BasePage):
    type: Literal["my-prompts"] = "my-prompts"
    user_id: str | None = None

    path_root: ClassVar[str] = "my-prompts"
    query_fields: ClassVar[dict[str, str]] = {"user_id": "userId"}


class RepoPage(BasePage):
    type: Literal["repo"] = "repo"
    repo_id: str = Field(min_length=1)
    origin: RepoOrigin | None = Field(default=None, alias="from")

    path_root: ClassVar[str] = "repo"
    id_field: ClassVar[str | None] = "repo_id"
    query_fields: ClassVar[dict[str, str]] = {"origin": "from"}


class CreatePage(BasePage):
    """Create or edit a prompt.

    ``editing_prompt`` is an in-memory object and is not written to the URL,
    so a reload of an edit page comes back as a blank create page.
    """

    type: Literal["create"] = "create"
    repo_id: str | None = None
    editing_prompt: Prompt | None = None

    path_root: ClassVar[str] = "create"
    query_fields: ClassVar[dict[str, str]] = {"repo_id": "repoId"}


class PromptPage(BasePage):
    type: Literal["prompt"] = "prompt"
    prompt_id: str = Field(min_length=1)
    origin: PromptOrigin | None = Field(default=None, alias="from")
    repo_id: str | None = None

    path_root: ClassVar[str] = "prompt"
    id_field: ClassVar[str | None] = "prompt_id"
    query_fields: ClassVar[dict[str, str]] = {"origin": "from", "repo_id": "repoId"}


class ProfilePage(BasePage):
    type: Literal["profile"] = "profile"
    user_id: str = Field(min_length=1)
    tab: str | None = None

    path_root: ClassVar[str] = "profile"
    id_field: ClassVar[str | None] = "user_id"
    query_fields: ClassVar[dict[str, str]] = {"tab": "tab"}


class SettingsPage(BasePage):
    type: Literal["settings"] = "settings"
    path_root: ClassVar[str] = "settings"


class AboutPage(BasePage):
    type: Literal["about"] = "about"
    path_root: ClassVar[str] = "about"


class TermsPage(BasePage):
    type: Literal["terms"] = "terms"
    path_root: ClassVar[str] = "terms"


class PrivacyPage(BasePage):
    type: Literal["privacy"] = "privacy"
    path_root: ClassVar[str] = "privacy"


class AdminPage(BasePage):
    type: Literal["admin"] = "admin"
    path_root: ClassVar[str] = "admin-bulk-ops"


Page = Annotated[
    Union[
        HomePage,
        ExplorePage,
        ReposPage,
        MyRepoPage,
        MyPromptsPage,
        RepoPage,
        CreatePage,
        PromptPage,
        ProfilePage,
        SettingsPage,
        AboutPage,
        TermsPage,
        PrivacyPage,
        AdminPage,
    ],
    Field(discriminator="type"),
]

PAGE_TYPES: tuple[type[BasePage], ...] = get_args(get_args(Page)[0])

_page_adapter: TypeAdapter[Page] = TypeAdapter(Page)
_PAGES_BY_ROOT: dict[str, type[BasePage]] = {cls.path_root: cls for cls in PAGE_TYPES}


def parse_page(data: dict[str, Any]) -> BasePage:
    """Validate a raw ``{"type": ..., ...}`` dict into its page model."""
    return _page_adapter.validate_python(data)


def encode(page: BasePage) -> PageUrl:
    """Map ``page`` to its canonical path and query parameters."""
    cls = type(page)
    segments = [cls.path_root] if cls.path_root else []
    if cls.id_field:
        segments.append(quote(getattr(page, cls.id_field), safe=""))

    query: dict[str, str] = {}
    for name, param in cls.query_fields.items():
        value = getattr(page, name)
        if value:
            query[param] = value

    return PageUrl(path="/" + "/".join(segments), query=query)


def to_url(page: BasePage) -> str:
    return str(encode(page))


def _query_dict(query: Mapping[str, str] | str | None) -> dict[str, str]:
    if query is None:
        return {}
    if isinstance(query, str):
        params: dict[str, str] = {}
        # First occurrence wins, like URLSearchParams.get
        for key, value in parse_qsl(query.lstrip("?")):
            params.setdefault(key, value)
        return params
    return dict(query)


def decode(path: str, query: Mapping[str, str] | str | None = None) -> BasePage:
    """Map a pathname and query to a page. Never raises."""
    segments = [unquote(s) for s in path.split("/") if s]
    if not segments:
        return HomePage()

    cls = _PAGES_BY_ROOT.get(segments[0])
    if cls is None or cls is HomePage:
        logger.debug("routing.unknown_path", path=path)
        return HomePage()

    base: dict[str, str] = {}
    if cls.id_field:
        if len(segments) < 2:
            return HomePage()
        base[cls.id_field] = segments[1]
    try:
        cls.model_validate(base)
    except ValidationError:
        return HomePage()

    params = _query_dict(query)
    accepted = dict(base)
    for name, param in cls.query_fields.items():
        value = params.get(param)
        # The path segment is the identity; query never overrides it
        if not value or name == cls.id_field:
            continue
        try:
            cls.model_validate({**base, name: value})
        except ValidationError:
            logger.debug("routing.param_dropped", page=cls.__name__, param=param, value=value)
            continue
        accepted[name] = value

    return cls.model_validate(accepted)


def from_url(url: str) -> BasePage:
    """Decode a full or relative URL (scheme and host are ignored)."""
    parts = urlsplit(url)
    return decode(parts.path, parts.query)
