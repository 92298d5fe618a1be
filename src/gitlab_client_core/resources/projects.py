"""Project operations (``/projects``).

Projects can be addressed by numeric id, by ``namespace/path``, or by a
``Project`` record carrying either. Listing methods return every item across
all pages unless a ``page`` is given; ``*_pager`` and ``*_stream`` variants
expose the pagination directly.
"""

import asyncio
import logging
from datetime import date
from typing import Any

from gitlab_client_core.decoder import DecodedResult
from gitlab_client_core.errors.exceptions import RequestBuildError
from gitlab_client_core.models.common import AccessLevel, ProjectOrderBy, SortOrder, Visibility
from gitlab_client_core.models.groups import Member
from gitlab_client_core.models.projects import Project
from gitlab_client_core.models.schema import to_json
from gitlab_client_core.models.variables import Variable, VariableType
from gitlab_client_core.pagination import ItemStream, Pager
from gitlab_client_core.request import BodyKind, RequestSpec
from gitlab_client_core.resources.base import GroupRef, ProjectRef, ResourceAPI, compact, group_ref, project_ref

logger = logging.getLogger(__name__)

# Attributes sent when creating or updating a project from a record
_WRITABLE_PROJECT_FIELDS = (
    "name",
    "path",
    "description",
    "default_branch",
    "visibility",
    "issues_enabled",
    "merge_requests_enabled",
    "wiki_enabled",
    "snippets_enabled",
    "jobs_enabled",
    "container_registry_enabled",
    "tag_list",
    "topics",
)


def _project_path(namespace_or_project: ProjectRef, name: str | None) -> int | str:
    if name is None:
        return project_ref(namespace_or_project)
    if not isinstance(namespace_or_project, str):
        raise RequestBuildError("A project name needs a namespace path")
    return f"{namespace_or_project}/{name}"


def _project_body(project: Project) -> dict[str, Any]:
    body = to_json(project)
    return {key: body[key] for key in _WRITABLE_PROJECT_FIELDS if key in body}


class ProjectsAPI(ResourceAPI):
    """Operations on projects, their variables, members and sharing."""

    # Listing

    def _list_spec(
        self,
        archived: bool | None = None,
        visibility: Visibility | None = None,
        order_by: ProjectOrderBy | None = None,
        sort: SortOrder | None = None,
        search: str | None = None,
        simple: bool | None = None,
        owned: bool | None = None,
        membership: bool | None = None,
        starred: bool | None = None,
        statistics: bool | None = None,
        **extra: Any,
    ) -> RequestSpec:
        query = compact(
            archived=archived,
            visibility=visibility,
            order_by=order_by,
            sort=sort,
            search=search,
            simple=simple,
            owned=owned,
            membership=membership,
            starred=starred,
            statistics=statistics,
            **extra,
        )
        return RequestSpec("GET", "/projects", query=query)

    async def get_projects(
        self,
        *,
        page: int | None = None,
        per_page: int | None = None,
        cancel: asyncio.Event | None = None,
        **filters: Any,
    ) -> list[Project]:
        """List projects visible to the caller.

        Filters map onto the ``/projects`` query parameters (``archived``,
        ``visibility``, ``order_by``, ``sort``, ``search``, ``simple``,
        ``owned``, ``membership``, ``starred``, ``statistics``, ...).

        With ``page`` only that page is fetched; otherwise every page is.
        """
        pager = self.get_projects_pager(per_page=per_page, cancel=cancel, **filters)
        if page is not None:
            return await pager.page(page)
        return await pager.all()

    def get_projects_pager(
        self, *, per_page: int | None = None, cancel: asyncio.Event | None = None, **filters: Any
    ) -> Pager[Project]:
        return self._client.paginate(self._list_spec(**filters), Project, per_page=per_page, cancel=cancel)

    def get_projects_stream(self, *, cancel: asyncio.Event | None = None, **filters: Any) -> ItemStream[Project]:
        return self.get_projects_pager(cancel=cancel, **filters).stream()

    async def get_owned_projects(
        self, *, page: int | None = None, per_page: int | None = None, cancel: asyncio.Event | None = None
    ) -> list[Project]:
        return await self.get_projects(owned=True, page=page, per_page=per_page, cancel=cancel)

    async def get_member_projects(
        self, *, page: int | None = None, per_page: int | None = None, cancel: asyncio.Event | None = None
    ) -> list[Project]:
        return await self.get_projects(membership=True, page=page, per_page=per_page, cancel=cancel)

    async def get_starred_projects(
        self, *, page: int | None = None, per_page: int | None = None, cancel: asyncio.Event | None = None
    ) -> list[Project]:
        return await self.get_projects(starred=True, page=page, per_page=per_page, cancel=cancel)

    # Single project

    def _get_spec(self, namespace_or_project: ProjectRef, name: str | None, statistics: bool | None) -> RequestSpec:
        return RequestSpec(
            "GET",
            "/projects/{id}",
            path_args={"id": _project_path(namespace_or_project, name)},
            query=compact(statistics=statistics),
        )

    async def get_project(
        self,
        namespace_or_project: ProjectRef,
        name: str | None = None,
        *,
        statistics: bool | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Project:
        """Get a project by id, by ``namespace/path``, or by namespace and name.

        Raises:
            NotFoundError: If the project does not exist or is not visible.
        """
        spec = self._get_spec(namespace_or_project, name, statistics)
        return await self._client.request(spec, Project, cancel=cancel)

    async def get_optional_project(
        self,
        namespace_or_project: ProjectRef,
        name: str | None = None,
        *,
        statistics: bool | None = None,
        cancel: asyncio.Event | None = None,
    ) -> DecodedResult:
        """Like ``get_project`` but a missing project yields ``Absent``."""
        spec = self._get_spec(namespace_or_project, name, statistics).as_optional()
        return await self._client.execute(spec, Project, cancel=cancel)

    async def create_project(
        self,
        project: Project | None = None,
        *,
        name: str | None = None,
        namespace_id: int | None = None,
        description: str | None = None,
        issues_enabled: bool | None = None,
        merge_requests_enabled: bool | None = None,
        wiki_enabled: bool | None = None,
        snippets_enabled: bool | None = None,
        visibility: Visibility | None = None,
        path: str | None = None,
        import_url: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Project:
        """Create a project from a record, from keyword arguments, or both.

        Keyword arguments override the record's attributes.
        """
        body = _project_body(project) if project is not None else {}
        body.update(
            to_json(
                compact(
                    name=name,
                    namespace_id=namespace_id,
                    description=description,
                    issues_enabled=issues_enabled,
                    merge_requests_enabled=merge_requests_enabled,
                    wiki_enabled=wiki_enabled,
                    snippets_enabled=snippets_enabled,
                    visibility=visibility,
                    path=path,
                    import_url=import_url,
                )
            )
        )
        if project is not None and project.namespace is not None and project.namespace.id is not None:
            body.setdefault("namespace_id", project.namespace.id)
        if not body.get("name") and not body.get("path"):
            raise RequestBuildError("A new project needs a name or a path")

        spec = RequestSpec("POST", "/projects", body=body, expected=[201])
        created = await self._client.request(spec, Project, cancel=cancel)
        logger.info(f"Created project {created.path_with_namespace or created.name} (id {created.id})")
        return created

    async def update_project(self, project: Project, *, cancel: asyncio.Event | None = None) -> Project:
        """Update a project from a record; ``project.id`` is required."""
        if project.id is None:
            raise RequestBuildError("Updating a project requires its id")
        spec = RequestSpec("PUT", "/projects/{id}", path_args={"id": project.id}, body=_project_body(project))
        return await self._client.request(spec, Project, cancel=cancel)

    async def delete_project(self, project: ProjectRef, *, cancel: asyncio.Event | None = None) -> None:
        spec = RequestSpec("DELETE", "/projects/{id}", path_args={"id": project_ref(project)}, expected=[202, 204])
        await self._client.request(spec, cancel=cancel)
        logger.info(f"Deleted project {project_ref(project)}")

    async def _project_action(self, project: ProjectRef, action: str, cancel: asyncio.Event | None) -> Project:
        spec = RequestSpec(
            "POST", f"/projects/{{id}}/{action}", path_args={"id": project_ref(project)}, expected=[200, 201]
        )
        return await self._client.request(spec, Project, cancel=cancel)

    async def star_project(self, project: ProjectRef, *, cancel: asyncio.Event | None = None) -> Project:
        return await self._project_action(project, "star", cancel)

    async def unstar_project(self, project: ProjectRef, *, cancel: asyncio.Event | None = None) -> Project:
        return await self._project_action(project, "unstar", cancel)

    async def archive_project(self, project: ProjectRef, *, cancel: asyncio.Event | None = None) -> Project:
        return await self._project_action(project, "archive", cancel)

    async def unarchive_project(self, project: ProjectRef, *, cancel: asyncio.Event | None = None) -> Project:
        return await self._project_action(project, "unarchive", cancel)

    async def fork_project(
        self, project: ProjectRef, namespace: int | str, *, cancel: asyncio.Event | None = None
    ) -> Project:
        """Fork into a namespace given by id or by path."""
        body = {"namespace_id": namespace} if isinstance(namespace, int) else {"namespace_path": namespace}
        spec = RequestSpec(
            "POST", "/projects/{id}/fork", path_args={"id": project_ref(project)}, body=body, expected=[201]
        )
        return await self._client.request(spec, Project, cancel=cancel)

    async def transfer_project(
        self, project: ProjectRef, namespace: int | str, *, cancel: asyncio.Event | None = None
    ) -> Project:
        """Move a project into another namespace (id or path)."""
        spec = RequestSpec(
            "PUT", "/projects/{id}/transfer", path_args={"id": project_ref(project)}, body={"namespace": namespace}
        )
        return await self._client.request(spec, Project, cancel=cancel)

    async def get_project_languages(
        self, project: ProjectRef, *, cancel: asyncio.Event | None = None
    ) -> dict[str, float]:
        """Share of the repository per language, in percent."""
        spec = RequestSpec("GET", "/projects/{id}/languages", path_args={"id": project_ref(project)})
        return await self._client.request(spec, dict[str, float], cancel=cancel)

    # Sharing

    async def share_project(
        self,
        project: ProjectRef,
        group: GroupRef,
        access_level: AccessLevel,
        expires_at: date | None = None,
        *,
        cancel: asyncio.Event | None = None,
    ) -> None:
        """Give a group access to a project."""
        body = compact(group_id=group_ref(group), group_access=AccessLevel(access_level), expires_at=expires_at)
        spec = RequestSpec(
            "POST", "/projects/{id}/share", path_args={"id": project_ref(project)}, body=body, expected=[201]
        )
        await self._client.request(spec, cancel=cancel)

    async def unshare_project(
        self, project: ProjectRef, group: GroupRef, *, cancel: asyncio.Event | None = None
    ) -> None:
        spec = RequestSpec(
            "DELETE",
            "/projects/{id}/share/{group_id}",
            path_args={"id": project_ref(project), "group_id": group_ref(group)},
            expected=[204],
        )
        await self._client.request(spec, cancel=cancel)

    # Variables

    def get_variables_pager(
        self, project: ProjectRef, *, per_page: int | None = None, cancel: asyncio.Event | None = None
    ) -> Pager[Variable]:
        spec = RequestSpec("GET", "/projects/{id}/variables", path_args={"id": project_ref(project)})
        return self._client.paginate(spec, Variable, per_page=per_page, cancel=cancel)

    async def get_variables(
        self,
        project: ProjectRef,
        *,
        page: int | None = None,
        per_page: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[Variable]:
        pager = self.get_variables_pager(project, per_page=per_page, cancel=cancel)
        if page is not None:
            return await pager.page(page)
        return await pager.all()

    def get_variables_stream(
        self, project: ProjectRef, *, cancel: asyncio.Event | None = None
    ) -> ItemStream[Variable]:
        return self.get_variables_pager(project, cancel=cancel).stream()

    def _variable_spec(self, method: str, project: ProjectRef, key: str, **kwargs: Any) -> RequestSpec:
        return RequestSpec(
            method, "/projects/{id}/variables/{key}", path_args={"id": project_ref(project), "key": key}, **kwargs
        )

    async def get_variable(
        self,
        project: ProjectRef,
        key: str,
        *,
        environment_scope: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Variable:
        query = compact(**{"filter[environment_scope]": environment_scope})
        spec = self._variable_spec("GET", project, key, query=query)
        return await self._client.request(spec, Variable, cancel=cancel)

    async def get_optional_variable(
        self, project: ProjectRef, key: str, *, cancel: asyncio.Event | None = None
    ) -> DecodedResult:
        spec = self._variable_spec("GET", project, key, optional=True)
        return await self._client.execute(spec, Variable, cancel=cancel)

    async def create_variable(
        self,
        project: ProjectRef,
        key: str,
        value: str,
        protected: bool | None = None,
        environment_scope: str | None = None,
        *,
        masked: bool | None = None,
        variable_type: VariableType | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Variable:
        body = compact(
            key=key,
            value=value,
            protected=protected,
            environment_scope=environment_scope,
            masked=masked,
            variable_type=variable_type,
        )
        spec = RequestSpec(
            "POST",
            "/projects/{id}/variables",
            path_args={"id": project_ref(project)},
            body=body,
            body_kind=BodyKind.FORM,
            expected=[201],
        )
        return await self._client.request(spec, Variable, cancel=cancel)

    async def update_variable(
        self,
        project: ProjectRef,
        key: str,
        value: str,
        protected: bool | None = None,
        environment_scope: str | None = None,
        *,
        masked: bool | None = None,
        variable_type: VariableType | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Variable:
        body = compact(
            value=value,
            protected=protected,
            environment_scope=environment_scope,
            masked=masked,
            variable_type=variable_type,
        )
        spec = self._variable_spec("PUT", project, key, body=body, body_kind=BodyKind.FORM)
        return await self._client.request(spec, Variable, cancel=cancel)

    async def delete_variable(self, project: ProjectRef, key: str, *, cancel: asyncio.Event | None = None) -> None:
        spec = self._variable_spec("DELETE", project, key, expected=[204])
        await self._client.request(spec, cancel=cancel)

    # Members

    def get_members_pager(
        self,
        project: ProjectRef,
        *,
        inherited: bool = False,
        per_page: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Pager[Member]:
        """Members of a project; ``inherited`` includes those of ancestor groups."""
        path = "/projects/{id}/members/all" if inherited else "/projects/{id}/members"
        spec = RequestSpec("GET", path, path_args={"id": project_ref(project)})
        return self._client.paginate(spec, Member, per_page=per_page, cancel=cancel)

    async def get_members(
        self,
        project: ProjectRef,
        *,
        page: int | None = None,
        per_page: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[Member]:
        pager = self.get_members_pager(project, per_page=per_page, cancel=cancel)
        if page is not None:
            return await pager.page(page)
        return await pager.all()

    async def get_all_members(
        self,
        project: ProjectRef,
        *,
        page: int | None = None,
        per_page: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[Member]:
        pager = self.get_members_pager(project, inherited=True, per_page=per_page, cancel=cancel)
        if page is not None:
            return await pager.page(page)
        return await pager.all()

    async def get_member(
        self, project: ProjectRef, user_id: int, *, cancel: asyncio.Event | None = None
    ) -> Member:
        spec = RequestSpec(
            "GET", "/projects/{id}/members/{user_id}", path_args={"id": project_ref(project), "user_id": user_id}
        )
        return await self._client.request(spec, Member, cancel=cancel)
