"""Group operations (``/groups``)."""

import asyncio
from typing import Any

from gitlab_client_core.models.common import GroupOrderBy, SortOrder
from gitlab_client_core.models.groups import Group, Member
from gitlab_client_core.models.projects import Project
from gitlab_client_core.pagination import ItemStream, Pager
from gitlab_client_core.request import RequestSpec
from gitlab_client_core.resources.base import GroupRef, ResourceAPI, compact, group_ref


class GroupsAPI(ResourceAPI):
    """Read access to groups, their projects and members."""

    def get_groups_pager(
        self,
        *,
        search: str | None = None,
        owned: bool | None = None,
        order_by: GroupOrderBy | None = None,
        sort: SortOrder | None = None,
        per_page: int | None = None,
        cancel: asyncio.Event | None = None,
        **filters: Any,
    ) -> Pager[Group]:
        query = compact(search=search, owned=owned, order_by=order_by, sort=sort, **filters)
        spec = RequestSpec("GET", "/groups", query=query)
        return self._client.paginate(spec, Group, per_page=per_page, cancel=cancel)

    async def get_groups(
        self,
        *,
        search: str | None = None,
        page: int | None = None,
        per_page: int | None = None,
        cancel: asyncio.Event | None = None,
        **filters: Any,
    ) -> list[Group]:
        """List groups, optionally filtered by ``search``.

        With ``page`` only that page is fetched; otherwise every page is.
        """
        pager = self.get_groups_pager(search=search, per_page=per_page, cancel=cancel, **filters)
        if page is not None:
            return await pager.page(page)
        return await pager.all()

    def get_groups_stream(self, *, cancel: asyncio.Event | None = None, **filters: Any) -> ItemStream[Group]:
        return self.get_groups_pager(cancel=cancel, **filters).stream()

    async def get_group(self, group: GroupRef, *, cancel: asyncio.Event | None = None) -> Group:
        spec = RequestSpec("GET", "/groups/{id}", path_args={"id": group_ref(group)}, query={"with_projects": False})
        return await self._client.request(spec, Group, cancel=cancel)

    def get_projects_pager(
        self, group: GroupRef, *, per_page: int | None = None, cancel: asyncio.Event | None = None
    ) -> Pager[Project]:
        spec = RequestSpec("GET", "/groups/{id}/projects", path_args={"id": group_ref(group)})
        return self._client.paginate(spec, Project, per_page=per_page, cancel=cancel)

    async def get_projects(self, group: GroupRef, *, cancel: asyncio.Event | None = None) -> list[Project]:
        return await self.get_projects_pager(group, cancel=cancel).all()

    async def get_members(self, group: GroupRef, *, cancel: asyncio.Event | None = None) -> list[Member]:
        spec = RequestSpec("GET", "/groups/{id}/members", path_args={"id": group_ref(group)})
        return await self._client.paginate(spec, Member, cancel=cancel).all()
