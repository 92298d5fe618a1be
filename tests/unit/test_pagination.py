"""Tests for the pager state machine and item streams."""

import httpx
import pytest

from gitlab_client_core.errors import ConfigError, DecodeError, NotFoundError, PagerExhaustedError
from gitlab_client_core.models import Project
from gitlab_client_core.pagination import PageInfo, PagerState
from gitlab_client_core.request import RequestSpec

LIST_PROJECTS = RequestSpec("GET", "/projects")
PROJECTS = [{"id": n, "name": f"project-{n}"} for n in range(1, 26)]


def _page_params(server):
    return [(r.url.params.get("page"), r.url.params.get("per_page")) for r in server.requests]


class TestPageInfo:
    @pytest.mark.unit
    def test_reads_headers_and_links(self):
        response = httpx.Response(
            200,
            headers={
                "X-Page": "2",
                "X-Per-Page": "10",
                "X-Next-Page": "3",
                "X-Prev-Page": "1",
                "X-Total": "25",
                "X-Total-Pages": "3",
                "Link": '<https://gitlab.example.com/api/v4/projects?page=3>; rel="next"',
            },
        )

        info = PageInfo.from_response(response)

        assert (info.page, info.per_page, info.next_page, info.prev_page) == (2, 10, 3, 1)
        assert (info.total_items, info.total_pages) == (25, 3)
        assert info.link("next") == "https://gitlab.example.com/api/v4/projects?page=3"
        assert info.has_next(2)

    @pytest.mark.unit
    def test_blank_headers_are_unknown(self):
        info = PageInfo.from_response(httpx.Response(200, headers={"X-Next-Page": "", "X-Total": "n/a"}))

        assert info.next_page is None
        assert info.total_items is None
        assert not info.has_next(1)

    @pytest.mark.unit
    def test_totals_decide_without_link(self):
        info = PageInfo(total_pages=3)

        assert info.has_next(2)
        assert not info.has_next(3)


class TestPager:
    @pytest.mark.unit
    async def test_walks_twenty_five_items_in_pages_of_ten(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)
        pager = gitlab.paginate(LIST_PROJECTS, Project, per_page=10)

        assert pager.state is PagerState.NEW
        assert pager.has_next()

        sizes = []
        while pager.has_next():
            sizes.append(len(await pager.next()))
            assert pager.total_items == 25
            assert pager.total_pages == 3

        assert sizes == [10, 10, 5]
        assert pager.state is PagerState.END
        assert pager.current_page == 3
        assert len(server.requests) == 3
        assert _page_params(server) == [("1", "10"), ("2", "10"), ("3", "10")]

    @pytest.mark.unit
    async def test_next_at_end_raises(self, gitlab, server):
        server.add_collection("/projects", PROJECTS[:3])
        pager = gitlab.paginate(LIST_PROJECTS, Project, per_page=10)

        await pager.next()

        assert pager.state is PagerState.END
        with pytest.raises(PagerExhaustedError):
            await pager.next()

    @pytest.mark.unit
    async def test_rewind_restarts_from_first_page(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)
        pager = gitlab.paginate(LIST_PROJECTS, Project, per_page=20)
        await pager.all()

        pager.rewind()

        assert pager.state is PagerState.NEW
        assert pager.current_page == 0
        first = await pager.next()
        assert first[0].id == 1
        assert pager.state is PagerState.MID

    @pytest.mark.unit
    async def test_all_collects_every_item(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)

        projects = await gitlab.paginate(LIST_PROJECTS, Project, per_page=7).all()

        assert [p.id for p in projects] == list(range(1, 26))
        assert all(isinstance(p, Project) for p in projects)

    @pytest.mark.unit
    async def test_all_stops_at_max_items(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)

        projects = await gitlab.paginate(LIST_PROJECTS, Project, per_page=10).all(max_items=12)

        assert len(projects) == 12
        assert len(server.requests) == 2

    @pytest.mark.unit
    async def test_all_with_zero_max_items_sends_nothing(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)

        assert await gitlab.paginate(LIST_PROJECTS, Project).all(max_items=0) == []
        assert server.requests == []

    @pytest.mark.unit
    async def test_all_rejects_negative_max_items(self, gitlab, server):
        with pytest.raises(ValueError):
            await gitlab.paginate(LIST_PROJECTS, Project).all(max_items=-1)
        assert server.requests == []

    @pytest.mark.unit
    async def test_without_totals_follows_next_link(self, gitlab, server):
        server.add_collection("/projects", PROJECTS, include_totals=False)
        pager = gitlab.paginate(LIST_PROJECTS, Project, per_page=10)

        items = await pager.all()

        assert len(items) == 25
        assert pager.total_items is None
        assert pager.total_pages is None
        assert len(server.requests) == 3

    @pytest.mark.unit
    async def test_empty_collection(self, gitlab, server):
        server.add_collection("/projects", [])
        pager = gitlab.paginate(LIST_PROJECTS, Project)

        assert await pager.next() == []
        assert pager.state is PagerState.END
        assert pager.total_items == 0

    @pytest.mark.unit
    async def test_page_fetches_directly(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)
        pager = gitlab.paginate(LIST_PROJECTS, Project, per_page=10)

        page = await pager.page(3)

        assert [p.id for p in page] == [21, 22, 23, 24, 25]
        assert pager.state is PagerState.NEW
        assert pager.current_page == 0

    @pytest.mark.unit
    async def test_page_does_not_reopen_finished_pager(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)
        pager = gitlab.paginate(LIST_PROJECTS, Project, per_page=10)
        await pager.all()
        assert not pager.has_next()

        first = await pager.page(1)

        assert len(first) == 10
        assert pager.state is PagerState.END
        assert not pager.has_next()
        assert pager.current_page == 3
        with pytest.raises(PagerExhaustedError):
            await pager.next()

        pager.rewind()
        assert pager.has_next()

    @pytest.mark.unit
    async def test_page_keeps_position_mid_walk(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)
        pager = gitlab.paginate(LIST_PROJECTS, Project, per_page=10)
        await pager.next()

        await pager.page(3)
        second = await pager.next()

        assert second[0].id == 11
        assert pager.current_page == 2

    @pytest.mark.unit
    async def test_page_numbers_start_at_one(self, gitlab):
        with pytest.raises(ValueError):
            await gitlab.paginate(LIST_PROJECTS, Project).page(0)

    @pytest.mark.unit
    @pytest.mark.parametrize("per_page", [0, 101])
    async def test_per_page_validated(self, gitlab, per_page):
        with pytest.raises(ConfigError):
            gitlab.paginate(LIST_PROJECTS, Project, per_page=per_page)

    @pytest.mark.unit
    async def test_default_per_page_from_config(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)

        await gitlab.paginate(LIST_PROJECTS, Project).next()

        assert _page_params(server) == [("1", "20")]

    @pytest.mark.unit
    async def test_keeps_collection_filters(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)
        spec = LIST_PROJECTS.with_query(search="project", archived=False)

        await gitlab.paginate(spec, Project, per_page=10).all()

        for request in server.requests:
            assert request.url.params["search"] == "project"
            assert request.url.params["archived"] == "false"

    @pytest.mark.unit
    async def test_ignores_next_link_to_another_origin(self, gitlab, server):
        def handler(request):
            page = int(request.url.params.get("page", "1"))
            headers = {"X-Page": str(page), "X-Total-Pages": "2"}
            if page == 1:
                headers["Link"] = '<https://evil.example.net/api/v4/projects?page=2>; rel="next"'
            return httpx.Response(200, json=[{"id": page}], headers=headers)

        server.add("GET", "/projects", handler)
        pager = gitlab.paginate(LIST_PROJECTS, Project, per_page=1)

        items = await pager.all()

        assert [p.id for p in items] == [1, 2]
        assert all(r.url.host == "gitlab.example.com" for r in server.requests)

    @pytest.mark.unit
    async def test_error_page_raises(self, gitlab, server):
        pager = gitlab.paginate(RequestSpec("GET", "/projects/{id}/members", path_args={"id": 404}))

        with pytest.raises(NotFoundError):
            await pager.next()
        assert pager.state is PagerState.NEW

    @pytest.mark.unit
    async def test_empty_page_body_is_decode_error(self, gitlab, server):
        server.add("GET", "/projects", httpx.Response(200, content=b""))
        pager = gitlab.paginate(LIST_PROJECTS, Project)

        with pytest.raises(DecodeError, match="Empty response body"):
            await pager.next()
        assert pager.state is PagerState.NEW


class TestItemStream:
    @pytest.mark.unit
    async def test_yields_every_item_once(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)

        stream = gitlab.stream(LIST_PROJECTS, Project, per_page=10)
        ids = [project.id async for project in stream]

        assert ids == list(range(1, 26))
        assert [p async for p in stream] == []

    @pytest.mark.unit
    async def test_fetches_pages_lazily(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)
        stream = gitlab.stream(LIST_PROJECTS, Project, per_page=10)

        first = await stream.__anext__()

        assert first.id == 1
        assert len(server.requests) == 1

    @pytest.mark.unit
    async def test_pager_stream_is_independent(self, gitlab, server):
        server.add_collection("/projects", PROJECTS)
        pager = gitlab.paginate(LIST_PROJECTS, Project, per_page=10)
        await pager.next()

        items = await pager.stream().to_list()

        assert len(items) == 25
        assert pager.current_page == 1

    @pytest.mark.unit
    async def test_empty_stream(self, gitlab, server):
        server.add_collection("/projects", [])

        assert await gitlab.stream(LIST_PROJECTS, Project).to_list() == []
