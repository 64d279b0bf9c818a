import pytest

from forge.pagination import PageLink, Paginator, page_path, paginate_all, total_pages_for


def test_page_path():
    assert page_path("", 1) == "/"
    assert page_path("", 2) == "/page/2/"
    assert page_path("/tags/python", 1) == "/tags/python/"
    assert page_path("/tags/python/", 3) == "/tags/python/page/3/"


def test_total_pages():
    assert total_pages_for(0, 10) == 1
    assert total_pages_for(10, 10) == 1
    assert total_pages_for(11, 10) == 2
    with pytest.raises(ValueError):
        total_pages_for(5, 0)


def test_middle_page():
    paginator = Paginator.new(list(range(25)), 10, 2, "")
    assert paginator.current_page == 2
    assert paginator.total_pages == 3
    assert paginator.total_items == 25
    assert paginator.items == list(range(10, 20))
    assert paginator.prev_path == "/"
    assert paginator.next_path == "/page/3/"
    assert paginator.has_prev and paginator.has_next
    assert paginator.pages == [
        PageLink(1, "/", False),
        PageLink(2, "/page/2/", True),
        PageLink(3, "/page/3/", False),
    ]


def test_page_number_is_clamped():
    assert Paginator.new(list(range(5)), 2, 99, "").current_page == 3
    first = Paginator.new(list(range(5)), 2, -4, "")
    assert first.current_page == 1
    assert not first.has_prev
    assert first.prev_path is None


def test_empty_listing_has_one_page():
    paginator = Paginator.new([], 10, 1, "")
    assert paginator.total_pages == 1
    assert paginator.items == []
    assert paginator.next_path is None


@pytest.mark.parametrize(("count", "per_page"), [(0, 3), (1, 3), (3, 3), (7, 3), (10, 1)])
def test_pages_partition_items_in_order(count, per_page):
    items = list(range(count))
    paginators = paginate_all(items, per_page, "/tags/x")
    assert len(paginators) == max(1, -(-count // per_page))
    assert [item for p in paginators for item in p.items] == items
    assert all(len(p.items) <= per_page for p in paginators)
    assert [p.current_page for p in paginators] == list(range(1, len(paginators) + 1))


def test_two_items_one_per_page_link_both_ways():
    first, second = paginate_all(["a", "b"], 1, "/tags/x")
    assert first.items == ["a"]
    assert first.has_prev is False
    assert first.has_next is True
    assert first.next_path.endswith("/page/2/")
    assert second.items == ["b"]
    assert second.has_prev is True
    assert second.has_next is False
    assert second.prev_path == "/tags/x/"
