"""Tests for the index codec and store access."""

import pytest
import yaml

from feed_archive.core.index import dump_index, load_index, parse_index, publish_index
from feed_archive.core.types import Article
from feed_archive.errors import IndexDecodeError, IndexLoadError, IndexPublishError


def test_dump_sorts_by_id_and_round_trips():
    articles = [
        Article(5, "https://e", "Five"),
        Article(2, "https://b", "标题"),
        Article(9, "https://i", "123"),
    ]

    data = dump_index(articles)

    assert [r["id"] for r in yaml.safe_load(data)] == [2, 5, 9]
    assert parse_index(data) == sorted(articles, key=lambda a: a.id)


def test_dump_does_not_reorder_input():
    articles = [Article(5, "https://e", "E"), Article(2, "https://b", "B")]

    dump_index(articles)

    assert [a.id for a in articles] == [5, 2]


def test_parse_empty_document_is_empty_index():
    assert parse_index(b"") == []
    assert parse_index(b"[]\n") == []


def test_parse_accepts_original_index_layout():
    data = b"- id: 1\n  url: https://a\n  title: A\n- id: 2\n  url: https://b\n  title: B\n"

    assert parse_index(data) == [Article(1, "https://a", "A"), Article(2, "https://b", "B")]


@pytest.mark.parametrize(
    "data",
    [
        b"{not: a list}",
        b"- just a string\n",
        b"- id: zero\n  url: https://a\n  title: A\n",
        b"- id: 0\n  url: https://a\n  title: A\n",
        b"- id: 1\n  title: A\n",
        b"- id: 1\n  url: https://a\n- id: 1\n  url: https://b\n",
        b"- id: 1\n  url: [unclosed\n",
    ],
)
def test_parse_rejects_corrupt_documents(data):
    with pytest.raises(IndexDecodeError):
        parse_index(data)


def test_parse_keeps_first_record_of_a_repeated_url():
    data = b"- id: 1\n  url: https://a\n  title: A\n- id: 2\n  url: https://a\n  title: A again\n"

    assert parse_index(data) == [Article(1, "https://a", "A")]


def test_load_counts_dropped_duplicates_toward_next_id(memory_store):
    memory_store.objects["index.yaml"] = dump_index(
        [Article(1, "https://a", "A"), Article(4, "https://a", "A again")]
    )

    state = load_index(memory_store, "index.yaml")

    assert state.articles == [Article(1, "https://a", "A")]
    assert state.next_id == 5


def test_load_missing_index_is_empty(memory_store):
    state = load_index(memory_store, "index.yaml")

    assert state.articles == []
    assert state.next_id == 1


def test_load_existing_index_without_metadata(memory_store):
    memory_store.objects["index.yaml"] = dump_index([Article(3, "https://c", "C")])

    state = load_index(memory_store, "index.yaml")

    assert state.articles == [Article(3, "https://c", "C")]
    assert state.next_id == 4


def test_high_water_mark_survives_eviction_of_top_ids(memory_store):
    publish_index(memory_store, "index.yaml", [Article(1, "https://a", "A")], next_id=6)

    state = load_index(memory_store, "index.yaml")

    assert memory_store.metadata["index.yaml"] == {"next-id": "6"}
    assert state.next_id == 6


def test_high_water_mark_never_below_max_id(memory_store):
    publish_index(memory_store, "index.yaml", [Article(8, "https://a", "A")], next_id=2)

    assert load_index(memory_store, "index.yaml").next_id == 9


def test_invalid_high_water_mark_is_fatal(memory_store):
    memory_store.objects["index.yaml"] = b"[]"
    memory_store.metadata["index.yaml"] = {"next-id": "soon"}

    with pytest.raises(IndexDecodeError):
        load_index(memory_store, "index.yaml")


def test_load_store_failure_is_fatal(memory_store):
    memory_store.fail_get = True

    with pytest.raises(IndexLoadError):
        load_index(memory_store, "index.yaml")


def test_publish_writes_sorted_index(memory_store):
    publish_index(memory_store, "index.yaml", [Article(2, "https://b", "B"), Article(1, "https://a", "A")])

    assert [a.id for a in parse_index(memory_store.objects["index.yaml"])] == [1, 2]


def test_publish_failure_is_fatal(memory_store):
    memory_store.fail_put_keys.add("index.yaml")

    with pytest.raises(IndexPublishError):
        publish_index(memory_store, "index.yaml", [])
