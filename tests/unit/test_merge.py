"""Unit tests for merging normalized payloads."""

from topicfeed.orchestration.merge import item_identity, merge_results


class TestItemIdentity:
    """Test list item identity extraction."""

    def test_title_fields_in_order(self):
        assert item_identity({"text": "t", "title": "x"}) == "t"
        assert item_identity({"text": "", "title": "x"}) == "x"
        assert item_identity({"headline": "Fed holds rates"}) == "Fed holds rates"
        assert item_identity({"full_name": "org/repo", "id": 7}) == "org/repo"
        assert item_identity({"id": 7}) == "7"

    def test_falls_back_to_serialization(self):
        """Test records without a title-like field compare by content."""
        assert item_identity({"b": 1, "a": 2}) == item_identity({"a": 2, "b": 1})
        assert item_identity("a") != item_identity("b")
        assert item_identity({"ticker": "$BTC", "count": 3}) != item_identity({"ticker": "$BTC", "count": 4})


class TestMergeResults:
    """Test the merge rules."""

    def test_list_dedup_preserves_first_seen_order(self):
        merged = merge_results([{"tags": ["a", "b"]}, {"tags": ["b", "c"]}])
        assert merged["tags"] == ["a", "b", "c"]

    def test_record_items_dedup_by_title(self):
        """Test the same story from two sources appears once, first copy kept."""
        first = {"items": [{"title": "GPT-5 released", "source": "HN"}]}
        second = {"items": [
            {"title": "GPT-5 released", "source": "RSS"},
            {"title": "Rust 2.0", "source": "RSS"}
        ]}

        merged = merge_results([first, second])

        assert merged["items"] == [
            {"title": "GPT-5 released", "source": "HN"},
            {"title": "Rust 2.0", "source": "RSS"}
        ]

    def test_scalar_first_value_wins(self):
        merged = merge_results([{"btc_price": 100}, {"btc_price": 200}])
        assert merged["btc_price"] == 100

    def test_falsy_first_value_still_wins(self):
        """Test presence is decided by key, not truthiness."""
        merged = merge_results([{"count": 0, "label": ""}, {"count": 5, "label": "x"}])
        assert merged == {"count": 0, "label": ""}

    def test_records_shallow_merge_later_overwrites(self):
        merged = merge_results([
            {"real_time_data": {"btc_price": 100, "fear_greed": 40}},
            {"real_time_data": {"btc_price": 101, "eth_price": 3000}}
        ])

        assert merged["real_time_data"] == {"btc_price": 101, "fear_greed": 40, "eth_price": 3000}

    def test_type_mismatch_keeps_first(self):
        merged = merge_results([{"trending": ["a"]}, {"trending": {"a": 1}}])
        assert merged["trending"] == ["a"]

    def test_disjoint_keys_are_unioned(self):
        merged = merge_results([{"hf_trending": [1]}, {"arxiv_papers": [2]}])
        assert merged == {"hf_trending": [1], "arxiv_papers": [2]}

    def test_empty_payloads_are_skipped(self):
        assert merge_results([]) is None
        assert merge_results([None, {}]) is None
        assert merge_results([None, {"a": 1}]) == {"a": 1}

    def test_inputs_are_not_mutated(self):
        """Test merging never alters the payloads handed in (they live in the cache)."""
        first = {"key_data": ["one"], "meta": {"a": 1}}
        second = {"key_data": ["two"], "meta": {"b": 2}}

        merged = merge_results([first, second])

        assert merged == {"key_data": ["one", "two"], "meta": {"a": 1, "b": 2}}
        assert first == {"key_data": ["one"], "meta": {"a": 1}}
        assert second == {"key_data": ["two"], "meta": {"b": 2}}
