from entityrepo.repositories import QueryParam


class TestQueryParam:

    def test_fluent_building(self):
        params = QueryParam.with_("email", "a@example.com").and_("rank", 3)

        assert params.map() == {"email": "a@example.com", "rank": 3}
        assert len(params) == 2

    def test_last_value_wins(self):
        params = QueryParam.with_("rank", 1).and_("rank", 2)
        assert params.map() == {"rank": 2}

    def test_map_returns_a_copy(self):
        params = QueryParam.with_("rank", 1)

        snapshot = params.map()
        snapshot["rank"] = 99

        assert params.map() == {"rank": 1}

    def test_repr(self):
        assert repr(QueryParam.with_("a", 1)) == "QueryParam({'a': 1})"
