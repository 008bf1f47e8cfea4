"""
Integration tests: JSON documents converted into the in-memory backend.
"""

import logging
import threading

import pytest

from sqlonjson import BackendDescriptor, SqlOnJson, convert
from sqlonjson.common.exceptions import BackendError, IdentifierError, ParseError
from sqlonjson.ingest.type_promotion import BIGINT_MAX, BIGINT_MIN


def declared_types(store, table):
    """Declared column types as stored in the SQLite catalog."""
    rows = store.execute(f"PRAGMA table_info({table})").fetchall()
    return {row[1]: row[2] for row in rows}


class TestTables:
    """Tests for which tables get created."""

    def test_empty_text_gives_empty_store(self, converter):
        with converter.convert("") as store:
            assert store.table_names() == []
            assert not store.has_table("a")

    def test_empty_array_gives_no_table(self, converter):
        with converter.convert('{"a": []}') as store:
            assert not store.has_table("a")

    def test_array_property_becomes_table(self, converter):
        text = '{"a": [{"id": 12000, "name": "super"}, {"id": 90, "name": "remta"}]}'
        with converter.convert(text) as store:
            rows = store.execute("select * from a").fetchall()

        assert [tuple(r) for r in rows] == [(12000, "super"), (90, "remta")]

    def test_multiple_array_properties(self, converter):
        with converter.convert('{"orders": [{"id": 12}], "history": [{"orderId": 12}]}') as store:
            orders = store.query("select * from orders")
            history = store.query("select * from history")

        assert orders == [{"id": 12}]
        assert history == [{"orderid": 12}]

    def test_embedded_object_property_gives_no_table(self, converter):
        with converter.convert('{"orders": {"em": [{"a": -7}]}}') as store:
            assert not store.has_table("orders")
            assert not store.has_table("em")

    def test_scalar_properties_ignored(self, converter):
        with converter.convert('{"version": 3, "t": [{"a": 1}]}') as store:
            assert store.table_names() == ["t"]

    def test_array_of_empty_objects_gives_no_table(self, converter):
        with converter.convert('{"t": [{}, {}]}') as store:
            assert store.table_names() == []

    def test_empty_objects_next_to_real_table(self, converter):
        with converter.convert('{"users": [{"id": 1}], "meta": [{}]}') as store:
            assert store.table_names() == ["users"]
            assert store.query("select id from users") == [{"id": 1}]


class TestIdentifiers:
    """Tests for sanitized table and column names."""

    def test_non_alphanumeric_and_leading_characters(self, converter):
        text = '{"_AmO_(Nit)": [{"_i-d,()rumbA": 12000, "_12": 90}]}'
        with converter.convert(text) as store:
            rows = store.query("select * from iamo_nit")

        assert rows == [{"iidrumba": 12000, "i12": 90}]

    def test_unusable_name_aborts_before_backend(self, converter):
        with pytest.raises(IdentifierError):
            converter.convert('{"t": [{"()": 1}]}')


class TestValues:
    """Tests for stored values and inferred types."""

    def test_8k_string(self, converter):
        string8k = "z" * 8000
        with converter.convert('{"longs": [{"str": "%s"}]}' % string8k) as store:
            value = store.execute("select str from longs").scalar_one()

        assert value == string8k

    def test_non_first_object_has_more_properties(self, converter):
        with converter.convert('{"nosql": [{"id": 12}, {"id": 15, "mid": 90}]}') as store:
            rows = store.query("select * from nosql")

        assert rows == [{"id": 12, "mid": None}, {"id": 15, "mid": 90}]

    def test_missing_attribute_is_null(self, converter):
        text = '{"a": [{"id": 12000, "name": "super"}, {"id": 90}]}'
        with converter.convert(text) as store:
            rows = store.query("select * from a")

        assert rows[1] == {"id": 90, "name": None}

    def test_explicit_null_is_null(self, converter):
        with converter.convert('{"a": [{"id": 1, "name": null}]}') as store:
            assert store.query("select name from a") == [{"name": None}]

    def test_integers_as_bigint(self, converter):
        text = '{"a": [{"o": %d}, {"o": %d}]}' % (BIGINT_MAX, BIGINT_MIN)
        with converter.convert(text) as store:
            assert declared_types(store, "a") == {"o": "BIGINT"}
            assert store.column_types("a") == {"o": "BIGINT"}
            values = store.execute("select o from a").scalars().all()

        assert values == [BIGINT_MAX, BIGINT_MIN]

    def test_fractions_as_double(self, converter):
        with converter.convert('{"a": [{"o": 0.009}, {"o": -12.45}]}') as store:
            assert declared_types(store, "a") == {"o": "DOUBLE"}
            values = store.execute("select o from a").scalars().all()

        assert values[0] == pytest.approx(0.009)
        assert values[1] == pytest.approx(-12.45)

    def test_mixed_numbers_widen_to_double(self, converter):
        with converter.convert('{"a": [{"o": 1}, {"o": 2.5}]}') as store:
            assert declared_types(store, "a") == {"o": "DOUBLE"}
            assert store.execute("select o from a").scalars().all() == [1.0, 2.5]

    def test_numbers_and_text_widen_to_varchar(self, converter):
        with converter.convert('{"a": [{"o": 1.50}, {"o": "x"}]}') as store:
            assert declared_types(store, "a") == {"o": "VARCHAR"}
            assert store.execute("select o from a").scalars().all() == ["1.50", "x"]

    def test_embedded_object_as_string(self, converter):
        with converter.convert('{"orders": [{"em": {"a": 12}}]}') as store:
            rows = store.execute("select em from orders").scalars().all()

        assert rows == ['{"a":12}']

    def test_embedded_array_as_string(self, converter):
        with converter.convert('{"orders": [{"em": [{"a": -7}]}]}') as store:
            rows = store.execute("select em from orders").scalars().all()

        assert rows == ['[{"a":-7}]']

    def test_numeric_string_stays_string(self, converter):
        with converter.convert('{"t": [{"a": "super"}, {"a": "5"}]}') as store:
            assert declared_types(store, "t") == {"a": "VARCHAR"}
            rows = store.execute("select a from t").scalars().all()

        assert rows == ["super", "5"]

    def test_booleans_as_text(self, converter):
        with converter.convert('{"t": [{"ok": true}, {"ok": false}]}') as store:
            assert store.execute("select ok from t").scalars().all() == ["true", "false"]

    def test_deeply_nested_value_as_string(self, converter):
        nested = '{"a":' * 600 + "1" + "}" * 600
        with converter.convert('{"t": [{"deep": %s}]}' % nested) as store:
            value = store.execute("select deep from t").scalar_one()

        assert value == nested


class TestQueries:
    """Tests for relational queries over converted documents."""

    JOIN = (
        "select o.id as oid, u.id as uid from orders o "
        "left join users u on user_id = u.id"
    )

    def test_join_on_naming_convention(self, converter):
        text = '{"orders": [{"user_id": 12, "id": 900}], "users": [{"id": 12}]}'
        with converter.convert(text) as store:
            rows = store.query(self.JOIN)

        assert rows == [{"oid": 900, "uid": 12}]

    def test_custom_backend(self):
        backend = BackendDescriptor(driver="sqlite+pysqlite", url="sqlite:///:memory:")
        text = '{"orders": [{"user_id": 13, "id": 900}], "users": [{"id": 13}]}'
        with SqlOnJson(backend).convert(text) as store:
            rows = store.query(self.JOIN)

        assert rows == [{"oid": 900, "uid": 13}]

    def test_parameterized_query(self, converter):
        with converter.convert('{"t": [{"id": 1}, {"id": 2}]}') as store:
            rows = store.query("select id from t where id > :floor", {"floor": 1})

        assert rows == [{"id": 2}]

    def test_invalid_query_raises_backend_error(self, converter):
        with converter.convert('{"t": [{"id": 1}]}') as store:
            with pytest.raises(BackendError) as exc_info:
                store.execute("select * from missing")

        assert exc_info.value.statement == "select * from missing"


class TestIsolation:
    """Tests for independence of conversions."""

    def test_two_stores_in_parallel(self, converter):
        with converter.convert('{"nosql": [{"id": 12}, {"id": 15, "mid": 90}]}') as c1, \
                converter.convert('{"nosql": [{"a": 1}]}') as c2:
            assert c1.query("select * from nosql")[0] == {"id": 12, "mid": None}
            assert c2.query("select * from nosql") == [{"a": 1}]

    def test_concurrent_conversions_in_threads(self, converter):
        results = {}
        errors = []

        def work(n):
            try:
                text = '{"t": [%s]}' % ", ".join('{"n": %d}' % n for _ in range(n))
                with converter.convert(text) as store:
                    results[n] = store.execute("select count(*), max(n) from t").one()
            except Exception as e:  # collected and asserted below
                errors.append(e)

        threads = [threading.Thread(target=work, args=(n,)) for n in range(1, 9)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert {n: tuple(row) for n, row in results.items()} == {
            n: (n, n) for n in range(1, 9)
        }

    def test_store_usable_from_another_thread(self, converter):
        store = converter.convert('{"t": [{"id": 7}]}')
        seen = []
        try:
            thread = threading.Thread(
                target=lambda: seen.extend(store.execute("select id from t").scalars()))
            thread.start()
            thread.join()
        finally:
            store.close()

        assert seen == [7]


class TestLifecycle:
    """Tests for handle scoping and error propagation."""

    def test_close_is_idempotent(self, converter):
        store = converter.convert('{"t": [{"id": 1}]}')
        assert store.is_alive()

        store.close()
        store.close()

        assert store.closed
        assert not store.is_alive()
        with pytest.raises(BackendError):
            store.execute("select 1")

    def test_closed_on_exception_in_block(self, converter):
        with pytest.raises(RuntimeError):
            with converter.convert('{"t": [{"id": 1}]}') as store:
                raise RuntimeError("caller failure")

        assert store.closed

    def test_parse_error(self, converter):
        with pytest.raises(ParseError):
            converter.convert('{"t": [')

    def test_loaded_schema_exposed(self, converter):
        with converter.convert('{"t": [{"id": 1, "v": 0.5}]}') as store:
            assert [t.name for t in store.tables] == ["t"]
            assert store.tables[0].column_names() == ["id", "v"]

    def test_convert_data_and_file(self, converter, tmp_path):
        path = tmp_path / "doc.json"
        path.write_text('{"t": [{"id": 1}]}', encoding="utf-8")

        with converter.convert_file(path) as from_file, \
                converter.convert_data({"t": [{"id": 1}]}) as from_data:
            assert from_file.query("select * from t") == from_data.query("select * from t")

    def test_module_level_convert(self):
        with convert('{"t": [{"id": 1}]}') as store:
            assert store.query("select * from t") == [{"id": 1}]

    def test_from_settings(self, test_settings):
        with SqlOnJson.from_settings(test_settings).convert('{"t": [{"id": 3}]}') as store:
            assert store.query("select id from t") == [{"id": 3}]

    def test_too_deep_python_data_raises_parse_error(self, converter):
        data = 1
        for _ in range(5000):
            data = [data]

        with pytest.raises(ParseError):
            converter.convert_data({"t": [{"a": data}]})

    def test_completion_logged_with_counts(self, converter, caplog):
        caplog.set_level(logging.INFO, logger="sqlonjson.converter")

        with converter.convert('{"a": [{"x": 1}, {"x": 2}], "b": [{"y": 3}]}'):
            pass

        record = next(r for r in caplog.records if r.getMessage() == "Conversion completed")
        assert record.extra_fields["tables"] == 2
        assert record.extra_fields["rows"] == 3
        assert record.extra_fields["conversion_id"]
