"""Tests for the SQLite query builders and CRUD facade."""

import sqlite3

import pytest

from questionbot.services.database import (
    DatabaseError,
    InvalidIdentifierError,
    QueryBuildError,
    RunResult,
    SchemaInitError,
    SqliteDatabase,
    TableSchema,
    build_insert_query,
    build_key_value_string,
    build_param_string,
    build_select_query,
    build_update_query,
    dequote_all,
    flatten,
    quote,
    quote_all,
)


USERS = TableSchema("users", (
    ("name", "TEXT"),
    ("age", "INTEGER"),
    ("meta_city", "TEXT"),
    ("active", "INTEGER"),
))


def table_names(db):
    rows = db.connection.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    return {row[0] for row in rows}


# =============================================================================
# Helpers
# =============================================================================

class TestFlatten:
    def test_nested_keys_are_joined_with_underscore(self):
        assert flatten({"a": {"b": {"c": 1}}, "d": 2}) == {"a_b_c": 1, "d": 2}

    def test_key_order_follows_input(self):
        assert list(flatten({"z": 1, "m": {"x": 2}, "a": 3})) == ["z", "m_x", "a"]

    def test_empty_and_none_give_empty_dict(self):
        assert flatten({}) == {}
        assert flatten(None) == {}

    def test_lists_are_left_alone(self):
        assert flatten({"tags": [1, 2]}) == {"tags": [1, 2]}

    @pytest.mark.parametrize("obj", [
        {"a": 1, "b": "x", "c": None},
        {"meta": {"city": "Paris", "geo": {"lat": 1.5}}, "name": "John"},
        {},
    ])
    def test_flattening_twice_changes_nothing(self, obj):
        once = flatten(obj)
        assert flatten(once) == once
        assert list(flatten(once)) == list(once)


class TestQuote:
    def test_identifier_gets_double_quotes(self):
        assert quote("user_name") == '"user_name"'

    def test_literal_is_percent_encoded_and_single_quoted(self):
        assert quote("John Smith", is_column=False) == "'John%20Smith'"
        assert quote("it's", is_column=False) == "'it%27s'"

    def test_safe_characters_survive(self):
        assert quote("a@b.c-d_e+f*g/h", is_column=False) == "'a@b.c-d_e+f*g/h'"

    def test_non_strings(self):
        assert quote(None) == "null"
        assert quote(True) == 1
        assert quote(False) == 0
        assert quote(42) == 42
        assert quote(1.5, is_column=False) == 1.5

    @pytest.mark.parametrize("name", ["bad name", 'x"; DROP TABLE users; --', "", "naïve"])
    def test_rejects_unsafe_identifiers(self, name):
        with pytest.raises(InvalidIdentifierError):
            quote(name)

    def test_quote_all(self):
        assert quote_all(["a", "b"]) == ['"a"', '"b"']
        assert quote_all(["a b", None], is_column=False) == ["'a%20b'", "null"]

    def test_dequote_all_decodes_strings_only(self):
        assert dequote_all({"name": "John%20Smith", "age": 3}) == {"name": "John Smith", "age": 3}
        assert dequote_all(None) is None

    def test_tilde_is_escaped(self):
        assert quote("~home", is_column=False) == "'%7Ehome'"

    @pytest.mark.parametrize("text", [
        "it's",
        "100% sure",
        'say "hi"',
        "a;b -- c",
        "~/path",
        "naïve café",
        "日本語の質問",
        "party 🎉",
        "",
    ])
    def test_literal_round_trips_through_dequote(self, text):
        encoded = quote(text, is_column=False)
        inner = encoded[1:-1]

        assert encoded[0] == encoded[-1] == "'"
        assert not set("'\";%~") & set(inner.replace("%", ""))
        assert dequote_all({"value": inner}) == {"value": text}

# =============================================================================
# Statement Builders
# =============================================================================

class TestBuilders:
    def test_key_value_string(self):
        assert build_key_value_string({"name": "John", "age": 20}) == '"name"=\'John\' AND "age"=20'

    def test_key_value_string_with_custom_joiners(self):
        assert build_key_value_string({"a": 1, "b": None}, ", ", " = ") == '"a" = 1, "b" = null'

    def test_param_string(self):
        assert build_param_string({"name": "John", "meta": {"age": 20}}) == '"name" = ? AND "meta_age" = ?'
        assert build_param_string({}) == ""

    def test_insert(self):
        assert build_insert_query("users", {"name": "John", "meta": {"city": "Paris"}}) == (
            'INSERT INTO "users" ("name", "meta_city") VALUES (?, ?);'
        )

    def test_insert_without_values(self):
        assert build_insert_query("users", {}) == 'INSERT INTO "users" DEFAULT VALUES;'

    def test_select(self):
        assert build_select_query("users", {"name": "x", "age": 3}) == (
            'SELECT * FROM "users" WHERE "name" = ? AND "age" = ?;'
        )

    def test_select_without_filter(self):
        assert build_select_query("users") == 'SELECT * FROM "users";'
        assert build_select_query("users", {}) == 'SELECT * FROM "users";'

    def test_update(self):
        assert build_update_query("users", {"name": "y", "age": 2}, {"name": "x"}) == (
            'UPDATE "users" SET "name" = ?, "age" = ? WHERE "name" = ?;'
        )

    def test_update_without_filter_has_no_where(self):
        assert build_update_query("users", {"age": 2}, {}) == 'UPDATE "users" SET "age" = ?;'

    def test_update_without_values_raises(self):
        with pytest.raises(QueryBuildError):
            build_update_query("users", {}, {"name": "x"})

    def test_bad_table_name_raises(self):
        with pytest.raises(InvalidIdentifierError):
            build_select_query("users; DROP TABLE users")


# =============================================================================
# Facade
# =============================================================================

class TestSchema:
    def test_init_tables_is_idempotent(self, db):
        db.init_tables([USERS])
        db.init_tables([USERS])
        assert "users" in table_names(db)

    def test_schema_passed_to_constructor(self, tmp_path):
        with SqliteDatabase(tmp_path / "ctor.db", [USERS]) as database:
            assert "users" in table_names(database)

    def test_dict_entries_are_accepted(self, db):
        db.init_tables([{"tableName": "legacy", "columns": [["a", "TEXT"], ["b", "NUMERIC"]]}])
        db.insert("legacy", {"a": "x", "b": 2})
        assert db.find_one("legacy") == {"a": "x", "b": 2}

    def test_failing_table_rolls_back_the_whole_batch(self, db):
        broken = [
            TableSchema("good", (("a", "TEXT"),)),
            TableSchema("bad", (("x", "TEXT"), ("x", "TEXT"))),
        ]
        with pytest.raises(SchemaInitError) as exc_info:
            db.init_tables(broken)

        assert isinstance(exc_info.value.__cause__, sqlite3.Error)
        assert "good" not in table_names(db)
        assert not db.connection.in_transaction

    def test_unsafe_names_are_rejected_before_touching_the_file(self, db):
        with pytest.raises(InvalidIdentifierError):
            db.init_tables([TableSchema("ok", (("a", "TEXT"),)), TableSchema("no way", (("a", "TEXT"),))])
        assert "ok" not in table_names(db)

    def test_unsafe_declared_type_is_rejected(self, db):
        with pytest.raises(InvalidIdentifierError):
            db.init_tables([TableSchema("t", (("a", "TEXT); DROP TABLE users; --"),))])

    def test_table_without_columns_is_rejected(self, db):
        with pytest.raises(QueryBuildError):
            db.init_tables([TableSchema("empty", ())])

    @pytest.mark.parametrize("schema, error", [
        ([TableSchema("bad", (("x", "TEXT"), ("x", "TEXT")))], SchemaInitError),
        ([TableSchema("no way", (("a", "TEXT"),))], InvalidIdentifierError),
    ])
    def test_constructor_closes_connection_when_schema_fails(self, tmp_path, monkeypatch, schema, error):
        closed = []
        real_close = SqliteDatabase.close

        def tracking_close(self):
            closed.append(self.filename)
            real_close(self)

        monkeypatch.setattr(SqliteDatabase, "close", tracking_close)
        path = tmp_path / "broken.db"

        with pytest.raises(error):
            SqliteDatabase(path, schema)

        assert closed == [str(path)]


class TestCrud:
    @pytest.fixture(autouse=True)
    def users(self, db):
        db.init_tables([USERS])

    def test_insert_and_find_one_round_trip(self, db):
        result = db.insert("users", {"name": "John Smith", "age": 20, "meta": {"city": "Paris"}, "active": True})

        assert result == RunResult(changes=1, last_insert_rowid=1)
        assert db.find_one("users", {"name": "John Smith"}) == {
            "name": "John Smith",
            "age": 20,
            "meta_city": "Paris",
            "active": 1,
        }

    def test_strings_are_stored_verbatim(self, db):
        for name in ["O'Brien", "100%25 sure", 'say "hi"', "a;b--c"]:
            db.insert("users", {"name": name})
            assert db.find_one("users", {"name": name})["name"] == name

    def test_booleans_are_stored_as_integers(self, db):
        db.insert("users", {"name": "a", "active": False})
        assert db.find_one("users", {"active": False})["active"] == 0
        assert db.find("users", {"active": True}) == []

    def test_none_is_stored_as_null(self, db):
        db.insert("users", {"name": "a", "age": None})
        assert db.find_one("users", {"name": "a"})["age"] is None

    def test_find_returns_every_match_in_insertion_order(self, db):
        for name, age in [("a", 1), ("b", 2), ("c", 1)]:
            db.insert("users", {"name": name, "age": age})

        assert [row["name"] for row in db.find("users", {"age": 1})] == ["a", "c"]
        assert len(db.find("users")) == 3

    def test_find_with_no_match_is_empty_list(self, db):
        assert db.find("users", {"name": "nobody"}) == []

    def test_find_one_with_no_match_is_none(self, db):
        assert db.find_one("users", {"name": "nobody"}) is None

    def test_update_matching_rows(self, db):
        db.insert("users", {"name": "a", "age": 1})
        db.insert("users", {"name": "b", "age": 1})

        result = db.update("users", {"age": 5}, {"name": "a"})

        assert result.changes == 1
        assert db.find_one("users", {"name": "a"})["age"] == 5
        assert db.find_one("users", {"name": "b"})["age"] == 1

    def test_update_with_empty_filter_updates_all_rows(self, db):
        for name in "abc":
            db.insert("users", {"name": name, "age": 1})

        assert db.update("users", {"age": 9}, {}).changes == 3
        assert {row["age"] for row in db.find("users")} == {9}

    def test_update_without_values_raises_value_error(self, db):
        with pytest.raises(ValueError):
            db.update("users", {}, {"name": "a"})

    def test_unsafe_column_never_reaches_sqlite(self, db):
        with pytest.raises(InvalidIdentifierError):
            db.insert("users", {'name") VALUES (1); --': "x"})
        assert db.find("users") == []

    def test_sqlite_errors_propagate_and_leave_no_transaction(self, db):
        with pytest.raises(sqlite3.OperationalError):
            db.insert("users", {"missing_column": 1})
        assert not db.connection.in_transaction

    def test_empty_insert_uses_default_values(self, db):
        result = db.insert("users", {})
        assert result.changes == 1
        assert db.find_one("users") == {"name": None, "age": None, "meta_city": None, "active": None}


class TestAtomicQuery:
    @pytest.fixture(autouse=True)
    def users(self, db):
        db.init_tables([USERS])
        db.insert("users", {"name": "a", "age": 1})

    def test_statements_run_in_order(self, db):
        db.atomic_query([
            f'UPDATE "users" SET {build_key_value_string({"age": 2})};',
            'UPDATE "users" SET "age" = "age" * 10;',
        ])
        assert db.find_one("users")["age"] == 20

    def test_failure_rolls_back_every_statement(self, db):
        with pytest.raises(sqlite3.OperationalError):
            db.atomic_query([
                'UPDATE "users" SET "age" = 2;',
                'INSERT INTO "missing" VALUES (1);',
            ])
        assert db.find_one("users")["age"] == 1
        assert not db.connection.in_transaction

    def test_inline_literals_are_percent_encoded(self, db):
        db.atomic_query([f'INSERT INTO "users" ("name") VALUES ({quote("John Smith", False)});'])

        row = db.find_one("users", {"name": "John%20Smith"})
        assert row is not None
        assert dequote_all(row)["name"] == "John Smith"


class TestTransaction:
    @pytest.fixture(autouse=True)
    def users(self, db):
        db.init_tables([USERS])

    def test_writes_commit_together(self, db):
        with db.transaction():
            db.insert("users", {"name": "a", "age": 1})
            db.update("users", {"age": 2}, {"name": "a"})

        assert db.find_one("users") == {"name": "a", "age": 2, "meta_city": None, "active": None}
        assert not db.connection.in_transaction

    def test_failure_discards_earlier_writes(self, db):
        with pytest.raises(sqlite3.OperationalError):
            with db.transaction():
                db.insert("users", {"name": "a"})
                db.update("users", {"missing_column": 1}, {"name": "a"})

        assert db.find("users") == []
        assert not db.connection.in_transaction

    def test_atomic_query_joins_the_enclosing_transaction(self, db):
        with pytest.raises(RuntimeError):
            with db.transaction():
                db.atomic_query(['INSERT INTO "users" ("name") VALUES (\'a\');'])
                raise RuntimeError("stop")

        assert db.find("users") == []


class TestConnection:
    def test_memory_database(self, memory_db):
        memory_db.init_tables([USERS])
        memory_db.insert("users", {"name": "a"})
        assert memory_db.find_one("users")["name"] == "a"

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "q.db"
        with SqliteDatabase(path):
            pass
        assert path.exists()

    def test_data_survives_reopen(self, tmp_path):
        path = tmp_path / "persist.db"
        with SqliteDatabase(path, [USERS]) as first:
            first.insert("users", {"name": "kept"})
        with SqliteDatabase(path) as second:
            assert second.find_one("users")["name"] == "kept"

    def test_close_is_idempotent_and_blocks_further_use(self, db):
        db.close()
        db.close()
        with pytest.raises(DatabaseError):
            db.find("users")
        assert db.is_healthy is False

    def test_health_check(self, db):
        db.init_tables([USERS])
        health = db.health_check()

        assert health["healthy"] is True
        assert health["connected"] is True
        assert health["journal_mode"] == "wal"
        assert health["tables"] == 1
        assert health["error"] is None

    def test_health_check_after_close(self, db):
        db.close()
        health = db.health_check()
        assert health["healthy"] is False
        assert health["error"]
