"""Tests for the per-engine statement builders."""

import datetime

import pytest

from sqlbridge import statements
from sqlbridge.core.exceptions import UnsupportedEngineError
from sqlbridge.core.filters import RowPage, WhereFilter
from sqlbridge.core.models import Engine, Statement, render_literal


@pytest.mark.unit
class TestStatement:
    def test_render_format_style(self):
        statement = Statement(
            "SELECT * FROM t WHERE a = %s AND b LIKE %s AND c = 100%%", ("x'y", "a%")
        )
        assert statement.render() == (
            "SELECT * FROM t WHERE a = 'x''y' AND b LIKE 'a%' AND c = 100%"
        )
        assert statement.placeholder_count == 2

    def test_render_qmark_style(self):
        statement = Statement("a = ? AND b = ?", (1, None), "qmark")
        assert statement.render() == "a = 1 AND b = NULL"
        assert statement.placeholder_count == 2

    @pytest.mark.parametrize(
        ("value", "literal"),
        [
            (None, "NULL"),
            (True, "TRUE"),
            (False, "FALSE"),
            (42, "42"),
            (1.5, "1.5"),
            ("it's", "'it''s'"),
            (datetime.date(2024, 1, 2), "'2024-01-02'"),
        ],
    )
    def test_render_literal(self, value, literal):
        assert render_literal(value) == literal

    def test_is_hashable_value(self):
        assert Statement("SELECT 1") == Statement("SELECT 1")
        assert len({Statement("SELECT 1"), Statement("SELECT 1")}) == 1


@pytest.mark.unit
class TestForEngine:
    def test_present(self):
        built = statements.version()
        assert for_sql(built, Engine.SQLITE) == "SELECT sqlite_version() AS version"

    def test_missing_engine_raises(self):
        built = statements.foreign_keys()
        with pytest.raises(UnsupportedEngineError):
            statements.for_engine(built, Engine.CLICKHOUSE)


def for_sql(built, engine):
    return statements.for_engine(built, engine).sql


@pytest.mark.unit
class TestCoverage:
    @pytest.mark.parametrize(
        "build",
        [
            statements.schemas,
            statements.tables,
            statements.primary_keys,
            statements.indexes,
            statements.version,
            lambda: statements.columns("s", "t"),
            lambda: statements.rows(RowPage(table="t")),
            lambda: statements.count("s", "t"),
            lambda: statements.update_cell("s", "t", "c", 1, {"id": 1}),
            lambda: statements.lookup_row("s", "t", ["c"], {"id": 1}),
            lambda: statements.delete_rows("s", "t", [{"id": 1}]),
            lambda: statements.drop_table("s", "t"),
            lambda: statements.rename_table("s", "t", "u"),
            lambda: statements.insert_row("s", "t", {"a": 1}),
        ],
    )
    def test_all_engines(self, build):
        assert set(build()) == set(Engine)

    def test_foreign_keys_skip_clickhouse(self):
        assert set(statements.foreign_keys()) == set(Engine) - {Engine.CLICKHOUSE}

    def test_constraints_skip_clickhouse(self):
        assert set(statements.constraints()) == set(Engine) - {Engine.CLICKHOUSE}

    def test_enums_only_where_engine_has_them(self):
        assert set(statements.enums()) == {Engine.POSTGRES, Engine.MYSQL, Engine.CLICKHOUSE}

    def test_estimates_only_where_catalog_keeps_them(self):
        assert set(statements.estimate_count("s", "t")) == {
            Engine.POSTGRES,
            Engine.MYSQL,
            Engine.CLICKHOUSE,
        }

    def test_default_insert_skips_clickhouse(self):
        assert Engine.CLICKHOUSE not in statements.insert_row(None, "t", {})

    def test_engine_subset(self):
        built = statements.schemas([Engine.MYSQL])
        assert list(built) == [Engine.MYSQL]

    def test_builders_are_pure(self):
        page = RowPage(
            table="t", filters=[WhereFilter(column="a", operator="IN", values=["1", "2"])]
        )
        assert statements.rows(page) == statements.rows(page)
        assert statements.delete_rows("s", "t", [{"a": 1}]) == statements.delete_rows(
            "s", "t", [{"a": 1}]
        )

    def test_placeholders_match_params(self):
        page = RowPage(
            schema_name="s",
            table="t",
            filters=[
                WhereFilter(column="a", operator="IN", values=["1", "2"]),
                WhereFilter(column="b", operator="ILIKE", values=["x"]),
                WhereFilter(column="c", operator="IS NULL"),
            ],
        )
        for statement in statements.rows(page).values():
            assert statement.placeholder_count == len(statement.params)


@pytest.mark.unit
class TestInsert:
    def test_postgres_returns_row(self):
        built = statements.insert_row("public", "t", {"a": 1, "b": "x"})
        statement = built[Engine.POSTGRES]
        assert statement.sql == (
            'INSERT INTO "public"."t" ("a", "b") VALUES (%s, %s) RETURNING *'
        )
        assert statement.params == (1, "x")

    def test_mssql_output_inserted(self):
        statement = statements.insert_row(None, "t", {"a": 1})[Engine.MSSQL]
        assert statement.sql == "INSERT INTO [t] ([a]) OUTPUT INSERTED.* VALUES (%s)"

    def test_mysql_plain(self):
        statement = statements.insert_row(None, "t", {"a": 1})[Engine.MYSQL]
        assert statement.sql == "INSERT INTO `t` (`a`) VALUES (%s)"

    def test_sqlite_qmark(self):
        statement = statements.insert_row(None, "t", {"a": 1})[Engine.SQLITE]
        assert statement.sql == 'INSERT INTO "t" ("a") VALUES (?) RETURNING *'

    def test_default_values(self):
        built = statements.insert_row(None, "t", {})
        assert built[Engine.POSTGRES].sql == 'INSERT INTO "t" DEFAULT VALUES RETURNING *'
        assert built[Engine.MYSQL].sql == "INSERT INTO `t` () VALUES ()"
        assert built[Engine.MSSQL].sql == "INSERT INTO [t] OUTPUT INSERTED.* DEFAULT VALUES"
        assert built[Engine.SQLITE].sql == 'INSERT INTO "t" DEFAULT VALUES RETURNING *'


@pytest.mark.unit
class TestUpdate:
    def test_each_engine(self):
        built = statements.update_cell(None, "t", "c", "v", {"id": 1})
        assert built[Engine.POSTGRES].sql == (
            'UPDATE "t" SET "c" = %s WHERE "id" = %s RETURNING "c"'
        )
        assert built[Engine.MSSQL].sql == (
            "UPDATE [t] SET [c] = %s OUTPUT INSERTED.[c] WHERE [id] = %s"
        )
        assert built[Engine.MYSQL].sql == "UPDATE `t` SET `c` = %s WHERE `id` = %s"
        assert built[Engine.CLICKHOUSE].sql == (
            "ALTER TABLE `t` UPDATE `c` = %s WHERE `id` = %s"
        )
        assert built[Engine.SQLITE].sql == (
            'UPDATE "t" SET "c" = ? WHERE "id" = ? RETURNING "c"'
        )
        for statement in built.values():
            assert statement.params == ("v", 1)

    def test_composite_key(self):
        statement = statements.update_cell(
            "s", "t", "c", None, {"a": 1, "b": 2}, [Engine.POSTGRES]
        )[Engine.POSTGRES]
        assert 'WHERE "a" = %s AND "b" = %s' in statement.sql
        assert statement.params == (None, 1, 2)


@pytest.mark.unit
class TestLookup:
    def test_by_key(self):
        built = statements.lookup_row("db", "t", ["c"], {"id": 7})
        assert built[Engine.MYSQL].sql == "SELECT `c` FROM `db`.`t` WHERE `id` = %s"
        assert built[Engine.MYSQL].params == (7,)

    def test_whole_row(self):
        statement = statements.lookup_row(None, "t", None, {"id": 7})[Engine.SQLITE]
        assert statement.sql == 'SELECT * FROM "t" WHERE "id" = ?'


@pytest.mark.unit
class TestDelete:
    def test_composite_keys_multiple_rows(self):
        keys = [{"a": 1, "b": 2}, {"a": 3, "b": 4}]
        built = statements.delete_rows(None, "t", keys)
        assert built[Engine.POSTGRES].sql == (
            'DELETE FROM "t" WHERE ("a" = %s AND "b" = %s) OR ("a" = %s AND "b" = %s)'
        )
        assert built[Engine.POSTGRES].params == (1, 2, 3, 4)
        assert built[Engine.CLICKHOUSE].sql == (
            "ALTER TABLE `t` DELETE WHERE (`a` = %s AND `b` = %s) OR (`a` = %s AND `b` = %s)"
        )

    def test_placeholder_count(self):
        keys = [{"a": i, "b": i, "c": i} for i in range(4)]
        for statement in statements.delete_rows("s", "t", keys).values():
            assert statement.placeholder_count == 12


@pytest.mark.unit
class TestCount:
    def test_plain(self):
        built = statements.count(None, "t")
        assert built[Engine.POSTGRES].sql == 'SELECT COUNT(*) AS total FROM "t"'
        assert built[Engine.POSTGRES].params == ()

    def test_filtered(self):
        built = statements.count(
            "s", "t", [WhereFilter(column="a", operator=">", values=["3"])], "AND"
        )
        assert built[Engine.MSSQL].sql == "SELECT COUNT(*) AS total FROM [s].[t] WHERE [a] > %s"

    def test_estimates(self):
        built = statements.estimate_count(None, "t")
        assert built[Engine.POSTGRES].params == ("public", "t")
        assert "DATABASE()" in built[Engine.MYSQL].sql
        assert "currentDatabase()" in built[Engine.CLICKHOUSE].sql


@pytest.mark.unit
class TestDDL:
    def test_rename(self):
        built = statements.rename_table("s", "t", "u")
        assert built[Engine.POSTGRES].sql == 'ALTER TABLE "s"."t" RENAME TO "u"'
        assert built[Engine.MYSQL].sql == "RENAME TABLE `s`.`t` TO `s`.`u`"
        assert built[Engine.CLICKHOUSE].sql == "RENAME TABLE `s`.`t` TO `s`.`u`"
        assert built[Engine.SQLITE].sql == 'ALTER TABLE "s"."t" RENAME TO "u"'
        assert built[Engine.MSSQL].sql == "EXEC sp_rename %s, %s"
        assert built[Engine.MSSQL].params == ("[s].[t]", "u")

    def test_mssql_rename_quotes_awkward_names(self):
        built = statements.rename_table("sales dept", "q1.totals]%", "q2", [Engine.MSSQL])
        assert built[Engine.MSSQL].params == ("[sales dept].[q1.totals]]%]", "q2")
        unqualified = statements.rename_table(None, "t", "u", [Engine.MSSQL])
        assert unqualified[Engine.MSSQL].params == ("[t]", "u")

    def test_drop_cascade_postgres_only(self):
        built = statements.drop_table(None, "t", cascade=True)
        assert built[Engine.POSTGRES].sql == 'DROP TABLE "t" CASCADE'
        assert built[Engine.MYSQL].sql == "DROP TABLE `t`"


@pytest.mark.unit
class TestCatalog:
    def test_schema_filter_is_bound(self):
        built = statements.tables("sales")
        for engine in (Engine.POSTGRES, Engine.MYSQL, Engine.MSSQL, Engine.CLICKHOUSE):
            assert built[engine].params == ("sales",)
        assert built[Engine.SQLITE].params == ("sales",)
        assert '"sales".sqlite_master' in built[Engine.SQLITE].sql

    def test_columns_default_schema(self):
        built = statements.columns(None, "users")
        assert built[Engine.POSTGRES].params == ("public", "users")
        assert built[Engine.MSSQL].params == ("dbo", "users")
        assert built[Engine.MYSQL].params == ("users",)
        assert built[Engine.SQLITE].params == ("main", "users", "users", "main")

    def test_system_schemas_excluded(self):
        sql = statements.schemas([Engine.MYSQL])[Engine.MYSQL].sql
        assert "performance_schema" in sql
        assert "NOT IN" in sql

    def test_versions(self):
        built = statements.version()
        assert built[Engine.MYSQL].sql == "SELECT VERSION() AS version"
        assert built[Engine.CLICKHOUSE].sql == "SELECT version() AS version"
