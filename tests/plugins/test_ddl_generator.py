"""
Tests for MySQL DDL Generation Module

These tests validate column definition rules, primary key aggregation,
determinism and default literal quoting.
"""

import pytest
from mysql_table_copy.ddl_generator import DDLGenerator, TableDefinition
from mysql_table_copy.schema_extractor import ColumnDescriptor, KeyRole


def col(name, declared_type='int', nullable=True, primary=False, default=None, extra=''):
    return ColumnDescriptor(
        name=name,
        declared_type=declared_type,
        nullable=nullable,
        key_role=KeyRole.PRIMARY if primary else KeyRole.NONE,
        default_value=default,
        extra=extra,
    )


USERS_COLUMNS = [
    col('id', 'int', nullable=False, primary=True, extra='auto_increment'),
    col('name', 'varchar(50)', nullable=False),
    col('created_at', 'timestamp'),
    col('updated_at', 'timestamp'),
]


class TestColumnDefinition:

    @pytest.fixture
    def generator(self):
        return DDLGenerator()

    def test_not_null_with_extra(self, generator):
        definition = generator.generate_column_definition(USERS_COLUMNS[0])
        assert definition == '`id` int NOT NULL auto_increment'

    def test_nullable_marker(self, generator):
        definition = generator.generate_column_definition(col('nickname', 'varchar(20)'))
        assert definition == '`nickname` varchar(20) NULL'

    def test_literal_default(self, generator):
        definition = generator.generate_column_definition(
            col('status', 'varchar(10)', nullable=False, default='active')
        )
        assert definition == "`status` varchar(10) NOT NULL DEFAULT 'active'"

    def test_empty_default_is_still_emitted(self, generator):
        definition = generator.generate_column_definition(col('note', 'varchar(10)', default=''))
        assert definition == "`note` varchar(10) NULL DEFAULT ''"

    def test_default_then_extra(self, generator):
        definition = generator.generate_column_definition(
            col('seen', 'datetime', default='2020-01-01 00:00:00', extra='on update CURRENT_TIMESTAMP')
        )
        assert definition == "`seen` datetime NULL DEFAULT '2020-01-01 00:00:00' on update CURRENT_TIMESTAMP"

    def test_created_at_special_case(self, generator):
        definition = generator.generate_column_definition(col('created_at', 'timestamp'))
        assert definition == '`created_at` timestamp DEFAULT CURRENT_TIMESTAMP'

    def test_updated_at_special_case(self, generator):
        definition = generator.generate_column_definition(col('updated_at', 'datetime'))
        assert definition == '`updated_at` datetime DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP'

    def test_special_columns_ignore_catalog_nullability_and_default(self, generator):
        created = generator.generate_column_definition(
            col('created_at', 'timestamp', nullable=False, default='2000-01-01', extra='DEFAULT_GENERATED')
        )
        assert created == '`created_at` timestamp DEFAULT CURRENT_TIMESTAMP'

    def test_special_case_is_exact_match(self, generator):
        definition = generator.generate_column_definition(col('Created_At', 'timestamp'))
        assert definition == '`Created_At` timestamp NULL'

    def test_default_is_verbatim_by_default(self, generator):
        definition = generator.generate_column_definition(col('title', 'varchar(10)', default="it's"))
        assert definition == "`title` varchar(10) NULL DEFAULT 'it's'"

    def test_escaped_default(self):
        generator = DDLGenerator(escape_default_literals=True)
        definition = generator.generate_column_definition(col('title', 'varchar(10)', default="it's \\o/"))
        assert definition == "`title` varchar(10) NULL DEFAULT 'it''s \\\\o/'"


class TestPrimaryKeyAggregation:

    @pytest.fixture
    def generator(self):
        return DDLGenerator()

    def test_no_primary_key(self, generator):
        definition = generator.generate_table_definition([col('a'), col('b')])

        assert definition.primary_key_columns == []
        assert 'PRIMARY KEY' not in definition.render()

    def test_single_primary_key(self, generator):
        definition = generator.generate_table_definition(USERS_COLUMNS)

        assert definition.render().endswith(', PRIMARY KEY (`id`)')

    def test_composite_key_in_first_occurrence_order(self, generator):
        columns = [col('tenant', primary=True), col('payload'), col('seq', primary=True)]

        definition = generator.generate_table_definition(columns)

        assert definition.primary_key_columns == ['tenant', 'seq']
        assert definition.primary_key_clause() == 'PRIMARY KEY (`tenant`, `seq`)'

    def test_special_columns_stay_key_eligible(self, generator):
        columns = [col('created_at', 'timestamp', nullable=False, primary=True), col('updated_at', 'timestamp')]

        rendered = generator.generate_table_definition(columns).render()

        assert rendered == (
            '`created_at` timestamp DEFAULT CURRENT_TIMESTAMP, '
            '`updated_at` timestamp DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP, '
            'PRIMARY KEY (`created_at`)'
        )

    def test_no_columns(self, generator):
        with pytest.raises(ValueError):
            generator.generate_table_definition([])

    def test_empty_table_definition_renders_nothing(self):
        assert TableDefinition().render() == ''


class TestCreateTable:

    def test_users_example(self):
        ddl = DDLGenerator().generate_create_table('users_copy', USERS_COLUMNS)

        assert ddl == (
            'CREATE TABLE `users_copy` ('
            '`id` int NOT NULL auto_increment, '
            '`name` varchar(50) NOT NULL, '
            '`created_at` timestamp DEFAULT CURRENT_TIMESTAMP, '
            '`updated_at` timestamp DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP, '
            'PRIMARY KEY (`id`))'
        )

    def test_qualified_destination(self):
        ddl = DDLGenerator().generate_create_table('archive.users', [col('id')])
        assert ddl.startswith('CREATE TABLE `archive`.`users` (')

    def test_deterministic(self):
        generator = DDLGenerator()
        outputs = {generator.generate_create_table('users', USERS_COLUMNS) for _ in range(5)}
        outputs.add(DDLGenerator().generate_create_table('users', list(USERS_COLUMNS)))
        assert len(outputs) == 1

    def test_column_order_follows_input(self):
        ddl = DDLGenerator().generate_create_table('t', [col('z'), col('a'), col('m')])
        assert ddl.index('`z`') < ddl.index('`a`') < ddl.index('`m`')
