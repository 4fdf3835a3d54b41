# ==============================================
# SamplingStrategy (Descriptor)
# ==============================================
#
# PURPOSE:
#   Describe HOW rows should be pulled from a table, without pulling
#   them. The planner builds one of these; the row-fetch layer runs
#   the SQL it renders.
#
# STRATEGIES:
# -----------
#   FULL_SCAN     → every non-null row, deterministic
#   RANDOM        → ORDER BY random() LIMIT n        (small tables)
#   RESERVOIR_PK  → random primary-key lookups       (medium tables)
#   BLOCK_SAMPLE  → TABLESAMPLE SYSTEM (pct)          (huge tables)
#
# The rendered SQL targets PostgreSQL, where JSON columns live as
# json/jsonb. Identifiers are always double-quoted.
#
# ==============================================

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class StrategyKind(Enum):
    FULL_SCAN = "full_scan"
    RANDOM = "random"
    RESERVOIR_PK = "reservoir_pk"
    BLOCK_SAMPLE = "block_sample"


def quote_identifier(name: str) -> str:
    """
    Quote a SQL identifier, doubling embedded quotes.

    Examples:
        quote_identifier("users")      → '"users"'
        quote_identifier('we"ird')     → '"we""ird"'
    """
    return '"' + name.replace('"', '""') + '"'


def parse_table_name(table: str) -> Tuple[str, str]:
    """
    Split "schema.table" into its parts; bare names live in "public".

    Examples:
        parse_table_name("myschema.users") → ("myschema", "users")
        parse_table_name("users")          → ("public", "users")
    """
    schema, dot, name = table.partition(".")
    if not dot:
        return "public", table
    return schema, name


@dataclass(frozen=True)
class SamplingStrategy:
    """
    A planned sampling strategy. Pure description, no connection.

    Attributes:
        kind: Which technique to use
        sample_size: Target number of documents
        primary_key: Column looked up by RESERVOIR_PK
        block_percentage: Share of storage blocks read by BLOCK_SAMPLE
    """
    kind: StrategyKind
    sample_size: int
    primary_key: Optional[str] = None
    block_percentage: Optional[float] = None

    @property
    def requires_full_sort(self) -> bool:
        return self.kind is StrategyKind.RANDOM

    @property
    def requires_full_scan(self) -> bool:
        return self.kind in (StrategyKind.RANDOM, StrategyKind.FULL_SCAN)

    @property
    def is_approximate(self) -> bool:
        return self.kind is StrategyKind.BLOCK_SAMPLE

    def describe(self) -> str:
        if self.kind is StrategyKind.FULL_SCAN:
            return "Full scan (all rows, deterministic)"
        if self.kind is StrategyKind.RANDOM:
            return f"Random sampling (ORDER BY random(), {self.sample_size} rows)"
        if self.kind is StrategyKind.RESERVOIR_PK:
            return f"Reservoir sampling on primary key '{self.primary_key}' ({self.sample_size} rows)"
        return f"Block sampling (TABLESAMPLE SYSTEM {self.block_percentage:.2f}%, up to {self.sample_size} rows)"

    def build_query(self, schema: str, table: str, column: str) -> str:
        """
        Render the SELECT that executes this strategy for one JSON column.

        Args:
            schema: Table schema (e.g. "public")
            table: Table name
            column: JSON / JSONB column to sample

        Returns:
            A single PostgreSQL statement returning one JSON value per row
        """
        source = f"{quote_identifier(schema)}.{quote_identifier(table)}"
        col = quote_identifier(column)

        if self.kind is StrategyKind.FULL_SCAN:
            return f"SELECT {col} FROM {source} WHERE {col} IS NOT NULL"

        if self.kind is StrategyKind.RANDOM:
            return (
                f"SELECT {col} FROM {source} WHERE {col} IS NOT NULL "
                f"ORDER BY random() LIMIT {self.sample_size}"
            )

        if self.kind is StrategyKind.RESERVOIR_PK:
            pk = quote_identifier(self.primary_key or "id")
            # Twice as many candidate keys as wanted rows to absorb key gaps
            return (
                f"WITH random_ids AS ("
                f"SELECT floor(random() * (SELECT MAX({pk}) FROM {source}))::bigint AS rand_id "
                f"FROM generate_series(1, {self.sample_size * 2})"
                f") "
                f"SELECT t.{col} FROM {source} t "
                f"INNER JOIN random_ids r ON t.{pk} = r.rand_id "
                f"WHERE t.{col} IS NOT NULL LIMIT {self.sample_size}"
            )

        return (
            f"SELECT {col} FROM {source} TABLESAMPLE SYSTEM ({self.block_percentage:g}) "
            f"WHERE {col} IS NOT NULL LIMIT {self.sample_size}"
        )
