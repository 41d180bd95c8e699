"""
Search Predicate Builder

Builds SQL comparison predicates for dynamic field value searches. Search
terms are always bound as query parameters; table aliases and column names
are checked against a strict identifier pattern.

The database dialect is explicit: the builder takes the Django connection
vendor ('postgresql', 'mysql', 'sqlite', 'oracle') and defaults to the vendor
of the configured connection.

Usage:
    builder = SearchPredicateBuilder(vendor='postgresql')
    predicate = builder.build(
        operator='Equals',
        search_term='Alpha',
        table_alias='dynamic_field_value',
        column_name='value_text',
    )
    # predicate.sql    == "LOWER(dynamic_field_value.value_text) = LOWER(%s)"
    # predicate.params == ('Alpha',)
"""

import logging
import re
from dataclasses import dataclass

from django.db import DEFAULT_DB_ALIAS, connections

logger = logging.getLogger(__name__)


COMPARISON_OPERATORS = {
    'Equals': '=',
    'GreaterThan': '>',
    'GreaterThanEquals': '>=',
    'SmallerThan': '<',
    'SmallerThanEquals': '<=',
}

SUPPORTED_OPERATORS = ('Like', 'Empty') + tuple(COMPARISON_OPERATORS)

# Vendors whose '=' and LIKE compare case sensitively; terms are folded with LOWER().
CASE_SENSITIVE_VENDORS = frozenset({'postgresql', 'oracle', 'sqlite'})

# Vendors that store '' as NULL and therefore cannot test "<> ''".
EMPTY_STRING_IS_NULL_VENDORS = frozenset({'oracle'})

IDENTIFIER_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


@dataclass(frozen=True)
class SearchPredicate:
    """A SQL boolean expression with its bound parameters."""

    sql: str
    params: tuple = ()

    def __str__(self):
        return self.sql

    @classmethod
    def combine(cls, predicates, connector='OR'):
        """Join predicates with AND/OR; returns None when nothing is left."""
        predicates = [predicate for predicate in predicates if predicate is not None]
        if not predicates:
            return None
        if len(predicates) == 1:
            return predicates[0]
        connector = f' {connector.strip().upper()} '
        sql = connector.join(f'({predicate.sql})' for predicate in predicates)
        params = tuple(param for predicate in predicates for param in predicate.params)
        return cls(sql=sql, params=params)


class SearchPredicateBuilder:
    """Builds vendor aware search predicates for one database connection."""

    def __init__(self, vendor=None, using=DEFAULT_DB_ALIAS):
        self.vendor = vendor or connections[using].vendor

    @property
    def case_sensitive(self):
        return self.vendor in CASE_SENSITIVE_VENDORS

    @property
    def empty_string_is_null(self):
        return self.vendor in EMPTY_STRING_IS_NULL_VENDORS

    def column(self, table_alias, column_name):
        """Qualified column reference, or None for unsafe identifiers."""
        for identifier in (table_alias, column_name):
            if not identifier or not IDENTIFIER_RE.match(identifier):
                logger.error(f"Invalid SQL identifier in search: {identifier!r}")
                return None
        return f'{table_alias}.{column_name}'

    def build(self, operator, search_term, table_alias, column_name, fold_case=True,
              text_column=True):
        """
        Build the predicate for one operator.

        Args:
            operator: Like, Empty, Equals, GreaterThan, GreaterThanEquals,
                SmallerThan or SmallerThanEquals
            search_term: Term to compare with (bool-ish for Empty)
            table_alias: Alias of the dynamic_field_value table in the query
            column_name: Value column of the driver (e.g. 'value_text')
            fold_case: Apply LOWER() on case sensitive vendors (text columns)
            text_column: False for date and integer columns, which have no '' value

        Returns:
            SearchPredicate, or None for unsupported operators
        """
        column = self.column(table_alias, column_name)
        if column is None:
            return None

        if operator == 'Like':
            return self.query_condition(column, search_term, fold_case=fold_case)

        if operator == 'Empty':
            return self.empty(column, search_term, text_column=text_column)

        sql_operator = COMPARISON_OPERATORS.get(operator)
        if sql_operator is None:
            logger.error(f"Unsupported Operator {operator}")
            return None

        if fold_case and self.case_sensitive:
            return SearchPredicate(
                sql=f'LOWER({column}) {sql_operator} LOWER(%s)',
                params=(search_term,),
            )
        return SearchPredicate(sql=f'{column} {sql_operator} %s', params=(search_term,))

    def empty(self, column, is_empty, text_column=True):
        """
        Empty / not empty test.

        Oracle stores '' as NULL, so "not empty" is IS NOT NULL there and
        <> '' on every other backend. Date and integer columns only know NULL.
        """
        if is_empty:
            return SearchPredicate(sql=f'{column} IS NULL')
        if self.empty_string_is_null or not text_column:
            return SearchPredicate(sql=f'{column} IS NOT NULL')
        return SearchPredicate(sql=f"{column} <> ''")

    def query_condition(self, column, search_term, fold_case=True):
        """
        Wildcard condition for free text terms.

        Syntax:
            *       any sequence of characters
            ||      OR between terms
            &&      AND between terms
            !term   negated term
        """
        term = '' if search_term is None else str(search_term)

        or_predicates = []
        for or_term in term.split('||'):
            and_predicates = []
            for and_term in or_term.split('&&'):
                and_term = and_term.strip()
                if not and_term:
                    continue
                and_predicates.append(self._like(column, and_term, fold_case))
            or_predicates.append(SearchPredicate.combine(and_predicates, 'AND'))

        predicate = SearchPredicate.combine(or_predicates, 'OR')
        if predicate is None:
            # an empty term matches everything, like the unrestricted search
            return SearchPredicate(sql='1 = 1')
        return predicate

    def _like(self, column, term, fold_case):
        negate = term.startswith('!')
        if negate:
            term = term[1:]

        pattern = (
            term.replace('\\', '\\\\')
            .replace('%', '\\%')
            .replace('_', '\\_')
            .replace('*', '%')
        )

        like = 'NOT LIKE' if negate else 'LIKE'
        escape = '' if self.vendor == 'mysql' else " ESCAPE '\\'"

        if fold_case and self.case_sensitive:
            sql = f'LOWER({column}) {like} LOWER(%s){escape}'
        else:
            sql = f'{column} {like} %s{escape}'
        return SearchPredicate(sql=sql, params=(pattern,))

    def order_field(self, table_alias, column_name):
        """Column reference used for ORDER BY on this field."""
        return self.column(table_alias, column_name)
