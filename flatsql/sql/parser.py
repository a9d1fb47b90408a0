"""
SQL Parser - Builds Abstract Syntax Trees from token streams.
Converts tokens into one statement node per ';'-separated statement.
"""

from typing import List, Optional
from dataclasses import dataclass
from enum import Enum

from flatsql.errors import ParseError
from flatsql.sql.lexer import Token, TokenType, Lexer, preprocess
from flatsql.values import Value, number
from flatsql.log import get_logger, log_sql_parse


# AST Node Classes

@dataclass
class ASTNode:
    """Base class for all AST nodes."""
    table: str


@dataclass
class ColumnDef:
    """Column definition in CREATE TABLE and ALTER TABLE."""
    name: str
    type: str

    def __repr__(self) -> str:
        return f"ColumnDef({self.name}, {self.type})"


class ConditionKind(Enum):
    """The single predicate kind a WHERE clause may hold."""
    EQUALS = '='
    LIKE = 'LIKE'
    IS_NULL = 'IS NULL'
    IS_NOT_NULL = 'IS NOT NULL'


@dataclass
class Condition:
    """WHERE clause: one column tested by one predicate kind."""
    column: str
    kind: ConditionKind
    value: Optional[Value] = None  # literal for EQUALS, pattern for LIKE

    def __repr__(self) -> str:
        if self.kind in (ConditionKind.EQUALS, ConditionKind.LIKE):
            return f"Condition({self.column} {self.kind.value} {self.value!r})"
        return f"Condition({self.column} {self.kind.value})"


@dataclass
class JoinClause:
    """JOIN other ON left_column = right_column."""
    table: str
    left_column: str
    right_column: str


@dataclass
class CreateTableStatement(ASTNode):
    """CREATE TABLE statement AST node."""
    columns: List[ColumnDef]


@dataclass
class InsertStatement(ASTNode):
    """INSERT statement AST node."""
    values: List[Value]


@dataclass
class SelectStatement(ASTNode):
    """SELECT * statement AST node."""
    join: Optional[JoinClause] = None
    where: Optional[Condition] = None
    group_by: Optional[str] = None
    order_by: Optional[str] = None


@dataclass
class DeleteStatement(ASTNode):
    """DELETE statement AST node."""
    where: Optional[Condition] = None


@dataclass
class UpdateStatement(ASTNode):
    """UPDATE statement AST node."""
    column: str
    value: Value
    where: Optional[Condition] = None


@dataclass
class AlterTableStatement(ASTNode):
    """ALTER TABLE ... ADD statement AST node."""
    column: ColumnDef


@dataclass
class DropTableStatement(ASTNode):
    """DROP TABLE statement AST node."""
    pass


class Parser:
    """
    Recursive-descent SQL parser with one token of lookahead.

    Any missing or mismatched token raises ParseError and abandons the
    whole token list. Tokens that cannot start a statement are skipped.
    """

    def __init__(self, tokens: List[Token]):
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer
        """
        self.tokens = tokens
        self.position = 0
        self.current_token = tokens[0] if tokens else None
        self.logger = get_logger("sql")

    def advance(self) -> None:
        """Move to the next token."""
        self.position += 1
        if self.position < len(self.tokens):
            self.current_token = self.tokens[self.position]
        else:
            self.current_token = None

    def _where(self) -> str:
        return self.current_token.position if self.current_token else 'EOF'

    def expect(self, token_type: TokenType, value: Optional[str] = None) -> Token:
        """
        Expect a specific token type (and value, if given) and advance.

        Raises ParseError if token doesn't match.
        """
        token = self.current_token
        if token is None or token.type != token_type or (value is not None and token.value != value):
            expected = f"'{value}'" if value is not None else token_type.name
            raise ParseError(f"Expected {expected} at {self._where()}")
        self.advance()
        return token

    def keyword(self, value: str) -> Token:
        return self.expect(TokenType.KEYWORD, value)

    def operator(self, value: str) -> Token:
        return self.expect(TokenType.OPERATOR, value)

    def identifier(self) -> str:
        return self.expect(TokenType.IDENTIFIER).value

    def match(self, token_type: TokenType, value: Optional[str] = None) -> bool:
        """Check if the current token has the given type and value."""
        if self.current_token is None or self.current_token.type != token_type:
            return False
        return value is None or self.current_token.value == value

    def match_keyword(self, value: str) -> bool:
        return self.match(TokenType.KEYWORD, value)

    def parse(self) -> List[ASTNode]:
        """
        Parse the token stream into statement nodes.

        Returns:
            One AST node per recognised statement, in source order
        """
        statements = []
        while self.current_token is not None:
            statement = self.parse_statement()
            if statement is not None:
                statements.append(statement)
            if self.match(TokenType.OPERATOR, ';'):
                self.advance()
        return statements

    def parse_statement(self) -> Optional[ASTNode]:
        """Parse one statement, or skip a token that cannot start one."""
        if self.current_token.type == TokenType.KEYWORD:
            handler = {
                'CREATE': self.parse_create_table,
                'INSERT': self.parse_insert,
                'SELECT': self.parse_select,
                'DELETE': self.parse_delete,
                'UPDATE': self.parse_update,
                'ALTER': self.parse_alter_table,
                'DROP': self.parse_drop_table,
            }.get(self.current_token.value)
            if handler is not None:
                return handler()
        self.logger.trace(f"Skipping {self.current_token!r}")
        self.advance()
        return None

    def parse_create_table(self) -> CreateTableStatement:
        """
        Parse CREATE TABLE statement.

        Grammar:
        CREATE TABLE table ( column type [, column type]* )
        """
        self.keyword('CREATE')
        self.keyword('TABLE')
        table = self.identifier()
        self.operator('(')

        columns = [self.parse_column_def()]
        while self.match(TokenType.OPERATOR, ','):
            self.advance()
            columns.append(self.parse_column_def())

        self.operator(')')
        return CreateTableStatement(table=table, columns=columns)

    def parse_insert(self) -> InsertStatement:
        """
        Parse INSERT statement.

        Grammar:
        INSERT INTO table VALUES ( literal [, literal]* )
        """
        self.keyword('INSERT')
        self.keyword('INTO')
        table = self.identifier()
        self.keyword('VALUES')
        self.operator('(')

        values = [self.parse_literal()]
        while self.match(TokenType.OPERATOR, ','):
            self.advance()
            values.append(self.parse_literal())

        self.operator(')')
        return InsertStatement(table=table, values=values)

    def parse_select(self) -> SelectStatement:
        """
        Parse SELECT statement.

        Grammar:
        SELECT * FROM table [JOIN table ON column = column] [WHERE clause]
            [GROUP BY column] [ORDER BY column]
        """
        self.keyword('SELECT')
        self.operator('*')
        self.keyword('FROM')
        statement = SelectStatement(table=self.identifier())

        if self.match_keyword('JOIN'):
            self.advance()
            join_table = self.identifier()
            self.keyword('ON')
            left = self.identifier()
            self.operator('=')
            right = self.identifier()
            statement.join = JoinClause(table=join_table, left_column=left, right_column=right)

        statement.where = self.parse_where()

        if self.match_keyword('GROUP'):
            self.advance()
            self.keyword('BY')
            statement.group_by = self.identifier()

        if self.match_keyword('ORDER'):
            self.advance()
            self.keyword('BY')
            statement.order_by = self.identifier()

        return statement

    def parse_delete(self) -> DeleteStatement:
        """
        Parse DELETE statement.

        Grammar:
        DELETE FROM table [WHERE clause]
        """
        self.keyword('DELETE')
        self.keyword('FROM')
        table = self.identifier()
        return DeleteStatement(table=table, where=self.parse_where())

    def parse_update(self) -> UpdateStatement:
        """
        Parse UPDATE statement.

        Grammar:
        UPDATE table SET column = literal [WHERE clause]
        """
        self.keyword('UPDATE')
        table = self.identifier()
        self.keyword('SET')
        column = self.identifier()
        self.operator('=')
        value = self.parse_literal()
        return UpdateStatement(table=table, column=column, value=value, where=self.parse_where())

    def parse_alter_table(self) -> AlterTableStatement:
        """
        Parse ALTER TABLE statement.

        Grammar:
        ALTER TABLE table ADD column type
        """
        self.keyword('ALTER')
        self.keyword('TABLE')
        table = self.identifier()
        self.keyword('ADD')
        return AlterTableStatement(table=table, column=self.parse_column_def())

    def parse_drop_table(self) -> DropTableStatement:
        """
        Parse DROP TABLE statement.

        Grammar:
        DROP TABLE table
        """
        self.keyword('DROP')
        self.keyword('TABLE')
        return DropTableStatement(table=self.identifier())

    def parse_column_def(self) -> ColumnDef:
        """Parse 'name type'. The type is any identifier and is not checked."""
        name = self.identifier()
        return ColumnDef(name=name, type=self.identifier())

    def parse_where(self) -> Optional[Condition]:
        """
        Parse an optional WHERE clause.

        Grammar:
        WHERE column = literal | column LIKE 'pattern'
            | column IS NULL | column IS NOT NULL
        """
        if not self.match_keyword('WHERE'):
            return None
        self.advance()
        column = self.identifier()

        if self.match_keyword('LIKE'):
            self.advance()
            pattern = self.expect(TokenType.STRING).value
            return Condition(column, ConditionKind.LIKE, pattern)

        if self.match_keyword('IS'):
            self.advance()
            if self.match_keyword('NOT'):
                self.advance()
                self.keyword('NULL')
                return Condition(column, ConditionKind.IS_NOT_NULL)
            self.keyword('NULL')
            return Condition(column, ConditionKind.IS_NULL)

        self.operator('=')
        return Condition(column, ConditionKind.EQUALS, self.parse_literal())

    def parse_literal(self) -> Value:
        """Parse a number or string literal and return its cell value."""
        token = self.current_token
        if self.match(TokenType.NUMBER):
            self.advance()
            return number(token.value)
        if self.match(TokenType.STRING):
            self.advance()
            return token.value
        raise ParseError(f"Invalid value at {self._where()}")


def parse(source: str) -> List[ASTNode]:
    """
    Convenience function to parse raw SQL source.

    Args:
        source: SQL source code, comments allowed

    Returns:
        List of statement nodes
    """
    log_sql_parse(source)
    tokens = Lexer(preprocess(source)).tokenize()
    parser = Parser(tokens)
    return parser.parse()
