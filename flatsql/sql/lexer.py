"""
SQL Lexer - Tokenizes preprocessed SQL source.
Converts SQL text into a flat list of tokens for parsing.
"""

import re
from typing import List, Optional, Tuple
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Types of tokens in SQL."""
    KEYWORD = auto()
    IDENTIFIER = auto()
    NUMBER = auto()
    STRING = auto()
    OPERATOR = auto()


@dataclass(frozen=True)
class Token:
    """Represents a single token."""
    type: TokenType
    value: str
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def position(self) -> str:
        return f"{self.line}:{self.column}"


KEYWORDS = frozenset({
    'CREATE', 'TABLE', 'INSERT', 'INTO', 'VALUES', 'SELECT', 'FROM',
    'DELETE', 'UPDATE', 'SET', 'WHERE', 'ALTER', 'ADD', 'DROP', 'GROUP',
    'BY', 'ORDER', 'JOIN', 'ON', 'LIKE', 'IS', 'NULL', 'NOT',
})

OPERATORS = '(),*=;'

IDENTIFIER_PATTERN = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')
NUMBER_PATTERN = re.compile(r'-?[0-9]+(\.[0-9]+)?')
STRING_PATTERN = re.compile(r"'[^']*'")

_WHITESPACE = re.compile(r'\s+')


def _strip_comments(line: str, in_block: bool) -> Tuple[str, bool]:
    """
    Remove comments from one line.

    Returns the remaining text and whether a block comment is still open at
    the end of the line. A '/*' after '--' is part of the line comment.
    """
    kept = []
    pos = 0
    while pos < len(line):
        if in_block:
            end = line.find('*/', pos)
            if end < 0:
                break
            pos = end + 2
            in_block = False
            continue
        dash = line.find('--', pos)
        block = line.find('/*', pos)
        if block < 0 or 0 <= dash < block:
            kept.append(line[pos:] if dash < 0 else line[pos:dash])
            break
        kept.append(line[pos:block])
        pos = block + 2
        in_block = True
    return ''.join(kept), in_block


def preprocess(source: str) -> str:
    """
    Strip comments and blank lines and collapse whitespace.

    Block comments may span lines; an unterminated one runs to the end of
    the source. Comments are removed without regard to string literals, so
    '--' inside a quoted value also starts a comment.
    """
    lines = []
    in_block = False
    for line in source.split('\n'):
        line, in_block = _strip_comments(line, in_block)
        line = line.strip()
        if line:
            lines.append(_WHITESPACE.sub(' ', line))
    return ''.join(line + '\n' for line in lines)


class Lexer:
    """
    SQL Lexer for tokenizing SQL statements.

    Scans one physical line at a time; line and column numbers are 1-based.
    Characters that start no token are skipped, so lexing never fails.
    """

    def __init__(self, source: str):
        """
        Initialize the lexer.

        Args:
            source: Preprocessed SQL source code to tokenize
        """
        self.source = source
        self.tokens: List[Token] = []

    def scan_line(self, text: str, line: int) -> None:
        """Append the tokens of one physical line."""
        position = 0
        while position < len(text):
            char = text[position]
            column = position + 1

            if char.isspace():
                position += 1
                continue

            if char in OPERATORS:
                self.tokens.append(Token(TokenType.OPERATOR, char, line, column))
                position += 1
                continue

            for reader in (self.read_word, self.read_number, self.read_string):
                scanned = reader(text, position, line)
                if scanned is not None:
                    token, position = scanned
                    self.tokens.append(token)
                    break
            else:
                # Unknown character
                position += 1

    def read_word(self, text: str, position: int, line: int) -> Optional[Tuple[Token, int]]:
        """Read an identifier or keyword, upper-cased."""
        match = IDENTIFIER_PATTERN.match(text, position)
        if match is None:
            return None
        word = match.group().upper()
        token_type = TokenType.KEYWORD if word in KEYWORDS else TokenType.IDENTIFIER
        return Token(token_type, word, line, position + 1), match.end()

    def read_number(self, text: str, position: int, line: int) -> Optional[Tuple[Token, int]]:
        """Read a numeric literal, kept as its source text."""
        match = NUMBER_PATTERN.match(text, position)
        if match is None:
            return None
        return Token(TokenType.NUMBER, match.group(), line, position + 1), match.end()

    def read_string(self, text: str, position: int, line: int) -> Optional[Tuple[Token, int]]:
        """Read a single-quoted string literal. No escapes are recognized."""
        match = STRING_PATTERN.match(text, position)
        if match is None:
            return None
        return Token(TokenType.STRING, match.group()[1:-1], line, position + 1), match.end()

    def tokenize(self) -> List[Token]:
        """
        Tokenize the entire source code.

        Returns:
            List of all tokens
        """
        self.tokens = []
        for line_number, text in enumerate(self.source.split('\n'), start=1):
            self.scan_line(text, line_number)
        return self.tokens


def tokenize(source: str) -> List[Token]:
    """
    Convenience function to tokenize SQL source.

    Args:
        source: SQL source code

    Returns:
        List of tokens
    """
    lexer = Lexer(source)
    return lexer.tokenize()
