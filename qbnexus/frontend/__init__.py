"""Frontend package - converts QBasic source to JavaScript."""

from .parse import ParseError, ParseResult, Parser, parse
from .scope import ScopeStack, Variable
from .tokens import Lexer, Token, TokenArena, tokenize
