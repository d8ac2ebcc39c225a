"""Lox parser: converts a token stream into a list of statements.

Grammar, lowest precedence first::

    program     -> declaration* EOF
    declaration -> varDecl | funDecl | statement
    varDecl     -> "var" IDENTIFIER ( "=" expression )? ";"
    funDecl     -> "fun" IDENTIFIER "(" parameters? ")" block
    statement   -> exprStmt | ifStmt | printStmt | whileStmt | forStmt
                 | returnStmt | breakStmt | block
    expression  -> assignment
    assignment  -> IDENTIFIER "=" assignment | logic_or
    logic_or    -> logic_and ( "or" logic_and )*
    logic_and   -> equality ( "and" equality )*
    equality    -> comparison ( ( "!=" | "==" ) comparison )*
    comparison  -> term ( ( ">" | ">=" | "<" | "<=" ) term )*
    term        -> factor ( ( "-" | "+" ) factor )*
    factor      -> unary ( ( "/" | "*" | "%" ) unary )*
    unary       -> ( "!" | "-" ) unary | call
    call        -> primary ( "(" arguments? ")" )*
    primary     -> "true" | "false" | "nil" | NUMBER | STRING
                 | IDENTIFIER | "(" expression ")"
                 | "fun" "(" parameters? ")" block
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from plox.ast import (
    Assign,
    Binary,
    BlockStmt,
    BreakStmt,
    Call,
    Expr,
    ExpressionStmt,
    FunctionExpr,
    FunctionStmt,
    Grouping,
    IfStmt,
    Literal,
    Logical,
    PrintStmt,
    ReturnStmt,
    Stmt,
    Unary,
    Variable,
    VarStmt,
    WhileStmt,
)
from plox.errors import Diagnostic, ParseError, error_at
from plox.scanner import scan
from plox.tokens import Token, TokenType

MAX_ARGUMENTS = 255


class Parser:
    """Recursive descent parser for Lox token streams.

    Accepts any iterable of tokens, including the scanner's lazy generator;
    at most two tokens are buffered ahead of the cursor.
    """

    def __init__(self, tokens: Iterable[Token], source: str = "") -> None:
        self._stream = iter(tokens)
        self._source = source
        self._buffer: list[Token] = []
        self._previous: Token | None = None
        self._errors: list[Diagnostic] = []

    def parse(self) -> list[Stmt]:
        """Parse the whole program, raising one ParseError for every problem found."""
        statements, errors = self.parse_with_errors()
        if errors:
            raise ParseError(errors, self._source)
        return statements

    def parse_with_errors(self) -> tuple[list[Stmt], list[Diagnostic]]:
        """Parse the whole program, returning the statements and the recorded errors."""
        statements: list[Stmt] = []
        while not self._at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements, list(self._errors)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _fill(self, count: int) -> None:
        while len(self._buffer) < count:
            if self._buffer and self._buffer[-1].type == TokenType.EOF:
                return
            tok = next(self._stream, None)
            if tok is None:
                line = self._buffer[-1].line if self._buffer else 1
                tok = Token(TokenType.EOF, "", None, line)
            self._buffer.append(tok)

    def _peek(self, offset: int = 0) -> Token:
        self._fill(offset + 1)
        return self._buffer[min(offset, len(self._buffer) - 1)]

    def _at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _check(self, tt: TokenType) -> bool:
        return self._peek().type == tt

    def _advance(self) -> Token:
        tok = self._peek()
        if tok.type != TokenType.EOF:
            self._buffer.pop(0)
            self._previous = tok
        return tok

    def _match(self, *types: TokenType) -> bool:
        if self._peek().type in types:
            self._advance()
            return True
        return False

    def _prev(self) -> Token:
        assert self._previous is not None
        return self._previous

    def _expect(self, tt: TokenType, message: str) -> Token:
        if self._check(tt):
            return self._advance()
        raise self._error(self._peek(), message)

    def _error(self, token: Token, message: str) -> ParseError:
        return ParseError([error_at(token, message)], self._source)

    def _report(self, token: Token, message: str) -> None:
        """Record an error that does not need the parser to resynchronize."""
        self._errors.append(error_at(token, message))

    def _synchronize(self) -> None:
        """Discard tokens until the start of the next statement."""
        self._advance()
        while not self._at_end():
            if self._prev().type == TokenType.SEMICOLON:
                return
            if self._peek().type in _STATEMENT_START:
                return
            self._advance()

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _declaration(self) -> Stmt | None:
        try:
            if self._check(TokenType.FUN) and self._peek(1).type == TokenType.IDENTIFIER:
                self._advance()
                return self._function_declaration("function")
            if self._match(TokenType.VAR):
                return self._var_declaration()
            return self._statement()
        except ParseError as exc:
            self._errors.extend(exc.diagnostics)
            self._synchronize()
            return None
        except RecursionError:
            self._report(self._peek(), "Expression nesting too deep.")
            self._synchronize()
            return None

    def _var_declaration(self) -> VarStmt:
        name = self._expect(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = self._expression() if self._match(TokenType.EQUAL) else None
        self._expect(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return VarStmt(name, initializer)

    def _function_declaration(self, kind: str) -> FunctionStmt:
        name = self._expect(TokenType.IDENTIFIER, f"Expect {kind} name.")
        self._expect(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params = self._parameters()
        self._expect(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        body = self._block()
        return FunctionStmt(name, params, body)

    def _parameters(self) -> tuple[Token, ...]:
        """Parse a parameter list after '(' up to and including ')'."""
        params: list[Token] = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self._report(self._peek(), "Can't have more than 255 parameters.")
                params.append(self._expect(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self._match(TokenType.COMMA):
                    break
        self._expect(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        return tuple(params)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _statement(self) -> Stmt:
        if self._match(TokenType.IF):
            return self._if_statement()
        if self._match(TokenType.PRINT):
            return self._print_statement()
        if self._match(TokenType.RETURN):
            return self._return_statement()
        if self._match(TokenType.WHILE):
            return self._while_statement()
        if self._match(TokenType.FOR):
            return self._for_statement()
        if self._match(TokenType.BREAK):
            return self._break_statement()
        if self._match(TokenType.LEFT_BRACE):
            return BlockStmt(self._block())
        return self._expression_statement()

    def _if_statement(self) -> IfStmt:
        self._expect(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self._expression()
        self._expect(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self._statement()
        # Greedy: an else always belongs to the nearest if
        else_branch = self._statement() if self._match(TokenType.ELSE) else None
        return IfStmt(condition, then_branch, else_branch)

    def _print_statement(self) -> PrintStmt:
        value = self._expression()
        self._expect(TokenType.SEMICOLON, "Expect ';' after value.")
        return PrintStmt(value)

    def _return_statement(self) -> ReturnStmt:
        keyword = self._prev()
        value = None if self._check(TokenType.SEMICOLON) else self._expression()
        self._expect(TokenType.SEMICOLON, "Expect ';' after return value.")
        return ReturnStmt(keyword, value)

    def _while_statement(self) -> WhileStmt:
        self._expect(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self._expression()
        self._expect(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        body = self._statement()
        return WhileStmt(condition, body)

    def _for_statement(self) -> Stmt:
        self._expect(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        initializer: Stmt | None
        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = None if self._check(TokenType.SEMICOLON) else self._expression()
        self._expect(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None if self._check(TokenType.RIGHT_PAREN) else self._expression()
        self._expect(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self._statement()

        # Desugar into { initializer; while (condition) { body; increment; } }
        if increment is not None:
            body = BlockStmt((body, ExpressionStmt(increment)))
        body = WhileStmt(condition if condition is not None else Literal(True), body)
        if initializer is not None:
            body = BlockStmt((initializer, body))
        return body

    def _break_statement(self) -> BreakStmt:
        keyword = self._prev()
        self._expect(TokenType.SEMICOLON, "Expect ';' after 'break'.")
        return BreakStmt(keyword)

    def _block(self) -> tuple[Stmt, ...]:
        """Parse declarations after '{' up to and including '}'."""
        statements: list[Stmt] = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._at_end():
            stmt = self._declaration()
            if stmt is not None:
                statements.append(stmt)
        self._expect(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return tuple(statements)

    def _expression_statement(self) -> ExpressionStmt:
        expr = self._expression()
        self._expect(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ExpressionStmt(expr)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _expression(self) -> Expr:
        return self._assignment()

    def _assignment(self) -> Expr:
        expr = self._or()

        if self._match(TokenType.EQUAL):
            equals = self._prev()
            value = self._assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            self._report(equals, "Invalid assignment target.")
            return value

        return expr

    def _or(self) -> Expr:
        return self._left_series(self._and, _OR, Logical)

    def _and(self) -> Expr:
        return self._left_series(self._equality, _AND, Logical)

    def _equality(self) -> Expr:
        return self._left_series(self._comparison, _EQUALITY, Binary)

    def _comparison(self) -> Expr:
        return self._left_series(self._term, _COMPARISON, Binary)

    def _term(self) -> Expr:
        return self._left_series(self._factor, _TERM, Binary)

    def _factor(self) -> Expr:
        return self._left_series(self._unary, _FACTOR, Binary)

    def _left_series(
        self,
        operand: Callable[[], Expr],
        operators: frozenset[TokenType],
        node: type[Binary] | type[Logical],
    ) -> Expr:
        """Parse a left-associative run of operators at one precedence level."""
        expr = operand()
        while self._peek().type in operators:
            operator = self._advance()
            right = operand()
            expr = node(expr, operator, right)
        return expr

    def _unary(self) -> Expr:
        if self._match(TokenType.BANG, TokenType.MINUS):
            operator = self._prev()
            return Unary(operator, self._unary())
        return self._call()

    def _call(self) -> Expr:
        expr = self._primary()
        while self._match(TokenType.LEFT_PAREN):
            expr = self._finish_call(expr)
        return expr

    def _finish_call(self, callee: Expr) -> Call:
        arguments: list[Expr] = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self._report(self._peek(), "Can't have more than 255 arguments.")
                arguments.append(self._expression())
                if not self._match(TokenType.COMMA):
                    break
        paren = self._expect(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, tuple(arguments))

    def _primary(self) -> Expr:
        if self._match(TokenType.FALSE):
            return Literal(False)
        if self._match(TokenType.TRUE):
            return Literal(True)
        if self._match(TokenType.NIL):
            return Literal(None)

        if self._match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self._prev().literal)

        if self._match(TokenType.IDENTIFIER):
            return Variable(self._prev())

        if self._match(TokenType.LEFT_PAREN):
            expr = self._expression()
            self._expect(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        if self._match(TokenType.FUN):
            keyword = self._prev()
            self._expect(TokenType.LEFT_PAREN, "Expect '(' after 'fun'.")
            params = self._parameters()
            self._expect(TokenType.LEFT_BRACE, "Expect '{' before function body.")
            return FunctionExpr(keyword, params, self._block())

        raise self._error(self._peek(), "Expect expression.")


# Module-level constants
_OR: frozenset[TokenType] = frozenset({TokenType.OR})
_AND: frozenset[TokenType] = frozenset({TokenType.AND})
_EQUALITY: frozenset[TokenType] = frozenset({TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL})
_COMPARISON: frozenset[TokenType] = frozenset(
    {TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL}
)
_TERM: frozenset[TokenType] = frozenset({TokenType.MINUS, TokenType.PLUS})
_FACTOR: frozenset[TokenType] = frozenset({TokenType.SLASH, TokenType.STAR, TokenType.PERCENT})
_STATEMENT_START: frozenset[TokenType] = frozenset(
    {
        TokenType.CLASS,
        TokenType.FUN,
        TokenType.VAR,
        TokenType.FOR,
        TokenType.IF,
        TokenType.WHILE,
        TokenType.PRINT,
        TokenType.RETURN,
    }
)


def parse(source: str) -> list[Stmt]:
    """Convenience function: scan and parse source text."""
    return Parser(scan(source), source).parse()
