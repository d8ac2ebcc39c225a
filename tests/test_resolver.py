"""Test static resolution: binding distances and scope-rule errors."""

import pytest

from plox.errors import ResolveError
from plox.parser import parse
from plox.resolver import Resolver, resolve


def _resolve_errors(source: str) -> list[str]:
    with pytest.raises(ResolveError) as exc_info:
        resolve(parse(source), source)
    return [str(d) for d in exc_info.value.diagnostics]


class TestDistances:
    def test_globals_are_not_recorded(self):
        stmts = parse("var a = 1; print a; a = 2;")
        assert resolve(stmts) == {}

    def test_same_block(self):
        stmts = parse("{ var a = 1; print a; }")
        use = stmts[0].statements[1].expression
        assert resolve(stmts)[use] == 0

    def test_enclosing_block(self):
        stmts = parse("{ var a = 1; { print a; } }")
        use = stmts[0].statements[1].statements[0].expression
        assert resolve(stmts)[use] == 1

    def test_parameter(self):
        stmts = parse("fun f(x) { return x; }")
        use = stmts[0].body[0].value
        assert resolve(stmts)[use] == 0

    def test_closure_variable(self):
        stmts = parse("fun outer() { var x = 1; fun inner() { return x; } }")
        inner = stmts[0].body[1]
        use = inner.body[0].value
        assert resolve(stmts)[use] == 1

    def test_assignment_is_recorded(self):
        stmts = parse("{ var a; { a = 1; } }")
        assign = stmts[0].statements[1].statements[0].expression
        assert resolve(stmts)[assign] == 1

    def test_shadowing_resolves_to_nearest(self):
        stmts = parse("{ var a = 1; { var a = 2; print a; } }")
        use = stmts[0].statements[1].statements[1].expression
        assert resolve(stmts)[use] == 0

    def test_for_loop_variable(self):
        stmts = parse("for (var i = 0; i < 3; i = i + 1) print i;")
        locals_map = resolve(stmts)
        loop = stmts[0].statements[1]
        condition_use = loop.condition.left
        body_use = loop.body.statements[0].expression
        assert locals_map[condition_use] == 0
        # Loops add no scope of their own; the body block is the only extra frame
        assert locals_map[body_use] == 1

    def test_function_name_is_visible_in_body(self):
        stmts = parse("{ fun f() { return f; } }")
        use = stmts[0].statements[0].body[0].value
        assert resolve(stmts)[use] == 1

    def test_unresolved_reference_inside_function(self):
        stmts = parse("fun f() { return g; }")
        assert resolve(stmts) == {}


class TestErrors:
    def test_read_in_own_initializer(self):
        assert _resolve_errors("{ var a = a; }") == [
            "[line 1] Error at 'a': Can't read local variable in its own initializer."
        ]

    def test_own_initializer_shadowing_outer(self):
        errors = _resolve_errors("var a = 1; { var a = a; }")
        assert errors == ["[line 1] Error at 'a': Can't read local variable in its own initializer."]

    def test_global_self_reference_is_allowed(self):
        resolve(parse("var a = a;"))

    def test_redeclare_in_block(self):
        assert _resolve_errors("{ var a = 1; var a = 2; }") == [
            "[line 1] Error at 'a': Variable with name 'a' already declared in this scope."
        ]

    def test_duplicate_parameter(self):
        errors = _resolve_errors("fun f(a, a) {}")
        assert errors == ["[line 1] Error at 'a': Variable with name 'a' already declared in this scope."]

    def test_global_redeclare_is_allowed(self):
        resolve(parse("var a = 1; var a = 2;"))

    def test_shadowing_in_inner_block_is_allowed(self):
        resolve(parse("{ var a = 1; { var a = 2; } }"))

    def test_break_outside_loop(self):
        assert _resolve_errors("break;") == ["[line 1] Error at 'break': Can't break outside of a loop."]

    def test_break_in_function_inside_loop(self):
        errors = _resolve_errors("while (true) { fun f() { break; } }")
        assert errors == ["[line 1] Error at 'break': Can't break outside of a loop."]

    def test_break_in_loop_inside_function(self):
        resolve(parse("fun f() { while (true) { break; } }"))

    def test_break_in_nested_if(self):
        resolve(parse("while (true) { if (true) break; }"))

    def test_return_at_top_level(self):
        assert _resolve_errors("return 1;") == [
            "[line 1] Error at 'return': Can't return from top-level code."
        ]

    def test_return_in_top_level_loop(self):
        errors = _resolve_errors("while (true) return;")
        assert errors == ["[line 1] Error at 'return': Can't return from top-level code."]

    def test_return_in_function_expression(self):
        resolve(parse("var f = fun () { return 1; };"))

    def test_errors_are_collected(self):
        errors = _resolve_errors("break;\nreturn;\n{ var x = x; }")
        assert len(errors) == 3
        assert errors[1].startswith("[line 2]")

    def test_error_carries_source(self):
        source = "break;"
        with pytest.raises(ResolveError) as exc_info:
            Resolver(source).resolve(parse(source))
        assert "break;" in exc_info.value.format()
