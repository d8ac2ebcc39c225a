"""Test functions: calls, returns, closures, recursion, natives."""

import io

import pytest

from plox.errors import EvalError
from plox.session import Session


def _fails(run_source, source: str) -> EvalError:
    with pytest.raises(EvalError) as exc_info:
        run_source(source)
    return exc_info.value


class TestCalls:
    def test_call_and_return(self, run_source):
        assert run_source("fun add(a, b) { return a + b; } print add(1, 2);") == ["3"]

    def test_implicit_nil(self, run_source):
        assert run_source("fun f() {} print f();") == ["nil"]

    def test_bare_return(self, run_source):
        assert run_source("fun f() { return; print 1; } print f();") == ["nil"]

    def test_return_exits_loop(self, run_source):
        source = """
        fun first(n) {
          for (var i = 0; i < 10; i = i + 1) {
            if (i == n) return i;
          }
          return -1;
        }
        print first(3);
        """
        assert run_source(source) == ["3"]

    def test_arguments_left_to_right(self, run_source):
        source = """
        fun show(x) { print x; return x; }
        fun pair(a, b) {}
        pair(show(1), show(2));
        """
        assert run_source(source) == ["1", "2"]

    def test_arity_mismatch(self, run_source):
        err = _fails(run_source, "fun f(a, b) {} f(1);")
        assert err.message == "Expected 2 arguments but got 1."
        assert err.token.lexeme == ")"

    def test_call_non_callable(self, run_source):
        err = _fails(run_source, '"not a function"();')
        assert err.message == "Can only call functions and classes."

    def test_call_nil(self, run_source):
        err = _fails(run_source, "var x; x();")
        assert err.message == "Can only call functions and classes."

    def test_print_function(self, run_source):
        source = "fun f() {} print f; print fun () {}; print clock;"
        assert run_source(source) == ["<fn f>", "<fn>", "<native fn clock>"]


class TestClosures:
    def test_counter(self, run_source):
        source = """
        fun makeCounter() {
          var i = 0;
          fun count() {
            i = i + 1;
            print i;
          }
          return count;
        }
        var counter = makeCounter();
        counter();
        counter();
        """
        assert run_source(source) == ["1", "2"]

    def test_counters_are_independent(self, run_source):
        source = """
        fun makeCounter() {
          var i = 0;
          return fun () { i = i + 1; return i; };
        }
        var a = makeCounter();
        var b = makeCounter();
        a(); a();
        print a();
        print b();
        """
        assert run_source(source) == ["3", "1"]

    def test_static_scope(self, run_source):
        source = """
        var a = "global";
        {
          fun showA() { print a; }
          showA();
          var a = "block";
          showA();
          print a;
        }
        """
        assert run_source(source) == ["global", "global", "block"]

    def test_closure_over_parameter(self, run_source):
        source = """
        fun adder(n) { return fun (x) { return x + n; }; }
        var add2 = adder(2);
        print add2(5);
        """
        assert run_source(source) == ["7"]

    def test_function_expression_callback(self, run_source):
        source = """
        fun twice(f, x) { return f(f(x)); }
        print twice(fun (v) { return v * 3; }, 2);
        """
        assert run_source(source) == ["18"]


class TestRecursion:
    def test_fibonacci(self, run_source):
        source = """
        fun fib(n) {
          if (n < 2) return n;
          return fib(n - 1) + fib(n - 2);
        }
        print fib(15);
        """
        assert run_source(source) == ["610"]

    def test_local_recursive_function(self, run_source):
        source = """
        {
          fun fact(n) { if (n <= 1) return 1; return n * fact(n - 1); }
          print fact(5);
        }
        """
        assert run_source(source) == ["120"]

    def test_mutual_recursion(self, run_source):
        source = """
        fun isEven(n) { if (n == 0) return true; return isOdd(n - 1); }
        fun isOdd(n) { if (n == 0) return false; return isEven(n - 1); }
        print isEven(10);
        """
        assert run_source(source) == ["true"]

    def test_deep_recursion_within_limit(self, run_source):
        source = """
        fun count(n) { if (n == 0) return 0; return 1 + count(n - 1); }
        print count(200);
        """
        assert run_source(source) == ["200"]

    def test_stack_overflow(self, run_source):
        err = _fails(run_source, "fun f() { f(); } f();")
        assert err.message == "Stack overflow."

    def test_custom_call_depth(self):
        session = Session(max_call_depth=10)
        source = "fun count(n) { if (n == 0) return 0; return 1 + count(n - 1); } count(20);"
        with pytest.raises(EvalError, match="Stack overflow."):
            session.run(source)

    def test_depth_resets_after_overflow(self):
        session = Session(max_call_depth=10)
        with pytest.raises(EvalError):
            session.run("fun f() { f(); } f();")
        session.run("fun g(n) { if (n > 0) g(n - 1); } g(5);")
        assert session.interpreter._call_depth == 0

    def test_host_stack_exhaustion_is_stack_overflow(self, host_recursion_limit):
        session = Session(out=io.StringIO(), max_call_depth=100_000)
        interpreter = session.interpreter
        host_recursion_limit(1000)
        with pytest.raises(EvalError) as exc_info:
            session.run("fun f() { f(); } f();")
        assert exc_info.value.message == "Stack overflow."
        assert interpreter._call_depth == 0


class TestNatives:
    def test_clock_returns_number(self, run_source):
        assert run_source("print clock() > 0;") == ["true"]

    def test_clock_arity(self, run_source):
        err = _fails(run_source, "clock(1);")
        assert err.message == "Expected 0 arguments but got 1."

    def test_clock_can_be_shadowed(self, run_source):
        assert run_source("var clock = 1; print clock;") == ["1"]

