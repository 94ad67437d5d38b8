"""Tests for function dispatch, arity and the type-check-then-evaluate discipline."""

import pytest

from clyde.errors import TypeCheckError, UnknownFunctionError
from clyde.functions import FUNCTIONS, Arity, Function, lookup_function
from clyde.parsing.query_parser import Apply, Identifier, VoidExpr
from clyde.types import VOID, Value


class Recorder(Function):
    """Counts how often each rule runs."""

    NAME = "record"

    def __init__(self, arity=Arity.NONE):
        self.ARITY = arity
        self.typed = 0
        self.evaluated = 0

    def ty(self, interp, lhs, args):
        self.typed += 1
        return VOID

    def eval(self, interp, lhs, args):
        self.evaluated += 1
        return Value.void()


class RejectsEverything(Recorder):
    NAME = "reject"

    def ty(self, interp, lhs, args):
        self.typed += 1
        raise TypeCheckError("rejected")


def call(n_args):
    return Apply(Identifier("record"), VoidExpr(), tuple(VoidExpr() for _ in range(n_args)))


class TestArity:
    """Tests for argument count checks."""

    def test_str(self):
        assert str(Arity.NONE) == "0"
        assert str(Arity.exactly(2)) == "2"
        assert str(Arity.at_least(1)) == "1 or more"

    def test_none(self):
        Arity.NONE.check([])
        with pytest.raises(TypeCheckError, match="Incorrect arguments, expected: 0, found 1"):
            Arity.NONE.check([VoidExpr()])

    def test_exactly(self):
        Arity.exactly(2).check([VoidExpr(), VoidExpr()])
        with pytest.raises(TypeCheckError, match="expected: 2, found 3"):
            Arity.exactly(2).check([VoidExpr()] * 3)

    def test_at_least(self):
        Arity.at_least(1).check([VoidExpr()] * 3)
        with pytest.raises(TypeCheckError, match="expected: 1 or more, found 0"):
            Arity.at_least(1).check([])


class TestApply:
    """Tests for Function.apply."""

    def test_arity_checked_before_anything(self, env):
        fn = Recorder()
        with pytest.raises(TypeCheckError, match="Incorrect arguments"):
            fn.apply(env.interpreter, call(1))
        assert fn.typed == 0
        assert fn.evaluated == 0

    def test_type_then_eval(self, env):
        fn = Recorder(Arity.exactly(2))
        fn.apply(env.interpreter, call(2))
        assert fn.typed == 1
        assert fn.evaluated == 1

    def test_type_error_skips_eval(self, env):
        fn = RejectsEverything()
        with pytest.raises(TypeCheckError, match="rejected"):
            fn.apply(env.interpreter, call(0))
        assert fn.typed == 1
        assert fn.evaluated == 0

    def test_type_of_does_not_eval(self, env):
        fn = Recorder()
        assert fn.type_of(env.interpreter, call(0)) == VOID
        assert fn.evaluated == 0


class TestDispatch:
    """Tests for the function table."""

    def test_builtins(self):
        assert set(FUNCTIONS) == {"show", "select", "select*", "idents", "pick", "def", "count", "name"}

    def test_lookup(self):
        assert lookup_function("show").NAME == "show"
        assert lookup_function("select", many=True).many

    def test_unknown(self):
        with pytest.raises(UnknownFunctionError, match="Unknown function: `frob`"):
            lookup_function("frob")

    def test_star_only_for_select(self):
        with pytest.raises(UnknownFunctionError, match="`show\\*`"):
            lookup_function("show", many=True)


class TestTypeErrorsNeverReachBackend:
    """A statement that fails to type-check must not call the backend at all."""

    @pytest.mark.parametrize(
        "statement",
        [
            "(:foo.rs) -> idents -> idents -> show",
            "(:foo.rs) -> def -> show",
            "(:foo.rs) -> name -> show",
            "(:foo.rs:2) -> idents -> frob",
            "select ()",
            "count ()",
            "pick ()",
            "show $ $",
        ],
    )
    def test_no_backend_calls(self, env, backend, statement):
        with pytest.raises((TypeCheckError, UnknownFunctionError)):
            env.run(statement)
        assert backend.calls == []
        assert env.backend_requests == 0
        assert env.shown == []

    def test_arity_error_from_source(self, env):
        """The arity check happens before `$` is looked up in the (empty) history."""
        with pytest.raises(TypeCheckError, match="Incorrect arguments, expected: 0, found 1"):
            env.run("show $ $")
