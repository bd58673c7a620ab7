"""Tests for vmgr.core.result module."""

import pytest

from vmgr.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    """Tests for Ok type."""

    def test_ok_is_ok(self) -> None:
        """Ok.is_ok() returns True and is_err() False."""
        result = Ok(42)
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_ok_unwrap(self) -> None:
        """Ok.unwrap() returns the value."""
        assert Ok("21.0.2").unwrap() == "21.0.2"

    def test_ok_unwrap_or(self) -> None:
        """Ok.unwrap_or() ignores the default."""
        assert Ok(42).unwrap_or(0) == 42

    def test_ok_map(self) -> None:
        """Ok.map() transforms the value."""
        assert Ok(21).map(lambda x: x * 2) == Ok(42)

    def test_ok_map_err(self) -> None:
        """Ok.map_err() returns self unchanged."""
        assert Ok(42).map_err(lambda e: f"error: {e}") == Ok(42)


class TestErr:
    """Tests for Err type."""

    def test_err_is_err(self) -> None:
        """Err.is_err() returns True and is_ok() False."""
        result = Err("boom")
        assert result.is_err() is True
        assert result.is_ok() is False

    def test_err_unwrap_raises(self) -> None:
        """Err.unwrap() raises ValueError naming the error."""
        with pytest.raises(ValueError, match="called unwrap on Err: boom"):
            Err("boom").unwrap()

    def test_err_unwrap_or(self) -> None:
        """Err.unwrap_or() returns the default."""
        assert Err("boom").unwrap_or(7) == 7

    def test_err_map(self) -> None:
        """Err.map() leaves the error untouched."""
        assert Err("boom").map(lambda x: x * 2) == Err("boom")

    def test_err_map_err(self) -> None:
        """Err.map_err() transforms the error."""
        assert Err("boom").map_err(str.upper) == Err("BOOM")


class TestTypeGuards:
    """Tests for is_ok() and is_err()."""

    def test_guards(self) -> None:
        """Guards agree with the concrete type."""
        ok: Result[int, str] = Ok(1)
        err: Result[int, str] = Err("x")
        assert is_ok(ok) and not is_err(ok)
        assert is_err(err) and not is_ok(err)

    def test_pattern_matching(self) -> None:
        """Results destructure in match statements."""
        result: Result[int, str] = Err("nope")
        match result:
            case Ok(value):
                found = f"ok {value}"
            case Err(error):
                found = f"err {error}"
        assert found == "err nope"

    def test_repr(self) -> None:
        """repr shows the wrapped value."""
        assert repr(Ok("a")) == "Ok('a')"
        assert repr(Err(3)) == "Err(3)"
