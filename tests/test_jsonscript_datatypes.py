import pytest

from jsonscript.jsonscript_datatypes import (
    Scope, RawValue, Path, Name, Index, This, LastValue, Variables,
    ExecutionContext, PathSyntaxError, parse_path, is_raw_value, unwrap_raw
)

# --- Scope Tests ---

def test_scope_init():
    parent = Scope()
    child = Scope(parent=parent)
    assert child.parent is parent
    assert not child.bindings
    assert Scope().parent is None


def test_scope_wraps_given_bindings_in_place():
    data = {"a": 1}
    scope = Scope(bindings=data)
    scope["b"] = 2
    assert data == {"a": 1, "b": 2}


def test_scope_setitem_getitem_str_key():
    scope = Scope()
    scope["a"] = 1
    assert scope["a"] == 1
    with pytest.raises(KeyError):
        _ = scope["b"]
    with pytest.raises(TypeError):
        scope[1] = "x"


def test_scope_prototype_chain_lookup():
    parent = Scope()
    parent["a"] = 100
    parent["b"] = 200

    child = Scope(parent=parent)
    child["b"] = 20  # shadow parent

    assert child["a"] == 100  # from parent
    assert child["b"] == 20   # from child
    assert parent["b"] == 200  # parent is unchanged
    assert child.get("c", "default") == "default"
    assert "a" in child and "c" not in child


def test_scope_writes_never_reach_parent():
    parent = Scope()
    parent["a"] = 1
    child = Scope(parent=parent)
    child["a"] = 2
    assert parent["a"] == 1
    assert child.find_owner("a") is child
    assert list(child.keys()) == ["a"]


def test_scope_delitem_does_not_affect_parent():
    parent = Scope()
    parent["a"] = 100
    child = Scope(parent=parent)
    child["a"] = 10

    del child["a"]
    assert "a" not in child.bindings
    assert child["a"] == 100
    with pytest.raises(KeyError):
        del child["a"]


# --- Raw values ---

def test_raw_value_detection():
    assert is_raw_value(5)
    assert is_raw_value({"a": [1]})
    assert is_raw_value(RawValue([1, 2]))
    assert not is_raw_value([])
    assert not is_raw_value(["get", "a"])


def test_unwrap_raw_preserves_identity():
    payload = ["get", "a"]
    assert unwrap_raw(RawValue(payload)) is payload
    assert unwrap_raw(payload) is payload
    assert RawValue([1]) == RawValue([1])


# --- Execution context ---

def test_execution_context_derive_copies():
    ctx = ExecutionContext(this={}, variables=Scope(), last_value=1)
    derived = ctx.derive(last_value=2)
    assert derived.this is ctx.this
    assert derived.variables is ctx.variables
    assert ctx.last_value == 1 and derived.last_value == 2


# --- Paths ---

@pytest.mark.parametrize(
    "text,root,segments",
    [
        ("a", Variables, [Name("a")]),
        ("a.b.c", Variables, [Name("a"), Name("b"), Name("c")]),
        ("this", This, []),
        ("this.a", This, [Name("a")]),
        ("this[0]", This, [Index(0)]),
        ("$", LastValue, []),
        ("$.then", LastValue, [Name("then")]),
        ("$[1]", LastValue, [Index(1)]),
        ("$name", Variables, [Name("$name")]),
        ("thisOne", Variables, [Name("thisOne")]),
        ("a[0].b", Variables, [Name("a"), Index(0), Name("b")]),
        ("a.0", Variables, [Name("a"), Index(0)]),
        ('a["b.c"]', Variables, [Name("a"), Name("b.c")]),
        ("a['x']", Variables, [Name("a"), Name("x")]),
        ("a[key]", Variables, [Name("a"), Name("key")]),
        ('["this"]', Variables, [Name("this")]),
        ("[0]", Variables, [Index(0)]),
        ("resolvedValue[1]", Variables, [Name("resolvedValue"), Index(1)]),
        ("my-var", Variables, [Name("my-var")]),
    ],
)
def test_parse_path(text, root, segments):
    path = parse_path(text)
    assert path.root is root
    assert list(path.segments) == segments
    assert str(path) == text


@pytest.mark.parametrize("text", ["", ".a", "a.", "a..b", "a[", "a[0", "a]b", "a[0]b", 5, None])
def test_parse_path_rejects_malformed(text):
    with pytest.raises(PathSyntaxError):
        parse_path(text)


def test_path_parent():
    assert parse_path("a").parent() is None
    assert parse_path("this").parent() is None
    assert parse_path("a.b.c").parent() == parse_path("a.b")
    this_parent = parse_path("this.method").parent()
    assert this_parent.root is This and this_parent.segments == ()
    assert parse_path("$.then").parent() == parse_path("$")


def test_path_equality_and_hash():
    assert parse_path("a[0]") == parse_path("a.0")
    assert hash(parse_path("a[0]")) == hash(parse_path("a.0"))
    assert parse_path("this.a") != parse_path("a")
