import pytest

from modal_engine.keymaps import (
    ActionRef,
    Binding,
    KeySequence,
    KeymapConflictError,
    KeymapRegistry,
    SingleCommand,
)
from modal_engine.keymaps.defaults import DEFAULT_ACTIONS, load_default_keymaps


def make_action(action_id: str = "test.command") -> ActionRef:
    return ActionRef(id=action_id, handler=lambda *args, **kwargs: None)


def make_binding(
    *,
    binding_id: str,
    keys: str = "gg",
    modes: tuple[str, ...] | None = ("normal",),
    command: str = "test.command",
) -> Binding:
    return Binding(
        id=binding_id,
        sequence=KeySequence.parse(keys),
        command=SingleCommand(command),
        modes=modes,
    )


def test_register_binding_success() -> None:
    registry = KeymapRegistry()
    registry.register_action(make_action())
    binding = make_binding(binding_id="normal.gg")

    registry.register_binding(binding)

    assert registry.stats().binding_count == 1
    assert list(registry.iter_bindings("normal")) == [binding]


def test_register_binding_duplicate_detection() -> None:
    registry = KeymapRegistry()
    registry.register_binding(make_binding(binding_id="normal.gg"))

    with pytest.raises(KeymapConflictError) as excinfo:
        registry.register_binding(make_binding(binding_id="normal.gg.duplicate"))

    assert excinfo.value.kind == "duplicate"


def test_register_binding_prefix_conflict_always_raises() -> None:
    registry = KeymapRegistry()
    registry.register_binding(make_binding(binding_id="normal.d", keys="d"))

    with pytest.raises(KeymapConflictError) as excinfo:
        registry.register_binding(make_binding(binding_id="normal.dd", keys="dd"), replace=True)

    assert excinfo.value.kind == "prefix"
    assert [b.id for b in excinfo.value.conflicts] == ["normal.d"]


def test_prefix_conflict_ignores_disjoint_modes() -> None:
    registry = KeymapRegistry()
    registry.register_binding(make_binding(binding_id="normal.d", keys="d"))
    registry.register_binding(
        make_binding(binding_id="visual.dd", keys="dd", modes=("visual",))
    )

    assert registry.stats().binding_count == 2


def test_default_scope_never_overlaps_insert() -> None:
    registry = KeymapRegistry()
    registry.register_binding(make_binding(binding_id="any.j", keys="j", modes=None))
    registry.register_binding(
        make_binding(binding_id="insert.jk", keys="jk", modes=("insert",))
    )

    assert registry.stats().scopes == ("__all__", "insert")


def test_replace_narrows_existing_multi_mode_binding() -> None:
    registry = KeymapRegistry()
    registry.register_binding(
        make_binding(binding_id="shared.x", keys="x", modes=("normal", "visual"))
    )

    registry.register_binding(
        make_binding(binding_id="normal.x", keys="x", command="other.command"),
        replace=True,
    )

    assert registry.get_binding("shared.x").modes == ("visual",)
    assert [b.id for b in registry.iter_bindings("normal")] == ["normal.x"]


def test_replace_removes_binding_left_without_modes() -> None:
    registry = KeymapRegistry()
    registry.register_binding(make_binding(binding_id="first", keys="x"))

    registry.register_binding(make_binding(binding_id="second", keys="x"), replace=True)

    assert [b.id for b in registry.iter_bindings()] == ["second"]


def test_unregister_binding_bumps_revision() -> None:
    registry = KeymapRegistry()
    binding = make_binding(binding_id="binding")
    registry.register_binding(binding)
    before = registry.revision()

    removed = registry.unregister_binding("binding")

    assert removed == binding
    assert registry.stats().binding_count == 0
    assert registry.revision() == before + 1
    assert registry.unregister_binding("binding") is None


def test_register_action_rejects_duplicates_without_replace() -> None:
    registry = KeymapRegistry()
    registry.register_action(make_action())

    with pytest.raises(ValueError):
        registry.register_action(make_action())

    replacement = make_action()
    assert registry.register_action(replacement, replace=True) is replacement


def test_get_action_unknown_raises_key_error() -> None:
    registry = KeymapRegistry()

    with pytest.raises(KeyError):
        registry.get_action("missing")
    assert registry.find_action("missing") is None


def test_load_default_keymaps_registers_builtin_commands() -> None:
    registry = KeymapRegistry()

    load_default_keymaps(registry)

    assert registry.stats().action_count == len(DEFAULT_ACTIONS)
    assert registry.find_action("modal.search") is not None
    escape = registry.get_binding("insert.enterNormal")
    assert escape.sequence.tokens == ("<escape>",)
    assert escape.command == SingleCommand("modal.enterNormal")


def test_load_default_keymaps_is_idempotent() -> None:
    registry = KeymapRegistry()

    load_default_keymaps(registry)
    count = registry.stats().binding_count
    load_default_keymaps(registry)

    assert registry.stats().binding_count == count
