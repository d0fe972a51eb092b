from __future__ import annotations

from modal_engine.keymaps import (
    Binding,
    KeySequence,
    KeymapRegistry,
    KeymapResolver,
    SingleCommand,
)


def make_binding(
    binding_id: str,
    *,
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


def build_registry(bindings: list[Binding]) -> KeymapRegistry:
    registry = KeymapRegistry()
    for binding in bindings:
        registry.register_binding(binding)
    return registry


def test_resolver_matches_exact_sequence() -> None:
    binding = make_binding("normal.gg")
    resolver = KeymapResolver(build_registry([binding]))

    result = resolver.resolve("normal", ("g", "g"))

    assert result.status == "match"
    assert result.match is not None
    assert result.match.binding.id == binding.id
    assert result.match.tier == "mode"
    assert result.consumed == 2


def test_resolver_reports_pending_for_prefix() -> None:
    resolver = KeymapResolver(
        build_registry([make_binding("normal.gg"), make_binding("normal.gd", keys="gd")])
    )

    result = resolver.resolve("normal", ("g",))

    assert result.status == "pending"
    assert result.next_expected == ("d", "g")


def test_resolver_misses_unknown_sequence() -> None:
    resolver = KeymapResolver(build_registry([make_binding("normal.gg")]))

    assert resolver.resolve("normal", ("z",)).status == "miss"
    assert resolver.resolve("visual", ("g", "g")).status == "miss"


def test_mode_binding_wins_over_default_scope() -> None:
    registry = build_registry(
        [
            make_binding("any.x", keys="x", modes=None, command="default.command"),
            make_binding("normal.x", keys="x", command="normal.command"),
        ]
    )
    resolver = KeymapResolver(registry)

    in_normal = resolver.resolve("normal", ("x",))
    in_visual = resolver.resolve("visual", ("x",))

    assert in_normal.match is not None and in_normal.match.binding.id == "normal.x"
    assert in_visual.match is not None and in_visual.match.tier == "default"


def test_default_scope_is_inactive_in_insert() -> None:
    resolver = KeymapResolver(
        build_registry([make_binding("any.x", keys="x", modes=None)])
    )

    assert resolver.resolve("insert", ("x",)).status == "miss"
    assert resolver.resolve("some-user-mode", ("x",)).status == "match"


def test_pending_collects_next_keys_from_both_tiers() -> None:
    registry = build_registry(
        [
            make_binding("any.ga", keys="ga", modes=None),
            make_binding("normal.gb", keys="gb"),
        ]
    )
    resolver = KeymapResolver(registry)

    result = resolver.resolve("normal", ("g",))

    assert result.status == "pending"
    assert result.next_expected == ("a", "b")


def test_resolver_rebuilds_after_registry_change() -> None:
    registry = build_registry([make_binding("normal.gg")])
    resolver = KeymapResolver(registry)
    assert resolver.resolve("normal", ("x",)).status == "miss"

    registry.register_binding(make_binding("normal.x", keys="x"))

    assert resolver.resolve("normal", ("x",)).status == "match"


def test_named_keys_are_normalized() -> None:
    resolver = KeymapResolver(
        build_registry([make_binding("normal.esc", keys="<Esc>")])
    )

    result = resolver.resolve("normal", ("<escape>",))

    assert result.status == "match"
