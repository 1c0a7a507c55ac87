import pytest
from conftest import make_skill

from switchboard.config import Settings
from switchboard.errors import OperationConflictError
from switchboard.skills import SkillRegistry


def test_register_same_name_replaces_and_warns(monkeypatch, settings: Settings) -> None:
    warnings: list[str] = []
    monkeypatch.setattr(
        "switchboard.skills.registry.logger.warning", lambda message, *args: warnings.append(message)
    )
    registry = SkillRegistry()
    registry.register(make_skill("math", {"old_op": lambda _p: "old"}))
    registry.register(make_skill("math", {"new_op": lambda _p: "new"}))

    assert [op.name for op in registry.operations(settings)] == ["new_op"]
    assert warnings == ["skill.registry.overwrite name={}"]


def test_unavailable_skills_are_hidden(settings: Settings) -> None:
    registry = SkillRegistry()
    registry.register(make_skill("always", {"a": lambda _p: "a"}))
    registry.register(make_skill("never", {"b": lambda _p: "b"}, available=lambda _s: False))

    assert [entry["name"] for entry in registry.skills_index(settings)] == ["always"]
    assert list(registry.operation_map(settings)) == ["a"]
    assert registry.has("never")
    assert not registry.is_available("never", settings)
    assert not registry.is_available("missing", settings)


def test_failing_availability_check_excludes_skill(settings: Settings) -> None:
    def _boom(_settings: Settings) -> bool:
        raise RuntimeError("broken check")

    registry = SkillRegistry()
    registry.register(make_skill("flaky", {"x": lambda _p: "x"}, available=_boom))
    registry.register(make_skill("stable", {"y": lambda _p: "y"}))

    assert [skill.metadata().name for skill in registry.available_skills(settings)] == ["stable"]


def test_disabled_skills_setting_filters_case_insensitively(tmp_path) -> None:
    settings = Settings(_env_file=None, home=tmp_path, disabled_skills={"Calculator"})  # type: ignore[call-arg]
    registry = SkillRegistry()
    registry.register(make_skill("calculator", {"calc": lambda _p: "1"}))

    assert registry.available_skills(settings) == []


def test_availability_is_reevaluated_on_every_query(settings: Settings) -> None:
    token = settings.google_token_path
    registry = SkillRegistry()
    registry.register(make_skill("mail", {"read_inbox": lambda _p: "inbox"}, available=lambda s: s.has_google_token()))

    assert registry.operation_map(settings) == {}

    token.parent.mkdir(parents=True, exist_ok=True)
    token.write_text("{}", encoding="utf-8")

    assert list(registry.operation_map(settings)) == ["read_inbox"]


@pytest.mark.asyncio
async def test_duplicate_operation_name_last_registration_wins(monkeypatch, settings: Settings) -> None:
    warnings: list[str] = []
    monkeypatch.setattr(
        "switchboard.skills.registry.logger.warning", lambda message, *args: warnings.append(message)
    )
    registry = SkillRegistry()
    registry.register(make_skill("first", {"search": lambda _p: "first"}))
    registry.register(make_skill("second", {"search": lambda _p: "second"}))

    mapping = registry.operation_map(settings)

    assert await mapping["search"].invoke({}) == "second"
    assert "skill.registry.operation_shadowed name={} previous={} current={}" in warnings


def test_duplicate_operation_name_raises_in_strict_mode(settings: Settings) -> None:
    registry = SkillRegistry(strict_operation_names=True)
    registry.register(make_skill("first", {"search": lambda _p: "first"}))
    registry.register(make_skill("second", {"search": lambda _p: "second"}))

    with pytest.raises(OperationConflictError) as exc_info:
        registry.operation_map(settings)
    assert exc_info.value.first == "first"
    assert exc_info.value.second == "second"


def test_combined_instructions_joins_non_empty_blocks(settings: Settings) -> None:
    registry = SkillRegistry()
    registry.register(make_skill("a", {"a": lambda _p: ""}, instructions="Use a carefully."))
    registry.register(make_skill("b", {"b": lambda _p: ""}))
    registry.register(make_skill("c", {"c": lambda _p: ""}, instructions="  Use c last.  "))

    assert registry.combined_instructions(settings) == "Use a carefully.\n\nUse c last."


def test_combined_instructions_empty_when_no_skills(settings: Settings) -> None:
    assert SkillRegistry().combined_instructions(settings) == ""


def test_skills_index_keeps_registration_order(settings: Settings) -> None:
    registry = SkillRegistry()
    for name in ("zeta", "alpha", "mid"):
        registry.register(make_skill(name, {f"{name}_op": lambda _p: ""}))

    index = registry.skills_index(settings)

    assert [entry["name"] for entry in index] == ["zeta", "alpha", "mid"]
    assert index[0] == {"name": "zeta", "description": "zeta skill", "icon": "🧩"}


def test_unregister_reports_whether_skill_existed(settings: Settings) -> None:
    registry = SkillRegistry()
    registry.register(make_skill("temp", {"t": lambda _p: ""}))
    assert registry.unregister("temp") is True
    assert registry.unregister("temp") is False
    assert registry.skills() == []
