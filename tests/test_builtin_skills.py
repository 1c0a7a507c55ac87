import asyncio
import time
from datetime import UTC, datetime

import pytest

from switchboard.config import Settings
from switchboard.profile import ProfileStore
from switchboard.skills.builtin import CalculatorSkill, DateTimeSkill, UserProfileSkill
from switchboard.skills.builtin.calculator import evaluate


def _operation(skill, name: str, settings: Settings):
    operations = {operation.name: operation for operation in skill.operations(settings)}
    return operations[name]


def test_builtin_metadata_comes_from_skill_files() -> None:
    calculator = CalculatorSkill().metadata()
    clock = DateTimeSkill().metadata()

    assert calculator.name == "calculator"
    assert calculator.icon == "🔢"
    assert clock.name == "datetime"
    assert "get_datetime" in DateTimeSkill().instructions()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("2+2", "Result: 4"),
        ("15% of 200", "Result: 30"),
        ("sqrt(16)", "Result: 4"),
        ("2^10", "Result: 1024"),
        ("7 / 2", "Result: 3.5"),
    ],
)
async def test_calculator_evaluates_expressions(settings: Settings, expression: str, expected: str) -> None:
    calculator = _operation(CalculatorSkill(), "calculator", settings)
    assert await calculator.invoke({"expression": expression}) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("expression", ["__import__('os')", "1/0", "2 +", "open('x')"])
async def test_calculator_reports_errors_as_text(settings: Settings, expression: str) -> None:
    calculator = _operation(CalculatorSkill(), "calculator", settings)
    output = await calculator.invoke({"expression": expression})
    assert output.startswith("Error evaluating expression:")


def test_calculator_rejects_huge_exponents() -> None:
    with pytest.raises(ValueError, match="exponent too large"):
        evaluate("2 ** 100000")


@pytest.mark.asyncio
async def test_datetime_uses_city_aliases(settings: Settings) -> None:
    fixed = datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)
    get_datetime = _operation(DateTimeSkill(now=lambda: fixed), "get_datetime", settings)

    output = await get_datetime.invoke({"timezone": "Tokyo", "format": "time"})

    assert output == "21:00:00 (Asia/Tokyo)"


@pytest.mark.asyncio
async def test_datetime_invalid_timezone_is_reported(settings: Settings) -> None:
    get_datetime = _operation(DateTimeSkill(), "get_datetime", settings)

    output = await get_datetime.invoke({"timezone": "Mars/Olympus_Mons"})

    assert output.startswith("Error getting datetime:")
    assert output.endswith("Make sure the timezone is valid.")


@pytest.mark.asyncio
async def test_profile_operations_share_one_store(settings: Settings, tmp_path) -> None:
    store = ProfileStore(tmp_path / "profile.json")
    skill = UserProfileSkill(store=store)

    update = _operation(skill, "update_profile_field", settings)
    remember = _operation(skill, "add_user_memory", settings)
    read = _operation(skill, "get_user_profile", settings)

    assert await update.invoke({"key": "name", "value": "Ada"}) == "Successfully updated user profile: name = Ada"
    assert await remember.invoke({"memory": "Uses VS Code"}) == "Added new memory about the user."
    assert await remember.invoke({"memory": "Uses VS Code"}) == "Memory already exists."

    profile = store.load()
    assert profile == {"memories": ["Uses VS Code"], "name": "Ada"}
    assert '"name": "Ada"' in await read.invoke({})


def test_profile_store_refuses_to_overwrite_memories(tmp_path) -> None:
    store = ProfileStore(tmp_path / "profile.json")
    assert "Cannot overwrite 'memories'" in store.update_field("memories", "oops")
    assert store.load() == {"memories": []}


def test_profile_store_recovers_from_corrupt_file(tmp_path) -> None:
    path = tmp_path / "profile.json"
    path.write_text("{not json", encoding="utf-8")
    assert ProfileStore(path).load() == {"memories": []}


def test_profile_skill_defaults_to_settings_path(settings: Settings) -> None:
    skill = UserProfileSkill()
    remember = _operation(skill, "add_user_memory", settings)
    assert remember.name == "add_user_memory"
    assert not settings.profile_path.exists()


@pytest.mark.asyncio
async def test_concurrent_memories_from_separate_turns_are_all_kept(monkeypatch, settings: Settings) -> None:
    original_load = ProfileStore.load

    def _slow_load(self: ProfileStore) -> dict:
        profile = original_load(self)
        time.sleep(0.05)
        return profile

    monkeypatch.setattr(ProfileStore, "load", _slow_load)
    skill = UserProfileSkill()
    first_turn = _operation(skill, "add_user_memory", settings)
    second_turn = _operation(skill, "add_user_memory", settings)

    await asyncio.gather(
        first_turn.invoke({"memory": "likes tea"}),
        second_turn.invoke({"memory": "lives in Paris"}),
    )

    memories = ProfileStore.for_path(settings.profile_path).load()["memories"]
    assert sorted(memories) == ["likes tea", "lives in Paris"]


def test_profile_store_is_shared_per_path(tmp_path) -> None:
    path = tmp_path / "profile.json"
    assert ProfileStore.for_path(path) is ProfileStore.for_path(tmp_path / "." / "profile.json")
    assert ProfileStore.for_path(path) is not ProfileStore.for_path(tmp_path / "other.json")
