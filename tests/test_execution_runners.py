# tests/test_execution_runners.py

from __future__ import annotations

from execution.errors import NavigationFailure, WorldInconsistency
from execution.plan import Step, StepKind, StepOutcome
from execution.runners import AttackRunner
from world.types import EntityInfo, Position

from fakes.sim_helpers import drive, flat_world


def attack_step(entity_id: str) -> Step:
    return Step(kind=StepKind.ATTACK, label=f"attack {entity_id}", params={"entity_id": entity_id})


def test_attack_closes_in_and_hits():
    world = flat_world()
    world.spawn(EntityInfo(id="z1", kind="zombie", position=Position(6, 64, 0)))

    runner = drive(AttackRunner(world)(attack_step("z1")), world)

    assert runner.error is None
    assert runner.value is StepOutcome.DONE
    assert [name for name, _ in world.action_log] == ["move_near", "attack"]
    assert world.nearby_entities(30.0)[0].health < 20.0


def test_missed_attack_is_a_world_inconsistency():
    world = flat_world()
    world.spawn(EntityInfo(id="z1", kind="zombie", position=Position(2, 64, 0)))
    world.fail_next["attack"] = 1

    runner = drive(AttackRunner(world)(attack_step("z1")), world)

    assert isinstance(runner.error, WorldInconsistency)
    assert not isinstance(runner.error, NavigationFailure)


def test_gone_target_needs_no_action():
    world = flat_world()

    runner = drive(AttackRunner(world)(attack_step("z1")), world)

    assert runner.value is StepOutcome.DONE
    assert world.action_log == []
