from datetime import datetime, timedelta, timezone
import random
import threading

import pytest

from fleetops.settings import DEFAULT_STAGE_DURATIONS_S
from fleetops.sim.entities import STAGE_SEQUENCE, InvalidTransition, Mission
from fleetops.sim.simulation import FleetSimulation


UNIT_DURATIONS = {stage: 1.0 for stage in STAGE_SEQUENCE}


def _simulation(clock, fleet_size=3, batch_size=1, durations=None):
    return FleetSimulation.create(
        fleet_size=fleet_size,
        stage_durations_s=durations or UNIT_DURATIONS,
        batch_size=batch_size,
        clock=clock,
    )


def _assert_binding_invariant(sim):
    for robot in sim.robots():
        assert (robot.status == "idle") == (robot.current_mission_id is None), robot


def test_end_to_end_single_mission(clock):
    sim = _simulation(clock, fleet_size=3, batch_size=1)

    created = sim.create_missions()
    assert len(created) == 1
    mission = sim.missions.get(created[0].id)
    robot = sim.registry.get(mission.assigned_robot_id)
    assert mission.current_stage == "preparation"
    assert robot.status == "assigned"
    assert robot.current_mission_id == mission.id

    for _ in range(4):
        clock.tick(1)
        sim.advance()
        _assert_binding_invariant(sim)

    robot = sim.registry.get(mission.assigned_robot_id)
    assert mission.current_stage == "completed"
    assert robot.status == "idle"
    assert robot.current_mission_id is None
    assert sim.stats()["completed_missions"] == 1


def test_robot_status_follows_stage_table(clock):
    sim = _simulation(clock, fleet_size=1)
    mission = sim.create_missions()[0]

    seen = [sim.registry.get("robot-1").status]
    for _ in range(4):
        clock.tick(1)
        sim.advance()
        seen.append(sim.registry.get("robot-1").status)

    assert seen == ["assigned", "en_route", "delivering", "completed", "idle"]
    assert sim.missions.get(mission.id).current_stage == "completed"


def test_nothing_advances_before_stage_duration(clock):
    sim = _simulation(clock, fleet_size=1, durations=DEFAULT_STAGE_DURATIONS_S)
    mission = sim.create_missions()[0]

    clock.tick(29.999)
    assert sim.advance() == 0
    assert mission.current_stage == "preparation"

    clock.tick(0.001)
    assert sim.advance() == 1
    assert mission.current_stage == "travel"
    assert mission.stage_start_time == clock.now


@pytest.mark.parametrize("offset_s", [0.0, 0.5, 4.0, 9.9])
def test_stage_completion_is_observed_within_one_tick(clock, offset_s):
    tick_s = 10.0
    base = clock.now
    sim = _simulation(clock, fleet_size=1, durations=DEFAULT_STAGE_DURATIONS_S)
    clock.tick(offset_s)
    mission = sim.create_missions()[0]

    entered = [(mission.current_stage, clock.now)]
    released_at = None
    for k in range(1, 100):
        clock.now = base + timedelta(seconds=k * tick_s)
        sim.advance()
        if mission.current_stage != entered[-1][0]:
            entered.append((mission.current_stage, clock.now))
        if sim.registry.get("robot-1").current_mission_id is None:
            released_at = clock.now
            break

    assert [stage for stage, _ in entered] == list(STAGE_SEQUENCE)
    assert released_at is not None
    exits = [at for _, at in entered[1:]] + [released_at]
    for (stage, started), ended in zip(entered, exits):
        observed = (ended - started).total_seconds()
        nominal = DEFAULT_STAGE_DURATIONS_S[stage]
        assert nominal <= observed < nominal + tick_s, (stage, observed)


def test_cancel_twice_is_true_then_false(clock):
    sim = _simulation(clock, fleet_size=2)
    mission = sim.create_missions()[0]

    assert sim.cancel(mission.assigned_robot_id) is True
    robot_after_first = sim.registry.get(mission.assigned_robot_id)
    stats_after_first = sim.stats()

    clock.tick(5)
    assert sim.cancel(mission.assigned_robot_id) is False
    assert sim.registry.get(mission.assigned_robot_id) == robot_after_first
    assert sim.stats() == stats_after_first
    assert mission.current_stage == "cancelled"


def test_cancel_unknown_or_idle_robot_is_refused(clock):
    sim = _simulation(clock, fleet_size=2)
    assert sim.cancel("robot-404") is False
    assert sim.cancel("robot-2") is False
    assert sim.stats()["cancelled_missions"] == 0


def test_cancel_mid_travel_is_never_overwritten_by_advance(clock):
    sim = _simulation(clock, fleet_size=1, durations=DEFAULT_STAGE_DURATIONS_S)
    mission = sim.create_missions()[0]
    clock.tick(30)
    sim.advance()
    assert mission.current_stage == "travel"

    clock.tick(150)
    assert sim.cancel("robot-1") is True
    sim.advance()

    robot = sim.registry.get("robot-1")
    assert mission.current_stage == "cancelled"
    assert robot.status == "idle"
    assert robot.current_mission_id is None

    clock.tick(1000)
    sim.advance()
    assert mission.current_stage == "cancelled"


def test_cancel_waits_for_in_flight_advance(clock):
    sim = _simulation(clock, fleet_size=1, durations=DEFAULT_STAGE_DURATIONS_S)
    mission = sim.create_missions()[0]
    clock.tick(30)
    sim.advance()
    clock.tick(150)

    results = {}
    worker = threading.Thread(target=lambda: results.update(cancelled=sim.cancel("robot-1")))
    engine_clock = sim.engine.clock
    hooked = threading.Event()

    def clock_that_races():
        if not hooked.is_set():
            hooked.set()
            worker.start()
            worker.join(timeout=0.05)
            results["blocked"] = worker.is_alive()
        return engine_clock()

    sim.engine.clock = clock_that_races
    sim.advance()
    worker.join(timeout=5)

    assert results["blocked"] is True
    assert results["cancelled"] is True
    assert mission.current_stage == "cancelled"
    assert sim.registry.get("robot-1").status == "idle"


def test_cancelled_mission_cannot_transition():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    mission = Mission(
        id="m-1",
        assigned_robot_id="robot-1",
        current_stage="cancelled",
        created_at=now,
        stage_start_time=now,
    )
    with pytest.raises(InvalidTransition):
        mission.transition("delivery", now)


def test_stages_cannot_be_skipped(clock):
    sim = _simulation(clock, fleet_size=1)
    mission = sim.create_missions()[0]
    with pytest.raises(InvalidTransition):
        mission.transition("delivery", clock.now)


def test_random_cancellations_keep_invariants(clock):
    rng = random.Random(7)
    sim = _simulation(clock, fleet_size=20, batch_size=2, durations=DEFAULT_STAGE_DURATIONS_S)
    history: dict[str, list[str]] = {}

    for step in range(400):
        clock.tick(10)
        if step % 6 == 0:
            sim.create_missions()
        if rng.random() < 0.2:
            sim.cancel(f"robot-{rng.randint(1, 20)}")
        sim.advance()
        _assert_binding_invariant(sim)
        for mission in sim.mission_list():
            stages = history.setdefault(mission.id, [])
            if not stages or stages[-1] != mission.current_stage:
                stages.append(mission.current_stage)

    bound = [r.current_mission_id for r in sim.robots() if r.current_mission_id is not None]
    assert len(bound) == len(set(bound))
    for mission_id, stages in history.items():
        delivered = [s for s in stages if s != "cancelled"]
        assert delivered == list(STAGE_SEQUENCE[: len(delivered)]), mission_id
        if "cancelled" in stages:
            assert stages[-1] == "cancelled"
