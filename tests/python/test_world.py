from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from helpers import FakeClock, add_food, add_herbivore, empty_world
from pasture.sim.core.config import SimulationConfig
from pasture.sim.core.herbivore import HerbivoreState
from pasture.sim.core.world import World
from pasture.sim.systems import reproduction

FRAME = 1.0 / 60.0


def run_steps(config: SimulationConfig, steps: int):
    clock = FakeClock()
    world = World(config, clock=clock)
    history = []
    for tick in range(steps):
        clock.advance(FRAME)
        metrics = world.step(tick)
        history.append((metrics.population, metrics.births, metrics.deaths, metrics.food, round(metrics.average_energy, 4)))
    return history


def test_deterministic_steps_with_same_seed():
    result_a = run_steps(SimulationConfig(seed=1234, herbivore_amount=12, food_amount=15), 300)
    result_b = run_steps(SimulationConfig(seed=1234, herbivore_amount=12, food_amount=15), 300)
    assert result_a == result_b


def test_bootstrap_places_everything_inside_the_world(clock):
    world = World(SimulationConfig(herbivore_amount=20, food_amount=30, seed=3), clock=clock)
    assert len(world.herbivores) == 20
    assert len(world.foods) == 30
    for entity in list(world.herbivores) + list(world.foods):
        assert 0.0 <= entity.position.x <= world.config.world_width
        assert 0.0 <= entity.position.y <= world.config.world_height


def test_agent_steps_toward_food_at_its_speed(clock):
    world = empty_world(clock)
    agent = add_herbivore(world, 100, 100, speed=2.0, cooldown=1000.0)
    add_food(world, 200, 100)

    world.step(0)

    assert agent.position.x == approx(102.0)
    assert agent.position.y == approx(100.0)
    assert agent.velocity.x == approx(2.0 * 0.95)


def test_idle_agent_pays_only_base_metabolism(clock):
    world = empty_world(clock)
    agent = add_herbivore(world, 100, 100, energy=5.0, max_energy=100.0, cooldown=1000.0)

    world.step(0)

    assert agent.energy == approx(4.95)
    assert agent.age == 1
    assert agent.state == HerbivoreState.IDLE


def test_finished_meal_queues_exactly_one_rate_limited_respawn(clock):
    world = empty_world(clock, food_spawn_interval=2.0)
    agent = add_herbivore(world, 100, 100, energy=40.0, max_energy=100.0, cooldown=1000.0)
    food = add_food(world, 100, 100)

    world.step(0)
    assert agent.is_eating
    assert agent.current_food is food
    assert food.being_eaten and food.eaten_by == agent.id
    assert agent.velocity == Vector2()

    clock.advance(1.0)
    world.step(1)
    assert not agent.is_eating
    assert agent.current_food is None
    assert len(world.foods) == 0
    assert world.pending_food_spawns == 1
    assert agent.food_eaten_count == 1
    assert agent.energy <= agent.max_energy

    clock.advance(1.5)
    world.step(2)
    assert len(world.foods) == 0
    assert world.pending_food_spawns == 1

    clock.advance(0.5)
    metrics = world.step(3)
    assert len(world.foods) == 1
    assert world.pending_food_spawns == 0
    assert metrics.food == 1


def test_pending_spawns_drain_one_per_interval(clock):
    world = empty_world(clock, food_spawn_interval=1.0)
    world._pending_food_spawns = 3
    world._last_food_spawn_at = clock()

    counts = []
    for tick in range(4):
        clock.advance(1.0)
        world.step(tick)
        counts.append(len(world.foods))

    assert counts == [1, 2, 3, 3]
    assert world.pending_food_spawns == 0


def test_meal_recharge_is_capped_at_max_energy(clock):
    world = empty_world(clock)
    agent = add_herbivore(world, 100, 100, energy=90.0, max_energy=100.0, cooldown=1000.0)
    add_food(world, 100, 100)

    world.step(0)
    clock.advance(1.0)
    world.step(1)

    assert agent.energy == approx(100.0)


def test_third_meal_marks_agent_mature_without_gating_reproduction(clock):
    world = empty_world(clock)
    agent = add_herbivore(world, 100, 100, energy=10.0, cooldown=1000.0)
    for tick in range(3):
        add_food(world, agent.position.x, agent.position.y)
        world.step(tick * 2)
        clock.advance(1.0)
        world.step(tick * 2 + 1)
        world._pending_food_spawns = 0

    assert agent.food_eaten_count == 3
    assert agent.can_reproduce

    young = add_herbivore(world, 300, 200)
    partner = add_herbivore(world, 305, 200)
    assert not young.can_reproduce
    assert reproduction.resolve_reproduction(world, young) is not None
    assert partner.reproduction_cooldown == approx(world.config.reproduction_cooldown_frames)


def test_starving_agent_dies_releases_food_and_owes_one_spawn(clock):
    world = empty_world(clock)
    agent = add_herbivore(world, 100, 100, energy=0.05, max_energy=100.0, cooldown=1000.0)
    food = add_food(world, 100, 100)
    food.lock(agent.id)
    agent.is_eating = True
    agent.current_food = food
    agent.eating_started_at = clock()

    metrics = world.step(0)

    assert not agent.alive
    assert agent.energy == 0.0
    assert agent.state == HerbivoreState.DEAD
    assert not food.being_eaten
    assert food.eaten_by is None
    assert food in world.foods
    assert world.pending_food_spawns == 1
    assert metrics.deaths == 1
    assert metrics.population == 0
    assert agent in world.herbivores


def test_dead_agents_are_frozen(clock):
    world = empty_world(clock)
    corpse = add_herbivore(world, 100, 100, energy=0.0)
    corpse.alive = False
    add_food(world, 150, 100)

    world.step(0)

    assert corpse.position == Vector2(100, 100)
    assert corpse.age == 0


def test_touching_pair_produces_one_offspring_with_mean_speed(clock):
    world = empty_world(clock)
    first = add_herbivore(world, 100, 100, speed=1.0)
    second = add_herbivore(world, 110, 100, speed=3.0)

    metrics = world.step(0)

    assert metrics.births == 1
    assert len(world.herbivores) == 3
    offspring = world.herbivores[2]
    assert offspring.speed == approx(2.0)
    assert offspring.generation == 1
    assert offspring.reproduction_cooldown == 0.0
    assert offspring.ready_to_reproduce
    assert first.reproduction_cooldown == approx(world.config.reproduction_cooldown_frames)
    assert second.reproduction_cooldown == approx(world.config.reproduction_cooldown_frames - 1.0)


def test_offspring_is_born_at_parents_midpoint(clock):
    world = empty_world(clock)
    first = add_herbivore(world, 100, 100, speed=1.5)
    add_herbivore(world, 120, 110, speed=2.5)

    offspring = reproduction.resolve_reproduction(world, first)

    assert offspring is not None
    assert offspring.position == Vector2(110, 105)
    assert offspring.speed == approx(2.0)
    assert world._birth_queue == [offspring]
    assert offspring not in world.herbivores


def test_at_most_one_birth_per_agent_per_frame(clock):
    world = empty_world(clock)
    first = add_herbivore(world, 100, 100)
    second = add_herbivore(world, 105, 100)
    third = add_herbivore(world, 95, 100)

    assert reproduction.resolve_reproduction(world, first) is not None
    assert len(world._birth_queue) == 1
    assert not first.ready_to_reproduce
    assert not second.ready_to_reproduce
    assert third.ready_to_reproduce


def test_agents_on_cooldown_do_not_reproduce(clock):
    world = empty_world(clock)
    first = add_herbivore(world, 100, 100, cooldown=10.0)
    add_herbivore(world, 105, 100)
    assert reproduction.resolve_reproduction(world, first) is None


def test_energy_and_lock_invariants_hold_over_a_long_run(clock):
    config = SimulationConfig(
        seed=11,
        herbivore_amount=15,
        food_amount=25,
        world_width=300.0,
        world_height=200.0,
        food_spawn_interval=0.5,
    )
    world = World(config, clock=clock)
    for tick in range(300):
        clock.advance(FRAME)
        world.step(tick)
        # Each birth uses up at least one ready agent and no cooldown expires within 300 frames.
        assert len(world.herbivores) <= 2 * config.herbivore_amount

        eaters = {}
        for agent in world.herbivores:
            if not agent.alive:
                assert agent.current_food is None
                continue
            assert 0.0 <= agent.energy <= agent.max_energy
            if agent.is_eating:
                assert agent.current_food is not None
                assert agent.velocity == Vector2()
                eaters[agent.current_food.id] = agent
        for food in world.foods:
            if food.being_eaten:
                assert food.id in eaters
                assert eaters[food.id].id == food.eaten_by
            else:
                assert food.id not in eaters


def test_select_at_picks_nearest_living_agent_under_point(clock):
    world = empty_world(clock)
    far = add_herbivore(world, 100, 100)
    near = add_herbivore(world, 112, 100)
    corpse = add_herbivore(world, 108, 100)
    corpse.alive = False

    assert world.select_at(109, 100) is near
    assert world.selected is near
    assert world.agent_stats().id == near.id

    assert world.select_at(350, 250) is None
    assert world.selected is None

    world.select_at(100, 100)
    assert world.selected is far
    world.deselect()
    assert world.selected is None
    assert world.agent_stats() is None


def test_snapshot_exposes_read_model(clock):
    world = empty_world(clock)
    eater = add_herbivore(world, 100, 100, energy=50.0, max_energy=100.0, cooldown=1000.0)
    corpse = add_herbivore(world, 300, 200)
    corpse.alive = False
    food = add_food(world, 100, 100)
    add_food(world, 250, 250)

    world.step(0)
    clock.advance(0.5)
    snapshot = world.snapshot(1)

    assert snapshot.world.width == approx(400.0)
    assert snapshot.world.height == approx(300.0)
    assert snapshot.metadata.simulation_speed == approx(1.0)
    assert [item["id"] for item in snapshot.herbivores] == [eater.id]
    payload = snapshot.herbivores[0]
    for key in ["x", "y", "vx", "vy", "radius", "speed", "energy_ratio", "generation"]:
        assert key in payload
    assert payload["is_eating"]
    assert not payload["ready_to_reproduce"]
    assert payload["eating_progress"] == approx(0.5)
    assert payload["behavior_state"] == "Eating"
    food_payloads = {item["id"]: item for item in snapshot.food}
    assert food_payloads[food.id]["being_eaten"]
    assert len(food_payloads) == 2


def test_snapshot_before_first_step_reports_current_state(clock):
    world = World(SimulationConfig(herbivore_amount=4, food_amount=6), clock=clock)
    snapshot = world.snapshot(0)
    assert snapshot.metrics.population == 4
    assert snapshot.metrics.food == 6
    assert snapshot.selected_id is None


def test_reset_reseeds_population_from_current_counts(clock):
    config = SimulationConfig(seed=5, herbivore_amount=6, food_amount=8)
    world = World(config, clock=clock)
    initial_positions = [Vector2(agent.position) for agent in world.herbivores]
    for tick in range(120):
        clock.advance(FRAME)
        world.step(tick)
    world.select_at(world.herbivores[0].position.x, world.herbivores[0].position.y)

    world.reset()

    assert [agent.position for agent in world.herbivores] == initial_positions
    assert len(world.foods) == 8
    assert world.pending_food_spawns == 0
    assert world.selected is None
    assert world.metrics is None

    config.herbivore_amount = 2
    config.food_amount = 3
    world.reset()
    assert len(world.herbivores) == 2
    assert len(world.foods) == 3
