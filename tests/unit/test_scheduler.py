"""
Unit tests for the dependency scheduler

Tests level construction, cycle and unknown-dependency rejection, and
concurrent level execution.
"""

import asyncio
import random
from typing import List

import pytest

from teambrain.agents.scheduler import DependencyScheduler, build_levels
from teambrain.errors import CycleDetectedError, InvalidDependencyError
from teambrain.models.data_models import ProviderKey, SubTask, SubTaskStatus


def subtask(subtask_id: str, *dependencies: str) -> SubTask:
    return SubTask(
        id=subtask_id,
        parent_task_id="task-1",
        provider=ProviderKey.CORE,
        action="chat",
        dependencies=list(dependencies),
    )


class TestBuildLevels:
    """Test level construction"""

    def test_independent_and_dependent_subtasks(self):
        levels = build_levels([subtask("A"), subtask("B", "A"), subtask("C")])

        assert [set(level) for level in levels] == [{"A", "C"}, {"B"}]

    def test_no_dependencies_single_level(self):
        subtasks = [subtask(f"s{i}") for i in range(8)]

        levels = build_levels(subtasks)

        assert len(levels) == 1
        assert set(levels[0]) == {f"s{i}" for i in range(8)}

    def test_levels_partition_random_dags(self):
        rng = random.Random(7)
        for _ in range(25):
            count = rng.randint(1, 15)
            subtasks = []
            for i in range(count):
                # Depend only on earlier ids so the graph stays acyclic
                deps = [f"n{j}" for j in range(i) if rng.random() < 0.3]
                subtasks.append(subtask(f"n{i}", *deps))

            levels = build_levels(subtasks)
            flattened = [subtask_id for level in levels for subtask_id in level]

            assert sorted(flattened) == sorted(s.id for s in subtasks)
            assert len(flattened) == len(set(flattened))

            position = {subtask_id: index for index, level in enumerate(levels) for subtask_id in level}
            for s in subtasks:
                for dep in s.dependencies:
                    assert position[dep] < position[s.id]

    def test_empty_input(self):
        assert build_levels([]) == []

    def test_cycle_detected_names_cycle_members(self):
        subtasks = [subtask("A"), subtask("B", "C"), subtask("C", "B"), subtask("D", "C")]

        with pytest.raises(CycleDetectedError) as exc_info:
            build_levels(subtasks)

        error = exc_info.value
        assert set(error.stuck_ids) == {"B", "C", "D"}
        assert {"B", "C"} <= set(error.cycle)
        assert "B" in str(error)

    def test_self_dependency_is_cycle(self):
        with pytest.raises(CycleDetectedError) as exc_info:
            build_levels([subtask("A", "A")])

        assert exc_info.value.stuck_ids == ["A"]

    def test_unknown_dependency_rejected(self):
        with pytest.raises(InvalidDependencyError) as exc_info:
            build_levels([subtask("A", "missing")])

        assert exc_info.value.subtask_id == "A"
        assert exc_info.value.missing == ["missing"]


class TestDependencySchedulerExecution:
    """Test level execution"""

    @pytest.mark.asyncio
    async def test_independent_subtasks_overlap(self):
        subtasks = [subtask(f"s{i}") for i in range(5)]
        windows = {}

        async def run(s: SubTask):
            loop = asyncio.get_running_loop()
            start = loop.time()
            await asyncio.sleep(0.05)
            windows[s.id] = (start, loop.time())
            s.mark_completed({"id": s.id})

        levels = await DependencyScheduler(max_concurrency=10).execute(subtasks, run)

        assert len(levels) == 1
        latest_start = max(start for start, _ in windows.values())
        earliest_end = min(end for _, end in windows.values())
        assert latest_start < earliest_end

    @pytest.mark.asyncio
    async def test_levels_run_in_order(self):
        subtasks = [subtask("A"), subtask("B", "A"), subtask("C")]
        order: List[str] = []

        async def run(s: SubTask):
            order.append(f"start:{s.id}")
            await asyncio.sleep(0.01)
            order.append(f"end:{s.id}")

        await DependencyScheduler().execute(subtasks, run)

        assert order.index("start:B") > order.index("end:A")
        assert order.index("start:B") > order.index("end:C")

    @pytest.mark.asyncio
    async def test_failure_does_not_cancel_level_mates(self):
        subtasks = [subtask("bad"), subtask("good")]

        async def run(s: SubTask):
            s.mark_started()
            if s.id == "bad":
                raise RuntimeError("boom")
            await asyncio.sleep(0.02)
            s.mark_completed("done")

        await DependencyScheduler().execute(subtasks, run)

        assert subtasks[0].status == SubTaskStatus.FAILED
        assert subtasks[0].error == "boom"
        assert subtasks[1].status == SubTaskStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_concurrency_cap(self):
        subtasks = [subtask(f"s{i}") for i in range(6)]
        running = {"now": 0, "peak": 0}

        async def run(s: SubTask):
            running["now"] += 1
            running["peak"] = max(running["peak"], running["now"])
            await asyncio.sleep(0.01)
            running["now"] -= 1

        await DependencyScheduler(max_concurrency=2).execute(subtasks, run)

        assert running["peak"] == 2

    @pytest.mark.asyncio
    async def test_stop_skips_later_levels(self):
        subtasks = [subtask("A"), subtask("B", "A")]
        ran: List[str] = []

        async def run(s: SubTask):
            ran.append(s.id)

        await DependencyScheduler().execute(subtasks, run, should_continue=lambda: not ran)

        assert ran == ["A"]
        assert subtasks[1].status == SubTaskStatus.PENDING
