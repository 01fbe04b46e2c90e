"""Race scheduling: planning every racer, then animating them concurrently."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Protocol, Sequence

from maze_race.config import Settings, get_settings
from maze_race.core.maze_engine import Maze, Position
from maze_race.core.maze_render import maze_to_grid
from maze_race.core.move_parser import parse_and_walk
from maze_race.core.path_planner import find_optimal_path, is_valid_path
from maze_race.services.ai_gateway import AIModel, extract_content

logger = logging.getLogger(__name__)

RACE_ABORTED_MESSAGE = "Race aborted"

SYSTEM_PROMPT = "You are a maze solver. Output only U/D/L/R moves. Nothing else."


class RaceConfigError(ValueError):
    """Raised when a race cannot be set up with the given competitors."""

    pass


class RaceStatus(str, Enum):
    """Racer lifecycle: idle -> ready -> racing -> finished, or error."""

    IDLE = "idle"
    READY = "ready"
    RACING = "racing"
    FINISHED = "finished"
    ERROR = "error"


class ChatCompletionClient(Protocol):
    """What the scheduler needs from the AI gateway."""

    async def chat_completion(
        self,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]: ...


def _now_ms() -> int:
    return int(time.time() * 1000)


def format_time(ms: int) -> str:
    """Format a duration: "850ms" below one second, "1.23s" otherwise."""
    if ms < 1000:
        return f"{ms}ms"
    return f"{ms / 1000:.2f}s"


@dataclass(frozen=True)
class RacerSnapshot:
    """Immutable copy of a racer's state handed to observers."""

    model: AIModel
    position: Position
    path: tuple[Position, ...]
    planned_path: tuple[Position, ...]
    status: RaceStatus
    think_time: int
    start_time: Optional[int]
    end_time: Optional[int]
    move_count: int
    error: Optional[str] = None
    used_fallback: bool = False

    @property
    def total_time(self) -> Optional[int]:
        """Race duration in ms once the racer has both timestamps."""
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "model": self.model.to_dict(),
            "position": self.position.to_dict(),
            "path": [p.to_dict() for p in self.path],
            "planned_path": [p.to_dict() for p in self.planned_path],
            "status": self.status.value,
            "think_time": self.think_time,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "total_time": self.total_time,
            "move_count": self.move_count,
            "error": self.error,
            "used_fallback": self.used_fallback,
        }


@dataclass
class RacerState:
    """Mutable racer state, owned by the task animating it."""

    model: AIModel
    position: Position
    path: list[Position]
    planned_path: list[Position] = field(default_factory=list)
    status: RaceStatus = RaceStatus.IDLE
    think_time: int = 0  # ms the model took to answer; sets animation speed
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    move_count: int = 0
    error: Optional[str] = None
    used_fallback: bool = False

    @classmethod
    def at_start(cls, model: AIModel, maze: Maze) -> "RacerState":
        """Create an idle racer standing on the maze start."""
        return cls(model=model, position=maze.start, path=[maze.start])

    def snapshot(self) -> RacerSnapshot:
        """Take an immutable copy."""
        return RacerSnapshot(
            model=self.model,
            position=self.position,
            path=tuple(self.path),
            planned_path=tuple(self.planned_path),
            status=self.status,
            think_time=self.think_time,
            start_time=self.start_time,
            end_time=self.end_time,
            move_count=self.move_count,
            error=self.error,
            used_fallback=self.used_fallback,
        )


@dataclass
class PlanResult:
    """Planned path for one racer plus how long the model took."""

    path: list[Position]
    think_time: int
    used_fallback: bool
    error: Optional[str] = None


def build_planning_messages(maze: Maze) -> list[dict[str, str]]:
    """Build the system and user messages asking a model to solve the maze."""
    grid_view = maze_to_grid(maze)
    prompt = f"""You are a maze-solving AI. Here's a maze:

{grid_view}

Legend:
- █ = wall
- (space) = path
- S = start position ({maze.start.x},{maze.start.y})
- E = exit position ({maze.end.x},{maze.end.y})

The maze is {maze.width}x{maze.height} cells. Find the shortest path from S to E.

Directions:
- U = up (decrease Y)
- D = down (increase Y)
- L = left (decrease X)
- R = right (increase X)

Respond with ONLY the move sequence, like: DDRRDDRR
No explanations, just the moves."""

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


async def plan_path(
    model: AIModel,
    maze: Maze,
    client: ChatCompletionClient,
    settings: Optional[Settings] = None,
) -> PlanResult:
    """
    Ask a model for its route and resolve it into a planned path.

    The model's move string is used when it reaches the end. Otherwise the
    BFS path is substituted; an empty reply counts as a move string that
    goes nowhere. Timeouts and gateway errors also fall back to the BFS
    path and add the failure penalty to the think time.

    Args:
        model: Racing model
        maze: Shared maze
        client: Gateway client
        settings: Timing/sampling settings (defaults to app settings)

    Returns:
        PlanResult. Never raises for gateway failures.
    """
    settings = settings or get_settings()
    messages = build_planning_messages(maze)
    start_time = time.monotonic()

    try:
        data = await asyncio.wait_for(
            client.chat_completion(
                model.id,
                messages,
                temperature=settings.ai_temperature,
                max_tokens=settings.ai_max_tokens,
            ),
            timeout=settings.planning_timeout_ms / 1000,
        )
        content = extract_content(data, strict=False)
    except asyncio.TimeoutError:
        think_time = int((time.monotonic() - start_time) * 1000) + settings.failure_penalty_ms
        logger.warning(
            f"{model.name} timed out after {settings.planning_timeout_ms}ms, using optimal path"
        )
        return PlanResult(
            path=find_optimal_path(maze),
            think_time=think_time,
            used_fallback=True,
            error="API timeout",
        )
    except Exception as e:
        think_time = int((time.monotonic() - start_time) * 1000) + settings.failure_penalty_ms
        logger.warning(f"AI error for {model.name}: {e}, using optimal path")
        return PlanResult(
            path=find_optimal_path(maze),
            think_time=think_time,
            used_fallback=True,
            error=str(e),
        )

    think_time = int((time.monotonic() - start_time) * 1000)
    logger.info(f"{model.name} think time: {think_time}ms")

    walk = parse_and_walk(maze, content.upper().strip())
    if walk.reached_end:
        return PlanResult(path=walk.path, think_time=think_time, used_fallback=False)

    logger.info(f"{model.name} path incomplete ({walk.move_count} valid moves), using optimal path")
    return PlanResult(path=find_optimal_path(maze), think_time=think_time, used_fallback=True)


def compute_step_delay(
    think_time: int,
    path_length: int,
    min_step_ms: int = 30,
    default_step_ms: int = 100,
) -> float:
    """
    Milliseconds to wait between steps: faster thinkers run faster.

    Args:
        think_time: Model think time in ms
        path_length: Number of positions in the planned path
        min_step_ms: Floor so fast answers still animate visibly
        default_step_ms: Delay used when there are no steps to take
    """
    total_steps = path_length - 1
    if total_steps <= 0:
        return float(default_step_ms)
    return max(float(min_step_ms), think_time / total_steps)


async def animate_racer(
    state: RacerState,
    on_update: Callable[[RacerSnapshot], None],
    cancel_event: asyncio.Event,
    min_step_ms: int = 30,
    default_step_ms: int = 100,
) -> RacerState:
    """
    Walk a racer along its planned path, publishing a snapshot after every step.

    The cancel event is checked before each step only, so a step delay that
    has already started runs to completion before the abort is noticed.

    Returns:
        The racer state, finished or aborted.
    """
    planned_path = state.planned_path
    total_steps = len(planned_path) - 1
    ms_per_step = compute_step_delay(state.think_time, len(planned_path), min_step_ms, default_step_ms)

    logger.info(
        f"{state.model.name}: {total_steps} steps, {ms_per_step:.0f}ms/step "
        f"(think: {state.think_time}ms)"
    )

    state.status = RaceStatus.RACING
    state.start_time = _now_ms()
    on_update(state.snapshot())

    cursor = 1
    while cursor < len(planned_path):
        if cancel_event.is_set():
            state.status = RaceStatus.ERROR
            state.error = RACE_ABORTED_MESSAGE
            logger.info(f"{state.model.name} aborted after {state.move_count} moves")
            on_update(state.snapshot())
            return state

        state.position = planned_path[cursor]
        state.path.append(state.position)
        state.move_count += 1
        cursor += 1

        on_update(state.snapshot())

        await asyncio.sleep(ms_per_step / 1000)

    state.status = RaceStatus.FINISHED
    state.end_time = _now_ms()
    on_update(state.snapshot())

    return state


class FinishOrder:
    """Records model ids in the order racers finish, ignoring repeats."""

    def __init__(self):
        self._model_ids: list[str] = []

    def record(self, snapshot: RacerSnapshot) -> bool:
        """Record a finished racer. Returns True only the first time it is seen."""
        if snapshot.status != RaceStatus.FINISHED:
            return False
        if snapshot.model.id in self._model_ids:
            return False
        self._model_ids.append(snapshot.model.id)
        return True

    @property
    def model_ids(self) -> list[str]:
        """Finished model ids, first finisher first."""
        return list(self._model_ids)

    def __len__(self) -> int:
        return len(self._model_ids)


@dataclass
class Standing:
    """A podium line."""

    place: int
    model: AIModel
    move_count: int
    total_time: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "place": self.place,
            "model": self.model.to_dict(),
            "move_count": self.move_count,
            "total_time": self.total_time,
            "total_time_display": format_time(self.total_time),
        }


@dataclass
class RaceResult:
    """Final state of a race."""

    racers: list[RacerSnapshot]
    finish_order: list[str]
    aborted: bool
    standings: list[Standing] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "racers": [r.to_dict() for r in self.racers],
            "finish_order": self.finish_order,
            "aborted": self.aborted,
            "standings": [s.to_dict() for s in self.standings],
        }


class Race:
    """
    One race over a shared maze.

    Example usage:
        race = Race(maze, [resolve_model("openai/gpt-4o"), resolve_model("x-ai/grok-4")], client)
        queue = race.subscribe()
        result = await race.start()   # plan everyone, then run everyone

    Call stop() from another task to abort the running phase.
    """

    def __init__(
        self,
        maze: Maze,
        models: Sequence[AIModel],
        client: ChatCompletionClient,
        settings: Optional[Settings] = None,
        on_update: Optional[Callable[[RacerSnapshot], None]] = None,
    ):
        """
        Set up a race.

        Raises:
            RaceConfigError: If there are too few competitors or duplicates.
        """
        self.settings = settings or get_settings()

        if len(models) < self.settings.min_competitors:
            raise RaceConfigError(
                f"A race needs at least {self.settings.min_competitors} competitors, got {len(models)}"
            )
        model_ids = [m.id for m in models]
        duplicates = sorted({m for m in model_ids if model_ids.count(m) > 1})
        if duplicates:
            raise RaceConfigError(f"Duplicate competitors: {', '.join(duplicates)}")

        self.maze = maze
        self.client = client
        self.racers = [RacerState.at_start(model, maze) for model in models]
        self.finish_order = FinishOrder()
        self._on_update = on_update
        self._cancel = asyncio.Event()
        self._subscribers: list[asyncio.Queue] = []

    @property
    def stopped(self) -> bool:
        """Whether stop() has been called."""
        return self._cancel.is_set()

    def stop(self) -> None:
        """Signal every racer to abort at its next step."""
        if not self._cancel.is_set():
            logger.info("Stop requested, racers will abort at their next step")
        self._cancel.set()

    # Event stream subscription management
    def subscribe(self) -> asyncio.Queue:
        """Subscribe to race events."""
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        """Unsubscribe from race events."""
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _broadcast(self, message: dict) -> None:
        """Send an event to all subscribers."""
        for queue in self._subscribers:
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                pass  # Skip if queue is full

    def _publish(self, snapshot: RacerSnapshot) -> None:
        """Deliver a racer snapshot to the callback and the event stream."""
        if self._on_update is not None:
            self._on_update(snapshot)

        self._broadcast({"type": "racer_update", "data": snapshot.to_dict()})

        if self.finish_order.record(snapshot):
            self._broadcast(
                {
                    "type": "racer_finished",
                    "data": {
                        "model_id": snapshot.model.id,
                        "place": len(self.finish_order),
                        "total_time": snapshot.total_time,
                    },
                }
            )

    async def plan(self) -> list[RacerSnapshot]:
        """
        Phase 1: ask every model for its route concurrently.

        Returns only once every racer has a plan (or a fallback).
        """
        if any(r.status != RaceStatus.IDLE for r in self.racers):
            raise RuntimeError("Race has already been planned")

        logger.info(f"All {len(self.racers)} AIs planning paths...")
        plans = await asyncio.gather(
            *(plan_path(r.model, self.maze, self.client, self.settings) for r in self.racers)
        )

        for racer, plan in zip(self.racers, plans):
            if not is_valid_path(self.maze, plan.path):
                raise RuntimeError(f"{racer.model.name} planned an invalid path")
            racer.planned_path = plan.path
            racer.think_time = plan.think_time
            racer.used_fallback = plan.used_fallback
            racer.error = plan.error
            racer.status = RaceStatus.READY
            self._publish(racer.snapshot())

        logger.info("All AIs ready!")
        return [r.snapshot() for r in self.racers]

    async def run(self) -> RaceResult:
        """Phase 2: animate every planned racer concurrently."""
        if any(r.status != RaceStatus.READY for r in self.racers):
            raise RuntimeError("Every racer must be ready before the race runs")

        self._broadcast(
            {
                "type": "race_started",
                "data": {"racers": [r.snapshot().to_dict() for r in self.racers]},
            }
        )
        logger.info("Race started!")

        await asyncio.gather(
            *(
                animate_racer(
                    racer,
                    self._publish,
                    self._cancel,
                    min_step_ms=self.settings.min_step_ms,
                    default_step_ms=self.settings.default_step_ms,
                )
                for racer in self.racers
            )
        )

        result = self.result()
        for standing in result.standings:
            logger.info(
                f"#{standing.place} {standing.model.name}: {standing.move_count} moves "
                f"in {format_time(standing.total_time)}"
            )

        self._broadcast({"type": "race_complete", "data": result.to_dict()})
        return result

    async def start(self) -> RaceResult:
        """Plan every racer, wait for all of them, then run the race."""
        await self.plan()
        return await self.run()

    def result(self) -> RaceResult:
        """Build the current race result."""
        snapshots = [r.snapshot() for r in self.racers]
        by_id = {s.model.id: s for s in snapshots}

        standings = []
        for place, model_id in enumerate(self.finish_order.model_ids, start=1):
            snapshot = by_id[model_id]
            standings.append(
                Standing(
                    place=place,
                    model=snapshot.model,
                    move_count=snapshot.move_count,
                    total_time=snapshot.total_time or 0,
                )
            )

        return RaceResult(
            racers=snapshots,
            finish_order=self.finish_order.model_ids,
            aborted=any(s.status == RaceStatus.ERROR for s in snapshots),
            standings=standings,
        )
