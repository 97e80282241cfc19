# arw/agents/chain.py
from __future__ import annotations
import asyncio
import inspect
import logging
import time
from typing import AsyncGenerator, Awaitable, Callable, List, Optional, Protocol, Sequence, Union

from agents.errors import ConcurrentRunError, ValidationError
from agents.models import PROVIDER_LABEL, AgentSpec, ExecutionMetric, GenerationResult, RunState

logger = logging.getLogger(__name__)

Observer = Callable[[RunState], Union[None, Awaitable[None]]]


class StepClient(Protocol):
    def validate(self) -> None: ...
    async def generate_for(self, agent: AgentSpec, context: str) -> GenerationResult: ...


# -----------------------
# Context helpers
# -----------------------
def step_header(agent_name: str) -> str:
    return f"\n\n=== Output from {agent_name} ===\n"

def append_output(context: str, agent_name: str, output: str) -> str:
    """Chain context: append one step's output under a header naming its agent."""
    return f"{context}{step_header(agent_name)}{output}"


# -----------------------
# Executor
# -----------------------
class ChainExecutor:
    """
    Runs an ordered list of agents over one document, strictly one after
    another. Each step sees the document plus every earlier step's output.

    State is published as RunState snapshots: when a step starts, when it
    completes, and once more when the run ends (running=False,
    current_step=None). Snapshots are copies; observers may keep them.
    """

    def __init__(self, client: StepClient, provider: str = PROVIDER_LABEL,
                 clock: Callable[[], float] = time.perf_counter):
        self.client = client
        self.provider = provider
        self._clock = clock
        self._observers: List[Observer] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        self._observers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)
        return _unsubscribe

    async def _publish(self, state: RunState) -> RunState:
        snap = state.snapshot()
        for cb in list(self._observers):
            res = cb(snap)
            if inspect.isawaitable(res):
                await res
        return snap

    def run(self, input_text: str, agents: Sequence[AgentSpec],
            cancel: Optional[asyncio.Event] = None) -> "RunStream":
        """
        Validate inputs, claim the executor and return the async iterator of
        snapshots. Raises ValidationError / ConfigurationError before any
        provider call, and ConcurrentRunError if this executor is already
        claimed by another run (started or not).
        """
        if not input_text:
            raise ValidationError("Input text is empty; process a document first.")
        if self._running:
            raise ConcurrentRunError("A run is already in progress.")
        agents = list(agents)
        if agents:
            self.client.validate()
        self._running = True
        return RunStream(self, self._iterate(input_text, agents, cancel))

    def _release(self) -> None:
        self._running = False

    async def _iterate(self, input_text: str, agents: List[AgentSpec],
                       cancel: Optional[asyncio.Event]) -> AsyncGenerator[RunState, None]:
        state = RunState(
            current_step=None,
            outputs=[""] * len(agents),
            metrics=[],
            running=True,
            context=input_text,
        )
        try:
            for i, agent in enumerate(agents):
                if cancel is not None and cancel.is_set():
                    logger.info("Run cancelled before step %d/%d", i + 1, len(agents))
                    break

                state.current_step = i
                yield await self._publish(state)

                start = self._clock()
                result = await self.client.generate_for(agent, state.context)
                latency = max(self._clock() - start, 0.0)

                text = result.render()
                state.outputs[i] = text
                if not result.ok:
                    state.failed_steps.append(i)
                    logger.warning("Step %d (%s) failed: %s", i + 1, agent.name, result.error)
                state.metrics.append(ExecutionMetric(
                    agent_name=agent.name,
                    latency=latency,
                    tokens=result.tokens,
                    provider=self.provider,
                ))
                state.context = append_output(state.context, agent.name, text)
                logger.info("Step %d/%d (%s) done in %.2fs, ~%d tokens",
                            i + 1, len(agents), agent.name, latency, result.tokens)
                yield await self._publish(state)

            state.running = False
            state.current_step = None
            yield await self._publish(state)
        finally:
            self._release()

    async def run_to_completion(self, input_text: str, agents: Sequence[AgentSpec],
                                cancel: Optional[asyncio.Event] = None) -> RunState:
        final = RunState()
        async for snap in self.run(input_text, agents, cancel=cancel):
            final = snap
        return final


class RunStream:
    """
    Snapshots of one run. Holds the executor's claim until the run finishes
    or the stream is closed, including a stream that was never iterated.
    """

    def __init__(self, executor: ChainExecutor, gen: AsyncGenerator[RunState, None]):
        self._executor = executor
        self._gen = gen
        self._started = False

    def __aiter__(self) -> "RunStream":
        return self

    async def __anext__(self) -> RunState:
        self._started = True
        return await self._gen.__anext__()

    async def aclose(self) -> None:
        await self._gen.aclose()
        if not self._started:
            self._executor._release()
