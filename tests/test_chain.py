# arw/tests/test_chain.py
"""
Tests for the chain executor: ordering, context chaining, failure isolation
and the snapshots it publishes while a run progresses.
"""
import asyncio
from itertools import count

import pytest

from agents.chain import ChainExecutor, append_output, step_header
from agents.errors import ConcurrentRunError, ConfigurationError, ValidationError
from agents.models import ERROR_PREFIX, GenerationResult, RunState
from agents.nodes.llm import GenerationClient

pytestmark = pytest.mark.asyncio


async def _collect(executor, text, agents, **kw):
    return [snap async for snap in executor.run(text, agents, **kw)]


async def test_two_agent_scenario(scripted_client, two_agents):
    client = scripted_client([
        GenerationResult.success("RESP_A", 5),
        GenerationResult.success("RESP_B", 7),
    ])
    final = await ChainExecutor(client).run_to_completion("Hello world", two_agents)

    assert final.outputs == ["RESP_A", "RESP_B"]
    assert [m.tokens for m in final.metrics] == [5, 7]
    assert [m.agent_name for m in final.metrics] == ["A", "B"]
    assert "RESP_A" not in client.prompts[0]
    assert "RESP_A" in client.prompts[1]
    assert "RESP_B" not in client.prompts[1]
    assert "Hello world" in client.prompts[0]
    assert final.running is False
    assert final.current_step is None


async def test_empty_agent_list_completes_immediately(scripted_client):
    client = scripted_client([])
    snaps = await _collect(ChainExecutor(client), "Hello world", [])
    assert len(snaps) == 1
    assert snaps[0].outputs == []
    assert snaps[0].metrics == []
    assert snaps[0].running is False
    assert client.prompts == []


async def test_empty_input_is_rejected(scripted_client, two_agents):
    client = scripted_client([])
    executor = ChainExecutor(client)
    with pytest.raises(ValidationError):
        executor.run("", two_agents)
    assert client.validated == 0
    assert executor.running is False


async def test_whitespace_input_still_runs(scripted_client, two_agents):
    client = scripted_client([GenerationResult.success("a", 1), GenerationResult.success("b", 2)])
    final = await ChainExecutor(client).run_to_completion("   \n", two_agents)
    assert final.outputs == ["a", "b"]
    assert client.contexts[0] == "   \n"


async def test_missing_api_key_blocks_the_loop(stub_provider, two_agents):
    provider = stub_provider()
    executor = ChainExecutor(GenerationClient("", provider=provider))
    with pytest.raises(ConfigurationError):
        executor.run("Hello world", two_agents)
    assert provider.prompts == []
    assert executor.running is False


async def test_failed_step_does_not_stop_the_chain(stub_provider, agent_factory):
    agents = [agent_factory(i) for i in range(4)]
    provider = stub_provider(fail_on=[1])
    final = await ChainExecutor(GenerationClient("key", provider=provider)).run_to_completion("doc", agents)

    assert len(provider.prompts) == 4
    assert len(final.outputs) == 4
    assert len(final.metrics) == 4
    assert ERROR_PREFIX in final.outputs[1]
    assert final.metrics[1].tokens == 0
    assert final.outputs[2] == "reply 2"
    assert final.outputs[3] == "reply 3"
    assert final.failed_steps == [1]
    # the error text is chained like any other output
    assert ERROR_PREFIX in provider.prompts[2]


async def test_context_grows_cumulatively(stub_provider, agent_factory):
    agents = [agent_factory(i) for i in range(3)]
    snaps = await _collect(ChainExecutor(GenerationClient("key", provider=stub_provider())), "seed", agents)

    completed = [s for s in snaps if s.running and len(s.metrics) == s.current_step + 1]
    assert len(completed) == 3
    previous = "seed"
    for i, snap in enumerate(completed):
        expected = previous + step_header(agents[i].name) + snap.outputs[i]
        assert snap.context == expected
        previous = snap.context
    assert snaps[-1].context == append_output(completed[1].context, agents[2].name, "reply 2")


async def test_snapshot_invariants(stub_provider, agent_factory):
    agents = [agent_factory(i) for i in range(3)]
    snaps = await _collect(ChainExecutor(GenerationClient("key", provider=stub_provider())), "seed", agents)

    # start + completion per step, then the final state
    assert len(snaps) == 2 * len(agents) + 1
    for snap in snaps:
        assert len(snap.outputs) == len(agents)
        if snap.running:
            assert len(snap.metrics) <= snap.current_step + 1
    assert [s.current_step for s in snaps] == [0, 0, 1, 1, 2, 2, None]
    assert snaps[-1].running is False


async def test_snapshots_are_independent_values(stub_provider, agent_factory):
    agents = [agent_factory(i) for i in range(2)]
    snaps = await _collect(ChainExecutor(GenerationClient("key", provider=stub_provider())), "seed", agents)

    first_done = snaps[1]
    assert first_done.outputs == ["reply 0", ""]
    assert len(first_done.metrics) == 1
    first_done.outputs[0] = "tampered"
    assert snaps[-1].outputs == ["reply 0", "reply 1"]


async def test_observers_receive_every_snapshot(scripted_client, two_agents):
    client = scripted_client([GenerationResult.success("a", 1), GenerationResult.success("b", 2)])
    executor = ChainExecutor(client)
    seen_sync, seen_async = [], []

    async def on_async(snap: RunState):
        seen_async.append(snap.current_step)

    executor.subscribe(lambda snap: seen_sync.append(snap.current_step))
    unsubscribe = executor.subscribe(on_async)
    snaps = await _collect(executor, "doc", two_agents)

    assert seen_sync == [s.current_step for s in snaps]
    assert seen_async == seen_sync
    unsubscribe()
    client.results = [GenerationResult.success("c", 1), GenerationResult.success("d", 1)] * 2
    await executor.run_to_completion("doc", two_agents)
    assert len(seen_async) == len(snaps)
    assert len(seen_sync) == 2 * len(snaps)


async def test_second_run_is_rejected_while_running(stub_provider, two_agents):
    executor = ChainExecutor(GenerationClient("key", provider=stub_provider()))
    stream = executor.run("doc", two_agents)
    first = await stream.__anext__()
    assert first.running and executor.running

    with pytest.raises(ConcurrentRunError):
        executor.run("doc", two_agents)

    rest = [snap async for snap in stream]
    assert rest[-1].running is False
    assert executor.running is False
    # the executor is reusable once the run has finished
    again = await executor.run_to_completion("doc", two_agents)
    assert len(again.metrics) == 2


async def test_cancel_between_steps(stub_provider, agent_factory):
    agents = [agent_factory(i) for i in range(3)]
    executor = ChainExecutor(GenerationClient("key", provider=stub_provider()))
    cancel = asyncio.Event()

    def stop_after_first(snap: RunState):
        if len(snap.metrics) == 1:
            cancel.set()

    executor.subscribe(stop_after_first)
    final = await executor.run_to_completion("doc", agents, cancel=cancel)
    assert final.outputs == ["reply 0", "", ""]
    assert len(final.metrics) == 1
    assert final.running is False
    assert final.current_step is None


async def test_metric_latency_and_provider(scripted_client, two_agents):
    ticks = count()
    client = scripted_client([GenerationResult.success("a", 1), GenerationResult.success("b", 2)])
    executor = ChainExecutor(client, clock=lambda: next(ticks) * 0.5)
    final = await executor.run_to_completion("doc", two_agents)
    assert [m.latency for m in final.metrics] == [0.5, 0.5]
    assert all(m.provider == "Gemini" for m in final.metrics)
    assert final.metrics[0].timestamp <= final.metrics[1].timestamp


async def test_run_claims_executor_before_iteration(stub_provider, two_agents):
    executor = ChainExecutor(GenerationClient("key", provider=stub_provider()))
    first = executor.run("doc", two_agents)
    assert executor.running

    with pytest.raises(ConcurrentRunError):
        executor.run("doc", two_agents)

    snaps = [snap async for snap in first]
    assert snaps[-1].running is False
    assert executor.running is False


async def test_closing_unstarted_stream_releases_executor(stub_provider, two_agents):
    provider = stub_provider()
    executor = ChainExecutor(GenerationClient("key", provider=provider))
    pending = executor.run("doc", two_agents)
    await pending.aclose()
    assert executor.running is False
    assert provider.prompts == []
    final = await executor.run_to_completion("doc", two_agents)
    assert len(final.metrics) == 2
