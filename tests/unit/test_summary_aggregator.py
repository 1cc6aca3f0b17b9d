"""Unit tests for the transcript log and SummaryAggregator."""

import asyncio

import pytest

from segscribe.models.summary import DisplayKind
from segscribe.transcription.aggregator import SEGMENT_BREAK, SummaryAggregator, TranscriptLog
from segscribe.ui.display import DisplayHub
from tests.fakes import FakeSummarizationService, GatedSummarizationService, RecordingSink


@pytest.fixture
def hub(recording_sink):
    display = DisplayHub([recording_sink])
    yield display
    display.close()


class OverlapTrackingService:
    """Records the largest number of summaries in flight at once."""

    def __init__(self):
        self.in_flight = 0
        self.max_in_flight = 0
        self.prompts = []

    async def summarize_stream(self, prompt):
        self.prompts.append(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            yield "ok"
        finally:
            self.in_flight -= 1


@pytest.mark.unit
class TestTranscriptLog:

    def test_slots_render_in_allocation_order(self):
        log = TranscriptLog()
        for index in range(3):
            log.allocate(index)

        log.write(2, "third")
        log.write(0, "first")

        assert len(log) == 3
        assert log.settled_count() == 2
        assert log.entries() == ["first", "", "third"]
        assert log.render() == f"first{SEGMENT_BREAK}{SEGMENT_BREAK}third"

    def test_out_of_order_allocation_is_rejected(self):
        log = TranscriptLog()
        log.allocate(0)

        with pytest.raises(ValueError):
            log.allocate(2)

    def test_write_to_unallocated_slot_is_rejected(self):
        log = TranscriptLog()

        with pytest.raises(IndexError):
            log.write(0, "text")

    def test_placeholder_counts_as_settled(self):
        log = TranscriptLog()
        log.allocate(0)
        log.write(0, "")

        assert log.settled_count() == 1
        assert log.render() == ""

    def test_clear(self):
        log = TranscriptLog()
        log.allocate(0)
        log.clear()

        assert len(log) == 0
        log.allocate(0)


@pytest.mark.unit
class TestSummaryAggregator:

    def test_reset_renders_empty_state(self, hub, recording_sink, summarization_service):
        aggregator = SummaryAggregator(summarization_service, hub)

        aggregator.reset()

        assert recording_sink.states[-1].kind is DisplayKind.EMPTY
        assert aggregator.snapshot.kind is DisplayKind.EMPTY
        assert aggregator.generation == 0

    def test_completed_segment_produces_final_summary(self, hub, recording_sink, summarization_service):
        aggregator = SummaryAggregator(summarization_service, hub)
        aggregator.reset()
        aggregator.allocate(0)

        snapshot = asyncio.run(aggregator.on_segment_complete(0, "hello world"))

        assert snapshot.kind is DisplayKind.FINAL
        assert snapshot.text == "summary of 1 segment(s)"
        assert snapshot.generation == 1
        assert snapshot.based_on_log_length == 1
        assert aggregator.snapshot == snapshot
        assert [state.kind for state in recording_sink.states] == [
            DisplayKind.EMPTY, DisplayKind.GENERATING, DisplayKind.FINAL]
        assert summarization_service.prompts[0].endswith("hello world")

    def test_blank_log_publishes_empty_without_calling_service(self, hub, recording_sink,
                                                               summarization_service):
        aggregator = SummaryAggregator(summarization_service, hub)
        aggregator.reset()
        aggregator.allocate(0)

        snapshot = asyncio.run(aggregator.on_segment_complete(0, "   \n"))

        assert snapshot.kind is DisplayKind.EMPTY
        assert summarization_service.prompts == []
        assert recording_sink.states[-1].kind is DisplayKind.EMPTY
        assert aggregator.generation == 0

    def test_placeholder_regenerates_only_while_log_is_blank(self, hub, summarization_service):
        aggregator = SummaryAggregator(summarization_service, hub)
        aggregator.reset()
        for index in range(3):
            aggregator.allocate(index)

        async def scenario():
            first = await aggregator.on_segment_failed(0)
            await aggregator.on_segment_complete(1, "spoken text")
            second = await aggregator.on_segment_failed(2)
            return first, second

        first, second = asyncio.run(scenario())

        assert first.kind is DisplayKind.EMPTY
        assert second is None
        assert len(summarization_service.prompts) == 1
        assert aggregator.transcripts() == ["", "spoken text", ""]

    def test_failure_keeps_generation_and_later_success_supersedes(self, hub, recording_sink):
        service = FakeSummarizationService(fail=True)
        aggregator = SummaryAggregator(service, hub)
        aggregator.reset()
        aggregator.allocate(0)
        aggregator.allocate(1)

        async def scenario():
            failed = await aggregator.on_segment_complete(0, "first")
            service.fail = False
            succeeded = await aggregator.on_segment_complete(1, "second")
            return failed, succeeded

        failed, succeeded = asyncio.run(scenario())

        assert failed.kind is DisplayKind.ERROR
        assert failed.generation == 0
        assert "summary model offline" in failed.text
        assert succeeded.kind is DisplayKind.FINAL
        assert succeeded.generation == 1
        assert aggregator.snapshot == succeeded
        assert recording_sink.states[-1].text == "summary of 2 segment(s)"

    def test_last_successful_summary_survives_a_later_failure(self, hub, summarization_service):
        aggregator = SummaryAggregator(summarization_service, hub)
        aggregator.reset()
        aggregator.allocate(0)
        aggregator.allocate(1)

        async def scenario():
            await aggregator.on_segment_complete(0, "first")
            summarization_service.fail = True
            await aggregator.on_segment_complete(1, "second")

        asyncio.run(scenario())

        assert aggregator.snapshot.kind is DisplayKind.ERROR
        assert aggregator.last_final.text == "summary of 1 segment(s)"

        aggregator.reset()
        assert aggregator.last_final is None

    @pytest.mark.parametrize("release_order", [(0, 1), (1, 0)])
    def test_older_summary_never_replaces_newer(self, hub, recording_sink, release_order):
        async def scenario():
            service = GatedSummarizationService(calls=2)
            aggregator = SummaryAggregator(service, hub, serialize_regenerations=False)
            aggregator.reset()
            aggregator.allocate(0)
            aggregator.allocate(1)

            jobs = [
                asyncio.create_task(aggregator.on_segment_complete(0, "first")),
                asyncio.create_task(aggregator.on_segment_complete(1, "second")),
            ]
            while len(service.prompts) < 2:
                await asyncio.sleep(0)

            for call in release_order:
                service.gates[call].set()
                await jobs[call]
            return aggregator

        aggregator = asyncio.run(scenario())

        assert aggregator.snapshot.text == "summary-1"
        assert aggregator.snapshot.based_on_log_length == 2
        assert recording_sink.states[-1].text == "summary-1"
        finals = [state.text for state in recording_sink.states if state.kind is DisplayKind.FINAL]
        assert finals[-1] == "summary-1"

    def test_stale_result_is_discarded_and_generation_kept(self, hub):
        async def scenario():
            service = GatedSummarizationService(calls=2)
            aggregator = SummaryAggregator(service, hub, serialize_regenerations=False)
            aggregator.reset()
            aggregator.allocate(0)
            aggregator.allocate(1)

            older = asyncio.create_task(aggregator.on_segment_complete(0, "first"))
            newer = asyncio.create_task(aggregator.on_segment_complete(1, "second"))
            while len(service.prompts) < 2:
                await asyncio.sleep(0)

            service.gates[1].set()
            await newer
            generation = aggregator.generation
            service.gates[0].set()
            stale = await older
            return aggregator, generation, stale

        aggregator, generation, stale = asyncio.run(scenario())

        assert generation == 1
        assert aggregator.generation == 1
        assert stale.text == "summary-0"
        assert aggregator.snapshot.text == "summary-1"

    def test_serialized_regenerations_never_overlap(self, hub):
        service = OverlapTrackingService()
        aggregator = SummaryAggregator(service, hub)
        aggregator.reset()
        for index in range(4):
            aggregator.allocate(index)

        async def scenario():
            await asyncio.gather(*(aggregator.on_segment_complete(index, f"text{index}")
                                   for index in range(4)))

        asyncio.run(scenario())

        assert len(service.prompts) == 4
        assert service.max_in_flight == 1
        assert aggregator.snapshot.based_on_log_length == 4
        assert aggregator.generation == 4

    def test_every_sink_sees_the_same_states(self, summarization_service):
        first, second = RecordingSink(), RecordingSink()
        hub = DisplayHub([first, second])
        try:
            aggregator = SummaryAggregator(summarization_service, hub)
            aggregator.reset()
            aggregator.allocate(0)
            asyncio.run(aggregator.on_segment_complete(0, "text"))
        finally:
            hub.close()

        assert first.states == second.states
        assert len(first.states) == 3
