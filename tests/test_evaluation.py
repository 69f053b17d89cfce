"""Tests for self-evaluation and the offline real-time provider."""

import asyncio
import threading

import pytest

from concierge.agents import Emotion, EmotionalState, FALLBACK_RESPONSE
from concierge.evaluation import SelfEvaluator, score_response
from concierge.realtime import OfflineRealTimeProvider

from conftest import FakeClock


class TestScoring:

    def test_scores_in_range(self):
        scores, _, _ = score_response("Bali paket", "Bali paketlerimiz hazır! Ne dersiniz? ✨ **SHOW_PACKAGES:romantic**")
        assert set(scores) == {"helpfulness", "engagement", "actionability", "emotional_fit"}
        assert all(0.0 <= value <= 10.0 for value in scores.values())

    def test_fallback_scores_lower(self):
        good, _, _ = score_response("Bali paket", "Bali için paket önerilerimiz hazır, bütçenizi paylaşır mısınız?")
        bad, _, weaknesses = score_response("Bali paket", FALLBACK_RESPONSE)
        assert bad["helpfulness"] < good["helpfulness"]
        assert "Fallback answer" in weaknesses

    def test_reassurance_for_anxious_user(self):
        anxious = EmotionalState(primary=Emotion.ANXIETY)
        scores, strengths, _ = score_response("vize", "Size adım adım yardımcı olacağım.", anxious)
        assert scores["emotional_fit"] == 8.0
        assert "Reassures an anxious user" in strengths


class TestSelfEvaluator:

    def test_bounded_log(self):
        evaluator = SelfEvaluator(capacity=3)
        for i in range(5):
            evaluator.evaluate(f"soru {i}", "yanıt", f"s{i}")
        assert len(evaluator) == 3
        assert [e.session_id for e in evaluator.recent()] == ["s2", "s3", "s4"]

    @pytest.mark.asyncio
    async def test_schedule_and_drain(self):
        evaluator = SelfEvaluator()
        evaluator.schedule("Bali paket", "Bali paketleri hazır.", "s1")
        await evaluator.drain()
        assert len(evaluator) == 1

    @pytest.mark.asyncio
    async def test_scheduled_evaluation_runs_on_loop_thread(self):
        threads = []

        class RecordingEvaluator(SelfEvaluator):
            def evaluate(self, *args):
                threads.append(threading.get_ident())
                return super().evaluate(*args)

        evaluator = RecordingEvaluator()
        evaluator.schedule("Bali paket", "Bali paketleri hazır.", "s1")
        evaluator.schedule("Paris otel", "Paris otelleri hazır.", "s2")
        await evaluator.drain()
        assert threads == [threading.get_ident()] * 2
        assert [e.session_id for e in evaluator.recent()] == ["s1", "s2"]

    @pytest.mark.asyncio
    async def test_failed_evaluation_is_contained(self):
        class BrokenEvaluator(SelfEvaluator):
            def evaluate(self, *args):
                raise ValueError("scoring bug")

        evaluator = BrokenEvaluator()
        task = evaluator.schedule("Bali paket", "Bali paketleri hazır.", "s1")
        await evaluator.drain()
        assert task.exception() is None
        assert len(evaluator) == 0

    def test_summary_trend(self):
        evaluator = SelfEvaluator()
        for _ in range(5):
            evaluator.evaluate("Bali paket", FALLBACK_RESPONSE, "s")
        for _ in range(5):
            evaluator.evaluate(
                "Bali paket",
                "Bali paketlerimiz hazır! Ne dersiniz? ✨ **SHOW_PACKAGES:romantic** bütçenize uygun seçenekler var.",
                "s",
            )
        summary = evaluator.summary()
        assert summary["count"] == 10
        assert summary["trend"] == "improving"

    def test_empty_summary(self):
        assert SelfEvaluator().summary() == {"count": 0, "average_quality": 0.0, "trend": "stable"}


class TestOfflineRealTimeProvider:

    @pytest.mark.asyncio
    async def test_deterministic_and_in_climate_range(self):
        provider = OfflineRealTimeProvider()
        first = await provider.get_travel_data("Bali")
        second = await OfflineRealTimeProvider().get_travel_data("Bali")
        assert first.to_dict()["weather"] == second.to_dict()["weather"]
        assert 24 <= first.weather.temperature <= 32
        assert 1 <= len(first.events) <= 3

    @pytest.mark.asyncio
    async def test_cached_until_ttl(self):
        clock = FakeClock()
        provider = OfflineRealTimeProvider(ttl_seconds=60, clock=clock)
        first = await provider.get_travel_data("Paris")
        assert await provider.get_travel_data("paris") is first

        clock.advance(61)
        refreshed = await provider.get_travel_data("Paris")
        assert refreshed is not first
        assert refreshed.fetched_at == clock.now

    def test_concurrent_lookups(self):
        async def fetch_all():
            provider = OfflineRealTimeProvider()
            return await asyncio.gather(*(provider.get_travel_data(d) for d in ("Bali", "Paris", "Roma")))

        results = asyncio.run(fetch_all())
        assert [r.destination for r in results] == ["Bali", "Paris", "Roma"]
