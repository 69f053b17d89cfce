"""Tests for the concierge service facade.

Tests cover:
1. Cache miss -> agents -> cache hit flow
2. Optional generation (success and localized failure)
3. Feedback propagation to cache and orchestration history
4. Background persistence and evaluation
"""

import pytest
import pytest_asyncio

from concierge import Config, ConciergeService
from concierge.agents import FALLBACK_RESPONSE
from concierge.errors import NonRetryableError
from concierge.llm import GenerationClient, GenerationService, LLMResponse
from concierge.llm.generation import ERROR_MESSAGES
from concierge.utils.resilience import RetryPolicy


BALI_QUERY = "Bali için paket önerir misiniz"


class FakeGenerator(GenerationClient):

    available = True

    def __init__(self, text="Bali, balayı için harika bir seçim. Size özel paketlerimiz var.", error=None):
        self.text = text
        self.error = error
        self.calls = 0

    @property
    def provider(self):
        return "fake"

    async def generate(self, prompt, history=None, context=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return LLMResponse(success=True, text=self.text, provider=self.provider)


async def noop_sleep(delay):
    return None


def make_config(**overrides):
    values = {
        "redis_url": "",
        "gemini_api_key": "",
        "preload_cache": False,
        "default_language": "tr",
    }
    values.update(overrides)
    return Config(**values)


@pytest_asyncio.fixture
async def service():
    service = ConciergeService(make_config())
    await service.start()
    yield service
    await service.close()


class TestAnswerFlow:

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, service):
        first = await service.answer(BALI_QUERY, "s1", language="tr")
        assert first.source == "agents"
        assert first.coordination is not None
        assert first.cache_key is not None
        assert first.response != FALLBACK_RESPONSE

        second = await service.answer(BALI_QUERY, "s1", language="tr")
        assert second.source == "cache"
        assert second.response == first.response
        assert second.similarity == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_language_detected_when_omitted(self, service):
        answer = await service.answer(BALI_QUERY, "s1")
        assert answer.language == "tr"

    @pytest.mark.asyncio
    async def test_fallback_not_cached(self, service):
        answer = await service.answer("", "s1", language="tr")
        assert answer.response == FALLBACK_RESPONSE
        assert len(service.cache) == 0

    @pytest.mark.asyncio
    async def test_background_work_drained(self, service):
        await service.answer(BALI_QUERY, "s1", language="tr")
        await service.drain()

        records = await service.sink.recent("orchestration")
        assert len(records) == 1
        assert records[0]["source"] == "agents"
        assert records[0]["distribution"]["primary_agent"] == "destination_expert"
        assert len(service.evaluator) == 1

    @pytest.mark.asyncio
    async def test_find_and_store(self, service):
        assert service.find_cached_answer(BALI_QUERY, language="tr") is None
        service.store_answer(BALI_QUERY, "Bali için üç farklı paketimiz var, hepsi balayı çiftlerine özel hazırlandı.", "tr")
        found = service.find_cached_answer(BALI_QUERY, language="tr")
        assert found["response"].startswith("Bali için üç farklı paketimiz var")
        assert found["similarity"] == pytest.approx(1.0)


class TestGeneration:

    @pytest.mark.asyncio
    async def test_generated_answer_cached(self):
        generator = FakeGenerator()
        service = ConciergeService(make_config(), generation=GenerationService(generator, sleep=noop_sleep))
        await service.start()

        answer = await service.answer(BALI_QUERY, "s1", language="tr")
        assert answer.source == "generation"
        assert answer.response == generator.text
        assert answer.generation.success

        again = await service.answer(BALI_QUERY, "s1", language="tr")
        assert again.source == "cache"
        assert generator.calls == 1
        await service.close()

    @pytest.mark.asyncio
    async def test_failed_generation_not_cached(self):
        generator = FakeGenerator(error=NonRetryableError("quota exhausted"))
        generation = GenerationService(generator, RetryPolicy(max_attempts=2), sleep=noop_sleep)
        service = ConciergeService(make_config(), generation=generation)
        await service.start()

        answer = await service.answer(BALI_QUERY, "s1", language="tr")
        assert answer.source == "error"
        assert answer.response == ERROR_MESSAGES["tr"]
        assert answer.cache_key is None
        assert len(service.cache) == 0
        await service.close()

    @pytest.mark.asyncio
    async def test_unexpected_generator_error_answered(self):
        generator = FakeGenerator(error=RuntimeError("upstream SDK blew up"))
        service = ConciergeService(make_config(), generation=GenerationService(generator, sleep=noop_sleep))
        await service.start()

        answer = await service.answer(BALI_QUERY, "s1", language="tr")
        assert answer.source == "error"
        assert answer.response == ERROR_MESSAGES["tr"]
        assert answer.cache_key is None
        assert generator.calls == 1
        await service.close()


class TestFeedback:

    @pytest.mark.asyncio
    async def test_feedback_by_cache_key(self, service):
        answer = await service.answer(BALI_QUERY, "s1", language="tr")
        assert await service.record_feedback(BALI_QUERY, "thumbs_up", "tr", "s1", answer.cache_key)

        entry = service.cache.get(answer.cache_key)
        assert entry.quality == pytest.approx(0.8)
        assert service.orchestrator.latest_record("s1").user_satisfaction == 1.0

    @pytest.mark.asyncio
    async def test_feedback_by_query_text(self, service):
        await service.answer(BALI_QUERY, "s1", language="tr")
        assert await service.record_feedback(BALI_QUERY, "negative", "tr")
        await service.drain()
        records = await service.sink.recent("feedback")
        assert records[0]["feedback"] == "negative"

    @pytest.mark.asyncio
    async def test_unknown_feedback_ignored(self, service):
        assert await service.record_feedback(BALI_QUERY, "meh", "tr") is False

    @pytest.mark.asyncio
    async def test_feedback_for_unknown_query(self, service):
        assert await service.record_feedback("hiç sorulmamış soru", "positive", "tr") is False


class TestMonitoring:

    @pytest.mark.asyncio
    async def test_stats(self, service):
        await service.answer(BALI_QUERY, "s1", language="tr")
        await service.drain()
        stats = service.stats()
        assert stats["cache"]["size"] == 1
        assert stats["agents"]["total_tasks"] == 1
        assert stats["evaluation"]["count"] == 1
        assert stats["index"]["total_embeddings"] == 13

    def test_agent_config_update(self):
        service = ConciergeService(make_config())
        assert service.update_agent_config("data_analyst", {"is_active": False})
        assert service.agent_status()["data_analyst"]["is_active"] is False
        assert service.update_agent_config("data_analyst", {"confidence": 3}) is False

    @pytest.mark.asyncio
    async def test_preload(self):
        service = ConciergeService(make_config(preload_cache=True))
        await service.start()
        assert len(service.cache) == 3
        await service.close()
