import pytest

from ai.intent import IntentKind, IntentResolver, fast_schedule_hit
from ai.result import ErrorKind
from memory.models import ConversationState


@pytest.fixture
def resolver(capabilities):
    return IntentResolver(capabilities)


@pytest.mark.asyncio
async def test_reset_beats_schedule_keyword(resolver, capabilities):
    decision = await resolver.classify("reset my schedule", "en")
    assert decision.kind == IntentKind.RESET
    assert capabilities.classify_calls == []


@pytest.mark.asyncio
async def test_chitchat_phrase(resolver):
    decision = await resolver.classify("Let's talk a bit, I'm tired", "en")
    assert decision.kind == IntentKind.CHITCHAT


@pytest.mark.asyncio
async def test_translation_command_carries_target_and_text(resolver, capabilities):
    decision = await resolver.classify("->fi where is my shift?", "en")
    assert decision.kind == IntentKind.TRANSLATION
    assert decision.target_lang == "fi"
    assert decision.text == "where is my shift?"
    assert capabilities.classify_calls == []


@pytest.mark.asyncio
async def test_translation_back_reference(resolver):
    decision = await resolver.classify("translate that to russian", "en")
    assert decision.kind == IntentKind.TRANSLATION
    assert decision.target_lang == "ru"
    assert decision.text == ""


@pytest.mark.asyncio
async def test_schedule_keyword_skips_classifier(resolver, capabilities):
    decision = await resolver.classify("send my schedule please", "en")
    assert decision.kind == IntentKind.SCHEDULE
    assert decision.reason == "schedule_keyword"
    assert capabilities.classify_calls == []


@pytest.mark.asyncio
async def test_schedule_combo(resolver):
    assert (await resolver.classify("what is my next shift", "en")).kind == IntentKind.SCHEDULE
    assert fast_schedule_hit("Когда у меня смена сегодня?")


@pytest.mark.asyncio
async def test_schedule_classifier_fallback(resolver, capabilities):
    capabilities.schedule_answer = True
    decision = await resolver.classify("when do I work tomorrow?", "en")
    assert decision.kind == IntentKind.SCHEDULE
    assert decision.reason == "schedule_classifier"
    assert len(capabilities.classify_calls) == 1
    _, text, lang = capabilities.classify_calls[0]
    assert text == "when do I work tomorrow?"
    assert lang == "en"


@pytest.mark.asyncio
async def test_classifier_failure_counts_as_no(resolver, capabilities):
    capabilities.fail["classify_yes_no"] = ErrorKind.TIMEOUT
    decision = await resolver.classify("how many vacation days do I get?", "en")
    assert decision.kind == IntentKind.KNOWLEDGE_QUERY


@pytest.mark.asyncio
async def test_salary_phrase(resolver):
    decision = await resolver.classify("What would my salary be for 25 h/week?", "en")
    assert decision.kind == IntentKind.SALARY_CALC
    assert decision.reason == "salary_phrase"


@pytest.mark.parametrize(
    "text",
    ["How is holiday pay calculated?", "what is my salary?", "Is there a monthly bonus?"],
)
@pytest.mark.asyncio
async def test_salary_word_without_numbers_is_a_knowledge_query(resolver, text):
    decision = await resolver.classify(text, "en")
    assert decision.kind == IntentKind.KNOWLEDGE_QUERY


@pytest.mark.asyncio
async def test_rate_and_hours_without_keyword(resolver):
    decision = await resolver.classify("12,26 €/h and 30 h/week", "en")
    assert decision.kind == IntentKind.SALARY_CALC
    assert decision.reason == "rate_and_hours"


@pytest.mark.asyncio
async def test_learn_is_not_earn(resolver):
    decision = await resolver.classify("where can I learn the cleaning rules?", "en")
    assert decision.kind == IntentKind.KNOWLEDGE_QUERY


@pytest.mark.asyncio
async def test_bare_number_follows_salary_thread(resolver):
    state = ConversationState(last_topic="salary")
    assert (await resolver.classify("25", "en", state)).kind == IntentKind.SALARY_CALC
    assert (await resolver.classify("25", "en", ConversationState())).kind == IntentKind.KNOWLEDGE_QUERY


@pytest.mark.asyncio
async def test_default_is_knowledge_query(resolver):
    decision = await resolver.classify("Do I need gloves for chemicals?", "en")
    assert decision.kind == IntentKind.KNOWLEDGE_QUERY


@pytest.mark.asyncio
async def test_empty_text_is_unknown(resolver, capabilities):
    decision = await resolver.classify("   ", "en")
    assert decision.kind == IntentKind.UNKNOWN
    assert capabilities.total_calls == 0
