import pytest

from mamatrack.errors import InvalidRecordError, LLMError
from mamatrack.health_tips import (HealthTip, LlmTipProvider, TipContext,
                                   describe_context, fallback_tips,
                                   generate_health_tips, provider_from_config)


class FakeClient:
    def __init__(self, answer):
        self.answer = answer
        self.messages = None

    def chat(self, messages, **kwargs):
        self.messages = list(messages)
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer


def ids(tips):
    return [t.id for t in tips]


def test_fallback_late_pregnancy_without_tetanus():
    ctx = TipContext('Mary', pregnancy_weeks=30)
    tips = fallback_tips(ctx)
    assert ids(tips) == ['tetanus-vaccine', 'ifas-supplements', 'pregnancy-nutrition', 'general-health']
    assert tips[0].priority == 'high'
    assert tips[2].title == 'Nutrition at 30 Weeks'


def test_fallback_with_children_only():
    ctx = TipContext('Mary', children_ages=['7 months'])
    assert ids(fallback_tips(ctx)) == ['vaccination-importance', 'general-health']


def test_fallback_covered_pregnancy():
    ctx = TipContext('Mary', pregnancy_weeks=30, tetanus_vaccinated=True, ifas_started=True)
    assert ids(fallback_tips(ctx)) == ['pregnancy-nutrition', 'general-health']


def test_describe_context():
    text = describe_context(TipContext('Mary', 20, children_ages=['2 years']))
    assert 'Mary' in text
    assert '20 weeks pregnant' in text
    assert "hasn't received her tetanus" in text
    assert 'Child 1 is 2 years old' in text


def test_provider_error_falls_back():
    def broken(ctx):
        raise LLMError('timeout')

    tips = generate_health_tips(TipContext('Mary'), broken)
    assert ids(tips) == ['general-health']


def test_empty_provider_answer_falls_back():
    assert ids(generate_health_tips(TipContext('Mary'), lambda ctx: [])) == ['general-health']


def test_llm_provider_parses_tips():
    client = FakeClient('```json\n{"tips": [{"id": "t1", "title": "Rest", "content": "Sleep well", '
                        '"category": "pregnancy", "priority": "high", "targetWeeks": 20}]}\n```')
    tips = LlmTipProvider(client)(TipContext('Mary', 20))
    assert tips == [HealthTip('t1', 'Rest', 'Sleep well', 'pregnancy', 'high', 20, None)]
    assert client.messages[0].role == 'system'
    assert '20 weeks pregnant' in client.messages[1].content


def test_llm_provider_garbage_answer_falls_back():
    provider = LlmTipProvider(FakeClient('I cannot help with that.'))
    with pytest.raises(LLMError):
        provider(TipContext('Mary'))
    assert ids(generate_health_tips(TipContext('Mary'), provider)) == ['general-health']


def test_tip_validation():
    with pytest.raises(InvalidRecordError):
        HealthTip.from_dict({'title': 'x', 'content': 'y', 'category': 'sports'})
    with pytest.raises(InvalidRecordError):
        HealthTip.from_dict({'title': '', 'content': 'y'})
    tip = HealthTip.from_dict({'title': 'Wash Hands', 'content': 'Often'})
    assert tip.id == 'wash-hands'
    assert tip.to_dict()['category'] == 'general'


def test_provider_from_config():
    assert provider_from_config({'llm': {'mode': 'off'}}) is None
    assert isinstance(provider_from_config({'llm': {'mode': 'http', 'api_key': 'k'}}), LlmTipProvider)
