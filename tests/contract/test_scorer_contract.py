import httpx
import pytest

from content_governance.errors import ScorerUnavailable
from content_governance.ext.scoring.remote import RemoteScorer
from content_governance.ext.scoring.rules import RuleBasedScorer
from content_governance.ext.sensitive.strict import StrictDenyPolicy
from content_governance.models import ModerationResult, Severity, SuggestedAction


class ScorerContract:
    def make_scorer(self):
        raise NotImplementedError

    def test_clean_text_allowed(self):
        result = self.make_scorer().evaluate("hi", {"author_id": "u"})
        assert isinstance(result, ModerationResult)
        assert result.is_blocked is False
        assert result.suggested_action is SuggestedAction.ALLOW
        assert 0.0 <= result.confidence <= 0.4

    def test_violent_text_blocked(self):
        result = self.make_scorer().evaluate("I will kill them all", {"author_id": "u"})
        assert result.is_blocked is True
        assert result.suggested_action is SuggestedAction.BLOCK
        assert "hate_speech" in result.categories


class TestRuleBasedScorerContract(ScorerContract):
    def make_scorer(self):
        return RuleBasedScorer(StrictDenyPolicy())

    def test_sensitive_info_flagged(self):
        result = self.make_scorer().evaluate("my password is hunter2", {})
        assert result.suggested_action is SuggestedAction.FLAG
        assert result.severity is Severity.MEDIUM
        assert "sensitive_info" in result.categories

    def test_confidence_capped(self):
        text = "kill them all, my password is x, buy now at http://bit.ly/x " + "!" * 20
        result = self.make_scorer().evaluate(text, {})
        assert result.confidence == 1.0
        assert result.is_blocked

    def test_profanity_word_match(self):
        scorer = self.make_scorer()
        assert "profanity" in scorer.evaluate("you idiot", {}).categories
        assert "profanity" not in scorer.evaluate("hello world", {}).categories


def _verdict_handler(request: httpx.Request) -> httpx.Response:
    text = request.read().decode()
    if "kill" in text:
        return httpx.Response(200, json={
            "isBlocked": True,
            "confidence": 0.95,
            "severity": "critical",
            "suggestedAction": "block",
            "reasons": ["violence"],
            "categories": ["hate_speech"],
        })
    return httpx.Response(200, json={"isBlocked": False, "confidence": 0.05, "suggestedAction": "approve"})


class TestRemoteScorerContract(ScorerContract):
    def make_scorer(self):
        client = httpx.Client(transport=httpx.MockTransport(_verdict_handler))
        return RemoteScorer("http://scorer.test/score", client=client)

    def test_escalate_maps_to_flag(self):
        client = httpx.Client(transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"confidence": 0.5, "suggestedAction": "escalate", "severity": "high"})
        ))
        result = RemoteScorer("http://scorer.test/score", client=client).evaluate("x", {})
        assert result.suggested_action is SuggestedAction.FLAG
        assert result.severity is Severity.HIGH

    def test_sends_text_and_metadata(self):
        seen = {}

        def handler(request):
            import json

            seen.update(json.loads(request.read()))
            return httpx.Response(200, json={"confidence": 0.0})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        RemoteScorer("http://scorer.test/score", client=client).evaluate("hello", {"author_id": "u"})
        assert seen == {"text": "hello", "metadata": {"author_id": "u"}}

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(503, json={"error": "overloaded"}),
            httpx.Response(200, content=b"not json"),
            httpx.Response(200, json=["not", "an", "object"]),
            httpx.Response(200, json={"confidence": 3.0}),
            httpx.Response(200, json={"suggestedAction": "nuke"}),
            httpx.Response(200, json={"isBlocked": "false", "suggestedAction": "allow", "confidence": 0.1}),
            httpx.Response(200, json={"isBlocked": 0, "confidence": 0.1}),
        ],
    )
    def test_bad_responses_raise_scorer_unavailable(self, response):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: response))
        with pytest.raises(ScorerUnavailable):
            RemoteScorer("http://scorer.test/score", client=client).evaluate("x", {})

    def test_transport_error_raises_scorer_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(ScorerUnavailable):
            RemoteScorer("http://scorer.test/score", client=client).evaluate("x", {})


def test_string_is_blocked_fails_open_in_evaluator():
    from content_governance.moderation import ModerationEvaluator

    client = httpx.Client(transport=httpx.MockTransport(
        lambda request: httpx.Response(200, json={"isBlocked": "false", "suggestedAction": "allow", "confidence": 0.1})
    ))
    evaluator = ModerationEvaluator(RemoteScorer("http://scorer.test/score", client=client))
    try:
        assert evaluator.evaluate("hello", {"author_id": "u"}) is None
    finally:
        evaluator.shutdown()
