from types import SimpleNamespace

from originalitycheck.exceptions import TextUnderstandingError
from originalitycheck.llm_client import (
    OpenAITextUnderstanding,
    TextUnderstandingRequest,
    extract_json_payload,
)


def _response(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


class FakeChatCompletions:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        response = self.responses[min(len(self.calls) - 1, len(self.responses) - 1)]
        if isinstance(response, Exception):
            raise response
        return response


class FakeClient:
    def __init__(self, responses):
        self.chat = SimpleNamespace(
            completions=FakeChatCompletions(responses=responses)
        )


def _request(expect="object"):
    return TextUnderstandingRequest(
        step_name="test_step",
        system_prompt="system",
        user_content="user",
        temperature=0.3,
        expect=expect,
    )


def test_extract_json_payload_reads_fenced_object():
    content = 'Here you go:\n```json\n{"domain": "NLP"}\n```\nThanks!'

    assert extract_json_payload(content, "object") == {"domain": "NLP"}


def test_extract_json_payload_skips_prose_brackets():
    content = 'Matches [see below]: [{"paperIndex": 0}] and nothing else [1]'

    assert extract_json_payload(content, "array") == [{"paperIndex": 0}]


def test_extract_json_payload_ignores_trailing_text_after_object():
    content = '{"a": 1} then {"b": 2}'

    assert extract_json_payload(content, "object") == {"a": 1}


def test_extract_json_payload_returns_none_when_kind_is_missing():
    assert extract_json_payload("no json at all", "object") is None
    assert extract_json_payload('{"items": 1}', "array") is None
    assert extract_json_payload('{"broken": ', "object") is None


def test_generate_sends_prompts_and_parses_payload():
    fake_client = FakeClient([_response('```\n[{"type": "positive"}]\n```')])
    client = OpenAITextUnderstanding(
        api_key="k",
        base_url="https://api.openai.com/v1",
        model="test-model",
        client=fake_client,
    )

    payload = client.generate(_request(expect="array"))

    assert payload == [{"type": "positive"}]
    call = fake_client.chat.completions.calls[0]
    assert call["model"] == "test-model"
    assert call["temperature"] == 0.3
    assert call["messages"][0] == {"role": "system", "content": "system"}
    assert call["messages"][1] == {"role": "user", "content": "user"}


def test_generate_returns_none_on_request_failure():
    fake_client = FakeClient([RuntimeError("gateway timeout")])
    client = OpenAITextUnderstanding(
        api_key="k", base_url="https://x", model="m", client=fake_client
    )

    assert client.generate(_request()) is None


def test_generate_returns_none_on_malformed_content():
    fake_client = FakeClient([_response("I could not find anything useful.")])
    client = OpenAITextUnderstanding(
        api_key="k", base_url="https://x", model="m", client=fake_client
    )

    assert client.generate(_request()) is None


def test_generate_without_api_key_makes_no_call():
    client = OpenAITextUnderstanding(api_key=None, base_url="https://x", model="m")

    assert client.enabled is False
    assert client.generate(_request()) is None


def test_complete_rejects_empty_choices():
    fake_client = FakeClient([SimpleNamespace(choices=[])])
    client = OpenAITextUnderstanding(
        api_key="k", base_url="https://x", model="m", client=fake_client
    )

    try:
        client.complete(_request())
    except TextUnderstandingError as exc:
        assert "no choices" in str(exc)
    else:
        raise AssertionError("expected TextUnderstandingError")


def test_list_content_chunks_are_joined():
    fake_client = FakeClient(
        [_response([{"type": "text", "text": '{"summary":'}, {"type": "text", "text": '"ok"}'}])]
    )
    client = OpenAITextUnderstanding(
        api_key="k", base_url="https://x", model="m", client=fake_client
    )

    assert client.generate(_request()) == {"summary": "ok"}


def test_unit_temperature_models_are_forced_to_one():
    fake_client = FakeClient([_response("{}")])
    client = OpenAITextUnderstanding(
        api_key="k", base_url="https://x", model="kimi-k2.5-preview", client=fake_client
    )

    client.generate(_request())

    assert fake_client.chat.completions.calls[0]["temperature"] == 1.0
