import random

import pytest

from fakes import wait_until
from proctor_engine.common.config import InterviewConfig
from proctor_engine.common.enums import DialogueState, MessageRole
from proctor_engine.common.errors import UnsupportedEnvironment
from proctor_engine.interview.dialogue import (
    RESPONSE_TEMPLATES,
    DialogueSession,
    SpeechRecognizer,
    SpeechSynthesizer,
    generate_response,
)


class FakeRecognizer(SpeechRecognizer):
    def __init__(self):
        super().__init__()
        self.start_calls = 0
        self.stop_calls = 0

    def start(self):
        self.start_calls += 1

    def stop(self):
        self.stop_calls += 1

    def say(self, text):
        self.on_transcript(text)

    def end(self):
        self.on_end()


class FakeSynthesizer(SpeechSynthesizer):
    def __init__(self):
        self.spoken = []
        self.cancel_calls = 0

    async def speak(self, text):
        self.spoken.append(text)

    def cancel(self):
        self.cancel_calls += 1


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def dialogue(recognizer, synthesizer):
    return DialogueSession(recognizer, synthesizer, responder=lambda text: f"Tell me more about {text}",
                           thinking_delay_s=0)


def test_missing_speech_support_is_unsupported(synthesizer):
    with pytest.raises(UnsupportedEnvironment):
        DialogueSession(None, synthesizer)


def test_generate_response_quotes_start_of_answer():
    answer = "I would shard the database by customer id and cache hot rows"
    response = generate_response(answer, rng=random.Random(7))
    assert '"I would shard the database by ..."' in response
    assert any(response == t.format(quote=answer[:30]) for t in RESPONSE_TEMPLATES)


async def test_start_listens_and_logs_system_message(dialogue, recognizer):
    await dialogue.start()

    assert dialogue.state is DialogueState.LISTENING
    assert recognizer.start_calls == 1
    assert dialogue.messages[-1].role is MessageRole.SYSTEM
    await dialogue.stop()


async def test_transcript_is_answered_and_spoken(dialogue, recognizer, synthesizer):
    await dialogue.start()
    recognizer.say("binary search")
    await wait_until(lambda: synthesizer.spoken)

    roles = [m.role for m in dialogue.messages]
    assert roles == [MessageRole.SYSTEM, MessageRole.USER, MessageRole.AI]
    assert synthesizer.spoken == ["Tell me more about binary search"]
    await wait_until(lambda: dialogue.state is DialogueState.LISTENING)
    await dialogue.stop()


async def test_turns_are_answered_in_order(dialogue, recognizer, synthesizer):
    await dialogue.start()
    recognizer.say("first")
    recognizer.say("second")
    await wait_until(lambda: len(synthesizer.spoken) == 2)

    assert synthesizer.spoken == ["Tell me more about first", "Tell me more about second"]
    await dialogue.stop()


async def test_blank_transcript_is_ignored(dialogue, recognizer):
    await dialogue.start()
    recognizer.say("   ")

    assert await dialogue.handle_utterance("") is None
    assert [m.role for m in dialogue.messages] == [MessageRole.SYSTEM]
    await dialogue.stop()


async def test_recognizer_is_rearmed_only_while_listening(dialogue, recognizer):
    await dialogue.start()
    recognizer.end()
    assert recognizer.start_calls == 2

    await dialogue.stop()
    recognizer.end()
    assert recognizer.start_calls == 2


async def test_stop_returns_to_idle(dialogue, recognizer, synthesizer):
    await dialogue.start()
    await dialogue.stop()
    await dialogue.stop()

    assert dialogue.state is DialogueState.IDLE
    assert not dialogue.listening
    assert recognizer.stop_calls == 1
    assert synthesizer.cancel_calls == 1
    assert dialogue.messages[-1].text == "Stopped listening"


async def test_from_config_uses_configured_thinking_delay(recognizer, synthesizer):
    dialogue = DialogueSession.from_config(InterviewConfig(thinking_delay_s=0.01), recognizer, synthesizer,
                                           responder=lambda text: "ok")
    assert dialogue.thinking_delay_s == 0.01

    assert await dialogue.handle_utterance("I used a heap") == "ok"
    assert synthesizer.spoken == ["ok"]
