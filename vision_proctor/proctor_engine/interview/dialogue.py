# vision_proctor/proctor_engine/interview/dialogue.py
import asyncio
import logging
import random
from abc import ABC, abstractmethod
from typing import Callable, List, Optional
from ..common.config import InterviewConfig
from ..common.enums import DialogueState, MessageRole
from ..common.errors import UnsupportedEnvironment
from ..common.models import DialogueMessage

logger = logging.getLogger(__name__)

RESPONSE_TEMPLATES = [
    "That's an interesting point about \"{quote}...\". Could you elaborate on your approach to solving this problem?",
    "I see you mentioned \"{quote}...\". How would you optimize this solution for scale?",
    "Great! Based on what you said about \"{quote}...\", can you explain the time complexity?",
    "Thank you for sharing. Regarding \"{quote}...\", what trade-offs would you consider here?",
    "Interesting perspective on \"{quote}...\". Can you walk me through your thought process?",
]

def generate_response(utterance: str, rng=random) -> str:
    """Picks a follow-up question that quotes the start of the candidate's answer."""
    return rng.choice(RESPONSE_TEMPLATES).format(quote=utterance[:30])

class SpeechRecognizer(ABC):
    """Streaming speech-to-text source.

    Implementations call on_transcript(text) for every final transcript and
    on_end() whenever the stream stops, including when it stops by itself.
    """

    def __init__(self):
        self.on_transcript: Optional[Callable[[str], None]] = None
        self.on_end: Optional[Callable[[], None]] = None

    @abstractmethod
    def start(self):
        ...

    @abstractmethod
    def stop(self):
        ...

class SpeechSynthesizer(ABC):
    @abstractmethod
    async def speak(self, text: str):
        ...

    def cancel(self):
        pass

class DialogueSession:
    """Turn-based spoken interview: listen, think, answer out loud, listen again.

    Final transcripts are queued and answered one at a time. The recognizer may
    end on its own (silence timeouts); while the session still intends to
    listen it is restarted here rather than trusting the recognizer's event.
    """

    def __init__(self, recognizer: Optional[SpeechRecognizer], synthesizer: Optional[SpeechSynthesizer],
                 responder: Callable[[str], str] = generate_response, thinking_delay_s: float = 2.0):
        if recognizer is None or synthesizer is None:
            raise UnsupportedEnvironment("Speech recognition and synthesis are both required for the voice interview.")
        self._recognizer = recognizer
        self._synthesizer = synthesizer
        self._responder = responder
        self.thinking_delay_s = thinking_delay_s

        self.state = DialogueState.IDLE
        self.messages: List[DialogueMessage] = []
        self._wants_listening = False
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

        recognizer.on_transcript = self.submit_transcript
        recognizer.on_end = self._on_recognizer_end

    @classmethod
    def from_config(cls, config: InterviewConfig, recognizer, synthesizer,
                    responder: Callable[[str], str] = generate_response):
        return cls(recognizer, synthesizer, responder=responder, thinking_delay_s=config.thinking_delay_s)

    @property
    def listening(self) -> bool:
        return self._wants_listening

    def _add_message(self, role: MessageRole, text: str):
        self.messages.append(DialogueMessage(role=role, text=text))

    async def start(self):
        if self._wants_listening:
            return
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._run())
        self._recognizer.start()
        self._wants_listening = True
        self.state = DialogueState.LISTENING
        self._add_message(MessageRole.SYSTEM, "Listening... Speak now!")
        logger.info("Voice interview started.")

    async def stop(self):
        if not self._wants_listening:
            return
        self._wants_listening = False
        self._recognizer.stop()
        self._synthesizer.cancel()

        worker, self._worker = self._worker, None
        if worker is not None:
            worker.cancel()
            await asyncio.gather(worker, return_exceptions=True)
        self._queue = None
        self.state = DialogueState.IDLE
        self._add_message(MessageRole.SYSTEM, "Stopped listening")
        logger.info("Voice interview stopped.")

    def submit_transcript(self, text: str):
        """Queues one final transcript for answering. Blank transcripts are dropped."""
        if not text.strip() or self._queue is None:
            return
        self._queue.put_nowait(text)

    def _on_recognizer_end(self):
        if self._wants_listening:
            logger.debug("Speech recognizer ended while listening, restarting it.")
            self._recognizer.start()

    async def _run(self):
        while True:
            text = await self._queue.get()
            await self.handle_utterance(text)

    async def handle_utterance(self, text: str) -> Optional[str]:
        if not text.strip():
            return None
        self._add_message(MessageRole.USER, text)

        self.state = DialogueState.THINKING
        await asyncio.sleep(self.thinking_delay_s)
        response = self._responder(text)
        self._add_message(MessageRole.AI, response)

        self.state = DialogueState.SPEAKING
        try:
            await self._synthesizer.speak(response)
        finally:
            self.state = DialogueState.LISTENING if self._wants_listening else DialogueState.IDLE
        return response
