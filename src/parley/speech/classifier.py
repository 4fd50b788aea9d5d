"""
Rule-based utterance classification.

A deliberately simple heuristic: regex lexicons decide whether a finalized
utterance is a question, a command, and which coarse emotion it carries.
"""

import re
from dataclasses import dataclass, field
from typing import Pattern, Sequence, Tuple

STATEMENT = "statement"
QUESTION = "question"
COMMAND = "command"

POSITIVE = "positive"
NEGATIVE = "negative"
EXCLAMATION = "exclamation"
NEUTRAL = "neutral"

# Words shorter than or equal to this are not keywords
KEYWORD_MIN_EXCLUSIVE = 4


def _words(*words: str) -> Pattern:
    """Case-insensitive whole-word alternation."""
    return re.compile(r'\b(' + '|'.join(re.escape(w) for w in words) + r')\b', re.IGNORECASE)


QUESTION_PATTERNS: Tuple[Pattern, ...] = (
    _words("what", "when", "where", "who", "why", "how", "can", "could",
           "would", "should", "is", "are", "do", "does", "did"),
    re.compile(r'\?'),
    _words("please", "tell me", "explain", "describe"),
)

COMMAND_PATTERNS: Tuple[Pattern, ...] = (
    _words("start", "stop", "begin", "end", "pause", "resume", "next", "previous"),
    _words("show", "hide", "display", "open", "close"),
)

# Checked in order; the first category that matches wins
EMOTION_PRIORITY: Tuple[Tuple[str, Pattern], ...] = (
    (POSITIVE, _words("great", "good", "excellent", "wonderful", "amazing",
                      "fantastic", "love", "like")),
    (NEGATIVE, _words("bad", "terrible", "awful", "hate", "dislike", "worst", "horrible")),
    (QUESTION, re.compile(r'\?')),
    (EXCLAMATION, re.compile(r'!')),
)


@dataclass(frozen=True)
class ClassificationResult:
    """What the classifier concluded about one utterance."""
    has_speech: bool = False
    type: str = STATEMENT
    is_question: bool = False
    is_command: bool = False
    emotion: str = NEUTRAL
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    word_count: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "has_speech": self.has_speech,
            "type": self.type,
            "is_question": self.is_question,
            "is_command": self.is_command,
            "emotion": self.emotion,
            "keywords": list(self.keywords),
            "word_count": self.word_count,
        }


def _any_match(patterns: Sequence[Pattern], text: str) -> bool:
    return any(pattern.search(text) for pattern in patterns)


class PatternClassifier:
    """
    Stateless mapping from text to ClassificationResult.

    Precedence matters and is part of the observable behaviour:
    - command detection runs after question detection, so a text matching
      both ends up with type "command" (is_question stays True);
    - emotions are tested in EMOTION_PRIORITY order, so "great?" is positive.
    """

    def __init__(self,
                 question_patterns: Sequence[Pattern] = QUESTION_PATTERNS,
                 command_patterns: Sequence[Pattern] = COMMAND_PATTERNS,
                 emotion_priority: Sequence[Tuple[str, Pattern]] = EMOTION_PRIORITY):
        self.question_patterns = tuple(question_patterns)
        self.command_patterns = tuple(command_patterns)
        self.emotion_priority = tuple(emotion_priority)

    def classify(self, text: str) -> ClassificationResult:
        """Classify one finalized utterance."""
        text = text or ""
        if not text.strip():
            return ClassificationResult()

        utterance_type = STATEMENT

        is_question = _any_match(self.question_patterns, text)
        if is_question:
            utterance_type = QUESTION

        is_command = _any_match(self.command_patterns, text)
        if is_command:
            utterance_type = COMMAND

        return ClassificationResult(
            has_speech=True,
            type=utterance_type,
            is_question=is_question,
            is_command=is_command,
            emotion=self.detect_emotion(text),
            keywords=extract_keywords(text),
            word_count=len(text.split()),
        )

    def detect_emotion(self, text: str) -> str:
        for label, pattern in self.emotion_priority:
            if pattern.search(text):
                return label
        return NEUTRAL


def extract_keywords(text: str) -> Tuple[str, ...]:
    """Lower-cased whitespace tokens longer than 4 characters, in order."""
    return tuple(word for word in text.lower().split() if len(word) > KEYWORD_MIN_EXCLUSIVE)


_default_classifier = PatternClassifier()


def classify(text: str) -> ClassificationResult:
    """Classify text with the default lexicons."""
    return _default_classifier.classify(text)
