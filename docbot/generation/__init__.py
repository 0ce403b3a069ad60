from docbot.generation.answer_generator import (
    AnswerGenerator,
    ContextEchoGenerator,
    OpenAIAnswerGenerator,
    PlainTextExtractor,
    TextExtractor,
)

__all__ = [
    "AnswerGenerator",
    "ContextEchoGenerator",
    "OpenAIAnswerGenerator",
    "PlainTextExtractor",
    "TextExtractor",
]
