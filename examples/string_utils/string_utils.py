# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""String helpers exposed as tools and prompts.

Generate and run the server::

    docmcp examples/string_utils/string_utils.py --run
"""

import re


def reverse(text: str) -> str:
    """Reverse a string

    @param text The string to reverse
    """
    return text[::-1]


def to_upper_case(text: str) -> str:
    """Convert a string to uppercase

    @param text The string to convert
    """
    return text.upper()


def to_lower_case(text: str) -> str:
    """Convert a string to lowercase

    @param text The string to convert
    """
    return text.lower()


def word_count(text: str) -> int:
    """Count the number of words in a string

    @param text The string to count words in
    """
    return len(text.split())


def is_palindrome(text: str) -> bool:
    """Check if a string is a palindrome

    @param text The string to check
    """
    cleaned = re.sub(r"[^a-z0-9]", "", text.lower())
    return cleaned == cleaned[::-1]


def truncate(text: str, max_length: int) -> str:
    """Truncate a string to a specified length with an ellipsis

    @param text The string to truncate
    @param max_length The maximum length before truncation
    """
    if len(text) <= max_length:
        return text
    return text[: max(max_length - 3, 0)] + "..."


def summarize_text(text: str, max_sentences: int = 3) -> list[dict]:
    """Generate a prompt to summarize the given text

    @prompt
    @param text The text to summarize
    @param max_sentences Maximum number of sentences in the summary
    """
    body = (
        f"Please summarize the following text in {max_sentences} sentences or less:\n\n{text}\n\n"
        "Provide a concise summary that captures the main points."
    )
    return [{"role": "user", "content": {"type": "text", "text": body}}]


def rewrite_tone(text: str, tone: str) -> str:
    """Generate a prompt to rewrite text in a different tone

    @prompt
    @param text The text to rewrite
    @param tone The desired tone (e.g. "formal", "casual", "friendly")
    """
    return (
        f"Please rewrite the following text in a {tone} tone:\n\n{text}\n\n"
        f"Keep the meaning the same but adjust the style and word choice to match the {tone} tone."
    )


def translate_text(text: str, target_language: str) -> str:
    """Generate a prompt to translate text

    @prompt translate
    @param text The text to translate
    @param target_language The language to translate to
    """
    return (
        f'Please translate the text to "{target_language}". '
        f"Provide only the translation without any additional explanation:\n{text}\n"
    )
