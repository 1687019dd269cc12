"""Turns an input line into a Pipeline of Commands.

Parsing happens in two passes over the same quoting rules: the line is first
cut into pipeline segments on unquoted ``|``, then each segment is split into
words with the quote and escape markers consumed. Unquoted redirection
operators are pulled out of the word list last.
"""

import enum

from seashell.log import get_logger
from seashell.models import Command, Pipeline, RedirectionInfo

logger = get_logger(__name__)

STDOUT_OPERATORS = {">": False, "1>": False, ">>": True, "1>>": True}
STDERR_OPERATORS = {"2>": False, "2>>": True}
REDIRECTION_OPERATORS = set(STDOUT_OPERATORS) | set(STDERR_OPERATORS)

# characters a backslash may escape inside double quotes
DOUBLE_QUOTE_ESCAPABLE = ('"', "\\")


class QuotedWord(str):
    """A word that contained quotes or escapes; never read as an operator."""


class State(enum.Enum):
    NORMAL = "normal"
    SINGLE_QUOTE = "single"
    DOUBLE_QUOTE = "double"
    ESCAPED = "escaped"


def split_pipeline(line):
    """Split on ``|`` outside quotes; quote and escape characters are kept."""
    segments = []
    current = []
    state = State.NORMAL
    in_double = False

    for char in line:
        if state is State.ESCAPED:
            current.append(char)
            state = State.DOUBLE_QUOTE if in_double else State.NORMAL
            continue

        if state is State.SINGLE_QUOTE:
            if char == "'":
                state = State.NORMAL
        elif state is State.DOUBLE_QUOTE:
            if char == '"':
                state = State.NORMAL
                in_double = False
            elif char == "\\":
                state = State.ESCAPED
        else:
            if char == "|":
                segments.append("".join(current))
                current = []
                continue
            if char == "'":
                state = State.SINGLE_QUOTE
            elif char == '"':
                state = State.DOUBLE_QUOTE
                in_double = True
            elif char == "\\":
                state = State.ESCAPED
        current.append(char)

    segments.append("".join(current))
    return segments


def tokenize(segment):
    """Split one pipeline segment into words, consuming quotes and escapes."""
    tokens = []
    word = []
    in_word = False
    quoted = False
    state = State.NORMAL
    i = 0
    length = len(segment)

    while i < length:
        char = segment[i]

        if state is State.SINGLE_QUOTE:
            if char == "'":
                state = State.NORMAL
            else:
                word.append(char)
        elif state is State.DOUBLE_QUOTE:
            if char == '"':
                state = State.NORMAL
            elif char == "\\" and i + 1 < length and segment[i + 1] in DOUBLE_QUOTE_ESCAPABLE:
                word.append(segment[i + 1])
                i += 1
            else:
                word.append(char)
        elif char.isspace():
            if in_word:
                tokens.append(_word(word, quoted))
                word = []
                in_word = False
                quoted = False
        else:
            in_word = True
            if char in "\\'\"":
                quoted = True
            if char == "\\":
                if i + 1 < length:
                    word.append(segment[i + 1])
                    i += 1
                else:
                    word.append(char)
            elif char == "'":
                state = State.SINGLE_QUOTE
            elif char == '"':
                state = State.DOUBLE_QUOTE
            else:
                word.append(char)
        i += 1

    # an unterminated quote simply runs to the end of the segment
    if in_word:
        tokens.append(_word(word, quoted))
    return tokens


def _word(chars, quoted):
    text = "".join(chars)
    return QuotedWord(text) if quoted else text


def extract_redirection(tokens):
    """Return ``(words, RedirectionInfo)`` with every operator removed."""
    words = []
    targets = {}
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if isinstance(token, QuotedWord) or token not in REDIRECTION_OPERATORS:
            words.append(str(token))
            i += 1
            continue

        if i + 1 >= len(tokens):
            logger.debug("redirection.missing_target", operator=token)
            break

        target = str(tokens[i + 1])
        if token in STDOUT_OPERATORS:
            targets["stdout_target"] = target
            targets["stdout_append"] = STDOUT_OPERATORS[token]
        else:
            targets["stderr_target"] = target
            targets["stderr_append"] = STDERR_OPERATORS[token]
        i += 2

    return words, RedirectionInfo(**targets)


def parse_command(segment):
    words, redirection = extract_redirection(tokenize(segment))
    if not words:
        return Command("", (), redirection)
    return Command(words[0], tuple(words[1:]), redirection)


def parse_pipeline(line):
    """Parse a full input line. Never raises; blank input gives an empty command."""
    return Pipeline(tuple(parse_command(segment) for segment in split_pipeline(line)))
