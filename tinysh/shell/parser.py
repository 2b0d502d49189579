"""
Command Parser Module

Turns a command line into conditional segments, pipeline stages and
per-stage redirects.

Parsing is a flat tokenizer followed by grouping passes over the token
stream. Tokens remember where they came from, so every group keeps its
raw text. There is no quoting or escaping.

Version: 1.0.0
"""

from dataclasses import dataclass
from typing import Optional, List, Tuple
from enum import Enum

from tinysh.logger import get_logger


class TokenType(Enum):
    """Token types for command parsing."""
    WORD = "word"
    AND = "and"
    OR = "or"
    PIPE = "pipe"
    REDIRECT_IN = "redirect_in"
    REDIRECT_OUT = "redirect_out"
    REDIRECT_APPEND = "redirect_append"


# Longest operators first
OPERATORS: List[Tuple[str, TokenType]] = [
    ('&&', TokenType.AND),
    ('||', TokenType.OR),
    ('>>', TokenType.REDIRECT_APPEND),
    ('|', TokenType.PIPE),
    ('<', TokenType.REDIRECT_IN),
    ('>', TokenType.REDIRECT_OUT),
]

OUTPUT_REDIRECTS = (TokenType.REDIRECT_OUT, TokenType.REDIRECT_APPEND)


@dataclass
class Token:
    """A parsed token and its [start, end) span in the source text."""
    type: TokenType
    value: str
    start: int
    end: int


class JoinOperator(Enum):
    """Operator joining a segment to the one before it."""
    NONE = ""
    AND = "&&"
    OR = "||"


@dataclass
class CommandSegment:
    """One ``&&``/``||``-delimited unit of a line."""
    text: str
    join_operator: JoinOperator = JoinOperator.NONE
    execution_gate: bool = True


@dataclass
class RedirectSpec:
    """
    Input/output targets of a single stage.

    ``ambiguous`` is set when a direction had more than one operator;
    that direction is then left unset and its operators stay in the
    command text.
    """
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    append_mode: bool = False
    ambiguous: bool = False

    @property
    def is_empty(self) -> bool:
        return self.input_path is None and self.output_path is None


class CommandParser:
    """
    Parses shell command lines.

    Handles:
    - Conditional segments (&&, ||)
    - Pipelines (|)
    - Redirections (<, >, >>), at most one per direction

    Example:
        >>> parser = CommandParser()
        >>> [s.text for s in parser.split_conditionals("make && ls | wc -l")]
        ['make', 'ls | wc -l']
        >>> parser.split_pipeline("ls | wc -l")
        ['ls', 'wc -l']
    """

    def __init__(self):
        self._logger = get_logger('parser')

    def tokenize(self, text: str) -> List[Token]:
        """Convert text into a flat token stream."""
        tokens: List[Token] = []
        word_start: Optional[int] = None
        i = 0

        while i < len(text):
            char = text[i]

            operator = self._match_operator(text, i)
            if operator is not None or char.isspace():
                if word_start is not None:
                    tokens.append(Token(TokenType.WORD, text[word_start:i], word_start, i))
                    word_start = None

                if operator is not None:
                    symbol, token_type = operator
                    tokens.append(Token(token_type, symbol, i, i + len(symbol)))
                    i += len(symbol)
                else:
                    i += 1
                continue

            # Regular character, including a lone '&'
            if word_start is None:
                word_start = i
            i += 1

        if word_start is not None:
            tokens.append(Token(TokenType.WORD, text[word_start:], word_start, len(text)))

        return tokens

    @staticmethod
    def _match_operator(text: str, index: int) -> Optional[Tuple[str, TokenType]]:
        for symbol, token_type in OPERATORS:
            if text.startswith(symbol, index):
                return symbol, token_type
        return None

    def split_conditionals(self, line: str) -> List[CommandSegment]:
        """
        Split a line into segments joined by ``&&`` and ``||``.

        The first segment has no join operator; every later segment
        records the operator in front of it. The execution gate is
        always open: whether the operator is honoured is decided by
        the shell.

        Args:
            line: Expanded command line

        Returns:
            Segments in line order
        """
        segments: List[CommandSegment] = []
        operator = JoinOperator.NONE
        start = 0

        for token in self.tokenize(line):
            if token.type not in (TokenType.AND, TokenType.OR):
                continue
            segments.append(CommandSegment(line[start:token.start].strip(), operator))
            operator = JoinOperator.AND if token.type == TokenType.AND else JoinOperator.OR
            start = token.end

        segments.append(CommandSegment(line[start:].strip(), operator))
        return segments

    def split_pipeline(self, text: str) -> List[str]:
        """Split a segment into trimmed pipeline stages, in order."""
        stages: List[str] = []
        start = 0

        for token in self.tokenize(text):
            if token.type == TokenType.PIPE:
                stages.append(text[start:token.start].strip())
                start = token.end

        stages.append(text[start:].strip())
        return stages

    def parse_redirects(self, text: str) -> Tuple[str, RedirectSpec]:
        """
        Extract at most one input and one output target from a stage.

        A direction is honoured only when exactly one operator for it
        is present. The command text is everything before the first
        honoured operator; each target runs up to the next honoured
        operator or the end of the stage. More than one operator for
        a direction is not an error: that direction is left unset and
        its operators remain part of the command text.

        Args:
            text: Raw text of a single stage

        Returns:
            (command_text, RedirectSpec)
        """
        spec = RedirectSpec()
        tokens = self.tokenize(text)

        inputs = [t for t in tokens if t.type == TokenType.REDIRECT_IN]
        outputs = [t for t in tokens if t.type in OUTPUT_REDIRECTS]

        active: List[Token] = []
        if len(inputs) == 1:
            active.extend(inputs)
        if len(outputs) == 1:
            active.extend(outputs)
        active.sort(key=lambda t: t.start)

        spec.ambiguous = len(inputs) > 1 or len(outputs) > 1
        if spec.ambiguous:
            self._logger.debug(
                "Ambiguous redirect left in place",
                context={'stage': text, 'inputs': len(inputs), 'outputs': len(outputs)}
            )

        if not active:
            return text.strip(), spec

        command_text = text[:active[0].start].strip()

        for index, token in enumerate(active):
            end = active[index + 1].start if index + 1 < len(active) else len(text)
            path = text[token.end:end].strip() or None

            if token.type == TokenType.REDIRECT_IN:
                spec.input_path = path
            else:
                spec.output_path = path
                spec.append_mode = path is not None and token.type == TokenType.REDIRECT_APPEND

        return command_text, spec
