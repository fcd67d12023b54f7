# SPDX-License-Identifier: MIT
"""Recover structured options from flat compiler/linker command lines.

The planner hands over already-formatted argument strings, so the options
FASTBuild needs (object output, precompiled header markers, response files,
the input file) have to be re-parsed out of them.

Parsing steps:
1. A command line that is a single ``@"path"`` token is replaced by the
   contents of that response file.
2. The string is split on ASCII spaces.
3. Tokens broken apart by that split are re-merged:
   - a define (``/D`` or ``-D``) with an odd number of unescaped quotes
     swallows following tokens until one ends in an unescaped quote;
   - any other token with an odd quote count opens a span that lasts until
     the quote count is even again.
4. Requested special options are pulled out (``/Fo x`` or ``/Fox``).
5. The first non-switch token becomes the input file.
6. Everything left is rejoined into the residual ``OtherOptions``.

Quoting here is heuristic (MSVC/clang conventions), not a shell grammar.
Malformed input degrades to best-effort joining; the parser never raises.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

# Environment variables FASTBuild imports with ``#import``; references to
# them in command lines are rewritten to the BFF form ``$NAME$``.
DEFAULT_IMPORTED_ENV_VARS: tuple[str, ...] = (
    "DurangoXDK",
    "SCE_ORBIS_SDK_DIR",
    "DXSDK_DIR",
    "CommonProgramFiles",
)

DEFINE_PREFIXES = ("/D", "-D")

# Switches whose value is the following token (include dirs, resource
# compiler include dirs, defines, language selection, forced includes).
VALUE_SWITCHES = frozenset(["/I", "/l", "/D", "-D", "-x", "-include"])

SWITCH_PREFIXES = ("/", "-", '"-')


class ParsedOptions(dict[str, str]):
    """Options recovered from one command line.

    Maps each captured special option (e.g. ``/Fo``) to its value, plus the
    reserved keys INPUT_FILE, OTHER_OPTIONS and RESPONSE_FILE.
    """

    INPUT_FILE = "InputFile"
    OTHER_OPTIONS = "OtherOptions"
    RESPONSE_FILE = "@"

    def value(self, key: str, *, required: bool = False, context: str = "") -> str:
        """Get an option with surrounding double quotes removed.

        Args:
            key: Option name.
            required: Log a warning when the option is missing.
            context: Command line to include in the warning.

        Returns:
            The unquoted value, or "" if the option is absent.
        """
        if key in self:
            return self[key].strip('"')
        if required:
            logger.warning("Failed to find %s, which may be a problem", key)
            if context:
                logger.warning("  Command line: %s", context)
        return ""

    @property
    def input_file(self) -> str:
        return self.value(self.INPUT_FILE)

    @property
    def other_options(self) -> str:
        return self.get(self.OTHER_OPTIONS, "")

    @property
    def response_file(self) -> str:
        return self.value(self.RESPONSE_FILE)


def substitute_environment_variables(
    text: str, names: Iterable[str] = DEFAULT_IMPORTED_ENV_VARS
) -> str:
    """Rewrite ``$(NAME)`` references to FASTBuild's ``$NAME$`` form.

    Example:
        >>> substitute_environment_variables("/I$(DXSDK_DIR)/Include")
        '/I$DXSDK_DIR$/Include'
    """
    for name in names:
        text = text.replace(f"$({name})", f"${name}$")
    return text


def count_unescaped_quotes(token: str) -> int:
    """Count double quotes not preceded by a backslash escape."""
    count = 0
    i = 0
    while i < len(token):
        if token[i] == "\\":
            i += 1  # skip the escaped character
        elif token[i] == '"':
            count += 1
        i += 1
    return count


def _ends_with_unescaped_quote(token: str) -> bool:
    return token.endswith('"') and not token.endswith('\\"')


def _read_response_file(
    command_line: str,
    raw_tokens: list[str],
    base_dir: Path | None,
    env_names: Iterable[str],
) -> tuple[list[str], str]:
    """Expand an ``@"path"`` command line.

    Returns:
        Tuple of (tokens, response file path). On failure the original
        tokens are returned with an empty path.
    """
    # The path itself may contain spaces, so rejoin before unquoting
    reference = " ".join(raw_tokens)
    response_path = reference[2:-1] if reference.endswith('"') else reference[2:]
    path = Path(response_path)
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path

    try:
        text = path.read_text()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(
            "Looks like a response file in: %s, but we could not load it: %s",
            command_line,
            e,
        )
        return raw_tokens, ""

    text = substitute_environment_variables(text, env_names)
    tokens = text.replace("\r", " ").replace("\n", " ").split(" ")
    return [t for t in tokens if t], response_path


def _consume_define(
    raw_tokens: Sequence[str], start: int, command_line: str
) -> tuple[str, int]:
    """Merge a define whose quoted value was split on spaces.

    Args:
        raw_tokens: All raw tokens.
        start: Index of the opening define token.
        command_line: Original command line, for diagnostics.

    Returns:
        Tuple of (merged token, index of the last token consumed).
    """
    partial = raw_tokens[start]
    i = start + 1
    while i < len(raw_tokens):
        token = raw_tokens[i]
        if not token:
            partial += " "
        elif _ends_with_unescaped_quote(token):
            return f"{partial} {token}", i
        else:
            partial += " " + token
        i += 1

    logger.warning(
        "Unterminated string in define, adding partial token %r and hoping "
        "for the best. Command line: %s",
        partial,
        command_line,
    )
    return partial, len(raw_tokens) - 1


def merge_tokens(raw_tokens: Sequence[str], command_line: str = "") -> list[str]:
    """Re-join tokens that a naive space split broke apart.

    Args:
        raw_tokens: Tokens from splitting on single spaces (may be empty
            strings where the input had consecutive spaces).
        command_line: Original command line, for diagnostics.

    Returns:
        Whole tokens, in order.
    """
    merged: list[str] = []
    span: str | None = None  # open quoted span, None when quotes are closed
    i = 0
    while i < len(raw_tokens):
        token = raw_tokens[i]
        if not token:
            if span is not None:
                span += " "
            i += 1
            continue

        quotes = count_unescaped_quotes(token)

        if span is None and token.startswith(DEFINE_PREFIXES):
            if quotes % 2 == 0:
                merged.append(token)
            else:
                define, i = _consume_define(raw_tokens, i, command_line)
                merged.append(define)
        elif span is None:
            if quotes % 2:
                span = token + " "
            else:
                merged.append(token)
        elif quotes % 2:
            merged.append(span + token)
            span = None
        else:
            span += token + " "
        i += 1

    if span is not None:
        logger.warning(
            "Unterminated quoted string in command line: %s", command_line or span
        )
        merged.append(span.rstrip(" "))

    return merged


def _extract_special_options(
    tokens: list[str], special_options: Iterable[str], parsed: ParsedOptions
) -> None:
    """Move each special option (first match only) from tokens to parsed."""
    for option in special_options:
        for i, token in enumerate(tokens):
            if token == option and i + 1 < len(tokens):
                parsed[option] = tokens[i + 1]
                del tokens[i : i + 2]
                break
            if token.startswith(option):
                parsed[option] = token[len(option) :]
                del tokens[i]
                break


def _extract_input_file(tokens: list[str], parsed: ParsedOptions) -> None:
    """Take the first token that is neither a switch nor a switch value."""
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token in VALUE_SWITCHES:
            i += 2
            continue
        if token and not token.startswith(SWITCH_PREFIXES):
            parsed[ParsedOptions.INPUT_FILE] = token
            del tokens[i]
            return
        i += 1


def parse_command_line(
    command_line: str,
    special_options: Sequence[str] = (),
    *,
    save_response_file: bool = False,
    skip_input_file: bool = False,
    base_dir: Path | None = None,
    env_names: Iterable[str] = DEFAULT_IMPORTED_ENV_VARS,
) -> ParsedOptions:
    """Parse a raw command line into ParsedOptions.

    Every token of the (possibly response-file expanded) command line ends
    up in exactly one place: a special option, the input file, or the
    residual OtherOptions.

    Args:
        command_line: The raw argument string.
        special_options: Option prefixes to capture, e.g. ``["/Fo", "/Yc"]``.
            Captured in order; the first matching token wins per option.
        save_response_file: Record an expanded response file's path under
            ParsedOptions.RESPONSE_FILE.
        skip_input_file: Do not look for a positional input file.
        base_dir: Directory relative response file paths are resolved against.
        env_names: Environment variables to rewrite to ``$NAME$`` form.

    Returns:
        The parsed options.

    Example:
        >>> parse_command_line('/DFOO="a b c" /Fooutput.obj input.cpp', ["/Fo"])
        {'/Fo': 'output.obj', 'InputFile': 'input.cpp', 'OtherOptions': '/DFOO="a b c" '}
    """
    env_names = tuple(env_names)
    command_line = substitute_environment_variables(command_line, env_names)

    raw_tokens = command_line.strip().split(" ")
    response_path = ""
    if raw_tokens and raw_tokens[0].startswith('@"'):
        raw_tokens, response_path = _read_response_file(
            command_line, raw_tokens, base_dir, env_names
        )

    tokens = merge_tokens(raw_tokens, command_line)

    parsed = ParsedOptions()
    _extract_special_options(tokens, special_options, parsed)

    if not skip_input_file:
        _extract_input_file(tokens, parsed)

    parsed[ParsedOptions.OTHER_OPTIONS] = " ".join(tokens) + " "

    if save_response_file and response_path:
        parsed[ParsedOptions.RESPONSE_FILE] = response_path

    return parsed
