# SPDX-License-Identifier: MIT
"""Tests for fbbridge.core.options."""

from __future__ import annotations

from pathlib import Path

from fbbridge.core.options import (
    ParsedOptions,
    count_unescaped_quotes,
    merge_tokens,
    parse_command_line,
    substitute_environment_variables,
)


class TestCountUnescapedQuotes:
    def test_plain_quotes(self) -> None:
        assert count_unescaped_quotes('"a b"') == 2

    def test_escaped_quote_ignored(self) -> None:
        assert count_unescaped_quotes('a\\"b"') == 1

    def test_no_quotes(self) -> None:
        assert count_unescaped_quotes("/nologo") == 0


class TestSubstituteEnvironmentVariables:
    def test_known_variable(self) -> None:
        """Test $(NAME) becomes $NAME$ for imported variables."""
        result = substitute_environment_variables("/I$(DXSDK_DIR)/Include")
        assert result == "/I$DXSDK_DIR$/Include"

    def test_unknown_variable_untouched(self) -> None:
        result = substitute_environment_variables("/I$(OTHER)/Include")
        assert result == "/I$(OTHER)/Include"

    def test_custom_names(self) -> None:
        result = substitute_environment_variables("$(MY_SDK)/bin", ["MY_SDK"])
        assert result == "$MY_SDK$/bin"


class TestMergeTokens:
    def test_unquoted_tokens_unchanged(self) -> None:
        assert merge_tokens(["/c", "/nologo", "a.cpp"]) == ["/c", "/nologo", "a.cpp"]

    def test_quoted_path_with_spaces(self) -> None:
        """Test that a quoted path split on spaces is re-joined."""
        tokens = merge_tokens(['"C:/My', "Dir/a.cpp\""])
        assert tokens == ['"C:/My Dir/a.cpp"']

    def test_define_with_spaces(self) -> None:
        tokens = merge_tokens(['/DFOO="a', "b", 'c"', "/c"])
        assert tokens == ['/DFOO="a b c"', "/c"]

    def test_balanced_define_kept(self) -> None:
        assert merge_tokens(['-DNAME="x"']) == ['-DNAME="x"']

    def test_consecutive_spaces_inside_span(self) -> None:
        """Test that empty tokens inside a quoted span keep their space."""
        tokens = merge_tokens(['"a', "", 'b"'])
        assert tokens == ['"a  b"']

    def test_empty_tokens_outside_span_dropped(self) -> None:
        assert merge_tokens(["a", "", "b"]) == ["a", "b"]

    def test_unterminated_span_is_kept(self) -> None:
        """Test that an unterminated quote still yields its text."""
        tokens = merge_tokens(["/c", '"abc', "def"])
        assert tokens == ["/c", '"abc def']

    def test_unterminated_define_is_kept(self) -> None:
        tokens = merge_tokens(['/DX="a', "b"])
        assert tokens == ['/DX="a b']


class TestParseCommandLine:
    def test_define_option_and_input(self) -> None:
        parsed = parse_command_line(
            '/DFOO="a b c" /Fooutput.obj input.cpp', ["/Fo"]
        )
        assert parsed["/Fo"] == "output.obj"
        assert parsed.input_file == "input.cpp"
        assert parsed.other_options == '/DFOO="a b c" '

    def test_quoted_values(self) -> None:
        """Test that values are returned without surrounding quotes."""
        parsed = parse_command_line('/c "C:/My Dir/a.cpp" /Fo"obj/a.obj"', ["/Fo"])
        assert parsed.value("/Fo") == "obj/a.obj"
        assert parsed.input_file == "C:/My Dir/a.cpp"
        assert parsed.other_options == "/c "

    def test_exact_match_takes_next_token(self) -> None:
        parsed = parse_command_line("-o out.o -c a.c", ["-o"])
        assert parsed["-o"] == "out.o"
        assert parsed.input_file == "a.c"
        assert parsed.other_options == "-c "

    def test_first_match_wins(self) -> None:
        parsed = parse_command_line("/Foa.obj /Fob.obj x.cpp", ["/Fo"])
        assert parsed["/Fo"] == "a.obj"
        assert "/Fob.obj" in parsed.other_options

    def test_value_switch_is_not_input(self) -> None:
        """Test that the value of /I is not mistaken for the input file."""
        parsed = parse_command_line("/I include/dir a.cpp")
        assert parsed.input_file == "a.cpp"
        assert parsed.other_options == "/I include/dir "

    def test_skip_input_file(self) -> None:
        parsed = parse_command_line("a.o b.o", skip_input_file=True)
        assert ParsedOptions.INPUT_FILE not in parsed
        assert parsed.other_options == "a.o b.o "

    def test_environment_substitution(self) -> None:
        parsed = parse_command_line("/I$(DXSDK_DIR)/Include a.cpp")
        assert parsed.other_options == "/I$DXSDK_DIR$/Include "

    def test_every_token_accounted_for(self) -> None:
        """Test that tokens end up in exactly one place."""
        parsed = parse_command_line("/nologo /W4 /Fox.obj /c x.cpp", ["/Fo"])
        assert parsed == {
            "/Fo": "x.obj",
            ParsedOptions.INPUT_FILE: "x.cpp",
            ParsedOptions.OTHER_OPTIONS: "/nologo /W4 /c ",
        }

    def test_empty_command_line(self) -> None:
        parsed = parse_command_line("")
        assert parsed.input_file == ""
        assert parsed.other_options == " "


class TestResponseFiles:
    def test_response_file_expanded(self, tmp_path: Path) -> None:
        """Test that a lone @"path" argument is replaced by the file contents."""
        rsp = tmp_path / "link.rsp"
        rsp.write_text('/OUT:"bin/app.exe"\nobj/a.obj\nobj/b.obj\n')

        parsed = parse_command_line(
            f'@"{rsp}"', ["/OUT:", "@", "-o"], save_response_file=True
        )
        assert parsed.value("/OUT:") == "bin/app.exe"
        assert parsed.input_file == "obj/a.obj"
        assert parsed.other_options == "obj/b.obj "
        assert parsed.response_file == str(rsp)

    def test_response_file_not_saved_by_default(self, tmp_path: Path) -> None:
        rsp = tmp_path / "link.rsp"
        rsp.write_text("a.obj")

        parsed = parse_command_line(f'@"{rsp}"')
        assert ParsedOptions.RESPONSE_FILE not in parsed
        assert parsed.input_file == "a.obj"

    def test_relative_response_file(self, tmp_path: Path) -> None:
        (tmp_path / "lib.rsp").write_text("x.obj")

        parsed = parse_command_line(
            '@"lib.rsp"', save_response_file=True, base_dir=tmp_path
        )
        assert parsed.input_file == "x.obj"
        assert parsed.response_file == "lib.rsp"

    def test_response_file_substitution(self, tmp_path: Path) -> None:
        rsp = tmp_path / "cl.rsp"
        rsp.write_text("/I$(DurangoXDK)/include a.cpp")

        parsed = parse_command_line(f'@"{rsp}"')
        assert parsed.other_options == "/I$DurangoXDK$/include "

    def test_missing_response_file(self, tmp_path: Path) -> None:
        """Test that an unreadable response file leaves the line as is."""
        parsed = parse_command_line(
            '@"missing.rsp"', save_response_file=True, base_dir=tmp_path
        )
        assert ParsedOptions.RESPONSE_FILE not in parsed
        assert parsed.other_options == '@"missing.rsp" '


class TestParsedOptions:
    def test_value_missing(self) -> None:
        assert ParsedOptions().value("/Fo") == ""

    def test_value_missing_required_warns(self, caplog) -> None:
        ParsedOptions().value("/Fo", required=True, context="cl.exe /c")
        assert "Failed to find /Fo" in caplog.text
