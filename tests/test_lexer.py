from toycon.compiler.lexer import tokenize


def _texts(source: str) -> list[str]:
    return [token.text for token in tokenize(source)]


def test_tokenize_statement() -> None:
    assert _texts("var x = 2.5 + y;") == ["var", "x", "=", "2.5", "+", "y", ";"]


def test_brackets_and_separators_are_single_tokens() -> None:
    assert _texts("beep(1,2);}") == ["beep", "(", "1", ",", "2", ")", ";", "}"]
    assert _texts("if ((a)){") == ["if", "(", "(", "a", ")", ")", "{"]


def test_operator_runs_stay_whole() -> None:
    tokens = tokenize("a >= b")
    assert [t.text for t in tokens] == ["a", ">=", "b"]
    assert tokens[1].kind == "op"


def test_token_kinds() -> None:
    kinds = {t.text: t.kind for t in tokenize("x1 = 3 ;")}
    assert kinds == {"x1": "ident", "=": "op", "3": "number", ";": "punct"}
    assert tokenize("x1")[0].is_identifier
    assert not tokenize("3")[0].is_identifier


def test_unmatched_text_becomes_other_token() -> None:
    tokens = tokenize("x = 1 # note")
    assert tokens[-2].text == "#"
    assert tokens[-2].kind == "other"
    assert tokens[-2].offset == 6


def test_positions_track_lines_and_columns() -> None:
    tokens = tokenize("var a = 1;\n  beep(a);")
    beep = next(t for t in tokens if t.text == "beep")
    assert (beep.line, beep.column) == (2, 3)
    assert beep.offset == 13


def test_whitespace_only_source_has_no_tokens() -> None:
    assert tokenize("  \n\t ") == []
