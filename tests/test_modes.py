from dktop.model import Mode
from dktop.modes import FILTER_LIMIT, PROMPTS, PULL_LIMIT, InputLine


def test_for_mode_sets_limit():
    assert InputLine.for_mode(Mode.FILTER).limit == FILTER_LIMIT
    assert InputLine.for_mode(Mode.PULL_IMAGE).limit == PULL_LIMIT


def test_initial_value_is_truncated():
    line = InputLine.for_mode(Mode.FILTER, "x" * 80)
    assert line.value == "x" * FILTER_LIMIT


def test_insert_and_backspace():
    line = InputLine()
    assert line.insert("n")
    assert line.insert("g")
    assert line.value == "ng"
    line.backspace()
    assert line.value == "n"
    line.backspace()
    line.backspace()
    assert line.value == ""


def test_insert_rejects_non_printable():
    line = InputLine()
    assert not line.insert("\x1b")
    assert not line.insert("")
    assert line.value == ""


def test_insert_respects_limit():
    line = InputLine(limit=3)
    for char in "abcd":
        line.insert(char)
    assert line.value == "abc"
    assert not line.insert("e")


def test_render_shows_cursor():
    line = InputLine(value="ng")
    assert line.render(PROMPTS[Mode.FILTER]) == "Filter: ng█"
    assert InputLine().render(PROMPTS[Mode.PULL_IMAGE]) == "Pull image: █"
