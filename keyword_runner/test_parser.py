"""Tests for the block parser."""
from __future__ import annotations

import pytest

from .errors import ScriptParseError
from .models import StepKind
from .parser import ScriptParser, extract_action_and_parameters, parse_script


def test_single_action_with_quoted_parameter():
    """A quoted literal becomes a parameter and a placeholder."""
    cases = parse_script('Test: T\nAction: Click "Submit"')

    assert len(cases) == 1
    assert cases[0].name == "T"
    assert len(cases[0].steps) == 1
    step = cases[0].steps[0]
    assert step.kind == StepKind.ACTION
    assert step.text == "Action: Click {}"
    assert step.parameters == ["Submit"]


def test_flat_actions_keep_order_and_literals():
    cases = parse_script("""
        Test: Simple Test
        Action: Click the "Submit" button
        Verify that the title equals "Welcome" in 5 seconds
        Open cart
    """)

    steps = cases[0].steps
    assert [step.kind for step in steps] == [StepKind.ACTION] * 3
    assert steps[0].text == "Action: Click the {} button"
    assert steps[0].parameters == ["Submit"]
    assert steps[1].text == "Verify that the title equals {} in {} seconds"
    assert steps[1].parameters == ["Welcome", "5"]
    assert steps[2].text == "Open cart"
    assert steps[2].parameters == []


def test_russian_parameters_and_template():
    template, parameters = extract_action_and_parameters('Действие: Ввести "Логин" в поле "Username" за 10 секунд')

    assert template == "Действие: Ввести {} в поле {} за {} секунд"
    assert parameters == ["Логин", "Username", "10"]


def test_nested_if_else_are_children_of_their_if():
    cases = parse_script("""
        Test: Condition Test
        If the user is authenticated
            Action: Check the element "Dashboard"
            If the screen is mobile
                Action: Collapse the menu
            Else
                Action: Expand the menu
            EndIf
        Else
            Action: Click "Login"
        EndIf
    """)

    steps = cases[0].steps
    assert len(steps) == 1
    root_if = steps[0]
    assert root_if.kind == StepKind.IF
    assert root_if.text == "the user is authenticated"
    assert [child.kind for child in root_if.children] == [StepKind.ACTION, StepKind.IF, StepKind.ELSE]

    nested_if = root_if.children[1]
    assert [child.kind for child in nested_if.children] == [StepKind.ACTION, StepKind.ELSE]
    assert nested_if.children[0].text == "Action: Collapse the menu"
    assert nested_if.children[1].children[0].text == "Action: Expand the menu"

    outer_else = root_if.children[2]
    assert outer_else.text is None
    assert outer_else.children[0].parameters == ["Login"]


def test_else_if_chain_is_flat_under_the_if():
    cases = parse_script("""
        Тест: Multi Else Test
        Если условие 1
            Действие: Шаг 1
        Иначе если условие 2
            Действие: Шаг 2
        Иначе
            Действие: Шаг 3
        КонецЕсли
        Действие: после
    """)

    steps = cases[0].steps
    assert [step.kind for step in steps] == [StepKind.IF, StepKind.ACTION]
    branches = steps[0].children
    assert [branch.kind for branch in branches] == [StepKind.ACTION, StepKind.ELSE, StepKind.ELSE]
    assert branches[1].text == "условие 2"
    assert branches[2].text is None
    assert branches[1].children[0].parameters == ["2"]
    assert branches[2].children[0].parameters == ["3"]


def test_loop_block_with_nested_if():
    cases = parse_script("""
        Test: Loop Test
        For each item in ["a", "b"]
            Action: Process the "item" element
            If the element is active
                Action: Click the element
            EndIf
        EndLoop
    """)

    loop = cases[0].steps[0]
    assert loop.kind == StepKind.LOOP
    assert loop.text == 'item in ["a", "b"]'
    assert [child.kind for child in loop.children] == [StepKind.ACTION, StepKind.IF]


def test_complex_nesting():
    cases = parse_script("""
        Test: Complex
        If level 1
            Step 1
            If level 2
                For each element in [x]
                    Process
                EndLoop
            EndIf
            Step 2
        EndIf
    """)

    root_if = cases[0].steps[0]
    assert len(root_if.children) == 3
    nested_if = root_if.children[1]
    assert len(nested_if.children) == 1
    assert nested_if.children[0].kind == StepKind.LOOP
    assert len(nested_if.children[0].children) == 1


def test_multiple_cases_comments_and_blank_lines():
    cases = parse_script("""
        # leading comment
        Step outside any test is ignored

        Test: First Test
        # nested comment
        Step 1

        Test: Second Test
        Step 2
    """)

    assert [case.name for case in cases] == ["First Test", "Second Test"]
    assert [step.parameters for step in cases[0].steps] == [["1"]]
    assert [step.parameters for step in cases[1].steps] == [["2"]]


def test_keywords_are_case_insensitive():
    cases = parse_script("""
        ТЕСТ: Case Insensitive Test
        ЕСЛИ условие
            ДЕЙСТВИЕ: Тест
        КОНЕЦЕСЛИ
        FOR EACH x IN [1]
        ENDLOOP
    """)

    assert cases[0].name == "Case Insensitive Test"
    assert [step.kind for step in cases[0].steps] == [StepKind.IF, StepKind.LOOP]


def test_end_markers_never_reach_the_tree():
    cases = parse_script("Test: T\nIf x\nA\nEndIf\nFor each i in [1]\nB\nEndLoop")

    def kinds(steps):
        for step in steps:
            yield step.kind
            yield from kinds(step.children)

    assert StepKind.ENDIF not in set(kinds(cases[0].steps))
    assert StepKind.ENDLOOP not in set(kinds(cases[0].steps))


@pytest.mark.parametrize("script, line_number", [
    ("Test: T\nEndIf", 2),
    ("Test: T\nAction\nEndLoop", 3),
    ("Test: T\nElse", 2),
])
def test_closing_without_open_block_is_an_error(script, line_number):
    with pytest.raises(ScriptParseError) as excinfo:
        parse_script(script)
    assert excinfo.value.line_number == line_number


def test_mismatched_closer_is_an_error():
    with pytest.raises(ScriptParseError):
        parse_script("Test: T\nIf x\nA\nEndLoop")
    with pytest.raises(ScriptParseError):
        parse_script("Test: T\nFor each i in [1]\nElse\nEndLoop")


def test_unclosed_block_is_closed_at_end_of_case():
    cases = parse_script("Test: One\nIf x\nA\nTest: Two\nB")

    assert cases[0].steps[0].kind == StepKind.IF
    assert cases[0].steps[0].children[0].text == "A"
    assert cases[1].steps[0].text == "B"


def test_parse_file(tmp_path):
    script = tmp_path / "login.feature"
    script.write_text('Test: Login\nOpen page "https://www.saucedemo.com"\n', encoding="utf-8")

    cases = ScriptParser().parse_file(script)

    assert cases[0].steps[0].parameters == ["https://www.saucedemo.com"]
    with pytest.raises(FileNotFoundError):
        ScriptParser().parse_file(tmp_path / "missing.feature")
