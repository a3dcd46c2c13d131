"""Tests for feature/scenario contexts, the source index and the item tree."""

import pytest

from chorus.correlation import (
    ContractViolation,
    FeatureContext,
    FeatureParseError,
    ItemTree,
    ScenarioState,
    SourceIndex,
    UnknownStepLineError,
    parse_feature,
)
from chorus.events import CaseStarted, PickleStep
from chorus.transport import ItemAttribute, ItemHandle

from conftest import CALCULATOR_FEATURE, CALCULATOR_URI, LOGIN_FEATURE, LOGIN_URI


def login_scenario(line: int, name: str, tags=None):
    feature = FeatureContext.create(LOGIN_URI, parse_feature(LOGIN_FEATURE))
    return feature.scenario_context(CaseStarted(uri=LOGIN_URI, line=line, name=name, tags=tags or []))


class TestFeatureContext:
    """Tests for FeatureContext."""

    def test_feature_tags_become_attributes(self):
        feature = FeatureContext.create(LOGIN_URI, parse_feature(LOGIN_FEATURE))
        assert feature.attributes == [ItemAttribute(value="@smoke")]
        assert feature.handle is None

    def test_plain_scenario_uses_definition_line(self):
        scenario = login_scenario(7, "Valid login")
        assert scenario.line == 7
        assert scenario.key == (7, LOGIN_URI)
        assert scenario.outline_iteration is None

    def test_outline_row_uses_case_line(self):
        scenario = login_scenario(23, "Invalid login")
        assert scenario.line == 23
        assert scenario.outline_iteration == 3

    def test_case_tags_become_attributes(self):
        scenario = login_scenario(7, "Valid login", tags=["@smoke", "@fast", "@smoke"])
        assert [a.value for a in scenario.attributes] == ["@smoke", "@fast"]


class TestScenarioHandle:
    """Tests for the scenario item handle lifecycle."""

    def test_starts_created(self):
        scenario = login_scenario(7, "Valid login")
        assert scenario.state == ScenarioState.CREATED
        assert not scenario.started

    def test_reading_handle_before_start_is_violation(self):
        scenario = login_scenario(7, "Valid login")
        with pytest.raises(ContractViolation, match="has not been started"):
            _ = scenario.handle

    def test_setting_handle_runs_scenario(self):
        scenario = login_scenario(7, "Valid login")
        handle = ItemHandle.resolved("item-1")
        scenario.handle = handle
        assert scenario.handle is handle
        assert scenario.state == ScenarioState.RUNNING

    def test_setting_handle_twice_is_violation(self):
        scenario = login_scenario(7, "Valid login")
        scenario.handle = ItemHandle.resolved("item-1")
        with pytest.raises(ContractViolation, match="re-set"):
            scenario.handle = ItemHandle.resolved("item-2")

    def test_finish_before_start_is_violation(self):
        scenario = login_scenario(7, "Valid login")
        with pytest.raises(ContractViolation):
            scenario.finish()

    def test_finish_twice_is_violation(self):
        scenario = login_scenario(7, "Valid login")
        scenario.handle = ItemHandle.resolved("item-1")
        scenario.finish()
        assert scenario.state == ScenarioState.FINISHED
        with pytest.raises(ContractViolation, match="already finished"):
            scenario.finish()


class TestScenarioSteps:
    """Tests for step resolution and the background queue."""

    def test_get_step_resolves_scenario_and_background_lines(self):
        scenario = login_scenario(7, "Valid login")
        assert scenario.get_step(PickleStep(line=5, text="the login page is open")).keyword == "Given "
        assert scenario.get_step(PickleStep(line=9, text="I see the dashboard")).text == "I see the dashboard"

    def test_get_step_unknown_line(self):
        scenario = login_scenario(7, "Valid login")
        with pytest.raises(UnknownStepLineError, match="Unknown line 99"):
            scenario.get_step(PickleStep(line=99, text="nope"))

    def test_background_dequeued_once_in_order(self):
        scenario = login_scenario(7, "Valid login")
        assert scenario.with_background()
        assert scenario.background_prefix == "BACKGROUND: "
        assert scenario.next_background_step().text == "the login page is open"
        assert not scenario.with_background()

    def test_each_outline_row_gets_its_own_background_queue(self):
        first = login_scenario(18, "Invalid login")
        second = login_scenario(19, "Invalid login")
        first.next_background_step()
        assert not first.with_background()
        assert second.with_background()

    def test_no_background(self):
        feature = FeatureContext.create(CALCULATOR_URI, parse_feature(CALCULATOR_FEATURE))
        scenario = feature.scenario_context(CaseStarted(uri=CALCULATOR_URI, line=3, name="Add two numbers"))
        assert not scenario.with_background()
        assert scenario.background_prefix == ""


class TestSourceIndex:
    """Tests for SourceIndex."""

    def test_put_and_get(self):
        index = SourceIndex()
        index.put(CALCULATOR_URI, CALCULATOR_FEATURE)
        assert CALCULATOR_URI in index
        assert len(index) == 1
        assert index.get(CALCULATOR_URI) == CALCULATOR_FEATURE

    def test_missing_source_is_violation(self):
        index = SourceIndex()
        with pytest.raises(ContractViolation, match="No source"):
            index.get("missing.feature")
        with pytest.raises(ContractViolation):
            index.feature("missing.feature")

    def test_feature_is_parsed_once(self):
        index = SourceIndex()
        index.put(CALCULATOR_URI, CALCULATOR_FEATURE)
        assert index.feature(CALCULATOR_URI) is index.feature(CALCULATOR_URI)

    def test_overwrite_drops_parsed_tree(self):
        index = SourceIndex()
        index.put(CALCULATOR_URI, CALCULATOR_FEATURE)
        first = index.feature(CALCULATOR_URI)
        index.put(CALCULATOR_URI, CALCULATOR_FEATURE.replace("Calculator", "Adder"))
        second = index.feature(CALCULATOR_URI)
        assert second is not first
        assert second.name == "Adder"

    def test_invalid_source_raises_parse_error(self):
        index = SourceIndex()
        index.put("broken.feature", "not gherkin at all\n")
        with pytest.raises(FeatureParseError):
            index.feature("broken.feature")


class TestItemTree:
    """Tests for ItemTree."""

    def test_nested_add_and_get(self):
        tree = ItemTree()
        feature, scenario, step = (ItemHandle.resolved(i) for i in ("f", "s", "st"))
        tree.add_feature(LOGIN_URI, feature)
        tree.add_scenario(LOGIN_URI, 7, scenario)
        tree.add_step(LOGIN_URI, 7, "I see the dashboard", step)

        assert tree.get(LOGIN_URI).handle is feature
        assert tree.get(LOGIN_URI, 7).handle is scenario
        assert tree.get(LOGIN_URI, 7, "I see the dashboard").handle is step
        assert "7" in tree.items[LOGIN_URI].children

    def test_removals_tolerate_missing_entries(self):
        tree = ItemTree()
        tree.remove_step(LOGIN_URI, 7, "x")
        tree.remove_scenario(LOGIN_URI, 7)
        tree.remove_feature(LOGIN_URI)
        assert tree.items == {}

    def test_remove_step(self):
        tree = ItemTree()
        tree.add_feature(LOGIN_URI, ItemHandle.resolved("f"))
        tree.add_scenario(LOGIN_URI, 7, ItemHandle.resolved("s"))
        tree.add_step(LOGIN_URI, 7, "step", ItemHandle.resolved("st"))
        tree.remove_step(LOGIN_URI, 7, "step")
        assert tree.get(LOGIN_URI, 7, "step") is None
        assert tree.get(LOGIN_URI, 7) is not None
