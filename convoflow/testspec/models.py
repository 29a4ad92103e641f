from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


SUPPORTED_MAJOR_VERSIONS = {"1"}


# ============================================================
# Expectations
# ============================================================

class ToolCallExpectation(BaseModel):
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class TurnExpectation(BaseModel):
    """
    Per-turn assertions of a test case.

    Only ``next_node_id``, ``tool_call``, ``facts_add``, ``facts_update``
    and ``flow_completed`` concern the engine. Evaluator-side keys
    (content checks, judge rubrics) are kept as extra fields untouched.
    """

    model_config = ConfigDict(extra="allow")

    next_node_id: Optional[str] = None
    tool_call: Optional[ToolCallExpectation] = None
    facts_add: Dict[str, Any] = Field(default_factory=dict)
    facts_update: Dict[str, Any] = Field(default_factory=dict)
    flow_completed: Optional[bool] = None

    @field_validator("facts_add", "facts_update", mode="before")
    @classmethod
    def keys_as_mapping(cls, v):
        # A bare key list asserts presence only
        if isinstance(v, list):
            return {key: None for key in v}
        return v


# ============================================================
# Suite Structure
# ============================================================

class TurnSpec(BaseModel):
    turn_id: Union[int, str]
    user_input: str
    expected: TurnExpectation = Field(default_factory=TurnExpectation)


class TestCase(BaseModel):
    __test__ = False

    test_id: str
    flow: Optional[str] = None
    start_node_id: Optional[str] = None
    turns: List[TurnSpec] = Field(min_length=1)
    final_assertions: Dict[str, Any] = Field(default_factory=dict)


class TestSuite(BaseModel):
    """Versioned test-specification document."""

    __test__ = False

    version: str
    suite_id: str
    defaults: Dict[str, Any] = Field(default_factory=dict)
    tests: List[TestCase]

    @field_validator("version")
    @classmethod
    def supported_version(cls, v: str) -> str:
        major = v.split(".", 1)[0]
        if major not in SUPPORTED_MAJOR_VERSIONS:
            raise ValueError(f"Unsupported test specification version: {v}")
        return v

    @model_validator(mode="after")
    def unique_test_ids(self):
        seen = set()
        for case in self.tests:
            if case.test_id in seen:
                raise ValueError(f"Duplicate test_id: {case.test_id}")
            seen.add(case.test_id)
        return self

    def get(self, test_id: str) -> TestCase:
        for case in self.tests:
            if case.test_id == test_id:
                return case
        raise KeyError(f"Test '{test_id}' not found in suite '{self.suite_id}'")
