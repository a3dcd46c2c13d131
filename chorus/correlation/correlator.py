"""
Event-to-hierarchy correlation.

HierarchyCorrelator receives the engine's lifecycle events, possibly
interleaved from several worker threads, and turns them into start/finish
and log calls against a reporting client so that every item lands under
the right parent.

Events scoped to a test case carry the case key (uri, line); the
correlator resolves the active ScenarioContext from that key rather than
from the calling thread.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable

from ..config import LaunchConfig, ReporterConfig
from ..events import (
    CaseFinished,
    CaseStarted,
    Embed,
    Event,
    HookStep,
    HookType,
    PickleStep,
    Result,
    RunFinished,
    RunStarted,
    Status,
    SourceRead,
    StepFinished,
    StepStarted,
    Write,
)
from ..reporting import (
    COLON_INFIX,
    LogLevel,
    build_launch_request,
    build_multiline_argument,
    build_name,
    build_parameters,
    build_test_case_id,
    code_ref,
    detect_mime_type,
    hook_item,
    hook_message,
    map_item_status,
    map_log_level,
    mime_category,
    parse_attributes,
    step_code_ref,
)
from ..transport import (
    Attachment,
    BaseReportingClient,
    FinishRequest,
    ItemHandle,
    LogRequest,
    StartItemRequest,
)
from .context import FeatureContext, ScenarioContext
from .errors import ContractViolation
from .hierarchy import HierarchyStrategy, hierarchy_for
from .item_tree import ItemTree
from .source_index import SourceIndex

logger = logging.getLogger(__name__)

STEP_ITEM_TYPE = "STEP"
FEATURE_LINE = 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HierarchyCorrelator:
    """
    Reports an engine event stream as a launch item tree.

    Args:
        client: Reporting client receiving start/finish/log calls
        config: Reporter configuration (launch settings, hierarchy, flags)
        hierarchy: Tree shape; defaults to the one named in the config
        item_tree: Side index filled when callback reporting is enabled
        clock: Source of timestamps, for deterministic tests

    Example:
        correlator = HierarchyCorrelator(RecordingClient(), config)
        for event in load_events("run.ndjson"):
            correlator.handle(event)
    """

    def __init__(
        self,
        client: BaseReportingClient,
        config: ReporterConfig | None = None,
        hierarchy: HierarchyStrategy | None = None,
        item_tree: ItemTree | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.client = client
        self.config = config or ReporterConfig(version=1, launch=LaunchConfig(name="chorus"))
        self.hierarchy = hierarchy or hierarchy_for(self.config.hierarchy)
        self.item_tree = item_tree if item_tree is not None else ItemTree()
        self.sources = SourceIndex()
        self._clock = clock or _utcnow

        self._launch: ItemHandle | None = None
        self._root: ItemHandle | None = None
        self._features: dict[str, FeatureContext] = {}
        self._scenarios: dict[tuple[int, str], ScenarioContext] = {}
        self._feature_end_times: dict[str, datetime] = {}

        self._feature_lock = threading.Lock()
        self._scenario_lock = threading.Lock()
        self._root_lock = threading.Lock()

        self._handlers: dict[type, Callable[[Event], None]] = {
            RunStarted: self.on_run_started,
            SourceRead: self.on_source_read,
            CaseStarted: self.on_case_started,
            StepStarted: self.on_step_started,
            StepFinished: self.on_step_finished,
            CaseFinished: self.on_case_finished,
            RunFinished: self.on_run_finished,
            Embed: self.on_embed,
            Write: self.on_write,
        }

    @property
    def callback_reporting(self) -> bool:
        return self.config.callback_reporting

    @property
    def launch(self) -> ItemHandle | None:
        return self._launch

    def features(self) -> dict[str, FeatureContext]:
        """Snapshot of the tracked features by URI."""
        with self._feature_lock:
            return dict(self._features)

    def scenarios(self) -> dict[tuple[int, str], ScenarioContext]:
        """Snapshot of the running scenarios by (line, uri)."""
        with self._scenario_lock:
            return dict(self._scenarios)

    def handle(self, event: Event) -> None:
        """
        Dispatch one event to its handler.

        Raises:
            TypeError: If the event type is not part of the vocabulary
            CorrelationError: If the event breaks the stream's contract
        """
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported event: {type(event).__name__}")
        logger.debug(f"Handling {event.type} event")
        handler(event)

    # ─────────────────────────────────────────────────────────────────────────
    # Run
    # ─────────────────────────────────────────────────────────────────────────

    def on_run_started(self, event: RunStarted) -> None:
        if self._launch is not None:
            raise ContractViolation("Run already started")
        rq = build_launch_request(self.config.launch, self._clock())
        self._launch = self.client.start_launch(rq)
        self.item_tree.launch = self._launch
        logger.info(f"Started launch {rq.name!r}")

    def on_run_finished(self, event: RunFinished) -> None:
        launch = self._require_launch()

        with self._feature_lock:
            features = list(self._features.values())
            missing = [f.uri for f in features if f.uri not in self._feature_end_times]
            if missing:
                raise ContractViolation(
                    f"No finished scenario recorded for feature(s): {', '.join(missing)}"
                )
            # Features end when their last recorded scenario ended, not now
            for feature in features:
                end_time = self._feature_end_times[feature.uri]
                self.client.finish_item(feature.handle, FinishRequest(end_time=end_time))
                if self.callback_reporting:
                    self.item_tree.remove_feature(feature.uri)
            self._features.clear()
            self._feature_end_times.clear()

        with self._root_lock:
            if self._root is not None:
                self.client.finish_item(self._root, FinishRequest(end_time=self._clock()))
                self._root = None

        self.client.finish_launch(launch, FinishRequest(end_time=self._clock()))
        self._launch = None
        logger.info(f"Finished launch with {len(features)} feature(s)")

    def on_source_read(self, event: SourceRead) -> None:
        self.sources.put(event.uri, event.source)

    # ─────────────────────────────────────────────────────────────────────────
    # Test cases
    # ─────────────────────────────────────────────────────────────────────────

    def on_case_started(self, event: CaseStarted) -> None:
        feature = self._feature(event.uri)
        if feature.uri != event.uri:
            raise ContractViolation("Scenario URI does not match Feature URI.")

        created = feature.scenario_context(event)
        with self._scenario_lock:
            scenario = self._scenarios.setdefault(created.key, created)
        if scenario is not created:
            raise ContractViolation(
                f"Attempt to re-set item handle of scenario {scenario.definition.name!r} "
                f"at {scenario.feature_uri}:{scenario.line}"
            )

        definition = scenario.definition
        name = build_name(definition.keyword, COLON_INFIX, definition.name)
        if scenario.outline_iteration is not None:
            name += f" [{scenario.outline_iteration}]"

        ref = code_ref(event.uri, scenario.line, self.config.source_root)
        rq = StartItemRequest(
            name=name,
            type=self.hierarchy.scenario_item_type,
            start_time=self._clock(),
            description=event.uri,
            attributes=scenario.attributes,
            code_ref=ref,
            test_case_id=ref if self.hierarchy.scenario_item_type == STEP_ITEM_TYPE else None,
        )
        scenario.handle = self.client.start_item(feature.handle, rq)
        if self.callback_reporting:
            self.item_tree.add_scenario(event.uri, scenario.line, scenario.handle)
        logger.debug(f"Started {name!r} ({event.uri}:{scenario.line})")

    def on_case_finished(self, event: CaseFinished) -> None:
        scenario = self._scenario(event.key)
        handle = scenario.finish()
        end_time = self._clock()
        self.client.finish_item(
            handle,
            FinishRequest(end_time=end_time, status=map_item_status(event.result.status)),
        )

        with self._scenario_lock:
            self._scenarios.pop(event.key, None)
        with self._feature_lock:
            self._feature_end_times[scenario.feature_uri] = end_time
        if self.callback_reporting:
            self.item_tree.remove_scenario(scenario.feature_uri, scenario.line)
        logger.debug(
            f"Finished {scenario.definition.name!r} ({event.uri}:{scenario.line}) "
            f"as {event.result.status.value}"
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Steps and hooks
    # ─────────────────────────────────────────────────────────────────────────

    def on_step_started(self, event: StepStarted) -> None:
        scenario = self._scenario(event.key)
        if isinstance(event.step, HookStep):
            self._start_hook(scenario, event.step)
            return

        prefix = ""
        if scenario.with_background():
            prefix = scenario.background_prefix
            scenario.next_background_step()
        self._start_step(scenario, event.step, prefix)

    def on_step_finished(self, event: StepFinished) -> None:
        scenario = self._scenario(event.key)
        if isinstance(event.step, HookStep):
            self._finish_hook(scenario, event.step, event.result)
        else:
            self._finish_step(scenario, event.result)

    def build_step_request(
        self, scenario: ScenarioContext, step: PickleStep, prefix: str = ""
    ) -> StartItemRequest:
        """
        Start request of an ordinary step item.

        Raises:
            UnknownStepLineError: If the step line is not in the scenario
        """
        gherkin_step = scenario.get_step(step)
        keyword = step.keyword or gherkin_step.keyword
        fallback = code_ref(scenario.feature_uri, step.line, self.config.source_root)
        ref = step_code_ref(step.definition, fallback)
        arguments = step.definition_arguments
        definition = step.definition

        return StartItemRequest(
            name=build_name(prefix, keyword, step.text),
            type=STEP_ITEM_TYPE,
            start_time=self._clock(),
            description=build_multiline_argument(step.argument or gherkin_step.argument),
            attributes=parse_attributes(definition.attributes) if definition else [],
            code_ref=ref,
            parameters=build_parameters(arguments),
            test_case_id=build_test_case_id(ref, arguments, definition),
            has_stats=self.hierarchy.step_has_stats,
        )

    def _start_step(self, scenario: ScenarioContext, step: PickleStep, prefix: str) -> None:
        if scenario.open_step is not None:
            raise ContractViolation(
                f"Step {step.text!r} started while another step of {scenario!r} is open"
            )
        rq = self.build_step_request(scenario, step, prefix)
        scenario.open_step = self.client.start_item(scenario.handle, rq)
        scenario.current_text = step.text
        if self.callback_reporting:
            self.item_tree.add_step(scenario.feature_uri, scenario.line, step.text, scenario.open_step)

    def _finish_step(self, scenario: ScenarioContext, result: Result) -> None:
        handle = scenario.open_step
        if handle is None:
            raise ContractViolation(f"Step finished without an open step in {scenario!r}")
        self._report_result(handle, result)
        self.client.finish_item(
            handle,
            FinishRequest(end_time=self._clock(), status=map_item_status(result.status)),
        )
        scenario.open_step = None

    def _start_hook(self, scenario: ScenarioContext, hook: HookStep) -> None:
        if scenario.open_hook is not None:
            raise ContractViolation(
                f"Hook {hook.hook_type.value} started while another hook of {scenario!r} is open"
            )
        item_type, name = hook_item(hook.hook_type)
        rq = StartItemRequest(
            name=name,
            type=item_type,
            start_time=self._clock(),
            code_ref=hook.code_location or None,
            has_stats=self.hierarchy.step_has_stats,
        )
        scenario.open_hook = self.client.start_item(scenario.handle, rq)
        scenario.hook_status = Status.PASSED

    def _finish_hook(self, scenario: ScenarioContext, hook: HookStep, result: Result) -> None:
        handle = scenario.open_hook
        if handle is None:
            raise ContractViolation(f"Hook finished without an open hook in {scenario!r}")
        self._report_result(handle, result, hook_message(hook.hook_type, hook.code_location))
        scenario.hook_status = result.status
        self.client.finish_item(
            handle,
            FinishRequest(end_time=self._clock(), status=map_item_status(scenario.hook_status)),
        )
        scenario.open_hook = None
        if hook.hook_type == HookType.AFTER_STEP and self.callback_reporting:
            self.item_tree.remove_step(scenario.feature_uri, scenario.line, scenario.current_text)

    def _report_result(self, item: ItemHandle, result: Result, message: str | None = None) -> None:
        level = map_log_level(result.status)
        now = self._clock()
        for text in (message, result.error_message, result.stack_trace):
            if text:
                self.client.emit_log(LogRequest(message=text, level=level, time=now, item=item))

    # ─────────────────────────────────────────────────────────────────────────
    # Side channels
    # ─────────────────────────────────────────────────────────────────────────

    def on_embed(self, event: Embed) -> None:
        mime_type = detect_mime_type(event.data, event.media_type)
        category = mime_category(mime_type)
        attachment = Attachment(
            name=f"{category or 'file'}-{uuid.uuid4().hex[:8]}",
            content_type=mime_type,
            data=event.data,
        )
        self.client.emit_attachment(
            LogRequest(
                message=category,
                level=LogLevel.UNKNOWN.value,
                time=self._clock(),
                item=self._log_target(event.key),
                attachment=attachment,
            )
        )

    def on_write(self, event: Write) -> None:
        self.client.emit_log(
            LogRequest(
                message=event.text,
                level=LogLevel.INFO.value,
                time=self._clock(),
                item=self._log_target(event.key),
            )
        )

    def _log_target(self, key: tuple[int, str] | None) -> ItemHandle | None:
        """Innermost open item of a case, or None for launch level."""
        if key is None:
            return None
        with self._scenario_lock:
            scenario = self._scenarios.get(key)
        if scenario is None or not scenario.started:
            logger.warning(f"No running scenario at {key[1]}:{key[0]}, logging at launch level")
            return None
        return scenario.open_hook or scenario.open_step or scenario.handle

    # ─────────────────────────────────────────────────────────────────────────
    # Lookups
    # ─────────────────────────────────────────────────────────────────────────

    def _require_launch(self) -> ItemHandle:
        if self._launch is None:
            raise ContractViolation("Run has not been started")
        return self._launch

    def _feature(self, uri: str) -> FeatureContext:
        """Feature context of a URI, opening its item exactly once."""
        tree = self.sources.feature(uri)
        with self._feature_lock:
            feature = self._features.get(uri)
            if feature is not None:
                return feature

            self._require_launch()
            feature = FeatureContext.create(uri, tree)
            rq = StartItemRequest(
                name=build_name(tree.keyword, COLON_INFIX, tree.name),
                type=self.hierarchy.feature_item_type,
                start_time=self._clock(),
                description=tree.description or None,
                attributes=feature.attributes,
                code_ref=code_ref(uri, FEATURE_LINE, self.config.source_root),
            )
            feature.handle = self.client.start_item(self._root_item(), rq)
            self._features[uri] = feature
            if self.callback_reporting:
                self.item_tree.add_feature(uri, feature.handle)
            logger.debug(f"Started feature {tree.name!r} ({uri})")
            return feature

    def _root_item(self) -> ItemHandle | None:
        """Parent of feature items: the synthetic root if the hierarchy has one."""
        if not self.hierarchy.has_root:
            return None
        with self._root_lock:
            if self._root is None:
                rq = self.hierarchy.root_item_request(self._clock())
                self._root = self.client.start_item(None, rq)
            return self._root

    def _scenario(self, key: tuple[int, str]) -> ScenarioContext:
        with self._scenario_lock:
            scenario = self._scenarios.get(key)
        if scenario is None:
            raise ContractViolation(f"No running scenario at {key[1]}:{key[0]}")
        return scenario
