"""Pipeline orchestration for the district enclave analysis"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Callable
from datetime import datetime
from pathlib import Path
import logging
from enum import Enum

from ..algorithms import PreviewSimplifier, PolygonDecomposer, MetricsEngine
from ..algorithms.compactness import ensure_projected
from ..data import BoundarySource, DistrictLoader, TigerBoundarySource
from ..reporting import Reporter
from ..utils.config import PipelineConfig
from .cache import SnapshotCache, DiskCacheBackend


class StepStatus(str, Enum):
    """Pipeline step status"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class PipelineStep:
    """Individual pipeline step"""
    name: str
    function: Callable
    dependencies: List[str] = field(default_factory=list)
    optional: bool = False


@dataclass
class StepResult:
    """Result from a pipeline step"""
    step_name: str
    status: StepStatus
    start_time: datetime
    end_time: datetime
    output: Any = None
    error: Optional[str] = None

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()


@dataclass
class PipelineResult:
    """Overall pipeline execution result"""
    pipeline_id: str
    start_time: datetime
    end_time: datetime
    status: str  # "success", "partial_success", "failed"
    step_results: Dict[str, StepResult]
    final_output: Optional[Any] = None
    error_summary: List[str] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)


class Pipeline:
    """Generic single-threaded pipeline; steps run in dependency order"""

    def __init__(self, name: str):
        """Initialize pipeline

        Args:
            name: Pipeline name
        """
        self.name = name
        self.steps: Dict[str, PipelineStep] = {}
        self.logger = logging.getLogger(f"pipeline.{name}")

    def add_step(self, step: PipelineStep):
        """Add step to pipeline

        Args:
            step: Pipeline step to add
        """
        self.steps[step.name] = step

    def execute(self, context: Dict[str, Any]) -> PipelineResult:
        """Execute pipeline

        Args:
            context: Execution context

        Returns:
            PipelineResult with execution details
        """
        pipeline_id = context.get('pipeline_id', str(datetime.now().timestamp()))
        start_time = datetime.now()
        step_results: Dict[str, StepResult] = {}

        self.logger.info(f"Starting pipeline execution: {pipeline_id}")

        execution_order = self._determine_execution_order()

        for step_name in execution_order:
            step = self.steps[step_name]

            if not self._check_dependencies(step, step_results):
                now = datetime.now()
                if step.optional:
                    step_results[step_name] = StepResult(
                        step_name=step_name,
                        status=StepStatus.SKIPPED,
                        start_time=now,
                        end_time=now
                    )
                    continue

                step_results[step_name] = StepResult(
                    step_name=step_name,
                    status=StepStatus.FAILED,
                    start_time=now,
                    end_time=now,
                    error="Dependencies not met"
                )
                break

            step_result = self._execute_step(step, context, step_results)
            step_results[step_name] = step_result

            if step_result.status == StepStatus.FAILED and not step.optional:
                self.logger.error(f"Required step {step_name} failed, stopping pipeline")
                break

        failed_steps = [r for r in step_results.values() if r.status == StepStatus.FAILED]
        if not failed_steps:
            status = "success"
        elif all(self.steps[r.step_name].optional for r in failed_steps):
            status = "partial_success"
        else:
            status = "failed"

        final_step = execution_order[-1] if execution_order else None
        final_output = None
        if final_step and final_step in step_results:
            final_output = step_results[final_step].output

        error_summary = [
            f"{r.step_name}: {r.error}"
            for r in step_results.values()
            if r.status == StepStatus.FAILED and r.error
        ]

        metrics = {
            'total_duration_seconds': (datetime.now() - start_time).total_seconds(),
            'steps_executed': len(step_results),
            'steps_succeeded': sum(1 for r in step_results.values() if r.status == StepStatus.COMPLETED),
            'steps_failed': len(failed_steps)
        }

        self.logger.info(f"Pipeline {pipeline_id} finished with status {status}")

        return PipelineResult(
            pipeline_id=pipeline_id,
            start_time=start_time,
            end_time=datetime.now(),
            status=status,
            step_results=step_results,
            final_output=final_output,
            error_summary=error_summary,
            metrics=metrics
        )

    def _determine_execution_order(self) -> List[str]:
        """Determine step execution order based on dependencies"""
        order = []
        visited = set()

        def visit(step_name: str):
            if step_name in visited:
                return
            visited.add(step_name)

            step = self.steps.get(step_name)
            if step:
                for dep in step.dependencies:
                    if dep in self.steps:
                        visit(dep)
                order.append(step_name)

        for step_name in self.steps:
            visit(step_name)

        return order

    def _check_dependencies(self, step: PipelineStep, results: Dict[str, StepResult]) -> bool:
        """Check if step dependencies are met"""
        for dep in step.dependencies:
            if dep not in results:
                return False
            if results[dep].status not in [StepStatus.COMPLETED, StepStatus.SKIPPED]:
                return False
        return True

    def _execute_step(self, step: PipelineStep, context: Dict[str, Any],
                      previous_results: Dict[str, StepResult]) -> StepResult:
        """Execute a single pipeline step"""
        start_time = datetime.now()
        self.logger.info(f"Executing step: {step.name}")

        try:
            output = step.function(context, previous_results)
        except Exception as e:
            self.logger.exception(f"Step {step.name} failed: {str(e)}")
            return StepResult(
                step_name=step.name,
                status=StepStatus.FAILED,
                start_time=start_time,
                end_time=datetime.now(),
                error=str(e)
            )

        return StepResult(
            step_name=step.name,
            status=StepStatus.COMPLETED,
            start_time=start_time,
            end_time=datetime.now(),
            output=output
        )


class DistrictPipeline(Pipeline):
    """Load -> simplify -> decompose -> metrics -> report"""

    def __init__(self, config: PipelineConfig, source: Optional[BoundarySource] = None):
        """Initialize district pipeline

        Args:
            config: Run configuration
            source: Boundary source; TIGER/Line downloads when omitted
        """
        super().__init__("district_enclaves")
        self.config = config
        self.source = source or TigerBoundarySource(config.download_dir)

        self.cache = None
        if config.cache_dir is not None:
            self.cache = SnapshotCache(DiskCacheBackend(config.cache_dir))

        self._setup_steps()

    def _setup_steps(self):
        """Set up pipeline steps"""
        self.add_step(PipelineStep(
            name="load_districts",
            function=self._load_districts_step
        ))

        # Previews only feed plots; the report falls back to original geometry
        self.add_step(PipelineStep(
            name="simplify_previews",
            function=self._simplify_previews_step,
            dependencies=["load_districts"],
            optional=True
        ))

        self.add_step(PipelineStep(
            name="decompose",
            function=self._decompose_step,
            dependencies=["load_districts"]
        ))

        self.add_step(PipelineStep(
            name="compute_metrics",
            function=self._compute_metrics_step,
            dependencies=["decompose"]
        ))

        self.add_step(PipelineStep(
            name="render_report",
            function=self._render_report_step,
            dependencies=["compute_metrics"]
        ))

    def _load_districts_step(self, context: Dict[str, Any],
                             previous_results: Dict[str, StepResult]) -> Dict[str, Any]:
        loader = DistrictLoader(
            self.source,
            regions=self.config.regions,
            variants=self.config.variants,
            year=self.config.year,
            cache=self.cache
        )
        districts = loader.load()

        return {
            'districts': districts,
            'skipped': loader.skipped,
            'record_count': len(districts)
        }

    def _simplify_previews_step(self, context: Dict[str, Any],
                                previous_results: Dict[str, StepResult]) -> Dict[str, Any]:
        districts = previous_results['load_districts'].output['districts']

        simplifier = PreviewSimplifier(
            max_memory_mb=self.config.preview_memory_mb,
            initial_tolerance=self.config.preview_tolerance
        )
        preview = simplifier.simplify(districts)

        return {
            'preview': preview,
            'tolerance': simplifier.tolerance_used
        }

    def _decompose_step(self, context: Dict[str, Any],
                        previous_results: Dict[str, StepResult]) -> Dict[str, Any]:
        districts = previous_results['load_districts'].output['districts']
        projected = ensure_projected(districts, self.config.area_crs)

        parts = PolygonDecomposer().decompose(projected)

        return {
            'parts': parts,
            'part_count': len(parts)
        }

    def _compute_metrics_step(self, context: Dict[str, Any],
                              previous_results: Dict[str, StepResult]) -> Dict[str, Any]:
        districts = previous_results['load_districts'].output['districts']
        parts = previous_results['decompose'].output['parts']

        engine = MetricsEngine(
            area_crs=self.config.area_crs,
            match_policy=self.config.match_policy
        )
        metrics = engine.compute(districts, parts)

        return {
            'metrics': metrics,
            'enclave_relations': len(metrics.enclaves)
        }

    def _render_report_step(self, context: Dict[str, Any],
                            previous_results: Dict[str, StepResult]) -> Dict[str, Any]:
        districts = previous_results['load_districts'].output['districts']
        metrics = previous_results['compute_metrics'].output['metrics']

        preview = None
        simplify_result = previous_results.get('simplify_previews')
        if simplify_result is not None and simplify_result.status == StepStatus.COMPLETED:
            preview = simplify_result.output['preview']

        reporter = Reporter(
            top_n=self.config.top_n,
            area_unit=self.config.area_unit,
            report_format=self.config.report_format,
            area_crs=self.config.area_crs
        )
        output_dir = context.get('output_dir', self.config.output_dir)
        report = reporter.render(
            districts,
            metrics,
            preview=preview,
            output_dir=Path(output_dir) if output_dir is not None else None,
            plots=context.get('plots', True)
        )

        return {
            'report': report,
            'files_generated': [str(p) for p in report.files]
        }
